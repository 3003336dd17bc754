"""
scheduling_api.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, read/write engine + session setup, and repositories.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services depend on repositories, never on engines; swapping the replica topology
# only touches `db.session`.
