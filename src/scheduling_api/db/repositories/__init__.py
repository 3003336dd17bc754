"""
scheduling_api.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for the persistence layer.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; transactions and business rules belong in services.
# A repository is bound to whichever session it is given (read replica or primary).
