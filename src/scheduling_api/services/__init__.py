"""
scheduling_api.services

Service layer.

Responsibilities:
- Own transactions (commit/rollback) and business rules.
- Coordinate repositories, the cache and the job queue.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: they authenticate, validate input and delegate here.
