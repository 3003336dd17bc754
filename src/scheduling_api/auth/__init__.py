"""
scheduling_api.auth

Authentication/authorization package.

Responsibilities:
- Credential helpers: API keys, JWT access tokens, session tokens.
- Authentication strategies and the caching guard that selects between them.
- FastAPI auth dependencies (Principal + auth-method checks).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Strategies only read from the database; they are safe to run on the read replica.
