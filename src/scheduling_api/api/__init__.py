"""
scheduling_api.api

HTTP API package (FastAPI).

Responsibilities:
- App factory, dependency wiring, versioning, throttling and error rendering.
- Routers for health, auth-adjacent endpoints and dated resource controllers.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Business rules live in `scheduling_api.services`; this package only adapts HTTP.
