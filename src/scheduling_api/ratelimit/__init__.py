"""
scheduling_api.ratelimit

Rate limiting adapters.

Responsibilities:
- Define the limiter interface and result type.
- Provide an in-process limiter (dev/test) and a Redis limiter shared by all API workers.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The HTTP wiring (tracker selection, headers, 429) lives in `api.throttling`.
