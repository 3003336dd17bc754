"""
scheduling_api.api.routers.bookings

Dated booking controllers.

Responsibilities:
- `v2024_04_15`: original booking contract (startTime/endTime, upper-case status).
- `v2024_08_13`: current contract (start/end/duration, lower-case status, pagination).

Both serve the same paths; `api.versioning` routes each request to one of them.
"""

# Package marker.
