"""
scheduling_api.api.routers

HTTP routers.

Responsibilities:
- Group version-neutral routers and dated resource controllers.
"""

# Package marker.
