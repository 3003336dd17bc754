"""
scheduling_api.cache

TTL key/value cache used for guard results and per-key rate-limit lookups.

Responsibilities:
- Define the cache interface the API depends on.
- Provide in-process and Redis backends plus a settings-driven factory.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Callers own their key namespaces (`auth:*`, `ratelimits:*`); the cache is a plain TTL store.
