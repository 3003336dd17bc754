"""
scheduling_api

Scheduling platform API: versioned HTTP surface, auth guards, throttling, caching and
background jobs over a read/write split database.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
