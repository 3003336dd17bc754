"""
scheduling_api.api.__main__

Entrypoint for running the FastAPI application via `python -m scheduling_api.api`.

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from scheduling_api.api.app import create_app
from scheduling_api.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Run several uvicorn processes behind a load balancer; with Redis configured they share
# rate limits, guard cache and the job queue.
