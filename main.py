"""Main entry point for running the Relay FastAPI application."""

import os

import uvicorn
from loguru import logger

from src.api.main import app
from src.core.config import get_settings
from src.core.logging import setup_logging

UVICORN_LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "default": {
            "class": "src.core.logging.InterceptHandler",
        },
    },
    "loggers": {
        name: {"handlers": ["default"], "level": "INFO", "propagate": False}
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
    },
}


def main() -> None:
    """Run the API server with Uvicorn."""
    settings = get_settings()
    setup_logging(settings)

    # Container platforms announce the listening port through PORT
    port = int(os.environ.get("PORT", settings.api_port))

    if settings.debug:
        # Reload needs an import string rather than the app object
        logger.info(
            "Starting Uvicorn on http://{}:{} (development mode with auto-reload)",
            settings.api_host,
            port,
        )
        uvicorn.run(
            "src.api.main:app",
            host=settings.api_host,
            port=port,
            reload=True,
            log_config=UVICORN_LOG_CONFIG,
        )
    else:
        logger.info("Starting Uvicorn on http://{}:{}", settings.api_host, port)
        uvicorn.run(
            app,
            host=settings.api_host,
            port=port,
            reload=False,
            log_config=UVICORN_LOG_CONFIG,
        )


if __name__ == "__main__":
    main()
