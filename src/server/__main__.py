"""Server module entry point for running with python -m server."""

import os

import uvicorn

# Import logging configuration first so handlers exist before uvicorn starts
from sectionwiki.utils.logging_config import get_logger

logger = get_logger(__name__)

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")  # noqa: S104
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "false").lower() == "true"

    logger.info(
        "Starting sectionwiki server",
        extra={
            "host": host,
            "port": port,
        },
    )

    uvicorn.run(
        "server.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )
