"""
Desktop-shell service entry point.

Run with ``lumina-shell`` (or ``python -m service.shell_app`` from ``src``) and
point the planner UI at it with ``SHELL_URL=http://127.0.0.1:8765``.
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI

from core.settings import settings
from service.routes.shell import health_router, shell_router, storage_router
from service.shell_service import ShellStorage

logger = logging.getLogger(__name__)


def create_app(data_file: Optional[str] = None) -> FastAPI:
    """Build the shell API around one snapshot file."""
    app = FastAPI(title="Lumina Planner Shell")
    app.state.storage = ShellStorage(data_file)
    app.state.server = None
    app.include_router(health_router)
    app.include_router(storage_router)
    app.include_router(shell_router)
    return app


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    config = uvicorn.Config(app, host=settings.SHELL_HOST, port=settings.SHELL_PORT)
    server = uvicorn.Server(config)
    app.state.server = server
    logger.info(f"Shell ready, data file: {app.state.storage.data_file}")
    server.run()


if __name__ == "__main__":
    main()
