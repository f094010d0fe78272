"""
Desktop-shell API routes: snapshot storage and window controls.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request, status

from schema.shell_models import ShellAckResponse, ShellHealthResponse, ShellLoadResponse
from service.shell_service import ShellStorage, ShellStorageError

logger = logging.getLogger(__name__)

storage_router = APIRouter(prefix="/api/storage", tags=["storage"])
shell_router = APIRouter(prefix="/api/shell", tags=["shell"])
health_router = APIRouter(tags=["health"])


def _storage(request: Request) -> ShellStorage:
    return request.app.state.storage


@health_router.get("/health", response_model=ShellHealthResponse)
async def health(request: Request) -> ShellHealthResponse:
    return ShellHealthResponse(data_file=_storage(request).data_file)


@storage_router.get("/load", response_model=ShellLoadResponse)
async def load_snapshot(request: Request) -> ShellLoadResponse:
    """Return the stored document as written, or null when there is none."""
    return ShellLoadResponse(data=_storage(request).read())


@storage_router.post("/save", response_model=ShellAckResponse)
async def save_snapshot(request: Request, document: Any = Body(...)) -> ShellAckResponse:
    """Replace the stored document with the posted snapshot."""
    try:
        _storage(request).write(document)
    except ShellStorageError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return ShellAckResponse(ok=True)


@storage_router.delete("/clear", response_model=ShellAckResponse)
async def clear_snapshot(request: Request) -> ShellAckResponse:
    try:
        _storage(request).clear()
    except ShellStorageError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return ShellAckResponse(ok=True)


@shell_router.post("/minimize", response_model=ShellAckResponse)
async def minimize_window() -> ShellAckResponse:
    # Headless shell: there is no window to minimize.
    logger.info("Minimize requested")
    return ShellAckResponse(ok=True)


@shell_router.post("/quit", response_model=ShellAckResponse)
async def quit_shell(request: Request) -> ShellAckResponse:
    """Ask the hosting server to shut down after this response."""
    logger.info("Quit signal received, closing shell")
    server = getattr(request.app.state, "server", None)
    if server is None:
        return ShellAckResponse(ok=False, error="Shell is not running under a server")
    server.should_exit = True
    return ShellAckResponse(ok=True)
