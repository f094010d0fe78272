"""
HTTP client for the desktop-shell bridge.

The shell owns the on-disk snapshot and the application window. It is only
reachable when ``SHELL_URL`` is configured; callers fall back to local storage
otherwise.
"""

import logging
from typing import Any, Optional

import httpx

from core.settings import settings

logger = logging.getLogger(__name__)


class ShellBridgeError(Exception):
    """Raised when the shell cannot be reached or rejects a request."""

    pass


class ShellBridge:
    """Async client for the shell's storage and window-control endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def _request(self, method: str, path: str, payload: Any = None) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise ShellBridgeError(f"Shell request {method} {path} failed: {e}") from e

        if response.status_code != 200:
            raise ShellBridgeError(
                f"Shell request {method} {path} returned {response.status_code}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise ShellBridgeError(f"Shell returned invalid JSON for {path}: {e}") from e

    async def is_available(self) -> bool:
        """Return True when the shell answers its health check."""
        try:
            await self._request("GET", "/health")
            return True
        except ShellBridgeError as e:
            logger.info(f"Desktop shell not available at {self.base_url}: {e}")
            return False

    async def save(self, snapshot: dict) -> bool:
        result = await self._request("POST", "/api/storage/save", snapshot)
        return bool(result.get("ok", False))

    async def load(self) -> Any:
        """Return the raw stored document (object, legacy list, or None)."""
        result = await self._request("GET", "/api/storage/load")
        return result.get("data")

    async def clear(self) -> bool:
        result = await self._request("DELETE", "/api/storage/clear")
        return bool(result.get("ok", False))

    async def quit(self) -> bool:
        result = await self._request("POST", "/api/shell/quit")
        return bool(result.get("ok", False))

    async def minimize(self) -> bool:
        result = await self._request("POST", "/api/shell/minimize")
        return bool(result.get("ok", False))


def get_shell_bridge() -> Optional[ShellBridge]:
    """Build a bridge from settings, or None when no shell is configured."""
    if not settings.SHELL_URL:
        return None
    return ShellBridge(settings.SHELL_URL, timeout=settings.SHELL_TIMEOUT)
