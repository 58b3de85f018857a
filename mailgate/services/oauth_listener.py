"""
Process-wide lifecycle for the OAuth callback HTTP listener.

The listener is started once at process start-up alongside the MCP server.
Starting it again is a no-op, and it lives until the process exits.
"""

from __future__ import annotations

import enum
import logging
import threading
from functools import lru_cache
from typing import Callable, Optional, Protocol

import uvicorn
from fastapi import FastAPI

from mailgate.core.config import AppSettings, get_settings

logger = logging.getLogger(__name__)


class ListenerState(str, enum.Enum):
    IDLE = "idle"
    STARTED = "started"
    DISABLED = "disabled"


class _Server(Protocol):
    def run(self) -> None: ...


def _uvicorn_server(app: FastAPI, host: str, port: int) -> _Server:
    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
    return uvicorn.Server(config)


class OAuthListener:
    """Guarded singleton owning the background HTTP server thread."""

    def __init__(
        self,
        settings: AppSettings,
        app_factory: Callable[[], FastAPI],
        *,
        server_factory: Callable[[FastAPI, str, int], _Server] = _uvicorn_server,
    ) -> None:
        self._settings = settings
        self._app_factory = app_factory
        self._server_factory = server_factory
        self._lock = threading.Lock()
        self._state = ListenerState.IDLE
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def started(self) -> bool:
        return self._state is ListenerState.STARTED

    def start(self) -> ListenerState:
        """Start serving once; later calls return the existing state."""
        with self._lock:
            if self._state is not ListenerState.IDLE:
                return self._state

            if not self._settings.google.configured:
                logger.warning(
                    "GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET missing; OAuth listener not started"
                )
                self._state = ListenerState.DISABLED
                return self._state

            oauth = self._settings.oauth
            server = self._server_factory(self._app_factory(), oauth.host, oauth.port)
            self._thread = threading.Thread(
                target=server.run, name="oauth-listener", daemon=True
            )
            self._thread.start()
            self._state = ListenerState.STARTED
            logger.info("OAuth HTTP listening on %s (%s)", oauth.port, oauth.base_url)
            return self._state


@lru_cache()
def get_oauth_listener() -> OAuthListener:
    """Return the process-wide listener bound to the cached settings."""
    from mailgate.main import create_app

    return OAuthListener(get_settings(), create_app)


__all__ = ["ListenerState", "OAuthListener", "get_oauth_listener"]
