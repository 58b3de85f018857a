"""
FastAPI routes for the OAuth consent flow.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse

from mailgate.core.errors import (
    BadRequestError,
    ConfigurationError,
    NotFoundError,
    ProviderExchangeError,
    StorageError,
)
from mailgate.dependencies import (
    get_app_settings,
    get_authorization_flow,
    get_token_refresh_service,
)
from mailgate.schemas import OAuthErrorResponse, RefreshResponse

router = APIRouter()
logger = logging.getLogger(__name__)

_CONNECTED_PAGE = """
<h2>Gmail connected!</h2>
<p>You may now close this tab and return to your chat.</p>
<script>setTimeout(() => window.close(), 3000);</script>
"""


def _error_json(status: HTTPStatus, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=OAuthErrorResponse(error=message).model_dump(),
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/start")
async def start_oauth_flow(
    flow: Annotated[Any, Depends(get_authorization_flow)],
    user: str | None = Query(default=None, description="User identifier to connect."),
):
    """Redirect the browser to the provider consent screen."""
    if not user:
        return PlainTextResponse("Missing user param", status_code=HTTPStatus.BAD_REQUEST)
    try:
        authorization_url = flow.build_authorization_url(user)
    except ConfigurationError as exc:
        logger.warning("Authorization requested while OAuth is disabled: %s", exc)
        return PlainTextResponse(
            "OAuth is not configured", status_code=HTTPStatus.SERVICE_UNAVAILABLE
        )
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)


@router.get("/auth/callback")
async def handle_oauth_callback(
    flow: Annotated[Any, Depends(get_authorization_flow)],
    code: str | None = Query(default=None, description="Authorization code."),
    state: str | None = Query(default=None, description="Signed OAuth state."),
):
    """Exchange the authorization code and store the resulting tokens."""
    if not code or not state:
        return PlainTextResponse("Missing code/state", status_code=HTTPStatus.BAD_REQUEST)
    try:
        await flow.complete(code, state)
    except BadRequestError as exc:
        return PlainTextResponse(str(exc), status_code=HTTPStatus.BAD_REQUEST)
    except ConfigurationError:
        return PlainTextResponse(
            "OAuth is not configured", status_code=HTTPStatus.SERVICE_UNAVAILABLE
        )
    except (ProviderExchangeError, StorageError):
        logger.exception("OAuth callback failed")
        return PlainTextResponse("OAuth failed", status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    return HTMLResponse(_CONNECTED_PAGE)


@router.get("/auth/refresh", response_model=RefreshResponse)
async def refresh_access_token(
    refresher: Annotated[Any, Depends(get_token_refresh_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    user: str | None = Query(default=None, description="User whose token to refresh."),
    refresh: str | None = Query(default=None, description="Refresh token to use."),
):
    """Obtain a new access token with a refresh token."""
    if not user:
        return _error_json(HTTPStatus.BAD_REQUEST, "Missing user")
    if not refresh:
        return _error_json(HTTPStatus.BAD_REQUEST, "Missing refresh")
    try:
        await refresher.refresh(user, settings.oauth.provider, refresh)
    except NotFoundError:
        return _error_json(HTTPStatus.BAD_REQUEST, "No stored credential for user")
    except (ProviderExchangeError, StorageError) as exc:
        logger.warning("Token refresh failed for user %s: %s", user, exc)
        return _error_json(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))

    return RefreshResponse()


__all__ = ["router"]
