"""Expose dependency helpers for FastAPI routers and the MCP server."""

from .clients import (
    get_app_settings,
    get_authorization_flow,
    get_credential_resolver,
    get_gmail_client,
    get_google_oauth_client,
    get_oauth_state_encoder,
    get_token_cipher_service,
    get_token_refresh_service,
    get_token_store,
    get_tool_dispatcher,
)

__all__ = [
    "get_app_settings",
    "get_authorization_flow",
    "get_credential_resolver",
    "get_gmail_client",
    "get_google_oauth_client",
    "get_oauth_state_encoder",
    "get_token_cipher_service",
    "get_token_refresh_service",
    "get_token_store",
    "get_tool_dispatcher",
]
