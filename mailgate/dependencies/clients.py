"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The MCP server uses the same factories so both execution contexts share one
token store configuration.
"""

from functools import lru_cache
from typing import Optional

from mailgate.clients import GmailClient, GoogleOAuthClient, OAuthStateEncoder, SQLiteTokenStore
from mailgate.core.config import AppSettings, get_settings
from mailgate.services import (
    AuthorizationFlow,
    CredentialResolver,
    TokenCipherService,
    TokenRefreshService,
    ToolDispatcher,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings()


@lru_cache()
def get_token_cipher_service() -> Optional[TokenCipherService]:
    """Provide the at-rest token cipher when an encryption secret is configured."""
    security = _settings().security
    if not security.token_encryption_secret:
        return None
    return TokenCipherService(
        secret=security.token_encryption_secret,
        previous_secrets=security.previous_token_encryption_secrets,
    )


@lru_cache()
def get_token_store() -> SQLiteTokenStore:
    """Provide the shared credential store."""
    return SQLiteTokenStore(
        _settings().storage.db_path,
        cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_oauth_state_encoder() -> Optional[OAuthStateEncoder]:
    """Provide an OAuth state encoder keyed by the client secret, if there is one."""
    settings = _settings()
    secret = settings.google.client_secret
    if not secret:
        return None
    return OAuthStateEncoder(secret_key=secret)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(settings.google, settings.oauth)


@lru_cache()
def get_authorization_flow() -> AuthorizationFlow:
    """Provide the consent/callback flow bound to the shared store."""
    settings = _settings()
    return AuthorizationFlow(
        oauth_client=get_google_oauth_client(),
        state_encoder=get_oauth_state_encoder(),
        store=get_token_store(),
        google_settings=settings.google,
        oauth_settings=settings.oauth,
    )


@lru_cache()
def get_token_refresh_service() -> TokenRefreshService:
    """Provide the explicit refresh path."""
    return TokenRefreshService(get_token_store(), get_google_oauth_client())


@lru_cache()
def get_credential_resolver() -> CredentialResolver:
    """Provide the read-only access token resolver."""
    return CredentialResolver(get_token_store())


@lru_cache()
def get_gmail_client() -> GmailClient:
    """Provide the Gmail API client."""
    return GmailClient()


@lru_cache()
def get_tool_dispatcher() -> ToolDispatcher:
    """Provide the credential-gated tool dispatcher."""
    settings = _settings()
    return ToolDispatcher(
        store=get_token_store(),
        resolver=get_credential_resolver(),
        gmail_client=get_gmail_client(),
        provider=settings.oauth.provider,
        auth_base_url=settings.oauth.base_url if settings.google.configured else None,
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
