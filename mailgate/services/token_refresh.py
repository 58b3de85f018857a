"""Explicit access-token refresh against the provider's token endpoint."""

from __future__ import annotations

import logging
from typing import Optional

from mailgate.clients.google_auth import GoogleOAuthClient
from mailgate.clients.sqlite_store import SQLiteTokenStore
from mailgate.core.errors import NotFoundError
from mailgate.models.oauth import CredentialRecord

logger = logging.getLogger(__name__)


class TokenRefreshService:
    """Obtain a new access token with a refresh token and record it."""

    def __init__(self, store: SQLiteTokenStore, oauth_client: GoogleOAuthClient) -> None:
        self._store = store
        self._oauth = oauth_client

    async def refresh(
        self,
        user_id: str,
        provider: str,
        refresh_token: Optional[str] = None,
    ) -> CredentialRecord:
        """Refresh the stored access token.

        Uses ``refresh_token`` when given, otherwise the stored one. The record
        must already exist; a provider failure leaves it untouched.
        """
        record = self._store.get(user_id, provider)
        if record is None:
            raise NotFoundError(
                f"No {provider} credential stored for user {user_id}; authorize first."
            )
        token = refresh_token or record.refresh_token.get_secret_value()

        access_token, expires_in = await self._oauth.refresh_token(token)
        self._store.update_access_token(
            user_id,
            provider,
            access_token=access_token,
            expires_in=expires_in,
        )
        refreshed = self._store.get(user_id, provider)
        if refreshed is None:  # pragma: no cover - deleted concurrently
            raise NotFoundError(f"Credential for user {user_id} vanished during refresh.")
        return refreshed


__all__ = ["TokenRefreshService"]
