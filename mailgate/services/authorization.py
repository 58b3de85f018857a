"""
Authorization-code flow: consent redirect and callback exchange.

The flow is stateless on the server. The user identifier travels inside a
signed ``state`` value and is only used to decide whose tokens to store.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

from mailgate.clients.google_auth import GoogleOAuthClient, OAuthStateEncoder
from mailgate.clients.sqlite_store import SQLiteTokenStore
from mailgate.core.config import GoogleSettings, OAuthSettings
from mailgate.core.errors import BadRequestError, ConfigurationError, NotFoundError
from mailgate.models.oauth import CredentialRecord

logger = logging.getLogger(__name__)


class AuthorizationFlow:
    """Start and complete the OAuth consent flow for one provider."""

    def __init__(
        self,
        *,
        oauth_client: GoogleOAuthClient,
        state_encoder: Optional[OAuthStateEncoder],
        store: SQLiteTokenStore,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oauth = oauth_client
        self._state_encoder = state_encoder
        self._store = store
        self._google = google_settings
        self._oauth_settings = oauth_settings
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._google.configured and self._state_encoder is not None

    @property
    def provider(self) -> str:
        return self._oauth_settings.provider

    def _require_enabled(self) -> OAuthStateEncoder:
        if not self.enabled or self._state_encoder is None:
            raise ConfigurationError(
                "GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET are not configured; OAuth is disabled."
            )
        return self._state_encoder

    def build_authorization_url(self, user_id: str) -> str:
        """Return the provider consent URL carrying ``user_id`` in the state."""
        encoder = self._require_enabled()
        if not user_id:
            raise BadRequestError("Missing user param")
        state = encoder.encode(
            {
                "user_id": user_id,
                "nonce": uuid.uuid4().hex,
                "issued_at": self._clock(),
            }
        )
        return self._oauth.build_authorization_url(state=state)

    def _user_from_state(self, state: str) -> str:
        encoder = self._require_enabled()
        state_data = encoder.decode(state)

        issued_at = state_data.get("issued_at")
        if not isinstance(issued_at, (int, float)):
            raise BadRequestError("Missing issued_at in state token.")
        if self._clock() - issued_at > self._oauth_settings.state_ttl_seconds:
            raise BadRequestError("OAuth state token has expired.")

        user_id = state_data.get("user_id")
        if not user_id or not isinstance(user_id, str):
            raise BadRequestError("Missing user identifier in state token.")
        return user_id

    async def complete(self, code: Optional[str], state: Optional[str]) -> CredentialRecord:
        """Exchange ``code`` and persist the tokens for the user named in ``state``.

        Raises ``ProviderExchangeError`` when the provider rejects the code; in
        that case nothing is written.
        """
        if not code or not state:
            raise BadRequestError("Missing code/state")
        user_id = self._user_from_state(state)

        access_token, refresh_token, expires_in = await self._oauth.exchange_authorization_code(code)

        self._store.upsert(
            user_id,
            self.provider,
            refresh_token=refresh_token,
            access_token=access_token,
            expires_in=expires_in,
            scopes=self._oauth_settings.scopes,
        )
        record = self._store.get(user_id, self.provider)
        if record is None:  # pragma: no cover - deleted concurrently
            raise NotFoundError(f"Credential for user {user_id} vanished after storing.")
        logger.info("Completed %s authorization for user %s", self.provider, user_id)
        return record


__all__ = ["AuthorizationFlow"]
