"""
Helpers for deciding whether a stored access token can be used.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from mailgate.clients.sqlite_store import SQLiteTokenStore
from mailgate.core.errors import AuthenticationRequired


class CredentialResolver:
    """Read-only view over the token store that never refreshes.

    A stale token surfaces as "authorization required"; refreshing is the job
    of ``TokenRefreshService``.
    """

    def __init__(
        self,
        store: SQLiteTokenStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    def get_valid_access_token(self, user_id: str, provider: str) -> Optional[str]:
        """Return the stored access token if it is present and unexpired."""
        record = self._store.get(user_id, provider)
        if record is None or record.access_token is None:
            return None
        if not record.access_token.get_secret_value():
            return None
        # No expiry recorded means the token's validity is unknown.
        if record.expires_at is None or self._clock() >= record.expires_at:
            return None
        return record.access_token.get_secret_value()

    def require_access_token(self, user_id: str, provider: str) -> str:
        token = self.get_valid_access_token(user_id, provider)
        if token is None:
            raise AuthenticationRequired(
                f"No valid {provider} access token for user {user_id}."
            )
        return token


__all__ = ["CredentialResolver"]
