"""SQLite-backed storage for per-(user, provider) OAuth credentials."""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, TYPE_CHECKING

from mailgate.core.errors import NotFoundError, StorageError, ValidationError
from mailgate.models.oauth import CredentialRecord

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from mailgate.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class SQLiteTokenStore:
    """Credential table keyed by (user_id, provider) with upsert semantics.

    Every operation is a single statement on its own connection, so SQLite's
    row atomicity serializes concurrent writers for the same pair.
    """

    def __init__(
        self,
        db_path: str,
        *,
        cipher: Optional["TokenCipherService"] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._cipher = cipher
        self._clock = clock
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=10.0)
        except sqlite3.Error as exc:
            logger.exception("Unable to open credential database")
            raise StorageError("Credential storage is unavailable.") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.exception("Credential database operation failed")
            raise StorageError("Credential storage operation failed.") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS oauth_tokens (
                    user_id       TEXT NOT NULL,
                    provider      TEXT NOT NULL,
                    refresh_token TEXT NOT NULL,
                    access_token  TEXT,
                    expires_at    REAL,
                    scopes        TEXT,
                    created_at    REAL NOT NULL,
                    updated_at    REAL NOT NULL,
                    PRIMARY KEY (user_id, provider)
                )
                """
            )

    def _seal(self, value: Optional[str]) -> Optional[str]:
        if value is None or self._cipher is None:
            return value
        return self._cipher.encrypt(value)

    def _unseal(self, value: Optional[str]) -> Optional[str]:
        if value is None or self._cipher is None:
            return value
        if not self._cipher.is_token(value):
            # Written before TOKEN_ENCRYPTION_SECRET was set; rotate-key seals it.
            logger.warning("Stored token is not encrypted; run manage_tokens rotate-key")
            return value
        try:
            return self._cipher.decrypt(value)
        except ValueError as exc:
            logger.error("Stored token could not be decrypted; check TOKEN_ENCRYPTION_SECRET")
            raise StorageError("Stored credential is unreadable.") from exc

    def _reseal(self, value: Optional[str]) -> Optional[str]:
        if not value or self._cipher is None:
            return value
        if self._cipher.is_token(value):
            return self._cipher.rotate(value)
        return self._cipher.encrypt(value)

    def _to_record(self, row: sqlite3.Row) -> CredentialRecord:
        scopes = row["scopes"] or ""
        return CredentialRecord(
            user_id=row["user_id"],
            provider=row["provider"],
            refresh_token=self._unseal(row["refresh_token"]),
            access_token=self._unseal(row["access_token"]),
            expires_at=row["expires_at"],
            scopes=frozenset(scope for scope in scopes.split(",") if scope),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def upsert(
        self,
        user_id: str,
        provider: str,
        *,
        refresh_token: str,
        access_token: Optional[str] = None,
        expires_in: Optional[float] = None,
        scopes: Iterable[str] = (),
    ) -> None:
        """Insert or fully replace the credential for ``(user_id, provider)``."""
        if not refresh_token:
            raise ValidationError("refresh_token is required to store a credential.")
        if not user_id or not provider:
            raise ValidationError("user_id and provider are required.")

        access_token = access_token or None
        now = self._clock()
        expires_at = (
            now + expires_in
            if access_token is not None and expires_in is not None
            else None
        )
        scope_text = ",".join(sorted(set(scopes)))

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO oauth_tokens (
                    user_id, provider, refresh_token, access_token,
                    expires_at, scopes, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, provider) DO UPDATE SET
                    refresh_token = excluded.refresh_token,
                    access_token  = excluded.access_token,
                    expires_at    = excluded.expires_at,
                    scopes        = excluded.scopes,
                    updated_at    = excluded.updated_at
                """,
                (
                    user_id,
                    provider,
                    self._seal(refresh_token),
                    self._seal(access_token),
                    expires_at,
                    scope_text,
                    now,
                    now,
                ),
            )
        logger.info("Stored %s credential for user %s", provider, user_id)

    def get(self, user_id: str, provider: str) -> Optional[CredentialRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM oauth_tokens WHERE user_id = ? AND provider = ?",
                (user_id, provider),
            ).fetchone()
        if not row:
            return None
        return self._to_record(row)

    def exists(self, user_id: str, provider: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM oauth_tokens WHERE user_id = ? AND provider = ? LIMIT 1",
                (user_id, provider),
            ).fetchone()
        return row is not None

    def update_access_token(
        self,
        user_id: str,
        provider: str,
        *,
        access_token: str,
        expires_in: float,
    ) -> None:
        """Replace the access token and its expiry; refresh token and scopes stay."""
        if not access_token:
            raise ValidationError("access_token is required.")
        now = self._clock()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE oauth_tokens
                SET access_token = ?, expires_at = ?, updated_at = ?
                WHERE user_id = ? AND provider = ?
                """,
                (self._seal(access_token), now + expires_in, now, user_id, provider),
            )
            updated = cursor.rowcount
        if updated == 0:
            raise NotFoundError(
                f"No {provider} credential stored for user {user_id}; authorize first."
            )
        logger.info("Refreshed %s access token for user %s", provider, user_id)

    def delete(self, user_id: str, provider: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM oauth_tokens WHERE user_id = ? AND provider = ?",
                (user_id, provider),
            )

    def reencrypt_all(self) -> int:
        """Re-encrypt every stored token under the cipher's current secret.

        Plaintext tokens left from before encryption was enabled are encrypted.
        """
        if self._cipher is None:
            raise ValidationError("No token cipher configured; nothing to re-encrypt.")
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT user_id, provider, refresh_token, access_token FROM oauth_tokens"
            ).fetchall()
            try:
                for row in rows:
                    conn.execute(
                        """
                        UPDATE oauth_tokens SET refresh_token = ?, access_token = ?
                        WHERE user_id = ? AND provider = ?
                        """,
                        (
                            self._reseal(row["refresh_token"]),
                            self._reseal(row["access_token"]),
                            row["user_id"],
                            row["provider"],
                        ),
                    )
            except ValueError as exc:
                raise StorageError("Stored credential is unreadable.") from exc
        return len(rows)

    def list_for_user(self, user_id: str) -> list[CredentialRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM oauth_tokens WHERE user_id = ? ORDER BY provider",
                (user_id,),
            ).fetchall()
        return [self._to_record(row) for row in rows]


__all__ = ["SQLiteTokenStore"]
