"""
Application configuration models and helpers.

Centralizes settings management so the OAuth HTTP listener and the MCP tool
server share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GoogleSettings(BaseSettings):
    """Client credentials for the Google OAuth application."""

    model_config = SettingsConfigDict(populate_by_name=True)

    client_id: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_SECRET")

    @property
    def configured(self) -> bool:
        """Both client id and secret are required for the OAuth flow."""
        return bool(self.client_id and self.client_secret)


class OAuthSettings(BaseSettings):
    """OAuth flow and callback listener configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    host: str = Field("127.0.0.1", validation_alias="GMAIL_OAUTH_HOST")
    port: int = Field(3001, validation_alias="GMAIL_OAUTH_PORT")
    public_base_url: Optional[str] = Field(
        None,
        validation_alias="GMAIL_OAUTH_BASE_URL",
        description="Externally reachable base URL; defaults to localhost and the port.",
    )
    provider: str = Field("gmail", validation_alias="OAUTH_PROVIDER")
    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/gmail.send",
        ),
        validation_alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())

    @property
    def base_url(self) -> str:
        base = self.public_base_url or f"http://localhost:{self.port}"
        return base.rstrip("/")

    @property
    def redirect_uri(self) -> str:
        return f"{self.base_url}/auth/callback"


class StorageSettings(BaseSettings):
    """Location of the credential database."""

    model_config = SettingsConfigDict(populate_by_name=True)

    db_path: str = Field(
        str(Path.cwd() / "tokens.db"),
        validation_alias="OAUTH_DB_PATH",
        description="SQLite file holding oauth_tokens; parent directories are created.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    previous_token_encryption_secrets: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Comma-separated retired secrets still accepted for decryption.",
    )

    @field_validator("previous_token_encryption_secrets", mode="before")
    @classmethod
    def _split_secrets(cls, value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
        if isinstance(value, (tuple, list)):
            return tuple(value)
        return tuple(secret.strip() for secret in value.split(",") if secret.strip())


class AppSettings(BaseSettings):
    """Root settings object shared by the HTTP listener and the MCP server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="MAILGATE_ENV")
    log_level: str = Field("INFO", validation_alias="MAILGATE_LOG_LEVEL")
    caller_user_id: Optional[str] = Field(
        None,
        validation_alias="MAILGATE_USER_ID",
        description="Identity of the principal the MCP front end acts for.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SecuritySettings",
    "StorageSettings",
    "get_settings",
]
