"""
Domain models for OAuth token persistence.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class CredentialRecord(BaseModel):
    """Represents one row of the ``oauth_tokens`` table."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="Opaque identifier of the principal.")
    provider: str = Field(..., description="External service the tokens belong to.")
    refresh_token: SecretStr
    access_token: Optional[SecretStr] = None
    expires_at: Optional[float] = Field(
        None, description="Epoch seconds after which the access token is invalid."
    )
    scopes: frozenset[str] = Field(default_factory=frozenset)
    created_at: float
    updated_at: float

    def redacted(self) -> dict:
        """Return a log-safe dictionary without secret values."""
        return {
            "user_id": self.user_id,
            "provider": self.provider,
            "has_access_token": self.access_token is not None,
            "expires_at": self.expires_at,
            "scopes": sorted(self.scopes),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


__all__ = ["CredentialRecord"]
