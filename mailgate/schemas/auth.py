"""Schemas related to OAuth flows."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RefreshResponse(BaseModel):
    """Body returned when an access token was refreshed."""

    ok: bool = Field(True, description="Always true on success.")


class OAuthErrorResponse(BaseModel):
    """Body returned when an OAuth endpoint fails."""

    error: str = Field(..., description="Caller-safe description of the failure.")


__all__ = ["OAuthErrorResponse", "RefreshResponse"]
