"""
Pydantic models for tool arguments and tool results.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SendEmailParams(BaseModel):
    """Arguments for sending a plain-text email."""

    model_config = ConfigDict(extra="forbid")

    to: str = Field(..., min_length=3, description="Recipient email address.")
    subject: str = Field(..., description="Email subject.")
    body: str = Field(..., description="Plain-text body.")


class ReadEmailsParams(BaseModel):
    """Arguments for listing recent messages."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    query: str = Field("", description="Gmail search query.")
    max_results: int = Field(
        10,
        ge=1,
        le=500,
        alias="maxResults",
        description="How many emails to return.",
    )


class NoParams(BaseModel):
    """Operations that take nothing besides the caller identity."""

    model_config = ConfigDict(extra="forbid")


ToolStatus = Literal["ok", "connected", "authorization_required", "disabled"]


class ToolResult(BaseModel):
    """Human-readable outcome of a dispatched operation."""

    status: ToolStatus = "ok"
    text: str


__all__ = [
    "NoParams",
    "ReadEmailsParams",
    "SendEmailParams",
    "ToolResult",
    "ToolStatus",
]
