"""Public schema exports."""

from .auth import OAuthErrorResponse, RefreshResponse
from .tools import NoParams, ReadEmailsParams, SendEmailParams, ToolResult, ToolStatus

__all__ = [
    "NoParams",
    "OAuthErrorResponse",
    "ReadEmailsParams",
    "RefreshResponse",
    "SendEmailParams",
    "ToolResult",
    "ToolStatus",
]
