"""Expose constructed client wrappers."""

from .gmail import GmailClient
from .google_auth import GoogleOAuthClient, OAuthStateEncoder
from .sqlite_store import SQLiteTokenStore

__all__ = [
    "GmailClient",
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "SQLiteTokenStore",
]
