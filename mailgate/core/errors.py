"""
Error taxonomy shared by the token store, OAuth flow, and tool dispatcher.

Routes and the MCP layer translate these into caller-facing responses; raw
provider or storage details stay in the logs.
"""


class MailgateError(Exception):
    """Base class for every error raised by the service."""


class ValidationError(MailgateError, ValueError):
    """Raised when the token store receives malformed input."""


class NotFoundError(MailgateError, LookupError):
    """Raised when an operation presumes a credential record that does not exist."""


class ConfigurationError(MailgateError):
    """Raised when provider client credentials or caller identity are missing."""


class ProviderExchangeError(MailgateError):
    """Raised when the provider rejects a code or refresh token, or is unreachable."""


class AuthenticationRequired(MailgateError):
    """Raised when no valid access token is available for a user."""


class UnsupportedOperation(MailgateError):
    """Raised when a caller requests an operation the dispatcher does not know."""


class BadRequestError(MailgateError, ValueError):
    """Raised for missing or malformed request parameters."""


class StorageError(MailgateError):
    """Raised when the credential store cannot complete an operation."""


__all__ = [
    "AuthenticationRequired",
    "BadRequestError",
    "ConfigurationError",
    "MailgateError",
    "NotFoundError",
    "ProviderExchangeError",
    "StorageError",
    "UnsupportedOperation",
    "ValidationError",
]
