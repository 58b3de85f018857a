"""Service layer exports."""

from .authorization import AuthorizationFlow
from .credential_resolver import CredentialResolver
from .dispatcher import Operation, OperationContext, ToolDispatcher
from .token_cipher import TokenCipherService
from .token_refresh import TokenRefreshService

__all__ = [
    "AuthorizationFlow",
    "CredentialResolver",
    "Operation",
    "OperationContext",
    "TokenCipherService",
    "TokenRefreshService",
    "ToolDispatcher",
]
