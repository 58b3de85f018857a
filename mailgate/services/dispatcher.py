"""
Tool dispatch with credential gating.

Each operation is an entry in a table that declares its argument model and
whether it needs a resolved access token. Operations that need one are never
handed to the Gmail client unless the resolver produced a valid token.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Type, cast
from urllib.parse import quote

from pydantic import BaseModel
from pydantic import ValidationError as ArgumentsValidationError

from mailgate.clients.gmail import GmailClient
from mailgate.clients.sqlite_store import SQLiteTokenStore
from mailgate.core.errors import AuthenticationRequired, BadRequestError, UnsupportedOperation
from mailgate.schemas.tools import NoParams, ReadEmailsParams, SendEmailParams, ToolResult
from mailgate.services.credential_resolver import CredentialResolver

logger = logging.getLogger(__name__)

AUTHENTICATE_OPERATION = "authenticate_gmail"


@dataclass(frozen=True)
class OperationContext:
    """What a handler receives for one request."""

    user_id: str
    params: BaseModel
    access_token: Optional[str] = None


Handler = Callable[[OperationContext], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Operation:
    name: str
    description: str
    params_model: Type[BaseModel]
    requires_credential: bool
    handler: Handler


class ToolDispatcher:
    """Route tool calls to handlers, gating privileged ones on a valid token."""

    def __init__(
        self,
        *,
        store: SQLiteTokenStore,
        resolver: CredentialResolver,
        gmail_client: GmailClient,
        provider: str = "gmail",
        auth_base_url: Optional[str] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._gmail = gmail_client
        self._provider = provider
        self._auth_base_url = auth_base_url.rstrip("/") if auth_base_url else None
        self._operations: dict[str, Operation] = {
            op.name: op
            for op in (
                Operation(
                    name=AUTHENTICATE_OPERATION,
                    description="Connect your Gmail account to enable Gmail tools",
                    params_model=NoParams,
                    requires_credential=False,
                    handler=self._authenticate,
                ),
                Operation(
                    name="send_email",
                    description="Send an email via Gmail",
                    params_model=SendEmailParams,
                    requires_credential=True,
                    handler=self._send_email,
                ),
                Operation(
                    name="read_emails",
                    description="Read your most recent Gmail messages",
                    params_model=ReadEmailsParams,
                    requires_credential=True,
                    handler=self._read_emails,
                ),
            )
        }

    @property
    def operations(self) -> Mapping[str, Operation]:
        return dict(self._operations)

    def authorization_link(self, user_id: str) -> Optional[str]:
        if self._auth_base_url is None:
            return None
        return f"{self._auth_base_url}/auth/start?user={quote(user_id, safe='')}"

    async def dispatch(
        self,
        name: str,
        user_id: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> ToolResult:
        operation = self._operations.get(name)
        if operation is None:
            raise UnsupportedOperation(f"Unknown tool: {name}")
        if not user_id:
            raise BadRequestError("A caller identity is required.")

        access_token = None
        if operation.requires_credential:
            try:
                access_token = self._resolver.require_access_token(user_id, self._provider)
            except AuthenticationRequired:
                logger.info("Refusing %s for user %s: not authenticated", name, user_id)
                return ToolResult(
                    status="authorization_required",
                    text=(
                        "Gmail not connected. Run "
                        f'"{AUTHENTICATE_OPERATION}" first.'
                    ),
                )

        try:
            params = operation.params_model.model_validate(dict(arguments or {}))
        except ArgumentsValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) or "arguments"
                for error in exc.errors()
            )
            raise BadRequestError(f"Invalid arguments for {name}: {fields}") from exc

        return await operation.handler(
            OperationContext(user_id=user_id, params=params, access_token=access_token)
        )

    async def _authenticate(self, context: OperationContext) -> ToolResult:
        if self._store.exists(context.user_id, self._provider):
            return ToolResult(status="connected", text="Gmail already connected!")

        link = self.authorization_link(context.user_id)
        if link is None:
            return ToolResult(
                status="disabled",
                text="Gmail sign-in is not configured on this server.",
            )
        return ToolResult(
            status="authorization_required",
            text=(
                "Gmail not connected yet.\n\n"
                f"Click the link below to authenticate:\n{link}\n\n"
                "After completing the process, re-run your Gmail command."
            ),
        )

    async def _send_email(self, context: OperationContext) -> ToolResult:
        params = cast(SendEmailParams, context.params)
        text = await self._gmail.send_message(
            context.access_token or "",
            to=params.to,
            subject=params.subject,
            body=params.body,
        )
        return ToolResult(text=text)

    async def _read_emails(self, context: OperationContext) -> ToolResult:
        params = cast(ReadEmailsParams, context.params)
        messages = await self._gmail.list_messages(
            context.access_token or "",
            query=params.query,
            max_results=params.max_results,
        )
        return ToolResult(text=json.dumps(messages, indent=2))


__all__ = [
    "AUTHENTICATE_OPERATION",
    "Operation",
    "OperationContext",
    "ToolDispatcher",
]
