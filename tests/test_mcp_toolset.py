try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from fastmcp.exceptions import ToolError

from mailgate.mcp_server import McpToolset
from mailgate.services.credential_resolver import CredentialResolver
from mailgate.services.dispatcher import AUTHENTICATE_OPERATION, ToolDispatcher


class NullGmailClient:
    async def send_message(self, access_token, *, to, subject, body):  # pragma: no cover
        raise AssertionError("gmail must not be called")

    async def list_messages(self, access_token, *, query, max_results):  # pragma: no cover
        raise AssertionError("gmail must not be called")


@pytest.fixture
def dispatcher(token_store, clock) -> ToolDispatcher:
    return ToolDispatcher(
        store=token_store,
        resolver=CredentialResolver(token_store, clock=clock),
        gmail_client=NullGmailClient(),
        auth_base_url="http://localhost:3001",
    )


@pytest.mark.asyncio
async def test_toolset_uses_configured_identity(dispatcher) -> None:
    toolset = McpToolset(dispatcher, "librechat-user")

    text = await toolset.call(AUTHENTICATE_OPERATION)

    assert "/auth/start?user=librechat-user" in text


@pytest.mark.asyncio
async def test_toolset_requires_identity(dispatcher) -> None:
    with pytest.raises(ToolError):
        await McpToolset(dispatcher, None).call(AUTHENTICATE_OPERATION)


@pytest.mark.asyncio
async def test_toolset_reports_unknown_tools_as_tool_errors(dispatcher) -> None:
    with pytest.raises(ToolError):
        await McpToolset(dispatcher, "u1").call("unknown_tool")


@pytest.mark.asyncio
async def test_gating_message_is_returned_as_text(dispatcher) -> None:
    text = await McpToolset(dispatcher, "u1").call(
        "send_email", {"to": "a@b.c", "subject": "s", "body": "b"}
    )

    assert AUTHENTICATE_OPERATION in text


def test_descriptions_come_from_operation_table(dispatcher) -> None:
    toolset = McpToolset(dispatcher, "u1")

    assert toolset.describe("send_email") == dispatcher.operations["send_email"].description
