"""
MCP stdio server exposing the Gmail tools.

The caller identity comes from ``MAILGATE_USER_ID`` in the process
environment, set by the front end that launches this server, and never from
tool arguments.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Mapping, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from mailgate.core.config import AppSettings, get_settings
from mailgate.core.errors import BadRequestError, ConfigurationError, UnsupportedOperation
from mailgate.core.logging import configure_logging
from mailgate.services.dispatcher import AUTHENTICATE_OPERATION, ToolDispatcher

logger = logging.getLogger(__name__)


class McpToolset:
    """Adapter between MCP tool calls and the dispatcher."""

    def __init__(self, dispatcher: ToolDispatcher, caller_user_id: Optional[str]) -> None:
        self._dispatcher = dispatcher
        self._caller_user_id = caller_user_id

    def _user_id(self) -> str:
        if not self._caller_user_id:
            raise ConfigurationError("MAILGATE_USER_ID env missing")
        return self._caller_user_id

    def describe(self, name: str) -> str:
        return self._dispatcher.operations[name].description

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> str:
        try:
            result = await self._dispatcher.dispatch(name, self._user_id(), arguments)
        except (BadRequestError, ConfigurationError, UnsupportedOperation) as exc:
            raise ToolError(str(exc)) from exc
        return result.text


def register_tools(mcp: FastMCP, toolset: McpToolset) -> None:
    """Register the Gmail tools with the MCP server."""

    @mcp.tool(name=AUTHENTICATE_OPERATION, description=toolset.describe(AUTHENTICATE_OPERATION))
    async def authenticate_gmail() -> str:
        return await toolset.call(AUTHENTICATE_OPERATION)

    @mcp.tool(name="send_email", description=toolset.describe("send_email"))
    async def send_email(to: str, subject: str, body: str) -> str:
        """
        Args:
            to: Recipient email address
            subject: Email subject
            body: Plain-text body
        """
        return await toolset.call("send_email", {"to": to, "subject": subject, "body": body})

    @mcp.tool(name="read_emails", description=toolset.describe("read_emails"))
    async def read_emails(query: str = "", maxResults: int = 10) -> str:
        """
        Args:
            query: Gmail search query
            maxResults: How many emails (default 10)
        """
        return await toolset.call("read_emails", {"query": query, "maxResults": maxResults})


def build_server(dispatcher: ToolDispatcher, settings: AppSettings) -> FastMCP:
    mcp = FastMCP("mailgate")
    register_tools(mcp, McpToolset(dispatcher, settings.caller_user_id))
    return mcp


def main() -> None:
    """Start the OAuth listener and serve MCP over stdio."""
    from mailgate.dependencies import get_tool_dispatcher
    from mailgate.services.oauth_listener import get_oauth_listener

    settings = get_settings()
    configure_logging(settings.log_level, stream=sys.stderr)

    get_oauth_listener().start()
    server = build_server(get_tool_dispatcher(), settings)
    logger.info("mailgate MCP server ready (stdio)")
    server.run()


if __name__ == "__main__":  # pragma: no cover
    main()


__all__ = ["McpToolset", "build_server", "main", "register_tools"]
