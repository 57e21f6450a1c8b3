"""Local MCP transport: serves the bridge to Claude Desktop over stdio."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from airframe_mcp import __version__
from airframe_mcp.envelopes import ProgressEvent

logger = logging.getLogger("airframe_mcp.transport")

ListHandler = Callable[[], Awaitable[list[dict[str, Any]]]]
CallHandler = Callable[[str, dict[str, Any], str | int | None], Awaitable[dict[str, Any]]]


class LocalTransport(Protocol):
    """The two things the bridge needs from the local side."""

    def register(self, list_handler: ListHandler, call_handler: CallHandler) -> None: ...

    async def send_progress(self, event: ProgressEvent) -> None: ...


class McpLocalTransport:
    """LocalTransport backed by the low-level ``mcp`` Server."""

    def __init__(self, name: str = "airframe", version: str = __version__):
        self.server = Server(name, version=version)

    def register(self, list_handler: ListHandler, call_handler: CallHandler) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[types.Tool]:
            descriptors = await list_handler()
            return [types.Tool.model_validate(descriptor) for descriptor in descriptors]

        # Schemas belong to the remote server; arguments pass through unchecked.
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict) -> types.CallToolResult:
            reply = await call_handler(name, arguments, self._caller_progress_token())
            return types.CallToolResult.model_validate(reply)

    def _caller_progress_token(self) -> str | int | None:
        meta = self.server.request_context.meta
        if meta is None:
            return None
        return meta.progressToken

    async def send_progress(self, event: ProgressEvent) -> None:
        session = self.server.request_context.session
        await session.send_progress_notification(
            progress_token=event.progress_token,
            progress=event.progress,
            total=event.total,
            message=event.message,
        )

    async def run(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Bridge started successfully")
            await self.server.run(
                read_stream, write_stream, self.server.create_initialization_options()
            )
