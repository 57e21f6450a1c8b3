"""Bridge orchestrator: maps local MCP operations onto remote JSON-RPC calls."""

import itertools
import logging
import uuid
from typing import Any

import httpx

from airframe_mcp.config import (
    MAX_ERROR_BODY_CHARS,
    MAX_RESPONSE_SIZE,
    REQUEST_TIMEOUT_SECONDS,
)
from airframe_mcp.envelopes import METHOD_TOOLS_CALL, METHOD_TOOLS_LIST, OutboundEnvelope
from airframe_mcp.forwarder import RequestForwarder
from airframe_mcp.pending import PendingCalls
from airframe_mcp.relay import NotificationSink, ProgressRelay

logger = logging.getLogger("airframe_mcp.bridge")


class RemoteToolError(Exception):
    """The remote server (or the forwarder) reported a failure for tools/list."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class AirframeBridge:
    """Relays tool listing and tool calls to Airframe's HTTP MCP server.

    The bridge knows nothing about the local transport beyond a
    NotificationSink used to push progress events back to the caller.
    """

    def __init__(
        self,
        api_key: str,
        server_url: str,
        sink: NotificationSink | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_response_bytes: int = MAX_RESPONSE_SIZE,
        max_error_body_chars: int = MAX_ERROR_BODY_CHARS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.pending = PendingCalls()
        self.relay = ProgressRelay(sink, self.pending)
        self.forwarder = RequestForwarder(
            api_key,
            server_url,
            self.relay,
            self.pending,
            timeout=timeout,
            max_response_bytes=max_response_bytes,
            max_error_body_chars=max_error_body_chars,
            transport=transport,
        )
        self._request_ids = itertools.count(1)

    @property
    def sink(self) -> NotificationSink | None:
        return self.relay.sink

    @sink.setter
    def sink(self, sink: NotificationSink | None) -> None:
        self.relay.sink = sink

    async def __aenter__(self) -> "AirframeBridge":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.forwarder.aclose()

    def _envelope(self, method: str, params: dict[str, Any]) -> OutboundEnvelope:
        return OutboundEnvelope(id=next(self._request_ids), method=method, params=params)

    async def list_capabilities(self) -> list[dict[str, Any]]:
        """Fetch the remote tool descriptors.

        Returns:
            Tool descriptor dicts, empty if the remote result has none

        Raises:
            RemoteToolError: If the remote call failed
        """
        response = await self.forwarder.forward(self._envelope(METHOD_TOOLS_LIST, {}))
        if response.error is not None:
            raise RemoteToolError(response.error.message, code=response.error.code)

        result = response.result if isinstance(response.result, dict) else {}
        return list(result.get("tools") or [])

    async def invoke_capability(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        progress_token: str | int | None = None,
    ) -> dict[str, Any]:
        """Call a remote tool.

        Failures come back as a single ``Error: ...`` text block rather than
        an exception, so the calling agent can read them and retry.
        """
        if progress_token is None:
            progress_token = str(uuid.uuid4())

        envelope = self._envelope(
            METHOD_TOOLS_CALL,
            {
                "name": name,
                "arguments": arguments or {},
                "_meta": {"progressToken": progress_token},
            },
        )
        response = await self.forwarder.forward(envelope, progress_token=progress_token)

        if response.error is not None:
            return {"content": [{"type": "text", "text": f"Error: {response.error.message}"}]}

        result = response.result if isinstance(response.result, dict) else {}
        reply: dict[str, Any] = {"content": list(result.get("content") or [])}
        for key in ("structuredContent", "isError"):
            if key in result:
                reply[key] = result[key]
        return reply
