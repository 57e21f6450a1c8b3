"""Forwards JSON-RPC envelopes to the remote MCP server over HTTP."""

import asyncio
import json
import logging
from dataclasses import dataclass

import httpx
from httpx_sse import SSEError
from pydantic import ValidationError

from airframe_mcp.config import (
    MAX_ERROR_BODY_CHARS,
    MAX_RESPONSE_SIZE,
    REQUEST_TIMEOUT_SECONDS,
    ConfigurationError,
)
from airframe_mcp.envelopes import InboundEnvelope, OutboundEnvelope
from airframe_mcp.pending import PendingCall, PendingCalls
from airframe_mcp.relay import ProgressRelay
from airframe_mcp.streaming import StreamError, StreamReassembler
from airframe_mcp.url_validation import validate_server_url

logger = logging.getLogger("airframe_mcp.forwarder")

EVENT_STREAM = "text/event-stream"


class ForwardingError(Exception):
    """Transport-level failure while exchanging one envelope."""


@dataclass
class JsonOutcome:
    """The server answered with a single ``application/json`` document."""

    envelope: InboundEnvelope


@dataclass
class StreamOutcome:
    """The server answered with an event stream that was reassembled."""

    envelope: InboundEnvelope


Outcome = JsonOutcome | StreamOutcome


class RequestForwarder:
    """Sends one POST per envelope and turns the answer into an InboundEnvelope.

    ``forward`` never raises: every transport or protocol failure is returned
    as a failure envelope carrying the bridge's internal error code.
    """

    def __init__(
        self,
        api_key: str,
        server_url: str,
        relay: ProgressRelay,
        pending: PendingCalls,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_response_bytes: int = MAX_RESPONSE_SIZE,
        max_error_body_chars: int = MAX_ERROR_BODY_CHARS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        reason = validate_server_url(server_url)
        if reason:
            raise ConfigurationError(reason)

        self.api_key = api_key
        self.server_url = server_url
        self.pending = pending
        self.timeout = timeout
        self.max_response_bytes = max_response_bytes
        self.max_error_body_chars = max_error_body_chars
        self.reassembler = StreamReassembler(relay)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=False,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": f"application/json, {EVENT_STREAM}",
            "X-API-Key": self.api_key,
        }

    async def forward(
        self, envelope: OutboundEnvelope, progress_token: str | int | None = None
    ) -> InboundEnvelope:
        """Send an envelope and wait for its terminal response.

        Args:
            envelope: Request to send
            progress_token: Token the remote side will use for progress events

        Returns:
            The remote response, or a locally built failure envelope
        """
        call = self.pending.open(envelope.id, progress_token)
        try:
            outcome = await asyncio.wait_for(self._exchange(envelope, call), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            message = f"Request timed out after {self.timeout:g} seconds"
        except (ForwardingError, StreamError) as e:
            message = str(e)
        except SSEError as e:
            message = f"Invalid event stream: {e}"
        except httpx.HTTPError as e:
            message = str(e) or type(e).__name__
        else:
            logger.debug(f"Request {envelope.id} answered via {type(outcome).__name__}")
            return outcome.envelope
        finally:
            self.pending.close(envelope.id)

        logger.error(f"Error: {message}")
        return InboundEnvelope.failure(envelope.id, message)

    async def _exchange(self, envelope: OutboundEnvelope, call: PendingCall) -> Outcome:
        async with self._client.stream(
            "POST",
            self.server_url,
            content=envelope.to_json(),
            headers=self._headers(),
        ) as response:
            if not response.is_success:
                raise ForwardingError(await self._error_message(response))

            content_type = response.headers.get("content-type", "").lower()
            if EVENT_STREAM in content_type:
                return StreamOutcome(await self.reassembler.reassemble(response, call))

            return JsonOutcome(await self._read_json(response, envelope.id))

    async def _error_message(self, response: httpx.Response) -> str:
        """Build an error message from at most ``max_error_body_chars`` of the body."""
        limit = self.max_error_body_chars
        body = b""
        async for chunk in response.aiter_bytes():
            body += chunk
            if len(body) >= limit:
                break

        text = body.decode("utf-8", errors="replace")[:limit].strip()
        return f"HTTP {response.status_code}: {text or response.reason_phrase}"

    async def _read_json(self, response: httpx.Response, request_id: int) -> InboundEnvelope:
        """Read a bounded JSON body and parse it as a JSON-RPC response."""
        too_large = f"Response exceeded maximum allowed size ({self.max_response_bytes} bytes)"

        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_response_bytes:
            raise ForwardingError(too_large)

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self.max_response_bytes:
                raise ForwardingError(too_large)

        try:
            document = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
            raise ForwardingError(f"Invalid JSON response: {e}") from e

        try:
            envelope = InboundEnvelope.model_validate(document)
        except ValidationError as e:
            raise ForwardingError(f"Invalid JSON-RPC response: {e.errors()[0]['msg']}") from e

        if envelope.id is not None and envelope.id != request_id:
            logger.warning(f"Response id {envelope.id!r} does not match request id {request_id}")
        return envelope
