"""Reassembly of ``text/event-stream`` responses into a single terminal envelope."""

import json
import logging

import httpx
from httpx_sse import EventSource
from pydantic import ValidationError

from airframe_mcp.envelopes import InboundEnvelope, is_progress_notification
from airframe_mcp.pending import PendingCall
from airframe_mcp.relay import ProgressRelay

logger = logging.getLogger("airframe_mcp.streaming")

NO_RESPONSE_BODY = "No response body"
NO_FINAL_RESULT = "No final result received from SSE stream"


class StreamError(Exception):
    """The stream ended without producing a usable terminal result."""


def _decode_payloads(data: str) -> list[dict]:
    """Parse the data of one SSE event into JSON-RPC messages.

    An event normally holds one JSON document. When its data spans several
    lines that do not parse as a whole, each line is tried on its own so a
    single corrupt line cannot hide its neighbours.
    """
    data = data.strip()
    if not data:
        return []

    try:
        return [json.loads(data)]
    except (json.JSONDecodeError, RecursionError) as e:
        if "\n" not in data:
            logger.warning(f"Failed to parse SSE data: {e}")
            return []

    messages = []
    for line in data.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            messages.append(json.loads(line))
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(f"Failed to parse SSE data: {e}")
    return messages


class StreamReassembler:
    """Consumes one event stream for one outstanding call.

    Progress notifications are relayed as they arrive; the first message
    whose id matches the call is captured as the terminal result.
    """

    def __init__(self, relay: ProgressRelay):
        self.relay = relay

    async def reassemble(self, response: httpx.Response, call: PendingCall) -> InboundEnvelope:
        """Drain ``response`` and return the terminal envelope for ``call``.

        Raises:
            StreamError: If the body is empty or no terminal message arrived
        """
        try:
            received_event = False
            async for sse in EventSource(response).aiter_sse():
                received_event = True
                for message in _decode_payloads(sse.data):
                    await self._handle_message(message, call)

            if call.envelope is not None:
                return call.envelope
            if not received_event:
                raise StreamError(NO_RESPONSE_BODY)
            raise StreamError(NO_FINAL_RESULT)
        finally:
            await response.aclose()

    async def _handle_message(self, message: dict, call: PendingCall) -> None:
        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object SSE message: {type(message).__name__}")
            return

        if is_progress_notification(message):
            if call.resolved:
                logger.debug("Progress after terminal result; ignoring")
                return
            await self.relay.relay_message(message)
            return

        if "id" not in message:
            logger.debug(f"Ignoring notification {message.get('method')!r}")
            return

        if message["id"] != call.correlation_id:
            logger.warning(
                f"Discarding stray SSE message with id {message['id']!r} "
                f"(expected {call.correlation_id})"
            )
            return

        if call.resolved:
            logger.debug(f"Duplicate terminal message for id {call.correlation_id}; ignoring")
            return

        try:
            envelope = InboundEnvelope.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Failed to parse SSE data: {e.errors()[0]['msg']}")
            return
        call.resolve(envelope)
