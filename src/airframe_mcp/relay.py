"""Re-emits remote progress notifications to the local MCP client."""

import logging
from typing import Protocol

from pydantic import ValidationError

from airframe_mcp.envelopes import ProgressEvent
from airframe_mcp.pending import PendingCalls

logger = logging.getLogger("airframe_mcp.relay")


class NotificationSink(Protocol):
    """Anything that can push an unsolicited progress notification to the caller."""

    async def send_progress(self, event: ProgressEvent) -> None: ...


class ProgressRelay:
    """Best-effort forwarding of progress events.

    Failures are logged and never propagate to the call that owns the stream.
    """

    def __init__(self, sink: NotificationSink | None, pending: PendingCalls | None = None):
        self.sink = sink
        self.pending = pending

    async def relay_message(self, message: dict) -> bool:
        """Relay a raw ``notifications/progress`` message from the stream."""
        try:
            event = ProgressEvent.model_validate(message.get("params") or {})
        except ValidationError as e:
            logger.warning(f"Dropping malformed progress notification: {e.errors()[0]['msg']}")
            return False
        return await self.relay(event)

    async def relay(self, event: ProgressEvent) -> bool:
        """Forward one progress event.

        Returns:
            True if the event reached the sink
        """
        if self.sink is None:
            logger.debug("No notification sink; dropping progress event")
            return False

        if self.pending is not None and not self.pending.is_active_token(event.progress_token):
            logger.warning(f"Dropping progress for unknown token {event.progress_token!r}")
            return False

        try:
            await self.sink.send_progress(event)
        except Exception as e:
            logger.error(f"Failed to forward progress notification: {e}")
            return False
        return True
