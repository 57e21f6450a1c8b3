"""Bookkeeping for outbound calls that are still waiting on their terminal result."""

import logging
from dataclasses import dataclass, field

from airframe_mcp.envelopes import InboundEnvelope

logger = logging.getLogger("airframe_mcp.pending")


@dataclass
class PendingCall:
    """Result slot for one outstanding request."""

    correlation_id: int
    progress_token: str | int | None = None
    envelope: InboundEnvelope | None = field(default=None, repr=False)

    @property
    def resolved(self) -> bool:
        return self.envelope is not None

    def resolve(self, envelope: InboundEnvelope) -> bool:
        """Store the terminal envelope. The first one wins.

        Returns:
            True if the envelope was stored, False if the slot was already filled
        """
        if self.envelope is not None:
            return False
        self.envelope = envelope
        return True


class PendingCalls:
    """Map of correlation id to pending result slot, one entry per outstanding call."""

    def __init__(self):
        self._calls: dict[int, PendingCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, correlation_id: object) -> bool:
        return correlation_id in self._calls

    def open(self, correlation_id: int, progress_token: str | int | None = None) -> PendingCall:
        if correlation_id in self._calls:
            raise ValueError(f"Correlation id {correlation_id} is already outstanding")
        call = PendingCall(correlation_id=correlation_id, progress_token=progress_token)
        self._calls[correlation_id] = call
        return call

    def get(self, correlation_id: int | str | None) -> PendingCall | None:
        return self._calls.get(correlation_id)  # type: ignore[arg-type]

    def close(self, correlation_id: int) -> PendingCall | None:
        call = self._calls.pop(correlation_id, None)
        if call is None:
            logger.debug(f"Close for unknown correlation id {correlation_id}")
        return call

    def is_active_token(self, progress_token: str | int) -> bool:
        """Whether a progress token belongs to a call that is still outstanding."""
        return any(call.progress_token == progress_token for call in self._calls.values())
