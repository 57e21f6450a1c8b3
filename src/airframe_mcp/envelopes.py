"""Pydantic models for the JSON-RPC envelopes exchanged with the remote server."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

JSONRPC_VERSION = "2.0"

# Method names on the remote endpoint
METHOD_TOOLS_LIST = "tools/list"
METHOD_TOOLS_CALL = "tools/call"
METHOD_PROGRESS = "notifications/progress"

# JSON-RPC "internal error"; used for every failure the bridge synthesizes itself
BRIDGE_ERROR_CODE = -32603


class RpcError(BaseModel):
    """Failure member of a JSON-RPC response."""

    code: int
    message: str
    data: Any = None


class OutboundEnvelope(BaseModel):
    """A single request sent to the remote server."""

    jsonrpc: str = JSONRPC_VERSION
    id: int
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json()


class InboundEnvelope(BaseModel):
    """A response from the remote server, or one synthesized locally on failure.

    Exactly one of ``result`` and ``error`` is present.
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = JSONRPC_VERSION
    id: int | str | None = None
    result: Any = None
    error: RpcError | None = None

    @model_validator(mode="after")
    def _check_result_or_error(self) -> "InboundEnvelope":
        has_result = "result" in self.model_fields_set
        if self.error is None and not has_result:
            raise ValueError("response carries neither result nor error")
        if self.error is not None and has_result:
            raise ValueError("response carries both result and error")
        return self

    @classmethod
    def failure(
        cls, request_id: int | str | None, message: str, code: int = BRIDGE_ERROR_CODE
    ) -> "InboundEnvelope":
        """Build a failure envelope for an error detected by the bridge."""
        return cls(id=request_id, error=RpcError(code=code, message=message))

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ProgressEvent(BaseModel):
    """Params of a ``notifications/progress`` message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    progress_token: str | int = Field(alias="progressToken")
    progress: float
    total: float | None = None
    message: str | None = None


def is_progress_notification(message: dict) -> bool:
    """Progress notifications carry the progress method and no id."""
    return message.get("method") == METHOD_PROGRESS and "id" not in message
