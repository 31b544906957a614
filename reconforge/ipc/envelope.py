"""
reconforge/ipc/envelope.py

Purpose:
    The messages exchanged between a parent process and a worker.

Semantics:
    - ReadySignal: sent once by the worker before it accepts any request.
    - WorkerRequest: base of every tool-specific request; carries the
      correlation id (``requestId`` on the wire).
    - SuccessResponse / ErrorResponse: exactly one of them answers each
      request, tagged by ``status``.

    Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import re
import traceback
import uuid
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Request ids end up inside staged file names, so they are restricted to
# characters that can never form a path separator.
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")

UNKNOWN_REQUEST_ID = "unknown"


def generate_request_id() -> str:
    """Short correlation id: first 8 hex chars of a random UUID."""
    return uuid.uuid4().hex[:8]


class Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ReadySignal(Envelope):
    status: Literal["ready"] = "ready"


class WorkerRequest(Envelope):
    """Fields shared by every request variant."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    request_id: str = Field(default_factory=generate_request_id)

    @field_validator("request_id", mode="before")
    @classmethod
    def _default_or_check(cls, value: Any) -> Any:
        if value is None or value == "":
            return generate_request_id()
        if not isinstance(value, str) or not REQUEST_ID_PATTERN.match(value):
            raise ValueError("requestId must be 1-64 characters of letters, digits, '.', '_' or '-'")
        return value


class ErrorDetail(Envelope):
    message: str
    stack: str = ""
    type: str = "Error"


class ErrorResponse(Envelope):
    status: Literal["error"] = "error"
    error: ErrorDetail
    request_id: str = UNKNOWN_REQUEST_ID

    @classmethod
    def from_exception(cls, exc: BaseException, request_id: Optional[str] = None) -> "ErrorResponse":
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(
            error=ErrorDetail(message=str(exc) or type(exc).__name__, stack=stack, type=type(exc).__name__),
            request_id=request_id or UNKNOWN_REQUEST_ID,
        )


class SuccessResponse(Envelope):
    status: Literal["success"] = "success"
    metadata: Dict[str, Any]

    @classmethod
    def build(cls, request_id: str, execution_time: float, payload: Dict[str, Any]) -> "SuccessResponse":
        # payload keys are already wire names; the envelope keys win on clash
        metadata = dict(payload)
        metadata["executionTime"] = round(execution_time, 3)
        metadata["requestId"] = request_id
        return cls(metadata=metadata)

    def to_wire(self) -> Dict[str, Any]:
        # Tool payloads may legitimately carry nulls (e.g. an unknown HTTP status)
        return {"status": self.status, "metadata": self.metadata}

    @property
    def request_id(self) -> str:
        return self.metadata["requestId"]
