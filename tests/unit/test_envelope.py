"""Unit tests for protocol envelopes."""
import re

import pytest
from pydantic import ValidationError

from reconforge.ipc.envelope import (
    ErrorResponse,
    ReadySignal,
    SuccessResponse,
    WorkerRequest,
    generate_request_id,
)


class TestRequestIds:

    def test_generated_id_is_short_hex(self):
        assert re.fullmatch(r"[0-9a-f]{8}", generate_request_id())

    def test_missing_id_is_generated(self):
        assert re.fullmatch(r"[0-9a-f]{8}", WorkerRequest().request_id)

    @pytest.mark.parametrize("value", [None, ""])
    def test_null_or_empty_id_is_generated(self, value):
        request = WorkerRequest.model_validate({"requestId": value})
        assert len(request.request_id) == 8

    def test_supplied_id_is_kept(self):
        assert WorkerRequest.model_validate({"requestId": "scan-42.a_b"}).request_id == "scan-42.a_b"

    @pytest.mark.parametrize("value", ["../etc", "a b", "x" * 65, 12])
    def test_unsafe_ids_are_rejected(self, value):
        """Ids end up in file names; anything path-like is refused."""
        with pytest.raises(ValidationError):
            WorkerRequest.model_validate({"requestId": value})


class TestWireFormat:

    def test_ready_signal(self):
        assert ReadySignal().to_wire() == {"status": "ready"}

    def test_success_metadata_carries_id_and_time(self):
        response = SuccessResponse.build("abc123", 1.23456, {"results": ["http://a.example.com"]})
        assert response.to_wire() == {
            "status": "success",
            "metadata": {"results": ["http://a.example.com"], "executionTime": 1.235, "requestId": "abc123"},
        }
        assert response.request_id == "abc123"

    def test_envelope_keys_win_over_payload(self):
        response = SuccessResponse.build("abc123", 0.5, {"requestId": "spoofed", "executionTime": 99})
        assert response.metadata["requestId"] == "abc123"
        assert response.metadata["executionTime"] == 0.5

    def test_success_payload_keeps_nulls(self):
        response = SuccessResponse.build("abc123", 0.0, {"responses": [{"url": "u", "status": None}]})
        assert response.to_wire()["metadata"]["responses"] == [{"url": "u", "status": None}]

    def test_error_from_exception(self):
        try:
            raise ValueError("boom")
        except ValueError as exc:
            wire = ErrorResponse.from_exception(exc, "abc123").to_wire()

        assert wire["status"] == "error"
        assert wire["requestId"] == "abc123"
        assert wire["error"]["message"] == "boom"
        assert wire["error"]["type"] == "ValueError"
        assert "ValueError: boom" in wire["error"]["stack"]

    def test_error_without_id_is_unknown(self):
        wire = ErrorResponse.from_exception(RuntimeError("x")).to_wire()
        assert wire["requestId"] == "unknown"

    def test_error_message_falls_back_to_type(self):
        wire = ErrorResponse.from_exception(KeyError()).to_wire()
        assert wire["error"]["message"] == "KeyError"
