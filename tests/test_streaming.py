"""Tests for event-stream reassembly."""

import logging

import httpx
import pytest

from airframe_mcp.pending import PendingCalls
from airframe_mcp.relay import ProgressRelay
from airframe_mcp.streaming import (
    NO_FINAL_RESULT,
    NO_RESPONSE_BODY,
    StreamError,
    StreamReassembler,
)
from helpers import (
    RecordingSink,
    sse_data,
    sse_progress,
    sse_response,
    sse_result,
    text_result,
)


@pytest.fixture
def pending():
    return PendingCalls()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def reassembler(recording_sink, pending):
    return StreamReassembler(ProgressRelay(recording_sink, pending))


class TestReassemble:
    """Direct tests of StreamReassembler.reassemble."""

    @pytest.mark.asyncio
    async def test_progress_then_result(self, reassembler, pending, recording_sink):
        call = pending.open(1, progress_token="tok-1")
        response = sse_response([
            sse_progress("tok-1", 1, 3),
            "",
            sse_progress("tok-1", 2, 3),
            "",
            sse_result(1, text_result("final answer")),
            "",
        ])

        envelope = await reassembler.reassemble(response, call)

        assert envelope.result == text_result("final answer")
        assert [e.progress for e in recording_sink.events] == [1, 2]
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_many_progress_events_keep_order(self, reassembler, pending, recording_sink):
        call = pending.open(1, progress_token="tok-1")
        lines = []
        for i in range(25):
            lines += [sse_progress("tok-1", i, 25), ""]
        lines += [sse_result(1, text_result("done")), ""]

        envelope = await reassembler.reassemble(sse_response(lines), call)

        assert [e.progress for e in recording_sink.events] == list(range(25))
        assert envelope.result == text_result("done")

    @pytest.mark.asyncio
    async def test_stray_id_is_discarded(self, reassembler, pending, caplog):
        call = pending.open(2)
        response = sse_response([
            sse_result(99, text_result("not mine")),
            "",
            sse_result(2, text_result("mine")),
            "",
        ])

        with caplog.at_level(logging.WARNING):
            envelope = await reassembler.reassemble(response, call)

        assert envelope.result == text_result("mine")
        assert "stray" in caplog.text

    @pytest.mark.asyncio
    async def test_first_terminal_message_wins(self, reassembler, pending):
        call = pending.open(1)
        response = sse_response([
            sse_result(1, text_result("first")),
            "",
            sse_result(1, text_result("second")),
            "",
        ])

        envelope = await reassembler.reassemble(response, call)

        assert envelope.result == text_result("first")

    @pytest.mark.asyncio
    async def test_progress_after_result_not_relayed(self, reassembler, pending, recording_sink):
        call = pending.open(1, progress_token="tok-1")
        response = sse_response([
            sse_result(1, text_result("done")),
            "",
            sse_progress("tok-1", 1, 1),
            "",
        ])

        await reassembler.reassemble(response, call)

        assert recording_sink.events == []

    @pytest.mark.asyncio
    async def test_malformed_line_is_skipped(self, reassembler, pending, caplog):
        call = pending.open(1)
        response = sse_response([
            "data: {invalid json}",
            "",
            sse_result(1, text_result("ok")),
            "",
        ])

        with caplog.at_level(logging.WARNING):
            envelope = await reassembler.reassemble(response, call)

        assert "Failed to parse SSE data" in caplog.text
        assert envelope.result == text_result("ok")

    @pytest.mark.asyncio
    async def test_deeply_nested_line_is_skipped(self, reassembler, pending):
        call = pending.open(1)
        response = sse_response(["data: " + "[" * 100000, "", sse_result(1, text_result("ok")), ""])

        envelope = await reassembler.reassemble(response, call)

        assert envelope.result == text_result("ok")

    @pytest.mark.asyncio
    async def test_corrupt_line_inside_multiline_event(self, reassembler, pending, recording_sink):
        """Data lines without a blank separator are still parsed one by one."""
        call = pending.open(1, progress_token="tok-1")
        response = sse_response([
            sse_progress("tok-1", 1, 2),
            "data: {broken",
            sse_result(1, text_result("ok")),
            "",
        ])

        envelope = await reassembler.reassemble(response, call)

        assert len(recording_sink.events) == 1
        assert envelope.result == text_result("ok")

    @pytest.mark.asyncio
    async def test_empty_data_lines_ignored(self, reassembler, pending):
        call = pending.open(1)
        response = sse_response(["data: ", "", sse_result(1, text_result("ok")), ""])

        envelope = await reassembler.reassemble(response, call)

        assert envelope.result == text_result("ok")

    @pytest.mark.asyncio
    async def test_other_notifications_ignored(self, reassembler, pending, recording_sink):
        call = pending.open(1)
        response = sse_response([
            sse_data({"jsonrpc": "2.0", "method": "notifications/message", "params": {}}),
            "",
            sse_result(1, text_result("ok")),
            "",
        ])

        envelope = await reassembler.reassemble(response, call)

        assert recording_sink.events == []
        assert envelope.result == text_result("ok")


class TestStreamFailures:
    """Streams that end without a usable terminal message."""

    @pytest.mark.asyncio
    async def test_no_final_result(self, reassembler, pending):
        call = pending.open(1, progress_token="tok-1")
        response = sse_response([sse_progress("tok-1", 1, 2), ""])

        with pytest.raises(StreamError, match=NO_FINAL_RESULT):
            await reassembler.reassemble(response, call)

        assert response.is_closed

    @pytest.mark.asyncio
    async def test_empty_body(self, reassembler, pending):
        call = pending.open(1)
        response = httpx.Response(200, headers={"content-type": "text/event-stream"}, content=b"")

        with pytest.raises(StreamError, match=NO_RESPONSE_BODY):
            await reassembler.reassemble(response, call)

        assert response.is_closed

    @pytest.mark.asyncio
    async def test_blank_events_without_result(self, reassembler, pending):
        """Events carrying no terminal message are not an empty body."""
        call = pending.open(1)
        response = sse_response(["data: ", "", ": keep-alive", "data: {broken", ""])

        with pytest.raises(StreamError, match=NO_FINAL_RESULT):
            await reassembler.reassemble(response, call)
