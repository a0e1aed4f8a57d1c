"""Tests for SSE framing and the per-run progress channel"""
import json
import sys
import time
from pathlib import Path

import pytest

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from pagegen_api.core.progress_channel import ProgressChannel
from pagegen_api.core.sse import SSEDecoder, format_event, parse_event
from pagegen_api.models.schemas import (
    CompleteEvent,
    ErrorEvent,
    GeneratedPage,
    PageHero,
    ProgressMessage,
)


def make_complete() -> CompleteEvent:
    page = GeneratedPage(
        id="abc12345",
        title="Test",
        hero=PageHero(headline="H", subheadline="S", cta_text="Go"),
    )
    return CompleteEvent(spec=page, preview_url="/preview/abc12345", raw_text="{}")


class TestFraming:

    def test_progress_frame(self):
        frame = format_event(ProgressMessage(message="Detected free-form prompt"))
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"type": "progress", "message": "Detected free-form prompt"}

    def test_complete_frame_uses_camel_case_and_omits_unset_fields(self):
        payload = json.loads(format_event(make_complete())[len("data: "):])
        assert payload["type"] == "complete"
        assert payload["previewUrl"] == "/preview/abc12345"
        assert payload["rawText"] == "{}"
        assert payload["spec"]["hero"]["ctaText"] == "Go"
        assert payload["spec"]["hero"]["imageUrl"] == ""
        assert "html" not in payload["spec"]
        assert "codeHtml" not in payload
        assert "diagnostics" not in payload

    def test_dict_frame(self):
        assert format_event({"type": "error", "message": "x"}) == 'data: {"type": "error", "message": "x"}\n\n'


class TestDecoder:

    def test_frames_split_across_chunks(self):
        decoder = SSEDecoder()
        stream = (format_event(ProgressMessage(message="one")) + format_event(ProgressMessage(message="two"))).encode()

        events = []
        for i in range(0, len(stream), 7):
            events.extend(decoder.feed(stream[i:i + 7]))

        assert [e["message"] for e in events] == ["one", "two"]

    def test_multibyte_character_split_across_chunks(self):
        decoder = SSEDecoder()
        data = format_event(ProgressMessage(message="Café ✓")).encode("utf-8")
        split = data.index("✓".encode("utf-8")) + 1

        assert decoder.feed(data[:split]) == []
        assert decoder.feed(data[split:]) == [{"type": "progress", "message": "Café ✓"}]

    def test_malformed_frames_are_dropped(self):
        decoder = SSEDecoder()
        events = decoder.feed('data: {not json}\n\n: comment\n\nevent: ping\n\ndata: {"type":"progress","message":"ok"}\n\n')
        assert events == [{"type": "progress", "message": "ok"}]

    def test_multi_line_frame_keeps_only_data_lines(self):
        decoder = SSEDecoder()
        events = decoder.feed('id: 1\ndata:{"type":"progress","message":"a"}\nretry: 10\n\n')
        assert events == [{"type": "progress", "message": "a"}]

    def test_incomplete_frame_is_buffered(self):
        decoder = SSEDecoder()
        assert decoder.feed('data: {"type":"progress","message":"a"}\n') == []
        assert decoder.feed("\n") == [{"type": "progress", "message": "a"}]

    def test_crlf_split_across_chunks(self):
        decoder = SSEDecoder()
        assert decoder.feed('data: {"type":"progress","message":"a"}\r\n\r') == []
        assert decoder.feed("\n") == [{"type": "progress", "message": "a"}]

    def test_parse_event_round_trips_types(self):
        payload = json.loads(format_event(make_complete())[len("data: "):])
        event = parse_event(payload)
        assert isinstance(event, CompleteEvent)
        assert event.spec.hero.cta_text == "Go"
        assert isinstance(parse_event({"type": "error", "message": "x"}), ErrorEvent)
        assert parse_event({"type": "bogus"}) is None


class TestChannel:

    @pytest.mark.asyncio
    async def test_events_arrive_in_order_and_end_after_terminal(self):
        channel = ProgressChannel()
        await channel.progress("one")
        await channel.progress("two")
        channel.complete(make_complete())

        events = [event async for event in channel.events()]

        assert [e.type for e in events] == ["progress", "progress", "complete"]
        assert channel.closed

    @pytest.mark.asyncio
    async def test_second_terminal_event_is_dropped(self):
        channel = ProgressChannel()
        channel.fail("Unexpected error")
        channel.complete(make_complete())
        await channel.progress("late")

        events = [event async for event in channel.events()]

        assert [e.type for e in events] == ["error"]
        assert isinstance(channel.terminal_event, ErrorEvent)

    @pytest.mark.asyncio
    async def test_stream_yields_sse_frames(self):
        channel = ProgressChannel()
        await channel.progress("hello")
        channel.fail("Unexpected error")

        body = "".join([frame async for frame in channel.stream()])
        events = SSEDecoder().feed(body)

        assert events == [
            {"type": "progress", "message": "hello"},
            {"type": "error", "message": "Unexpected error"},
        ]

    @pytest.mark.asyncio
    async def test_progress_waits_for_configured_delay(self):
        channel = ProgressChannel(delay=0.05)
        started = time.monotonic()
        await channel.progress("one")

        assert time.monotonic() - started >= 0.04
