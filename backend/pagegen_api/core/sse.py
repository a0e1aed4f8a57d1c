"""Server-Sent Events framing for the progress channel.

Each event is one frame: ``data: <json>`` followed by a blank line. The
decoder is the client half, used by the CLI and the tests.
"""

import codecs
import json
import logging
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, TypeAdapter, ValidationError
from pagegen_api.models.schemas import ProgressEvent

logger = logging.getLogger(__name__)

FRAME_SEPARATOR = "\n\n"
DATA_PREFIX = "data:"

_event_adapter = TypeAdapter(ProgressEvent)


def format_event(event: Union[BaseModel, Dict[str, Any]]) -> str:
    """Serialize one event as an SSE frame"""
    if isinstance(event, BaseModel):
        payload = event.model_dump_json(by_alias=True, exclude_none=True)
    else:
        payload = json.dumps(event, ensure_ascii=False)
    return f"data: {payload}{FRAME_SEPARATOR}"


def parse_event(data: Dict[str, Any]) -> Optional[BaseModel]:
    """Validate a decoded frame into a typed event, or None if it is not one"""
    try:
        return _event_adapter.validate_python(data)
    except ValidationError as e:
        logger.debug(f"SSE: Ignoring frame that is not a progress event: {e.error_count()} errors")
        return None


class SSEDecoder:
    """Incremental decoder: feed raw chunks, get back the JSON payloads of complete frames."""

    def __init__(self):
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: Union[bytes, str]) -> List[Dict[str, Any]]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        # A CRLF may straddle two chunks
        self._buffer = (self._buffer + chunk).replace("\r\n", "\n")

        events = []
        while True:
            index = self._buffer.find(FRAME_SEPARATOR)
            if index == -1:
                break
            frame = self._buffer[:index]
            self._buffer = self._buffer[index + len(FRAME_SEPARATOR):]
            events.extend(self._parse_frame(frame))
        return events

    @staticmethod
    def _parse_frame(frame: str) -> List[Dict[str, Any]]:
        events = []
        for line in frame.split("\n"):
            line = line.strip()
            if not line.startswith(DATA_PREFIX):
                continue
            payload = line[len(DATA_PREFIX):]
            if payload.startswith(" "):
                payload = payload[1:]
            if not payload:
                continue
            try:
                data = json.loads(payload)
            except ValueError:
                # Malformed frames are dropped
                continue
            if isinstance(data, dict):
                events.append(data)
        return events
