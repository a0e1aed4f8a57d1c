"""Per-run progress channel"""

import asyncio
import logging
from typing import AsyncIterator, Optional, Union
from pagegen_api.core.sse import format_event
from pagegen_api.models.schemas import CompleteEvent, ErrorEvent, ProgressMessage

logger = logging.getLogger(__name__)

# Marks the end of the stream after the terminal event
_CLOSED = object()


class ProgressChannel:
    """
    Ordered one-shot event channel for a single generation run.

    Any number of progress events, then exactly one terminal event (complete
    or error), then the channel is closed. The producer writes into a queue,
    so a consumer that stops reading never blocks or cancels the run.
    """

    def __init__(self, delay: float = 0.0, run_id: Optional[str] = None):
        self.delay = delay
        self.run_id = run_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._terminal: Optional[Union[CompleteEvent, ErrorEvent]] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminal_event(self) -> Optional[Union[CompleteEvent, ErrorEvent]]:
        return self._terminal

    async def progress(self, message: str) -> None:
        """Emit a progress notice, then pause briefly so the client can keep up"""
        if self._closed:
            logger.warning(f"[CHANNEL {self.run_id}] Dropping progress after terminal event: {message}")
            return
        logger.info(f"[CHANNEL {self.run_id}] {message}")
        self._queue.put_nowait(ProgressMessage(message=message))
        if self.delay > 0:
            await asyncio.sleep(self.delay)

    def complete(self, event: CompleteEvent) -> None:
        self._finish(event)

    def fail(self, message: str) -> None:
        self._finish(ErrorEvent(message=message))

    def _finish(self, event: Union[CompleteEvent, ErrorEvent]) -> None:
        if self._closed:
            logger.warning(f"[CHANNEL {self.run_id}] Dropping second terminal event: {event.type}")
            return
        self._terminal = event
        self._closed = True
        self._queue.put_nowait(event)
        self._queue.put_nowait(_CLOSED)
        logger.info(f"[CHANNEL {self.run_id}] Terminal event: {event.type}")

    async def events(self) -> AsyncIterator[Union[ProgressMessage, CompleteEvent, ErrorEvent]]:
        """Yield events in emission order until the channel closes"""
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    async def stream(self) -> AsyncIterator[str]:
        """Yield SSE frames for the HTTP response body"""
        async for event in self.events():
            yield format_event(event)
