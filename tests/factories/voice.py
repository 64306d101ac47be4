"""Scripted media transport for session manager tests."""

import asyncio

from parley.errors import TransportClosedError
from parley.voice import MediaFrame, MediaTransport, StopSignal, TransportEvent


class QueueMediaTransport(MediaTransport):
    """Transport fed from a script of events.

    Once the script runs out, receive() either blocks (to exercise idle
    timeouts) or reports a disconnect.
    """

    def __init__(
        self,
        events: list[TransportEvent] | None = None,
        *,
        block_when_empty: bool = False,
    ) -> None:
        self._events: asyncio.Queue[TransportEvent] = asyncio.Queue()
        for event in events or []:
            self._events.put_nowait(event)
        self._block_when_empty = block_when_empty
        self.sent: list[MediaFrame] = []
        self.closed_with: tuple[int, str] | None = None

    def feed(self, event: TransportEvent) -> None:
        self._events.put_nowait(event)

    async def receive(self) -> TransportEvent:
        if self._events.empty() and not self._block_when_empty:
            raise TransportClosedError("script exhausted")
        return await self._events.get()

    async def send(self, frame: MediaFrame) -> None:
        if self.closed_with is not None:
            raise TransportClosedError("closed")
        self.sent.append(frame)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed_with is None:
            self.closed_with = (code, reason)

    @property
    def sent_audio(self) -> bytes:
        return b"".join(f.payload for f in self.sent)


def frames(*payloads: bytes, stop: bool = True) -> list[TransportEvent]:
    """Media frames for each payload, optionally followed by a stop."""
    events: list[TransportEvent] = [MediaFrame(payload=p) for p in payloads]
    if stop:
        events.append(StopSignal())
    return events
