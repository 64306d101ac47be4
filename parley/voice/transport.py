"""Media transports carrying audio frames to and from the caller."""

import base64
import binascii
import json
from abc import ABC, abstractmethod
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect

from parley.errors import SessionTransportError, TransportClosedError
from parley.observability.logging import get_logger
from parley.voice.models import MediaFrame, StopSignal, TransportEvent

logger = get_logger(__name__)

# WebSocket close codes
NORMAL_CLOSURE = 1000
POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011


class MediaTransport(ABC):
    """Bidirectional audio stream for one call."""

    @abstractmethod
    async def receive(self) -> TransportEvent:
        """Wait for the next frame or stop signal.

        Raises:
            TransportClosedError: If the peer disconnected
            SessionTransportError: If the stream is broken
        """
        pass

    @abstractmethod
    async def send(self, frame: MediaFrame) -> None:
        """Send one outbound audio frame.

        Raises:
            TransportClosedError: If the peer disconnected
        """
        pass

    @abstractmethod
    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """Close the stream. Closing twice is a no-op."""
        pass


class WebSocketMediaTransport(MediaTransport):
    """Twilio-style media stream over a Starlette WebSocket.

    Inbound JSON events:
    - connected / mark: ignored
    - start: carries streamSid and customParameters
    - media: base64 audio in media.payload (inbound track only)
    - stop: end of stream
    Outbound audio is sent as media events on the same streamSid.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket
        self._closed = False
        self.stream_sid: str | None = None
        self.parameters: dict[str, Any] = {}

    async def receive(self) -> TransportEvent:
        while True:
            try:
                raw = await self._ws.receive_text()
            except WebSocketDisconnect as e:
                self._closed = True
                raise TransportClosedError(f"Peer disconnected ({e.code})") from e
            except RuntimeError as e:
                # Starlette raises RuntimeError once the socket is gone
                self._closed = True
                raise TransportClosedError(str(e)) from e

            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("media_event_malformed", size=len(raw))
                continue

            event = data.get("event")
            if event == "media":
                media = data.get("media") or {}
                if media.get("track", "inbound") != "inbound":
                    continue
                try:
                    payload = base64.b64decode(media.get("payload", ""), validate=True)
                except (binascii.Error, ValueError) as e:
                    raise SessionTransportError(f"Invalid media payload: {e}") from e
                chunk = media.get("chunk")
                return MediaFrame(
                    payload=payload,
                    sequence=int(chunk) if chunk is not None else None,
                )
            if event == "start":
                start = data.get("start") or {}
                self.stream_sid = data.get("streamSid") or start.get("streamSid")
                self.parameters = dict(start.get("customParameters") or {})
                logger.debug("media_stream_started", stream_sid=self.stream_sid)
                continue
            if event == "stop":
                return StopSignal()
            # connected, mark, dtmf

    async def send(self, frame: MediaFrame) -> None:
        if self._closed:
            raise TransportClosedError("Transport already closed")
        message: dict[str, Any] = {
            "event": "media",
            "streamSid": self.stream_sid,
            "media": {"payload": base64.b64encode(frame.payload).decode("ascii")},
        }
        if frame.sequence is not None:
            message["media"]["chunk"] = str(frame.sequence)
        try:
            await self._ws.send_text(json.dumps(message))
        except (WebSocketDisconnect, RuntimeError) as e:
            self._closed = True
            raise TransportClosedError(f"Send failed: {e}") from e

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._ws.close(code=code, reason=reason)
        except RuntimeError as e:
            logger.debug("media_transport_already_closed", error=str(e))
