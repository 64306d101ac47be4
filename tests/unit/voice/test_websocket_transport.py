"""Tests for WebSocketMediaTransport against a mocked Starlette socket."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketDisconnect

from parley.errors import SessionTransportError, TransportClosedError
from parley.voice import MediaFrame, StopSignal, WebSocketMediaTransport


def _media(payload: bytes, *, track: str = "inbound", chunk: int | None = None) -> str:
    media = {"track": track, "payload": base64.b64encode(payload).decode()}
    if chunk is not None:
        media["chunk"] = str(chunk)
    return json.dumps({"event": "media", "media": media})


@pytest.fixture
def websocket() -> MagicMock:
    ws = MagicMock()
    ws.receive_text = AsyncMock()
    ws.send_text = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestReceive:
    """Inbound media stream events."""

    @pytest.mark.asyncio
    async def test_start_then_media(self, websocket: MagicMock) -> None:
        websocket.receive_text.side_effect = [
            json.dumps({"event": "connected"}),
            json.dumps(
                {
                    "event": "start",
                    "streamSid": "MZ123",
                    "start": {"customParameters": {"user_id": "u1"}},
                }
            ),
            _media(b"\x01\x02", chunk=1),
        ]
        transport = WebSocketMediaTransport(websocket)

        event = await transport.receive()

        assert event == MediaFrame(payload=b"\x01\x02", sequence=1)
        assert transport.stream_sid == "MZ123"
        assert transport.parameters == {"user_id": "u1"}

    @pytest.mark.asyncio
    async def test_outbound_track_skipped(self, websocket: MagicMock) -> None:
        websocket.receive_text.side_effect = [
            _media(b"echo", track="outbound"),
            _media(b"real"),
        ]

        event = await WebSocketMediaTransport(websocket).receive()

        assert event == MediaFrame(payload=b"real")

    @pytest.mark.asyncio
    async def test_malformed_json_skipped(self, websocket: MagicMock) -> None:
        websocket.receive_text.side_effect = ["{not json", json.dumps({"event": "stop"})]

        assert isinstance(await WebSocketMediaTransport(websocket).receive(), StopSignal)

    @pytest.mark.asyncio
    async def test_bad_payload(self, websocket: MagicMock) -> None:
        websocket.receive_text.side_effect = [
            json.dumps({"event": "media", "media": {"payload": "!!!"}})
        ]

        with pytest.raises(SessionTransportError):
            await WebSocketMediaTransport(websocket).receive()

    @pytest.mark.asyncio
    async def test_disconnect(self, websocket: MagicMock) -> None:
        websocket.receive_text.side_effect = WebSocketDisconnect(code=1001)
        transport = WebSocketMediaTransport(websocket)

        with pytest.raises(TransportClosedError):
            await transport.receive()

        await transport.close()
        websocket.close.assert_not_awaited()


class TestSendAndClose:
    @pytest.mark.asyncio
    async def test_send_media_event(self, websocket: MagicMock) -> None:
        websocket.receive_text.side_effect = [
            json.dumps({"event": "start", "streamSid": "MZ9", "start": {}}),
            json.dumps({"event": "stop"}),
        ]
        transport = WebSocketMediaTransport(websocket)
        await transport.receive()

        await transport.send(MediaFrame(payload=b"\xff\xff", sequence=3))

        sent = json.loads(websocket.send_text.await_args.args[0])
        assert sent == {
            "event": "media",
            "streamSid": "MZ9",
            "media": {"payload": base64.b64encode(b"\xff\xff").decode(), "chunk": "3"},
        }

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, websocket: MagicMock) -> None:
        transport = WebSocketMediaTransport(websocket)

        await transport.close(1008, "CONNECTION_LIMIT")
        await transport.close()

        websocket.close.assert_awaited_once_with(code=1008, reason="CONNECTION_LIMIT")

    @pytest.mark.asyncio
    async def test_send_after_close(self, websocket: MagicMock) -> None:
        transport = WebSocketMediaTransport(websocket)
        await transport.close()

        with pytest.raises(TransportClosedError):
            await transport.send(MediaFrame(payload=b"x"))

    @pytest.mark.asyncio
    async def test_send_failure_marks_closed(self, websocket: MagicMock) -> None:
        websocket.send_text.side_effect = RuntimeError("socket gone")
        transport = WebSocketMediaTransport(websocket)

        with pytest.raises(TransportClosedError):
            await transport.send(MediaFrame(payload=b"x"))

        await transport.close()
        websocket.close.assert_not_awaited()
