"""Real-time audio session manager.

One `run` call owns one connection from admission to teardown:

    CONNECTING  block check, then connection-count admission
    ACTIVE      reader loop buffers frames; full turns go to one worker
    DRAINING    leftover audio becomes a final turn, queued turns finish,
                context is flushed, the call record is written
    CLOSED      reservation released, registry entry removed

The reader and the worker are the only two tasks touching a session.
The reader hands audio over by swapping the buffer out, so turns are
processed strictly in order and never overlap. At most one turn waits
behind the one in flight; audio arriving meanwhile stays in the buffer,
which the turn budget keeps bounded. A failing turn is counted and
logged, and teardown still flushes the context and writes the record.
"""

import asyncio
import time
from uuid import uuid4

from pydantic import TypeAdapter

from parley.admission import AdmissionController
from parley.config.models.voice import VoiceConfig
from parley.conversation.models import (
    Channel,
    InboundMessage,
    TurnDirection,
    utc_now,
)
from parley.errors import (
    AdmissionDeniedError,
    CacheError,
    ParleyError,
    PersistenceError,
    SessionTransportError,
    TransportClosedError,
    TurnTimeoutError,
)
from parley.observability.logging import get_logger, log_context
from parley.observability.metrics import (
    AUDIO_BYTES_RX,
    AUDIO_BYTES_TX,
    AUDIO_TURNS,
    TURN_LATENCY,
)
from parley.orchestration import ConversationOrchestrator
from parley.providers.llm.base import ProviderError
from parley.providers.speech.base import SpeechToText, TextToSpeech
from parley.storage import CallRecord, CallRecordStore, ObjectStore
from parley.voice.models import (
    AudioSession,
    MediaFrame,
    SessionState,
    StopSignal,
    TranscriptEntry,
)
from parley.voice.registry import ConnectionRegistry
from parley.voice.transport import (
    INTERNAL_ERROR,
    NORMAL_CLOSURE,
    POLICY_VIOLATION,
    MediaTransport,
)

logger = get_logger(__name__)

_transcript_adapter = TypeAdapter(list[TranscriptEntry])

# (chunk, is_final) or None to stop the worker
_TurnItem = tuple[bytes, bool] | None


class AudioSessionManager:
    """Runs real-time audio sessions against the conversation pipeline."""

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        admission: AdmissionController,
        stt: SpeechToText,
        tts: TextToSpeech,
        call_records: CallRecordStore,
        objects: ObjectStore,
        config: VoiceConfig | None = None,
        registry: ConnectionRegistry | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._admission = admission
        self._stt = stt
        self._tts = tts
        self._call_records = call_records
        self._objects = objects
        self._config = config or VoiceConfig()
        self._registry = registry or ConnectionRegistry()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def stt(self) -> SpeechToText:
        return self._stt

    @property
    def tts(self) -> TextToSpeech:
        return self._tts

    @property
    def turn_threshold_bytes(self) -> int:
        """Buffered bytes that make up one turn."""
        cfg = self._config
        return max(1, cfg.sample_rate * cfg.sample_width * cfg.turn_threshold_ms // 1000)

    async def run(
        self,
        transport: MediaTransport,
        *,
        user_id: str,
        call_id: str,
        conversation_id: str,
        source_ip: str | None = None,
    ) -> AudioSession:
        """Serve one connection until it ends; returns the closed session."""
        session = AudioSession(
            connection_id=uuid4().hex,
            call_id=call_id,
            conversation_id=conversation_id,
            user_id=user_id,
            source_ip=source_ip,
        )
        with log_context(
            connection_id=session.connection_id,
            call_id=call_id,
            conversation_id=conversation_id,
        ):
            try:
                await self._admission.admit_connection(user_id, source_ip)
            except AdmissionDeniedError as e:
                logger.warning("audio_session_rejected", error_code=e.error_code.value)
                await self._reject(transport, session, e, POLICY_VIOLATION)
                return session
            except CacheError as e:
                # Counters unreachable: refuse rather than admit unchecked
                logger.error("audio_admission_unavailable", error=str(e))
                await self._reject(transport, session, e, INTERNAL_ERROR)
                return session

            await self._registry.add(session)
            try:
                session.state = SessionState.ACTIVE
                logger.info("audio_session_started", user_id=user_id)
                await self._serve(transport, session)
            finally:
                await self._release(session)
                await self._registry.remove(session.connection_id)
                session.state = SessionState.CLOSED
                session.ended_at = utc_now()
                await transport.close(NORMAL_CLOSURE, session.end_reason or "")
                logger.info(
                    "audio_session_closed",
                    end_reason=session.end_reason,
                    turns=session.turns_completed,
                    failed_turns=session.turns_failed,
                    timed_out_turns=session.turns_timed_out,
                    bytes_received=session.bytes_received,
                    bytes_sent=session.bytes_sent,
                )
        return session

    async def _serve(self, transport: MediaTransport, session: AudioSession) -> None:
        buffer = bytearray()
        recording = bytearray()
        # One turn in flight plus one waiting; later audio stays in buffer
        queue: asyncio.Queue[_TurnItem] = asyncio.Queue(maxsize=1)
        worker = asyncio.create_task(self._turn_worker(queue, transport, session))

        try:
            try:
                session.end_reason = await self._read(
                    transport, session, buffer, recording, queue
                )
            except SessionTransportError as e:
                session.end_reason = "error"
                logger.warning("audio_transport_error", error=str(e))
            except Exception:
                session.end_reason = "error"
                logger.exception("audio_reader_crashed")

            session.state = SessionState.DRAINING
            try:
                await asyncio.wait_for(
                    self._finish_turns(queue, worker, buffer, session),
                    self._config.drain_timeout_seconds,
                )
            except TimeoutError:
                logger.error(
                    "audio_drain_timeout",
                    pending_turns=queue.qsize(),
                    unprocessed_bytes=len(buffer),
                    timeout=self._config.drain_timeout_seconds,
                )
            except Exception:
                logger.exception("audio_turn_worker_crashed")

            await self._orchestrator.context_store.flush(session.conversation_id)
            await self._write_call_record(session, bytes(recording))
        finally:
            if not worker.done():
                worker.cancel()

    async def _finish_turns(
        self,
        queue: asyncio.Queue[_TurnItem],
        worker: asyncio.Task[None],
        buffer: bytearray,
        session: AudioSession,
    ) -> None:
        """Queue the leftover audio as a final turn and wait for the worker."""
        if buffer and not worker.done():
            await queue.put(self._drain(buffer, session, final=True))
        if not worker.done():
            await queue.put(None)
        await worker

    async def _read(
        self,
        transport: MediaTransport,
        session: AudioSession,
        buffer: bytearray,
        recording: bytearray,
        queue: asyncio.Queue[_TurnItem],
    ) -> str:
        """Reader loop; returns why the stream ended."""
        threshold = self.turn_threshold_bytes
        cfg = self._config

        while True:
            try:
                event = await asyncio.wait_for(
                    transport.receive(), cfg.idle_timeout_seconds
                )
            except TimeoutError:
                logger.info("audio_session_idle", timeout=cfg.idle_timeout_seconds)
                return "idle"
            except TransportClosedError:
                logger.info("audio_peer_disconnected")
                return "disconnect"

            if isinstance(event, StopSignal):
                return event.reason
            if not isinstance(event, MediaFrame) or not event.payload:
                continue

            payload = event.payload
            session.bytes_received += len(payload)
            session.last_activity_at = utc_now()
            AUDIO_BYTES_RX.inc(len(payload))
            buffer.extend(payload)
            session.buffered_bytes = len(buffer)

            if cfg.record_audio and len(recording) < cfg.max_recording_bytes:
                recording.extend(payload[: cfg.max_recording_bytes - len(recording)])

            # While a turn waits for the worker, audio keeps accumulating
            # and goes out as one larger turn once the slot frees up
            if len(buffer) >= threshold and not queue.full():
                queue.put_nowait(self._drain(buffer, session, final=False))

    @staticmethod
    def _drain(
        buffer: bytearray, session: AudioSession, *, final: bool
    ) -> tuple[bytes, bool]:
        """Swap the buffer out, leaving it empty."""
        chunk = bytes(buffer)
        buffer.clear()
        session.buffered_bytes = 0
        session.drained_chunks.append(len(chunk))
        return chunk, final

    async def _turn_worker(
        self,
        queue: asyncio.Queue[_TurnItem],
        transport: MediaTransport,
        session: AudioSession,
    ) -> None:
        while True:
            item = await queue.get()
            if item is None:
                return
            chunk, final = item
            await self._run_turn(chunk, transport, session, final=final)

    async def _run_turn(
        self,
        chunk: bytes,
        transport: MediaTransport,
        session: AudioSession,
        *,
        final: bool,
    ) -> None:
        budget = self._config.turn_timeout_seconds
        start = time.perf_counter()
        try:
            outcome = await asyncio.wait_for(
                self._process_chunk(chunk, transport, session), budget
            )
        except TimeoutError:
            error = TurnTimeoutError(f"Turn exceeded its {budget}s budget")
            session.turns_timed_out += 1
            session.transcript.append(
                TranscriptEntry(
                    direction=TurnDirection.OUTBOUND,
                    content="",
                    error=error.to_body(),
                )
            )
            AUDIO_TURNS.labels(outcome="timeout").inc()
            logger.warning(
                "audio_turn_timeout",
                error_code=error.error_code.value,
                budget=budget,
                final=final,
            )
            return
        except (ProviderError, SessionTransportError) as e:
            session.turns_failed += 1
            AUDIO_TURNS.labels(outcome="failed").inc()
            logger.warning(
                "audio_turn_failed",
                error_type=type(e).__name__,
                error=str(e),
                final=final,
            )
            return
        except Exception as e:
            # One broken turn must not take down the worker
            session.turns_failed += 1
            AUDIO_TURNS.labels(outcome="failed").inc()
            logger.exception(
                "audio_turn_crashed",
                error_type=type(e).__name__,
                final=final,
            )
            return

        AUDIO_TURNS.labels(outcome=outcome).inc()
        if outcome == "ok":
            TURN_LATENCY.labels(channel="voice_audio").observe(time.perf_counter() - start)

    async def _process_chunk(
        self,
        chunk: bytes,
        transport: MediaTransport,
        session: AudioSession,
    ) -> str:
        transcript = (await self._stt.transcribe(chunk)).strip()
        if not transcript:
            return "empty"

        session.transcript.append(
            TranscriptEntry(direction=TurnDirection.INBOUND, content=transcript)
        )
        message = InboundMessage(
            conversation_id=session.conversation_id,
            user_id=session.user_id,
            channel=Channel.VOICE,
            content=transcript,
            metadata={"call_id": session.call_id},
        )
        result = await self._orchestrator.process_turn(message)

        if not result.ok or result.response is None:
            session.turns_failed += 1
            session.transcript.append(
                TranscriptEntry(
                    direction=TurnDirection.OUTBOUND,
                    content="",
                    error=result.error,
                )
            )
            logger.warning(
                "audio_turn_unanswered",
                error_code=result.error.code.value if result.error else None,
            )
            return "failed"

        reply = result.response
        session.transcript.append(
            TranscriptEntry(
                direction=TurnDirection.OUTBOUND,
                content=reply.content,
                agent=reply.agent,
            )
        )
        audio = await self._tts.synthesize(reply.content)
        await self._send_audio(transport, session, audio)
        session.turns_completed += 1
        return "ok"

    async def _send_audio(
        self, transport: MediaTransport, session: AudioSession, audio: bytes
    ) -> None:
        size = self._config.outbound_frame_bytes
        for sequence, offset in enumerate(range(0, len(audio), size)):
            frame = audio[offset : offset + size]
            await transport.send(MediaFrame(payload=frame, sequence=sequence))
            session.bytes_sent += len(frame)
            AUDIO_BYTES_TX.inc(len(frame))

    async def _write_call_record(self, session: AudioSession, recording: bytes) -> None:
        prefix = f"calls/{session.call_id}"
        try:
            transcript_key = await self._objects.put(
                _transcript_adapter.dump_json(session.transcript),
                prefix=prefix,
                suffix=".json",
            )
            recording_key = None
            if recording:
                recording_key = await self._objects.put(
                    recording, prefix=prefix, suffix=".ulaw"
                )
            record = CallRecord(
                call_id=session.call_id,
                conversation_id=session.conversation_id,
                user_id=session.user_id,
                connection_id=session.connection_id,
                started_at=session.started_at,
                end_reason=session.end_reason or "unknown",
                turns=session.turns_completed,
                failed_turns=session.turns_failed + session.turns_timed_out,
                bytes_received=session.bytes_received,
                bytes_sent=session.bytes_sent,
                transcript_key=transcript_key,
                recording_key=recording_key,
            )
            await self._call_records.append(record)
        except PersistenceError as e:
            logger.error("call_record_write_failed", error=str(e))
            return

        session.record_id = str(record.record_id)
        logger.debug("call_record_written", record_id=session.record_id)

    async def _reject(
        self,
        transport: MediaTransport,
        session: AudioSession,
        error: ParleyError,
        close_code: int,
    ) -> None:
        session.rejected = True
        session.state = SessionState.CLOSED
        session.end_reason = error.error_code.value.lower()
        session.ended_at = utc_now()
        await transport.close(close_code, error.error_code.value)

    async def _release(self, session: AudioSession) -> None:
        try:
            await self._admission.release_connection(session.user_id)
        except CacheError as e:
            # The counter's TTL reclaims the slot eventually
            logger.error("connection_release_failed", error=str(e))
