"""Real-time audio session configuration."""

from pydantic import BaseModel, Field


class VoiceConfig(BaseModel):
    """Audio format, turn boundary and timeouts for voice sessions.

    Defaults match 8 kHz mu-law telephony media streams (one byte per
    sample), so one second of audio is 8000 bytes.
    """

    sample_rate: int = Field(default=8000, gt=0, description="Samples per second")
    sample_width: int = Field(default=1, gt=0, description="Bytes per sample")
    turn_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Buffered audio duration that closes a turn",
    )
    idle_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Close the session after this long without a frame",
    )
    turn_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Latency budget for one turn (route + invoke + persist)",
    )
    drain_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound on finishing queued turns during teardown",
    )
    outbound_frame_bytes: int = Field(
        default=640,
        gt=0,
        description="Size of each synthesized audio frame sent back",
    )
    record_audio: bool = Field(
        default=True,
        description="Keep inbound audio for the call record",
    )
    max_recording_bytes: int = Field(
        default=8000 * 60 * 30,  # 30 minutes at 8 kHz mu-law
        gt=0,
        description="Recording is truncated beyond this size",
    )
