"""External provider configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, SecretStr

ModelProviderType = Literal["openai_compatible", "mock"]
SpeechProviderType = Literal["deepgram", "mock"]


class ModelProviderConfig(BaseModel):
    """Configuration for the model-invocation provider."""

    provider: ModelProviderType = Field(
        default="openai_compatible",
        description="Provider type",
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI-compatible API",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key (prefer env var)",
    )
    confidence_model: str | None = Field(
        default=None,
        description="Model used for confidence scoring (defaults to the agent model)",
    )


class SpeechProviderConfig(BaseModel):
    """Speech-to-text and text-to-speech for voice sessions.

    `mock` transcribes every turn as a byte-count placeholder and
    synthesizes silence; it exists for development and tests only.
    """

    provider: SpeechProviderType = Field(
        default="deepgram",
        description="Speech provider (mock for development only)",
    )
    base_url: str = Field(
        default="https://api.deepgram.com",
        description="Provider API root",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key (prefer the PARLEY_SPEECH_API_KEY env var)",
    )
    stt_model: str = Field(default="nova-2-phonecall", description="Transcription model")
    tts_model: str = Field(default="aura-asteria-en", description="Voice model")
    language: str = Field(default="en-US", description="Transcription language")
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for each transcription or synthesis request",
    )


class ProvidersConfig(BaseModel):
    """Configuration for all external providers."""

    model: ModelProviderConfig = Field(default_factory=ModelProviderConfig)
    speech: SpeechProviderConfig = Field(default_factory=SpeechProviderConfig)
