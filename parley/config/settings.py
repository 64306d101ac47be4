"""Root settings model.

Values resolve from, highest priority first:

1. constructor arguments
2. PARLEY_* environment variables (nested with "__", e.g.
   PARLEY_ADMISSION__REQUEST_LIMIT=50)
3. the merged TOML document (default.toml + {PARLEY_ENV}.toml)
4. field defaults
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from parley.config.models.admission import AdmissionConfig
from parley.config.models.observability import ObservabilityConfig
from parley.config.models.providers import ProvidersConfig
from parley.config.models.routing import AgentDescriptorConfig, RoutingConfig
from parley.config.models.storage import StorageConfig
from parley.config.models.voice import VoiceConfig

# TOML document visible to Settings() while it is being built
_file_document: ContextVar[Mapping[str, Any]] = ContextVar(
    "parley_file_document", default=MappingProxyType({})
)


@contextmanager
def file_document(document: Mapping[str, Any]) -> Iterator[None]:
    """Expose a merged TOML document to Settings() inside the block."""
    token = _file_document.set(document)
    try:
        yield
    finally:
        _file_document.reset(token)


class FileDocumentSource(PydanticBaseSettingsSource):
    """Settings source backed by the current TOML document."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = _file_document.get().get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return dict(_file_document.get())


class Settings(BaseSettings):
    """Everything a Parley process needs to compose its services."""

    model_config = SettingsConfigDict(
        env_prefix="PARLEY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="parley", description="Name attached to log events")
    debug: bool = Field(default=False)

    storage: StorageConfig = Field(default_factory=StorageConfig)
    admission: AdmissionConfig = Field(
        default_factory=AdmissionConfig,
        description="Rate, connection and source-block policies",
    )
    routing: RoutingConfig = Field(
        default_factory=RoutingConfig,
        description="Router thresholds, timeouts and answer retries",
    )
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    agents: list[AgentDescriptorConfig] = Field(
        default_factory=list,
        description="Descriptors loaded into the agent registry at startup",
    )

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Settings":
        """Build settings over a merged TOML document.

        Environment variables still override the document.
        """
        with file_document(document):
            return cls()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            FileDocumentSource(settings_cls),
        )
