"""Configuration model exports.

    from parley.config.models import StorageConfig, VoiceConfig
"""

from parley.config.models.admission import AdmissionConfig
from parley.config.models.observability import LoggingConfig, ObservabilityConfig
from parley.config.models.providers import ModelProviderConfig, ProvidersConfig
from parley.config.models.routing import (
    AgentDescriptorConfig,
    RetryConfig,
    RoutingConfig,
)
from parley.config.models.storage import (
    ContextStoreConfig,
    ObjectStoreConfig,
    PostgresConfig,
    RedisConfig,
    StorageConfig,
)
from parley.config.models.voice import VoiceConfig

__all__ = [
    "AdmissionConfig",
    "AgentDescriptorConfig",
    "ContextStoreConfig",
    "LoggingConfig",
    "ModelProviderConfig",
    "ObjectStoreConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "ProvidersConfig",
    "RedisConfig",
    "RetryConfig",
    "RoutingConfig",
    "StorageConfig",
    "VoiceConfig",
]
