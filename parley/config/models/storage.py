"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["inmemory", "postgres", "redis"]
DurableWriteMode = Literal["sync", "background"]
ObjectStoreBackend = Literal["inmemory", "local"]


class RedisConfig(BaseModel):
    """Connection settings for the shared Redis instance.

    Redis backs the context cache tier and the admission counters.
    """

    backend: Literal["inmemory", "redis"] = Field(
        default="redis",
        description="Backend type (inmemory for development)",
    )
    url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Socket timeout in seconds",
    )


class PostgresConfig(BaseModel):
    """PostgreSQL-specific configuration."""

    backend: Literal["inmemory", "postgres"] = Field(
        default="postgres",
        description="Backend type (inmemory for development)",
    )
    dsn: str | None = Field(
        default=None,
        description="Connection DSN (from env var)",
    )
    min_pool_size: int = Field(
        default=2,
        gt=0,
        description="Minimum connections to keep open",
    )
    max_pool_size: int = Field(
        default=10,
        gt=0,
        description="Maximum connections in pool",
    )
    command_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Default timeout for queries (seconds)",
    )


class ContextStoreConfig(BaseModel):
    """Two-tier conversation context store configuration."""

    max_turns: int = Field(
        default=20,
        gt=0,
        description="Number of most recent turns kept on a context",
    )
    cache_ttl_seconds: int = Field(
        default=1800,  # 30 minutes
        gt=0,
        description="TTL for the fast cache tier (seconds)",
    )
    key_prefix: str = Field(
        default="parley",
        description="Redis key prefix for context keys",
    )
    durable_write_mode: DurableWriteMode = Field(
        default="sync",
        description="Write durable tier inline or as a background task",
    )


class ObjectStoreConfig(BaseModel):
    """Object storage for audio recordings and transcripts."""

    backend: ObjectStoreBackend = Field(
        default="local",
        description="Object store backend",
    )
    root: str = Field(
        default="var/objects",
        description="Root directory for the local backend",
    )


class StorageConfig(BaseModel):
    """Configuration for all storage backends."""

    redis: RedisConfig = Field(default_factory=RedisConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    context: ContextStoreConfig = Field(default_factory=ContextStoreConfig)
    objects: ObjectStoreConfig = Field(default_factory=ObjectStoreConfig)
