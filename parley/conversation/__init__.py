"""Conversation context lifecycle across the cache and durable tiers."""

from parley.conversation.context_store import ContextStore

__all__ = ["ContextStore"]
