"""Parley: multi-channel conversational backend.

Routes voice-call and text messages to specialized AI agents, keeping
per-conversation context across a fast cache tier and a durable tier.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
