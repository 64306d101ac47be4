"""Test factories for creating test data."""

from tests.factories.clock import FakeClock
from tests.factories.conversation import make_descriptor, make_message
from tests.factories.providers import ScriptedModelClient
from tests.factories.voice import QueueMediaTransport, frames

__all__ = [
    "FakeClock",
    "QueueMediaTransport",
    "ScriptedModelClient",
    "frames",
    "make_descriptor",
    "make_message",
]
