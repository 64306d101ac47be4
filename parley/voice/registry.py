"""Process-local registry of live audio sessions."""

import asyncio

from parley.observability.metrics import ACTIVE_AUDIO_SESSIONS
from parley.voice.models import AudioSession


class ConnectionRegistry:
    """Live sessions by connection id.

    The lock is held only around insert and remove; lookups read the
    dict directly.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, AudioSession] = {}
        self._lock = asyncio.Lock()

    async def add(self, session: AudioSession) -> None:
        async with self._lock:
            self._sessions[session.connection_id] = session
            ACTIVE_AUDIO_SESSIONS.set(len(self._sessions))

    async def remove(self, connection_id: str) -> AudioSession | None:
        async with self._lock:
            session = self._sessions.pop(connection_id, None)
            ACTIVE_AUDIO_SESSIONS.set(len(self._sessions))
            return session

    def get(self, connection_id: str) -> AudioSession | None:
        return self._sessions.get(connection_id)

    def count(self) -> int:
        return len(self._sessions)

    def sessions(self) -> list[AudioSession]:
        return list(self._sessions.values())
