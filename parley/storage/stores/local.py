"""Filesystem-backed object store."""

import asyncio
from pathlib import Path
from uuid import uuid4

from parley.errors import PersistenceError
from parley.observability.logging import get_logger
from parley.storage.store import ObjectStore

logger = get_logger(__name__)


class LocalObjectStore(ObjectStore):
    """Writes each object to its own file under `root`.

    Files are opened in exclusive-create mode, so a key is written at
    most once. Blocking file IO runs in a worker thread.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    async def put(self, data: bytes, *, prefix: str, suffix: str = "") -> str:
        key = f"{prefix.strip('/')}/{uuid4().hex}{suffix}"
        try:
            await asyncio.to_thread(self._write, self._path(key), data)
        except OSError as e:
            logger.error("object_put_error", key=key, error=str(e))
            raise PersistenceError(f"Failed to store object {key}: {e}", cause=e) from e
        logger.debug("object_stored", key=key, size=len(data))
        return key

    async def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read object {key}: {e}", cause=e) from e

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise PersistenceError(f"Object key escapes the store root: {key}")
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("xb") as f:
            f.write(data)
