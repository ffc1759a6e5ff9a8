"""Key-value stores backing the identity and device caches.

The cache holds three scalars (client ID, session token, device list JSON).
Presence of a key is the only validity signal: there is no TTL or checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import platformdirs

from pykasacloud.const import CACHE_APP_NAME, CACHE_FILENAMES


__all__ = [
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
]

_LOGGER = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key-value store used for caching."""

    def get(self, key: str) -> str | None:
        """Return the cached value for ``key``, or None on a cache miss."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    def __contains__(self, key: object) -> bool:
        """Check if ``key`` is cached."""


class MemoryStore:
    """Dictionary-backed store, useful in tests and for throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        """Initialize the store.

        Args:
            initial: Optional initial contents (copied).
        """
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None if absent."""
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        self._data[key] = value

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        """Check if ``key`` is stored."""
        return key in self._data

    def __repr__(self) -> str:
        return f"MemoryStore(keys={sorted(self._data)})"


class FileStore:
    """Store each key as a flat file inside a directory.

    Known keys map to fixed file names (``client_id.txt``, ``token.txt``,
    ``devices.json``); any other key is stored as ``<key>.txt``.

    Example:
        ```python
        store = FileStore("~/.cache/kasa")
        store.set("token", "abc")
        assert store.get("token") == "abc"
        ```

    Attributes:
        directory: Directory holding the cache files.
        writable: Whether writes reach the disk. When False, ``set`` and
            ``delete`` are no-ops and only pre-existing files are read.
    """

    def __init__(self, directory: str | Path | None = None, *, writable: bool = True) -> None:
        """Initialize the store.

        Args:
            directory: Cache directory. Defaults to the per-user cache directory
                for pykasacloud (see ``platformdirs.user_cache_dir``).
            writable: Whether to persist values to disk.
        """
        if directory is None:
            directory = platformdirs.user_cache_dir(CACHE_APP_NAME)
        self.directory = Path(directory).expanduser()
        self.writable = writable

    def path_for(self, key: str) -> Path:
        """Return the file backing ``key``."""
        return self.directory / CACHE_FILENAMES.get(key, f"{key}.txt")

    def get(self, key: str) -> str | None:
        """Read the file for ``key``, or return None if it does not exist."""
        path = self.path_for(key)
        if not path.is_file():
            _LOGGER.debug("Cache miss for %s (%s)", key, path)
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write ``value`` to the file for ``key``, creating the directory if needed."""
        if not self.writable:
            _LOGGER.debug("Store is read-only, not persisting %s", key)
            return
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path_for(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        """Delete the file for ``key`` if present."""
        if not self.writable:
            return
        self.path_for(key).unlink(missing_ok=True)

    def __contains__(self, key: object) -> bool:
        """Check if a file exists for ``key``."""
        return isinstance(key, str) and self.path_for(key).is_file()

    def __repr__(self) -> str:
        return f"FileStore(directory={str(self.directory)!r}, writable={self.writable})"
