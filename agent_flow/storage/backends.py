"""
Key-value substrates for workflow storage.

A backend stores opaque strings under string keys:
``get_item`` / ``set_item`` / ``remove_item``.
"""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import Dict, Optional, Protocol

from ..errors import StorageError

logger = getLogger(__name__)


class KeyValueBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryBackend:
    """ Process-local backend; contents vanish with the object. """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileBackend:
    """ One ``<key>.json`` file per key under a directory. """

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self._dir}: {e}") from e
        logger.info(f"FileBackend initialized at {self._dir}")

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path.name}: {e}") from e

    def _path_for(self, key: str) -> Path:
        # Sanitize key for filesystem
        safe_key = "".join(c for c in key if c.isalnum() or c in "-_")
        if not safe_key:
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{safe_key}.json"
