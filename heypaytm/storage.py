"""
Local Persistent Storage

Key/value storage for the session store, the equivalent of the browser's
localStorage on the staff device:
- JsonFileStorage: every key lives in one JSON document on disk, guarded
  by a file lock for the duration of each read or write
- MemoryStorage: keys held in a dict (tests, throwaway runs)

Both backends copy values through JSON, so callers never share mutable
state with the store and dates must already be ISO strings.

Read-modify-write sequences are not coordinated across processes: the last
writer wins, with no versioning and no merge.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock, Timeout

from heypaytm.core.config import Settings
from heypaytm.exceptions import StorageError

logger = logging.getLogger(__name__)


class BaseStorage(ABC):
    """Abstract key/value storage holding JSON-serializable values."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend name."""
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None when absent."""
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present."""
        pass

    @staticmethod
    def _serialize(key: str, value: Any) -> str:
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}") from e


class MemoryStorage(BaseStorage):
    """In-process storage, lost when the process exits."""

    def __init__(self):
        self._items: dict[str, str] = {}

    @property
    def backend_name(self) -> str:
        return "memory"

    def load(self, key: str) -> Optional[Any]:
        raw = self._items.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        self._items[key] = self._serialize(key, value)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class JsonFileStorage(BaseStorage):
    """All keys in a single JSON document, written atomically under a file lock."""

    def __init__(self, path: Path, lock_timeout: int = 10):
        self.path = Path(path)
        self.lock_timeout = lock_timeout
        self._lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    @property
    def backend_name(self) -> str:
        return "json_file"

    def _ensure_dir(self) -> None:
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.path.parent}")

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(document, dict):
            raise StorageError(f"Unexpected document type in {self.path}: {type(document).__name__}")
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def load(self, key: str) -> Optional[Any]:
        self._ensure_dir()
        try:
            with self._lock:
                return self._read_document().get(key)
        except Timeout as e:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s) reading '{key}'") from e

    def save(self, key: str, value: Any) -> None:
        # Serialize first so a bad value never touches the file
        self._serialize(key, value)
        self._ensure_dir()
        try:
            with self._lock:
                document = self._read_document()
                document[key] = value
                self._write_document(document)
                logger.debug(f"Saved '{key}' to {self.path}")
        except Timeout as e:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s) writing '{key}'") from e

    def remove(self, key: str) -> None:
        self._ensure_dir()
        try:
            with self._lock:
                document = self._read_document()
                if document.pop(key, None) is not None:
                    self._write_document(document)
        except Timeout as e:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s) removing '{key}'") from e


def create_storage(settings: Settings) -> BaseStorage:
    """Storage backend configured for this process."""
    storage = JsonFileStorage(settings.storage_path, lock_timeout=settings.storage_lock_timeout)
    logger.info(f"Local storage: {storage.path}")
    return storage
