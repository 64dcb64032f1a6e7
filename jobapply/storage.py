"""Key-value persistence used by the caches, the session and the activity feed.

Every store speaks ``get`` / ``set`` / ``remove`` and raises
:class:`~jobapply.errors.PersistenceFailure` when the backend rejects an
operation. Callers that treat persistence as best-effort use ``get_or`` (a
failed read means "absent") and ``try_set`` (a failed write is logged).
"""
from __future__ import annotations

import copy
import fcntl
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from jobapply.errors import PersistenceFailure
from jobapply.log import get_logger

log = get_logger(__name__)

QUESTION_CACHE_KEY = "question_cache"
LEARNING_DATA_KEY = "learning_data"
CURRENT_CONVERSATION_KEY = "current_conversation"
CONVERSATION_HISTORY_KEY = "conversation_history"
ACTIVITY_FEED_KEY = "activity_feed"
CURRENT_JOB_CONTEXT_KEY = "current_job_context"


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value, or ``None`` when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def get_or(self, key: str, default: Any = None) -> Any:
        try:
            value = self.get(key)
        except PersistenceFailure as exc:
            log.warning("Read failed, treating '%s' as absent: %s", key, exc)
            return default
        return default if value is None else value

    def try_set(self, key: str, value: Any) -> bool:
        try:
            self.set(key, value)
        except PersistenceFailure as exc:
            log.warning("Write failed for '%s' (not retried): %s", key, exc)
            return False
        return True


class MemoryStore(KeyValueStore):
    """Process-local store; values are deep-copied on the way in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class JsonFileStore(KeyValueStore):
    """All keys in one JSON document; each write rewrites the whole file.

    A sibling ``.lock`` file serializes individual reads and writes across
    processes. Read-modify-write sequences of callers are not atomic.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        if not raw.strip():
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("store root is not a JSON object")
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def _locked(self, exclusive: bool):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        f = open(self._lock_path, "a+", encoding="utf-8")
        _lock(f, exclusive=exclusive)
        return f

    def get(self, key: str) -> Any:
        try:
            f = self._locked(exclusive=False)
            try:
                return self._read_all().get(key)
            finally:
                _unlock(f)
                f.close()
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(key, str(exc)) from exc

    def set(self, key: str, value: Any) -> None:
        try:
            f = self._locked(exclusive=True)
            try:
                data = self._read_all()
                data[key] = value
                self._write_all(data)
            finally:
                _unlock(f)
                f.close()
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceFailure(key, str(exc)) from exc
        log.debug("Stored '%s' → %s", key, self.path.name)

    def remove(self, key: str) -> None:
        try:
            f = self._locked(exclusive=True)
            try:
                data = self._read_all()
                if key in data:
                    del data[key]
                    self._write_all(data)
            finally:
                _unlock(f)
                f.close()
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(key, str(exc)) from exc
