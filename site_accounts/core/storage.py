"""Persistence substrates for account records and the session pointer.

Every substrate exposes two named slots: ``<prefix>users`` holding the
ordered list of account records, and ``<prefix>current_user`` holding the
session record or nothing at all.
"""

import copy
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, cast

import redis

USERS_SLOT = "users"
CURRENT_USER_SLOT = "current_user"


class AccountStorage(ABC):
    """Key-value persistence for the record set and the session pointer."""

    def __init__(self, key_prefix: str = "ilovexxh_"):
        """Initialize storage with the slot key prefix."""
        self.key_prefix = key_prefix

    @property
    def users_key(self) -> str:
        """Key of the record set slot."""
        return f"{self.key_prefix}{USERS_SLOT}"

    @property
    def current_user_key(self) -> str:
        """Key of the session pointer slot."""
        return f"{self.key_prefix}{CURRENT_USER_SLOT}"

    @abstractmethod
    def load(self) -> list[dict[str, Any]]:
        """Return the full record set (empty when nothing is stored)."""

    @abstractmethod
    def save(self, records: list[dict[str, Any]]) -> None:
        """Replace the full record set."""

    @abstractmethod
    def load_session(self) -> dict[str, Any] | None:
        """Return the session record, or None when logged out."""

    @abstractmethod
    def save_session(self, record: dict[str, Any] | None) -> None:
        """Store the session record, or clear the slot when ``record`` is None."""


class InMemoryStorage(AccountStorage):
    """Storage kept in a process-local dict. Values are deep-copied on the way in and out."""

    def __init__(self, key_prefix: str = "ilovexxh_"):
        super().__init__(key_prefix)
        self.slots: dict[str, Any] = {}

    def load(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.slots.get(self.users_key, []))

    def save(self, records: list[dict[str, Any]]) -> None:
        self.slots[self.users_key] = copy.deepcopy(records)

    def load_session(self) -> dict[str, Any] | None:
        return copy.deepcopy(self.slots.get(self.current_user_key))

    def save_session(self, record: dict[str, Any] | None) -> None:
        if record is None:
            self.slots.pop(self.current_user_key, None)
        else:
            self.slots[self.current_user_key] = copy.deepcopy(record)


class JsonFileStorage(AccountStorage):
    """
    Storage backed by a single JSON document on disk.

    The document maps slot keys to their JSON values, mirroring how a
    browser keeps local storage entries. Writes go to a temporary file that
    replaces the previous file, so a crash never leaves a half-written document.
    """

    def __init__(self, path: str | Path, key_prefix: str = "ilovexxh_"):
        """Initialize storage at ``path``; the file is created on first write."""
        super().__init__(key_prefix)
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        with self.path.open(encoding="utf-8") as fh:
            content = fh.read()

        if not content.strip():
            return {}
        return cast(dict[str, Any], json.loads(content))

    def _write(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            os.unlink(tmp_path)
            raise

    def _get(self, key: str) -> Any:
        with self._lock:
            return self._read().get(key)

    def _set(self, key: str, value: Any) -> None:
        with self._lock:
            document = self._read()
            if value is None:
                document.pop(key, None)
            else:
                document[key] = value
            self._write(document)

    def load(self) -> list[dict[str, Any]]:
        return self._get(self.users_key) or []

    def save(self, records: list[dict[str, Any]]) -> None:
        self._set(self.users_key, records)

    def load_session(self) -> dict[str, Any] | None:
        return self._get(self.current_user_key)

    def save_session(self, record: dict[str, Any] | None) -> None:
        self._set(self.current_user_key, record)


class RedisStorage(AccountStorage):
    """Storage backed by two Redis string keys holding JSON."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = "ilovexxh_"):
        """Initialize storage with Redis client."""
        super().__init__(key_prefix)
        self.redis = redis_client

    def _get_json(self, key: str) -> Any:
        value = cast(str | bytes | None, self.redis.get(key))
        if value is None:
            return None
        return json.loads(value)

    def load(self) -> list[dict[str, Any]]:
        return self._get_json(self.users_key) or []

    def save(self, records: list[dict[str, Any]]) -> None:
        self.redis.set(self.users_key, json.dumps(records, ensure_ascii=False))

    def load_session(self) -> dict[str, Any] | None:
        return self._get_json(self.current_user_key)

    def save_session(self, record: dict[str, Any] | None) -> None:
        if record is None:
            self.redis.delete(self.current_user_key)
        else:
            self.redis.set(self.current_user_key, json.dumps(record, ensure_ascii=False))
