"""Durable storage for the authenticated session."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from surfapp.domain.errors import ApiError
from surfapp.domain.models import User
from surfapp.domain.payloads import parse_user, user_to_payload

TOKEN_KEY = "@surfapp_token"
USER_KEY = "@surfapp_user"

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal string key-value store with multi-key writes."""

    def get_many(self, keys: list[str]) -> dict[str, str | None]:
        """Return values for the given keys; missing keys map to None."""

    def set_many(self, items: dict[str, str]) -> None:
        """Write all items in a single step."""

    def remove_many(self, keys: list[str]) -> None:
        """Remove all keys in a single step."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store."""

    values: dict[str, str] = field(default_factory=dict)

    def get_many(self, keys: list[str]) -> dict[str, str | None]:
        return {key: self.values.get(key) for key in keys}

    def set_many(self, items: dict[str, str]) -> None:
        self.values.update(items)

    def remove_many(self, keys: list[str]) -> None:
        for key in keys:
            self.values.pop(key, None)


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Store persisted as one JSON document, replaced atomically on write."""

    path: Path

    @classmethod
    def create(cls, path: str) -> "JsonFileKeyValueStore":
        return cls(path=Path(path).expanduser())

    def get_many(self, keys: list[str]) -> dict[str, str | None]:
        data = self._read()
        return {key: data.get(key) for key in keys}

    def set_many(self, items: dict[str, str]) -> None:
        data = self._read()
        data.update(items)
        self._write(data)

    def remove_many(self, keys: list[str]) -> None:
        data = self._read()
        if not any(key in data for key in keys):
            return
        for key in keys:
            data.pop(key, None)
        self._write(data)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Ignoring corrupt session file: %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            str(key): str(value) for key, value in data.items() if value is not None
        }

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


@dataclass(frozen=True)
class PersistedSession:
    """Token and user restored from storage."""

    token: str
    user: User


@dataclass
class SessionStore:
    """Reads and writes the token/user pair; the two keys always move together."""

    store: KeyValueStore

    def save(self, token: str, user: User) -> None:
        self.store.set_many(
            {TOKEN_KEY: token, USER_KEY: json.dumps(user_to_payload(user))}
        )

    def load(self) -> PersistedSession | None:
        """Return the stored session, clearing any half-written pair."""
        values = self.store.get_many([TOKEN_KEY, USER_KEY])
        token = values.get(TOKEN_KEY)
        raw_user = values.get(USER_KEY)
        if token is None and raw_user is None:
            return None
        if not token or not raw_user:
            _logger.warning("Discarding incomplete persisted session")
            self.clear()
            return None
        try:
            user = parse_user(json.loads(raw_user))
        except (json.JSONDecodeError, TypeError, AttributeError, ApiError):
            _logger.warning("Discarding unreadable persisted user")
            self.clear()
            return None
        return PersistedSession(token=token, user=user)

    def clear(self) -> None:
        self.store.remove_many([TOKEN_KEY, USER_KEY])
