# hr_session/session/backup.py — Ephemeral backup of the acting session during impersonation

from __future__ import annotations

import logging
from typing import Protocol

from hr_session.models.session import CredentialPair

logger = logging.getLogger(__name__)


class EphemeralStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryEphemeralStore:
    """Process-local key/value storage that does not outlive the process."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


def serialize_credentials(credentials: CredentialPair) -> str:
    return credentials.model_dump_json()


def deserialize_credentials(raw: str) -> CredentialPair:
    return CredentialPair.model_validate_json(raw)


class ImpersonationBackup:
    """
    The acting user's credential pair, held under a single fixed key.

    Presence of the key is the authoritative "currently impersonating" signal.
    """

    def __init__(self, storage: EphemeralStore, key: str = "admin_backup_session") -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def exists(self) -> bool:
        return self._storage.get_item(self._key) is not None

    def save(self, credentials: CredentialPair) -> None:
        self._storage.set_item(self._key, serialize_credentials(credentials))

    def take(self) -> CredentialPair | None:
        """
        Read and delete the backup. The key is removed even when its payload is
        unreadable, in which case ValueError is raised.
        """
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None
        self._storage.remove_item(self._key)
        try:
            return deserialize_credentials(raw)
        except ValueError:
            logger.warning("Discarded unreadable impersonation backup", extra={"key": self._key})
            raise

    def discard(self) -> None:
        self._storage.remove_item(self._key)
