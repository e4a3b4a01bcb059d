"""
Backend adapters behind the storage facade.

Exactly one backend is bound to a HydratedStorage instance for its whole
lifetime:

- BoxBackend: the disk box, values kept with native JSON type fidelity
- SessionBackend: browser session storage, values kept as strings
- NullBackend: the degraded backend used when initialization failed
"""

import enum
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from hydrated_storage.storage.box import Box
from hydrated_storage.storage.session import SessionStore

logger = logging.getLogger(__name__)


class BackendKind(enum.Enum):
    DISK_BOX = "disk_box"
    WEB_SESSION = "web_session"
    NONE = "none"


class StorageBackend(ABC):
    """Capability shape shared by every backend."""

    kind: BackendKind

    @abstractmethod
    def read(self, key: str) -> Any:
        """Return the value for key, or None when it is absent."""

    @abstractmethod
    async def write(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    def close(self) -> None:
        """Release any handle held by the backend."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value})"


class BoxBackend(StorageBackend):
    kind = BackendKind.DISK_BOX

    def __init__(self, box: Box):
        self.box = box

    def read(self, key: str) -> Any:
        if not self.box.is_open:
            return None
        return self.box.get(key)

    async def write(self, key: str, value: Any) -> None:
        if self.box.is_open:
            await self.box.put(key, value)

    async def delete(self, key: str) -> None:
        if self.box.is_open:
            await self.box.delete(key)

    async def clear(self) -> None:
        if self.box.is_open:
            await self.box.clear()

    def close(self) -> None:
        self.box.close()


def to_session_string(value: Any) -> str:
    """
    String form stored in session storage.

    Strings are stored unchanged; anything else is stored as JSON text.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class SessionBackend(StorageBackend):
    """
    Session storage backend.

    Reads return the stored string. Callers that wrote non-string values
    get their JSON text back, not the original object.
    """

    kind = BackendKind.WEB_SESSION

    def __init__(self, store: SessionStore):
        self.store = store

    def read(self, key: str) -> Optional[str]:
        return self.store.get_item(key)

    async def write(self, key: str, value: Any) -> None:
        self.store.set_item(key, to_session_string(value))

    async def delete(self, key: str) -> None:
        self.store.remove_item(key)

    async def clear(self) -> None:
        self.store.clear()


class NullBackend(StorageBackend):
    """Degraded backend: nothing is persisted and every read is absent."""

    kind = BackendKind.NONE

    def read(self, key: str) -> None:
        return None

    async def write(self, key: str, value: Any) -> None:
        logger.debug(f"Degraded storage, dropping write for '{key}'")

    async def delete(self, key: str) -> None:
        pass

    async def clear(self) -> None:
        pass
