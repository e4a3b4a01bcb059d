"""
Browser session storage binding.

In a browser (Pyodide) the process can reach ``window.sessionStorage``
through the ``js`` module. Elsewhere the host may hand in its own session
object: either a mutable mapping (for example a web framework session) or any
object with the JavaScript Storage methods.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import MutableMapping as MutableMappingABC
from typing import Any, MutableMapping, Optional

from hydrated_storage.errors import SessionStorageUnavailable

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Synchronous string-keyed, string-valued session store."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MappingSessionStore(SessionStore):
    """SessionStore over a plain mutable mapping."""

    def __init__(self, mapping: Optional[MutableMapping[str, str]] = None):
        self.mapping = {} if mapping is None else mapping

    def get_item(self, key: str) -> Optional[str]:
        return self.mapping.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.mapping[key] = value

    def remove_item(self, key: str) -> None:
        self.mapping.pop(key, None)

    def clear(self) -> None:
        self.mapping.clear()


class BrowserSessionStore(SessionStore):
    """
    SessionStore over a JavaScript Storage object.

    The wrapped object only needs getItem, setItem, removeItem and clear.
    getItem returns JavaScript null for missing keys, which Pyodide converts
    to None.
    """

    def __init__(self, storage: Any):
        self.storage = storage

    def get_item(self, key: str) -> Optional[str]:
        return self.storage.getItem(key)

    def set_item(self, key: str, value: str) -> None:
        self.storage.setItem(key, value)

    def remove_item(self, key: str) -> None:
        self.storage.removeItem(key)

    def clear(self) -> None:
        self.storage.clear()


def _looks_like_js_storage(obj: Any) -> bool:
    return all(hasattr(obj, name) for name in ("getItem", "setItem", "removeItem", "clear"))


def bind_session_storage(session_storage: Any = None) -> SessionStore:
    """
    Bind to a session storage object.

    Args:
        session_storage: Optional SessionStore, JavaScript-style Storage object
            or mutable mapping. When omitted, window.sessionStorage is used.

    Returns:
        SessionStore: The bound store

    Raises:
        SessionStorageUnavailable: No usable session storage in this environment
    """
    if session_storage is not None:
        if isinstance(session_storage, SessionStore):
            return session_storage
        if _looks_like_js_storage(session_storage):
            return BrowserSessionStore(session_storage)
        if isinstance(session_storage, MutableMappingABC):
            return MappingSessionStore(session_storage)
        raise SessionStorageUnavailable(
            f"unsupported session storage object: {type(session_storage).__name__}"
        )

    try:
        import js
    except ImportError as e:
        raise SessionStorageUnavailable("window.sessionStorage is only reachable in a browser") from e

    try:
        storage = js.window.sessionStorage
    except Exception as e:
        # Browsers may refuse access, e.g. with storage disabled in private mode
        raise SessionStorageUnavailable(f"window.sessionStorage is not accessible: {e}") from e

    logger.debug("Bound to window.sessionStorage")
    return BrowserSessionStore(storage)
