"""
Storage facade and process-wide initialization for Hydrated Storage.

HydratedStorage.build() is the single entry point. It is safe to call from
many tasks at once: the whole build runs under one process-wide asyncio lock,
and every caller after the first gets the instance that is already
published. The same lock serializes write, delete and clear, so no mutation
can start before initialization has finished.

Backend choice is made once per instance:
- storage_directory is HydratedStorage.web_storage_directory -> session storage
- any other directory -> disk box, followed by the legacy cache migration
- any failure while building -> degraded instance without persistence

Usage:
    storage = await HydratedStorage.build(storage_paths.get_storage_dir())
    await storage.write("settings", {"theme": "dark"})
    storage.read("settings")
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

from hydrated_storage.errors import CipherError
from hydrated_storage.models.settings import StorageSettings
from hydrated_storage.storage.backends import (
    BackendKind,
    BoxBackend,
    NullBackend,
    SessionBackend,
    StorageBackend,
)
from hydrated_storage.storage.box import BoxEngine
from hydrated_storage.storage.cipher import HydratedCipher
from hydrated_storage.storage.migration import migrate
from hydrated_storage.storage.session import bind_session_storage

logger = logging.getLogger(__name__)


class _WebStorageDirectory:
    """Marker passed as storage_directory to select session storage."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "WEB_STORAGE_DIRECTORY"


# Not a path: Path("") == Path("."), which is a real directory
WEB_STORAGE_DIRECTORY = _WebStorageDirectory()

StorageDirectory = Union[str, "os.PathLike[str]", _WebStorageDirectory]


class Storage(ABC):
    """Interface used to persist and retrieve state."""

    @abstractmethod
    def read(self, key: str) -> Any:
        """Return the value for key, or None if absent."""

    @abstractmethod
    async def write(self, key: str, value: Any) -> None:
        """Persist value under key."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key."""


class StorageRegistry:
    """
    Process-wide state cell: the lock and the published instance.

    The lock guards both the check-and-create build sequence and every
    mutation on the published instance.
    """

    def __init__(self):
        self.lock = asyncio.Lock()
        self.instance: Optional["HydratedStorage"] = None

    def publish(self, instance: "HydratedStorage") -> "HydratedStorage":
        self.instance = instance
        return instance

    def unpublish(self, instance: "HydratedStorage") -> bool:
        """Unset the published instance if it is still the given one."""
        if self.instance is instance:
            self.instance = None
            return True
        return False

    def reset(self) -> None:
        """
        Drop the published instance and start over with a fresh lock.

        Intended for test suites, which run each test on its own event loop.
        """
        if self.instance is not None:
            self.instance.backend.close()
        self.instance = None
        self.lock = asyncio.Lock()


registry = StorageRegistry()


def _validate_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError(f"storage keys must be non-empty strings, got {key!r}")


class HydratedStorage(Storage):
    """
    Storage facade bound to exactly one backend.

    Instances are normally obtained from build(). Constructing one directly
    with a backend is supported for hosts that manage their own lifecycle;
    such instances still share the process-wide mutation lock.
    """

    web_storage_directory = WEB_STORAGE_DIRECTORY

    # Replaced in tests to observe or fail box opens
    engine_factory = BoxEngine

    def __init__(self, backend: Optional[StorageBackend] = None):
        self._backend = backend if backend is not None else NullBackend()

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def kind(self) -> BackendKind:
        return self._backend.kind

    @property
    def is_degraded(self) -> bool:
        return self._backend.kind is BackendKind.NONE

    def __repr__(self) -> str:
        return f"HydratedStorage(backend={self._backend.kind.value})"

    @classmethod
    async def build(
        cls,
        storage_directory: StorageDirectory,
        encryption_cipher: Optional[HydratedCipher] = None,
        *,
        session_storage: Any = None,
        settings: Optional[StorageSettings] = None,
    ) -> "HydratedStorage":
        """
        Return the process-wide storage instance, creating it on first use.

        Never raises for backend problems: if anything in the build sequence
        fails, a degraded instance is published instead and every later
        build() returns it until clear() unpublishes a working instance.

        Args:
            storage_directory: Directory for the disk box, or
                HydratedStorage.web_storage_directory for session storage
            encryption_cipher: Optional cipher for the disk box
            session_storage: Session object to bind on the web path instead of
                window.sessionStorage
            settings: Box and legacy file names; defaults to StorageSettings()

        Returns:
            HydratedStorage: The published instance
        """
        if settings is None:
            settings = StorageSettings()

        async with registry.lock:
            if registry.instance is not None:
                logger.debug("Returning existing instance")
                return registry.instance

            try:
                backend = await cls._open_backend(
                    storage_directory, encryption_cipher, session_storage, settings
                )
            except Exception as e:
                logger.warning(
                    f"Storage initialization failed, state will not be persisted: {e}",
                    exc_info=True,
                )
                backend = NullBackend()

            logger.info(f"Storage ready with {backend.kind.value} backend")
            return registry.publish(cls(backend))

    @classmethod
    async def _open_backend(
        cls,
        storage_directory: StorageDirectory,
        encryption_cipher: Optional[HydratedCipher],
        session_storage: Any,
        settings: StorageSettings,
    ) -> StorageBackend:
        if storage_directory is WEB_STORAGE_DIRECTORY:
            if encryption_cipher is not None:
                logger.debug("Encryption cipher ignored for session storage")
            return SessionBackend(bind_session_storage(session_storage))

        if encryption_cipher is not None and not isinstance(encryption_cipher, HydratedCipher):
            raise CipherError(
                f"encryption_cipher must be a HydratedCipher, got {type(encryption_cipher).__name__}"
            )

        directory = Path(storage_directory)
        logger.debug(f"Opening disk box '{settings.box_name}' in {directory}")

        engine = cls.engine_factory()
        engine.init(directory)
        box = await engine.open_box(settings.box_name, encryption_cipher=encryption_cipher)
        try:
            await migrate(directory, box, settings.legacy_filename)
        except Exception:
            box.close()
            raise
        return BoxBackend(box)

    def read(self, key: str) -> Any:
        _validate_key(key)
        return self._backend.read(key)

    async def write(self, key: str, value: Any) -> None:
        _validate_key(key)
        async with registry.lock:
            await self._backend.write(key, value)

    async def delete(self, key: str) -> None:
        _validate_key(key)
        async with registry.lock:
            await self._backend.delete(key)

    async def clear(self) -> None:
        """
        Remove every key and unpublish this instance.

        The next build() runs the full initialization again. The backend is
        closed once unpublished, so this instance answers absent and drops
        writes from then on. A degraded instance has nothing to clear and
        stays published.
        """
        async with registry.lock:
            await self._backend.clear()
            if not self.is_degraded and registry.unpublish(self):
                self._backend.close()
                logger.debug("Storage cleared, instance unpublished")
