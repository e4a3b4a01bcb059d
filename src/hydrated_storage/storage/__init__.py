"""
Hydrated Storage storage system

This package contains the storage components:
- paths: Per-user storage directory lookup using platformdirs
- box: SQLite-backed disk box engine with optional encryption at rest
- session: Browser session storage binding
- backends: Backend adapters (disk box, session storage, degraded)
- migration: One-shot import of the legacy JSON cache file
- hydrated: Storage facade and process-wide initialization
"""

from hydrated_storage.storage.paths import StoragePaths, storage_paths
from hydrated_storage.storage.cipher import HydratedCipher
from hydrated_storage.storage.box import Box, BoxEngine
from hydrated_storage.storage.session import (
    SessionStore,
    MappingSessionStore,
    BrowserSessionStore,
    bind_session_storage,
)
from hydrated_storage.storage.backends import (
    BackendKind,
    StorageBackend,
    BoxBackend,
    SessionBackend,
    NullBackend,
)
from hydrated_storage.storage.migration import MigrationReport, migrate, legacy_file_path
from hydrated_storage.storage.hydrated import (
    Storage,
    HydratedStorage,
    StorageRegistry,
    WEB_STORAGE_DIRECTORY,
    registry,
)

__all__ = [
    "StoragePaths",
    "storage_paths",
    "HydratedCipher",
    "Box",
    "BoxEngine",
    "SessionStore",
    "MappingSessionStore",
    "BrowserSessionStore",
    "bind_session_storage",
    "BackendKind",
    "StorageBackend",
    "BoxBackend",
    "SessionBackend",
    "NullBackend",
    "MigrationReport",
    "migrate",
    "legacy_file_path",
    "Storage",
    "HydratedStorage",
    "StorageRegistry",
    "WEB_STORAGE_DIRECTORY",
    "registry",
]
