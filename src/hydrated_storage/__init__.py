"""
Hydrated Storage - key-value persistence for application state

Hydrated Storage restores ("hydrates") application state across process
restarts. It offers one read/write/delete/clear contract over two backends:
an embedded disk box for native environments and the browser's session
storage for web environments.

Main features:
- Single process-wide instance, safe to build from concurrent tasks
- Backend chosen by the storage directory passed to build()
- One-shot migration of the legacy JSON cache file
- Degrades to a no-op instance instead of failing the host application
"""

__version__ = "0.1.0"

from hydrated_storage.errors import HydratedStorageError
from hydrated_storage.models.settings import StorageSettings
from hydrated_storage.storage.cipher import HydratedCipher
from hydrated_storage.storage.hydrated import (
    HydratedStorage,
    Storage,
    WEB_STORAGE_DIRECTORY,
)
from hydrated_storage.utils.logging_config import setup_logging

__all__ = [
    "HydratedStorage",
    "Storage",
    "WEB_STORAGE_DIRECTORY",
    "HydratedCipher",
    "StorageSettings",
    "HydratedStorageError",
    "setup_logging",
    "__version__",
]
