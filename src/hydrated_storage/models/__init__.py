"""
Hydrated Storage data models.
"""

from hydrated_storage.models.settings import (
    DEFAULT_BOX_NAME,
    LEGACY_FILENAME,
    StorageSettings,
)

__all__ = ["StorageSettings", "DEFAULT_BOX_NAME", "LEGACY_FILENAME"]
