"""
Cross-platform storage path management for Hydrated Storage.

Hosts that do not already have a directory for persisted state can use
StoragePaths to pick the conventional per-user location through the
platformdirs library, then pass it to HydratedStorage.build().

Storage Location Standards:
- Linux: ~/.local/share/hydrated-storage/ (data), ~/.config/hydrated-storage/ (config)
- macOS: ~/Library/Application Support/hydrated-storage/
- Windows: %LOCALAPPDATA%\\hydrated\\hydrated-storage\\
"""

from pathlib import Path
import logging

import platformdirs

logger = logging.getLogger(__name__)


class StoragePaths:
    """
    Per-user directory lookup for persisted state.

    Only the directories are computed here; nothing is created until
    create_directory() or validate_permissions() is called.
    """

    def __init__(self, app_name: str = "hydrated-storage", app_author: str = "hydrated"):
        """
        Initialize the StoragePaths manager.

        Args:
            app_name: Application name used for directory naming
            app_author: Application author/organization name
        """
        self.app_name = app_name
        self.app_author = app_author

        self._data_dir = platformdirs.user_data_dir(
            appname=self.app_name,
            appauthor=self.app_author
        )
        self._config_dir = platformdirs.user_config_dir(
            appname=self.app_name,
            appauthor=self.app_author
        )

    def get_data_dir(self) -> Path:
        """
        Get the user data directory.

        Returns:
            Path: User data directory path
        """
        return Path(self._data_dir)

    def get_config_dir(self) -> Path:
        """
        Get the configuration directory.

        Returns:
            Path: Configuration directory path
        """
        return Path(self._config_dir)

    def get_storage_dir(self) -> Path:
        """
        Get the directory that holds the disk box and any legacy cache file.

        Returns:
            Path: Storage directory, suitable as HydratedStorage.build() input
        """
        return self.get_data_dir() / "state"

    def get_config_file(self) -> Path:
        """
        Get the JSON settings file read by StorageSettings.load().

        Returns:
            Path: Settings file path
        """
        return self.get_config_dir() / "storage.json"

    def create_directory(self, path: Path, exist_ok: bool = True) -> bool:
        """
        Create a directory with proper error handling.

        Args:
            path: Directory path to create
            exist_ok: Don't raise error if directory already exists

        Returns:
            bool: True if directory was created or already exists, False on error
        """
        try:
            path.mkdir(parents=True, exist_ok=exist_ok)
            return True
        except OSError as e:
            logger.warning(f"Failed to create directory {path}: {e}")
            return False

    def validate_permissions(self, path: Path) -> bool:
        """
        Check if we have read/write permissions for a directory.

        Args:
            path: Directory path to check

        Returns:
            bool: True if we have read/write permissions
        """
        try:
            if not path.exists():
                path.mkdir(parents=True, exist_ok=True)

            test_file = path / ".permission_test"
            test_file.touch()
            test_file.unlink()

            return True
        except OSError:
            return False


# Global instance for easy access throughout the application
storage_paths = StoragePaths()
