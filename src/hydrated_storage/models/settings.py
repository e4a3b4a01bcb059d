"""
Configuration model for Hydrated Storage.

Settings are plain pydantic models. They can be created directly, read from
``HYDRATED_STORAGE_*`` environment variables, or loaded from a JSON file such
as the one returned by ``StoragePaths.get_config_file()``.
"""

import json
import os
import re
from pathlib import Path
from typing import Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

DEFAULT_BOX_NAME = "hydrated_box"
LEGACY_FILENAME = ".hydrated_bloc.json"
ENV_PREFIX = "HYDRATED_STORAGE_"

_BOX_NAME_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class StorageSettings(BaseModel):
    """
    Runtime settings for the storage coordinator.

    Attributes:
        box_name: Name of the box opened on the disk path
        legacy_filename: File name of the legacy JSON cache inside the storage directory
    """

    box_name: str = Field(default=DEFAULT_BOX_NAME, description="Disk box name")
    legacy_filename: str = Field(default=LEGACY_FILENAME, description="Legacy cache file name")

    @field_validator("box_name")
    @classmethod
    def validate_box_name(cls, v):
        """Box names become file stems, so keep them to a safe character set."""
        v = v.strip().lower()
        if not _BOX_NAME_RE.match(v):
            raise ValueError(f"invalid box name: {v!r}")
        return v

    @field_validator("legacy_filename")
    @classmethod
    def validate_legacy_filename(cls, v):
        if not v or "/" in v or "\\" in v:
            raise ValueError("legacy_filename must be a bare file name")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StorageSettings":
        """
        Build settings from environment variables.

        ``HYDRATED_STORAGE_BOX_NAME`` maps to ``box_name`` and so on. Unset
        variables keep their defaults.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            StorageSettings: Parsed settings
        """
        if environ is None:
            environ = os.environ

        values = {}
        for name in cls.model_fields:
            env_key = ENV_PREFIX + name.upper()
            if env_key in environ:
                values[name] = environ[env_key]
        return cls(**values)

    @classmethod
    def load(cls, config_file: Union[str, Path]) -> "StorageSettings":
        """
        Load settings from a JSON file.

        A missing file yields the defaults. Malformed JSON or invalid values
        raise, since a broken config file is an operator error.

        Args:
            config_file: Path to the JSON settings file

        Returns:
            StorageSettings: Parsed settings
        """
        path = Path(config_file)
        if not path.exists():
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.model_validate(data)
