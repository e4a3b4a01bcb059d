"""
Tests for settings, storage paths and logging setup.
"""

import json
import logging

import pytest
from pydantic import ValidationError

from hydrated_storage import setup_logging
from hydrated_storage.models.settings import DEFAULT_BOX_NAME, LEGACY_FILENAME, StorageSettings
from hydrated_storage.storage.paths import StoragePaths


class TestStorageSettings:

    def test_defaults(self):
        settings = StorageSettings()
        assert settings.box_name == DEFAULT_BOX_NAME
        assert settings.legacy_filename == LEGACY_FILENAME
        assert LEGACY_FILENAME == ".hydrated_bloc.json"

    def test_from_env(self):
        settings = StorageSettings.from_env({
            "HYDRATED_STORAGE_BOX_NAME": "App_State",
            "UNRELATED": "ignored",
        })
        assert settings.box_name == "app_state"
        assert settings.legacy_filename == LEGACY_FILENAME

    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / "storage.json"
        config_file.write_text(json.dumps({"box_name": "cache"}), encoding="utf-8")

        assert StorageSettings.load(config_file).box_name == "cache"

    def test_load_missing_file_gives_defaults(self, tmp_path):
        assert StorageSettings.load(tmp_path / "absent.json") == StorageSettings()

    @pytest.mark.parametrize("field,value", [
        ("box_name", "../escape"),
        ("box_name", ""),
        ("legacy_filename", "dir/file.json"),
    ])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            StorageSettings(**{field: value})


class TestStoragePaths:

    def test_storage_dir_lives_under_data_dir(self):
        paths = StoragePaths(app_name="hydrated-test", app_author="tests")
        assert paths.get_storage_dir().parent == paths.get_data_dir()
        assert paths.get_config_file().parent == paths.get_config_dir()

    def test_create_and_validate_directory(self, tmp_path):
        paths = StoragePaths()
        target = tmp_path / "a" / "b"
        assert paths.create_directory(target)
        assert target.is_dir()
        assert paths.validate_permissions(target)
        assert not (target / ".permission_test").exists()


class TestSetupLogging:

    def test_configures_package_logger(self, tmp_path):
        log_file = tmp_path / "storage.log"
        logger = setup_logging("DEBUG", log_file=str(log_file))
        try:
            assert logger.name == "hydrated_storage"
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 2

            logging.getLogger("hydrated_storage.storage.box").debug("box opened")
            for handler in logger.handlers:
                handler.flush()
            assert "box opened" in log_file.read_text(encoding="utf-8")

            setup_logging("WARNING")
            assert len(logger.handlers) == 1
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
            logger.setLevel(logging.NOTSET)
