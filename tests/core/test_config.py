"""Tests for settings parsing and the storage configuration value."""

import dataclasses
import os
from pathlib import Path

import pytest

from spmhost.core.config import Settings, StorageConfig


class TestSettings:
    def test_artifacts_path_gets_trailing_separator(self, tmp_path: Path) -> None:
        settings = Settings(artifacts_path=str(tmp_path / "store"))
        assert settings.artifacts_path == str(tmp_path / "store") + os.sep

    def test_default_artifacts_path_is_under_working_directory(self) -> None:
        settings = Settings()
        assert settings.artifacts_path.endswith(os.path.join("artifacts", ""))

    def test_env_prefix(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SPMHOST_MAX_ARTIFACTS_SIZE", "2GB")
        monkeypatch.setenv("SPMHOST_ARTIFACTS_PATH", str(tmp_path))
        settings = Settings()
        assert settings.max_size_bytes() == 2 * 1024**3
        assert settings.artifacts_path == str(tmp_path) + os.sep

    def test_no_limit_by_default(self) -> None:
        assert Settings(max_artifacts_size=None).max_size_bytes() is None

    def test_invalid_limit_is_ignored(self) -> None:
        assert Settings(max_artifacts_size="lots").max_size_bytes() is None

    def test_default_upload_limit_is_500mb(self) -> None:
        assert Settings().max_upload_bytes() == 500 * 1024 * 1024


class TestStorageConfig:
    def test_built_from_settings(self, tmp_path: Path) -> None:
        config = Settings(
            artifacts_path=str(tmp_path / "a"), max_artifacts_size="1.5 MB"
        ).storage_config()

        assert config.artifacts_path == (tmp_path / "a").resolve()
        assert config.artifacts_path.is_absolute()
        assert config.max_size_bytes == 1572864

    def test_is_immutable(self, tmp_path: Path) -> None:
        config = StorageConfig(artifacts_path=tmp_path, max_size_bytes=10)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_size_bytes = 20  # type: ignore[misc]
