"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from bookmaker.config import AchievementsConfig, AppConfig, load_config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BOOKMAKER_SQLITE_PATH", "BOOKMAKER_CATALOG_PATH", "BOOKMAKER_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestAppConfigDefaults:
    """Test that AppConfig provides sensible defaults."""

    def test_default_config_creates_successfully(self) -> None:
        config = AppConfig()
        assert config.app.name == "Bookmaker"
        assert config.app.language == "ja"

    def test_default_achievements_config(self) -> None:
        config = AppConfig()
        assert config.achievements.catalog_path == ""
        assert config.achievements.utc_offset_minutes == 540

    def test_default_logging_config(self) -> None:
        assert AppConfig().logging.level == "INFO"

    def test_offset_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AchievementsConfig(utc_offset_minutes=15 * 60)


class TestLoadConfig:
    """Test loading config from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_data = {
            "app": {"name": "Test App", "version": "0.1.0"},
            "achievements": {"utc_offset_minutes": 0},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(yaml_data))

        config = load_config(config_file)
        assert config.app.name == "Test App"
        assert config.app.version == "0.1.0"
        assert config.achievements.utc_offset_minutes == 0
        # Other fields keep defaults
        assert config.storage.sqlite_path == "./db/bookmaker.db"

    def test_load_missing_yaml_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.app.name == "Bookmaker"

    def test_empty_yaml_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert load_config(config_file).achievements.utc_offset_minutes == 540

    def test_env_vars_override_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"storage": {"sqlite_path": "./from-yaml.db"}}))

        monkeypatch.setenv("BOOKMAKER_SQLITE_PATH", "/tmp/override.db")
        monkeypatch.setenv("BOOKMAKER_CATALOG_PATH", "/etc/bookmaker/catalog.yaml")
        monkeypatch.setenv("BOOKMAKER_LOG_LEVEL", "debug")

        config = load_config(config_file)
        assert config.storage.sqlite_path == "/tmp/override.db"
        assert config.achievements.catalog_path == "/etc/bookmaker/catalog.yaml"
        assert config.logging.level == "DEBUG"

    def test_load_project_config_yaml(self) -> None:
        """Test loading the actual project config.yaml."""
        config = load_config("config.yaml")
        assert config.app.name == "Bookmaker"
        assert config.storage.sqlite_path == "./db/bookmaker.db"
        assert config.achievements.utc_offset_minutes == 540
