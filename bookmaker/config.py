"""Configuration loader for the Bookmaker reading log."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Bookmaker"
    version: str = "0.2.0"
    language: str = "ja"


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/bookmaker.db"


class AchievementsConfig(BaseModel):
    """Achievement engine configuration.

    An empty ``catalog_path`` selects the catalog bundled with the package.
    ``utc_offset_minutes`` is the fixed offset used to turn instants into
    calendar dates (Asia/Tokyo by default).
    """

    catalog_path: str = ""
    utc_offset_minutes: int = Field(default=540, ge=-14 * 60, le=14 * 60)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    achievements: AchievementsConfig = Field(default_factory=AchievementsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file, encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment overrides
    sqlite_path = os.getenv("BOOKMAKER_SQLITE_PATH")
    if sqlite_path:
        config.storage.sqlite_path = sqlite_path
    catalog_path = os.getenv("BOOKMAKER_CATALOG_PATH")
    if catalog_path:
        config.achievements.catalog_path = catalog_path
    log_level = os.getenv("BOOKMAKER_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config
