"""Configuration management for the check-in backend.

Loads and validates YAML configuration with sensible defaults for the
database, OCR, uploads, validation rules and the HTTP server. A couple of
deployment settings can be overridden from the environment.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Config file used when no path is passed, e.g. by the API server process.
CONFIG_ENV_VAR = "CHECKIN_CONFIG"
DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class DatabaseConfig(BaseModel):
    """Configuration for the relational database."""

    url: str = "sqlite:///checkin.db"
    echo: bool = False


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    lang: str = "por"
    psm: int = 6
    oem: int = 1
    preserve_interword_spaces: bool = True
    preprocess: bool = True


class UploadConfig(BaseModel):
    """Limits applied to uploaded spreadsheets and images."""

    max_file_size_mb: int = 10
    preview_rows: int = 5
    max_reported_errors: int = 10

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class ValidationConfig(BaseModel):
    """Configuration for the spreadsheet row rules engine."""

    rules_path: str = "configs/validation_rules.yaml"


class ServerConfig(BaseModel):
    """Configuration for the API server."""

    host: str = "0.0.0.0"
    port: int = 10000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["https://archeckin.netlify.app"]
    )


class AppConfig(BaseModel):
    """Top-level application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply ``DATABASE_URL`` and ``PORT`` from the environment, if set."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        config.database.url = database_url
    port = os.getenv("PORT")
    if port:
        config.server.port = int(port)
    return config


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file. Defaults to the
            ``CHECKIN_CONFIG`` environment variable, then configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return _apply_env_overrides(AppConfig(**raw))

    logger.info("No config file found at %s, using defaults", path)
    return _apply_env_overrides(AppConfig())
