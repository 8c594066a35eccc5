"""
Configuration management with schema validation.
Single source of truth for Munga configuration.

Settings come from data/settings.yaml when present (values may reference
environment variables as ${VAR} or ${VAR:default}); every section has
defaults so the terminal also runs without a settings file.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

SETTINGS_FILENAME = "settings.yaml"


def data_dir() -> Path:
    """Directory holding the persisted records (overridable via MUNGA_DATA_DIR)"""
    return Path(os.getenv("MUNGA_DATA_DIR", "data"))


class AppSettings(BaseModel):
    name: str = "INTELIGENT MUNGA"
    version: str = "4.0.5"
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: str = "logs/munga.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class SessionSettings(BaseModel):
    inactivity_minutes: int = Field(default=30, ge=1)
    watchdog_interval_seconds: int = Field(default=60, ge=1)

    @property
    def inactivity_ms(self) -> int:
        return self.inactivity_minutes * 60 * 1000


class SmtpSettings(BaseModel):
    host: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_HOST"))
    port: int = Field(default_factory=lambda: int(os.getenv("SMTP_PORT", "465")))
    username: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_USERNAME"))
    password: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_PASSWORD"))
    sender: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_SENDER"))
    use_ssl: bool = True
    timeout_seconds: float = 15.0


class AuthSettings(BaseModel):
    code_delivery: str = Field(
        default_factory=lambda: os.getenv("MUNGA_CODE_DELIVERY", "outbox"),
        pattern="^(outbox|smtp)$",
    )
    # Simulated secure transmission delay before the verify step opens
    transmission_delay_seconds: float = 2.0
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)


class AISettings(BaseModel):
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    research_model: str = "gpt-4o-mini-search-preview"
    reasoning_model: str = "gpt-4o"
    fast_model: str = "gpt-4o-mini"
    image_model: str = "gpt-image-1"
    image_size: str = "1536x1024"
    timeout_seconds: float = 60.0


class StorageSettings(BaseModel):
    data_dir: str = Field(default_factory=lambda: str(data_dir()))


class ExportSettings(BaseModel):
    directory: str = Field(default_factory=lambda: str(data_dir() / "exports"))


class FeedbackSettings(BaseModel):
    recipient: str = Field(
        default_factory=lambda: os.getenv("MUNGA_FEEDBACK_RECIPIENT", "command@munga.local")
    )


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    ai: AISettings = Field(default_factory=AISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    feedback: FeedbackSettings = Field(default_factory=FeedbackSettings)


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} and ${VAR:default} references"""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            var_expr = value[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
                return os.getenv(var_name.strip(), default.strip())
            return os.getenv(var_expr, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load and validate settings.

    A missing file yields defaults; an unreadable or invalid file is a
    ConfigError.
    """
    settings_path = Path(path) if path else data_dir() / SETTINGS_FILENAME
    if not settings_path.exists():
        logger.debug("CONFIG", action="defaults", path=str(settings_path))
        return Settings()

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw_data: Dict[str, Any] = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read settings from {settings_path}: {e}")

    try:
        settings = Settings(**_substitute_env_vars(raw_data))
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {settings_path}: {e}")

    logger.info("CONFIG", action="loaded", path=str(settings_path))
    return settings
