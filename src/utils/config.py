"""
Application settings
Reads the backend location and OCR options from the environment once at startup
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from src.utils.errors import ConfigurationError

# Load environment variables
load_dotenv()


class Settings(BaseModel):
    """Validated configuration passed to every collaborator"""
    api_base_url: str
    request_timeout: float = Field(15.0, gt=0)
    ocr_language: str = "spa"
    tesseract_cmd: Optional[str] = None
    field_patterns_file: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("api_base_url")
    @classmethod
    def check_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value}")
        return value


# Global settings instance
_settings: Optional[Settings] = None


def load_settings(environ: Optional[dict] = None) -> Settings:
    """
    Build Settings from environment variables

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If URL_BASE_BACKEND is missing or a value is invalid
    """
    env = os.environ if environ is None else environ

    base_url = env.get("URL_BASE_BACKEND")
    if not base_url:
        raise ConfigurationError(
            "URL_BASE_BACKEND not found in environment variables. "
            "Please set it in .env file or environment."
        )

    values = {"api_base_url": base_url}
    optional_keys = {
        "REQUEST_TIMEOUT": "request_timeout",
        "OCR_LANGUAGE": "ocr_language",
        "TESSERACT_CMD": "tesseract_cmd",
        "FIELD_PATTERNS_FILE": "field_patterns_file",
        "LOG_LEVEL": "log_level",
    }
    for env_key, field_name in optional_keys.items():
        if env.get(env_key):
            values[field_name] = env[env_key]

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def get_settings() -> Settings:
    """
    Get or create the Settings instance
    Validated on first call; later calls reuse it
    """
    global _settings

    if _settings is None:
        _settings = load_settings()

    return _settings
