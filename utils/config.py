"""Environment-driven settings for the coffee fortune service."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_AI_MODEL = "gpt-5"
API_KEY_VARIABLES = ("OPENAI_API_KEY", "AI_API_KEY", "GEMINI_API_KEY")
DEFAULT_MAX_INSTANCES = 10
ASSET_MIME_TYPE = "image/jpeg"


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Resolved configuration values.

    Attributes:
        api_key: Secret for the AI service, read from the first of OPENAI_API_KEY,
            AI_API_KEY or GEMINI_API_KEY that is set. May be None; every
            invocation then fails fast with a ConfigurationError.
        ai_base_url: Optional base URL override; None targets the OpenAI API.
        ai_model: Model identifier sent with every request and recorded as `source`.
        database_dir: Directory holding the SQLite database file.
        storage_bucket_dir: Root directory of the object-storage bucket.
        temp_dir: Directory used to stage downloaded photos.
        max_instances: Maximum number of concurrently running record handlers.
    """

    api_key: Optional[str]
    ai_base_url: Optional[str]
    ai_model: str
    database_dir: Path
    storage_bucket_dir: Path
    temp_dir: Path
    max_instances: int = DEFAULT_MAX_INSTANCES

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        env_dir = os.getenv("DATABASE_DIR")
        if env_dir is None or not env_dir.strip():
            raise ConfigurationError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )
        database_dir = Path(env_dir).expanduser()

        bucket_dir = os.getenv("STORAGE_BUCKET_DIR")
        storage_bucket_dir = Path(bucket_dir).expanduser() if bucket_dir else database_dir / "bucket"

        raw_instances = os.getenv("MAX_INSTANCES", str(DEFAULT_MAX_INSTANCES))
        try:
            max_instances = int(raw_instances)
        except ValueError as exc:
            raise ConfigurationError(f"MAX_INSTANCES must be an integer, got {raw_instances!r}") from exc
        if max_instances < 1:
            raise ConfigurationError("MAX_INSTANCES must be at least 1")

        api_key = next((os.getenv(name) for name in API_KEY_VARIABLES if os.getenv(name)), None)
        if not api_key:
            LOGGER.error(
                "AI API key is not configured. Please set the OPENAI_API_KEY "
                "environment variable (or add it to .env)."
            )

        return cls(
            api_key=api_key,
            ai_base_url=os.getenv("AI_BASE_URL") or None,
            ai_model=os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or DEFAULT_AI_MODEL,
            database_dir=database_dir,
            storage_bucket_dir=storage_bucket_dir,
            temp_dir=Path(os.getenv("TEMP_DIR") or tempfile.gettempdir()),
            max_instances=max_instances,
        )

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigurationError when it is missing."""
        if not self.api_key:
            raise ConfigurationError("AI API key is not configured")
        return self.api_key
