"""Configuration objects and helpers for the walk groups client and server."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable, Literal, Optional

from pydantic import Field, HttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from .dates import today_in_timezone

LOGGER = structlog.get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    api_base_url: HttpUrl = Field(
        default="http://localhost:3000",
        validation_alias="WALK_GROUPS_API_BASE_URL",
    )
    api_token: Optional[SecretStr] = Field(default=None, validation_alias="WALK_GROUPS_API_TOKEN")
    token_file: Optional[Path] = Field(
        default=None,
        validation_alias="WALK_GROUPS_TOKEN_FILE",
        description="File holding the bearer token; re-read on every request.",
    )
    timeout_seconds: float = Field(default=15.0, validation_alias="WALK_GROUPS_TIMEOUT_SECONDS")
    timezone: str = Field(default="UTC", validation_alias="WALK_GROUPS_TIMEZONE")
    sync_mode: Literal["merge", "refetch"] = Field(default="refetch", validation_alias="WALK_GROUPS_SYNC_MODE")
    max_distance: float = Field(default=0.5, validation_alias="WALK_GROUPS_MAX_DISTANCE")
    server_host: str = Field(default="127.0.0.1", validation_alias="WALK_GROUPS_SERVER_HOST")
    server_port: int = Field(default=3000, validation_alias="WALK_GROUPS_SERVER_PORT")
    seed_file: Optional[Path] = Field(default=None, validation_alias="WALK_GROUPS_SEED_FILE")

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def base_url(self) -> str:
        """API base URL without a trailing slash."""
        return str(self.api_base_url).rstrip("/")

    def today(self) -> date:
        """Today's date in the configured timezone."""
        return today_in_timezone(self.timezone)

    def token_provider(self) -> TokenProvider:
        """Build a provider that reads the current credential on each call."""
        token_file = self.token_file
        fallback = self.api_token.get_secret_value() if self.api_token else None

        def _read() -> Optional[str]:
            if token_file is not None and token_file.exists():
                try:
                    token = token_file.read_text(encoding="utf-8").strip()
                except OSError as exc:
                    LOGGER.warning("config.token_file.unreadable", path=str(token_file), error=str(exc))
                    return fallback
                if token:
                    return token
            return fallback

        return _read


def static_token(token: Optional[str]) -> TokenProvider:
    """Provider that always returns the same credential."""
    return lambda: token
