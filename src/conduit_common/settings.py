"""
Client settings sourced from .env / environment, optionally overlaid by a YAML file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from conduit_common.config import load_yaml


def _find_env_file() -> Optional[Path]:
    cwd = Path.cwd().resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            return candidate
    return None


_ENV_PATH = _find_env_file()
if _ENV_PATH is not None:
    load_dotenv(dotenv_path=_ENV_PATH, override=False)


class Settings(BaseSettings):
    """Connection and behaviour settings for the destinations client."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_PATH) if _ENV_PATH is not None else None,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_url: str = Field(
        default="https://us.posthog.com",
        validation_alias=AliasChoices("CONDUIT_API_URL", "API_URL"),
    )
    api_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CONDUIT_API_TOKEN", "API_TOKEN"),
    )
    project_id: str = Field(
        default="@current",
        validation_alias=AliasChoices("CONDUIT_PROJECT_ID", "PROJECT_ID"),
    )
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    undo_window_seconds: float = Field(default=10.0, ge=0)
    log_level: str = "INFO"

    @field_validator("project_id", mode="before")
    @classmethod
    def _project_id_as_str(cls, v: object) -> object:
        # YAML gives a bare number for numeric project ids
        return str(v) if isinstance(v, int) else v

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Settings":
        """Environment settings with every key present in the YAML file overriding them."""
        return cls(**load_yaml(path))


@lru_cache()
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
