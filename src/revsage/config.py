"""Runtime settings for revsage, read from the environment and ``.env`` files."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from revsage.errors import RevsageConfigError

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class NavigatorSettings(BaseModel):
    """Settings shared by the CLI and ``open_repository``."""

    repo_path: str = Field(".", description="Path to the repository working copy")
    default_revision: str = Field(
        "tip", description="Revision used when an empty specifier is resolved"
    )
    log_level: str = Field("INFO", description="loguru level for the CLI sink")

    @field_validator("default_revision")
    @classmethod
    def _default_revision_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_revision must not be blank")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


def load_settings(
    repo_path: Optional[str] = None,
    default_revision: Optional[str] = None,
    log_level: Optional[str] = None,
) -> NavigatorSettings:
    """Build settings from REVSAGE_* environment variables.

    A ``.env`` file is loaded first; explicit arguments win over both.
    """
    load_dotenv()
    values = {
        "repo_path": repo_path or os.getenv("REVSAGE_REPO_PATH", "."),
        "default_revision": default_revision or os.getenv("REVSAGE_DEFAULT_REVISION", "tip"),
        "log_level": log_level or os.getenv("REVSAGE_LOG_LEVEL", "INFO"),
    }
    try:
        return NavigatorSettings(**values)
    except ValidationError as exc:
        raise RevsageConfigError(f"invalid settings: {exc}") from exc
