"""Environment-driven configuration for the sublinear dev server.

Every knob the process reads lives on ``AppSettings``. The variable names match
the ones the hosted-API parity scripts already export (``SUBLINEAR_*`` and the
``TURSO_*`` database pair) so a local instance can be swapped in without
changing the caller's environment.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ids import sanitize_team_key

DEFAULT_DB_PATH = "sublinear.db"
TRUTHY_VALUES = {"1", "true", "TRUE", "yes", "YES"}


def normalize_db_url(raw: str | None) -> str:
    """Accept bare file paths (optionally ``file:`` prefixed) as SQLite URLs."""

    value = (raw or "").strip() or DEFAULT_DB_PATH
    if "://" in value:
        return value
    if value.startswith("file:"):
        value = value[len("file:"):]
    return f"sqlite:///{value}"


class AppSettings(BaseSettings):
    """Settings read once per process (see ``get_settings``)."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    APP_NAME: str = "sublinear"
    HOST: str = Field(default="127.0.0.1", validation_alias=AliasChoices("SUBLINEAR_HOST", "HOST"))
    PORT: int = Field(default=8787, validation_alias=AliasChoices("SUBLINEAR_PORT", "PORT"))

    DB_URL: str = Field(
        default=DEFAULT_DB_PATH,
        validation_alias=AliasChoices("TURSO_DATABASE_URL", "DATABASE_URL", "DB_URL"),
    )
    BASE_URL: str = Field(default="", validation_alias=AliasChoices("SUBLINEAR_BASE_URL", "BASE_URL"))

    # ---- authorization gate
    REQUIRE_AUTH: bool = Field(
        default=True, validation_alias=AliasChoices("SUBLINEAR_REQUIRE_AUTH", "REQUIRE_AUTH")
    )
    API_KEY: str | None = Field(default=None, validation_alias=AliasChoices("SUBLINEAR_API_KEY", "API_KEY"))

    # ---- bootstrap seed values
    SEED_VIEWER_NAME: str = Field(
        default="Sublinear Dev", validation_alias=AliasChoices("SUBLINEAR_SEED_VIEWER_NAME", "SEED_VIEWER_NAME")
    )
    SEED_VIEWER_EMAIL: str = Field(
        default="sublinear@example.com",
        validation_alias=AliasChoices("SUBLINEAR_SEED_VIEWER_EMAIL", "SEED_VIEWER_EMAIL"),
    )
    SEED_TEAM_NAME: str = Field(
        default="Synth", validation_alias=AliasChoices("SUBLINEAR_SEED_TEAM_NAME", "SEED_TEAM_NAME")
    )
    SEED_TEAM_KEY: str = Field(
        default="SYN", validation_alias=AliasChoices("SUBLINEAR_SEED_TEAM_KEY", "SEED_TEAM_KEY")
    )

    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("SUBLINEAR_LOG_LEVEL", "LOG_LEVEL"))

    @field_validator("DB_URL", mode="before")
    @classmethod
    def parse_db_url(cls, value: Any) -> str:
        return normalize_db_url(value)

    @field_validator("REQUIRE_AUTH", mode="before")
    @classmethod
    def parse_require_auth(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip() in TRUTHY_VALUES

    @field_validator("API_KEY", mode="before")
    @classmethod
    def blank_api_key_is_unset(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value)
        return text if text else None

    @field_validator("SEED_TEAM_KEY", mode="before")
    @classmethod
    def parse_team_key(cls, value: Any) -> str:
        return sanitize_team_key(str(value or ""))

    @model_validator(mode="after")
    def default_base_url(self) -> "AppSettings":
        if not self.BASE_URL:
            self.BASE_URL = f"http://localhost:{self.PORT}"
        return self


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
