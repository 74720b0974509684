"""Configuration management for the ghstats application."""

from datetime import date
from pathlib import Path
from typing import Annotated, Any, cast

import pendulum
from pendulum.tz.timezone import FixedTimezone, Timezone
from pydantic import AnyHttpUrl, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_user_ids(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_prefix="GHSTATS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    github_api_base: AnyHttpUrl = Field(
        default=cast("AnyHttpUrl", "https://api.github.com"),
        description="Base URL for the GitHub REST API.",
    )
    github_token: SecretStr = Field(
        default=SecretStr(""),
        description="Personal access token used to authenticate GitHub API calls.",
    )
    repo_owner: str = Field(
        default="",
        description="Owner (user or organization) of the analyzed repository.",
    )
    repo_name: str = Field(
        default="",
        description="Name of the analyzed repository.",
    )
    user_ids: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="GitHub logins to generate author and reviewer statistics for.",
    )
    bot_user_ids: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="GitHub logins whose activity is excluded from statistics.",
    )
    date_after: date | None = Field(
        default=None,
        description="Only consider pull requests created on or after this date.",
    )
    date_before: date | None = Field(
        default=None,
        description="Only consider pull requests created on or before this date.",
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        le=32,
        description="Maximum number of pull requests processed concurrently.",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Number of items to request per GitHub API page.",
    )
    api_request_delay: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to wait between consecutive page requests.",
    )
    default_time_zone: str = Field(
        default="America/New_York",
        description="IANA time zone used for working hours when a user has none configured.",
    )
    user_time_zones: dict[str, str] = Field(
        default_factory=dict,
        description="Per-user IANA time zones keyed by GitHub login.",
    )
    output_dir: Path = Field(
        default=Path("reports"),
        description="Directory receiving the generated JSON reports.",
    )

    @field_validator("user_ids", "bot_user_ids", mode="before")
    @classmethod
    def _parse_user_list(cls, value: Any) -> Any:
        return _split_user_ids(value)

    @field_validator("default_time_zone")
    @classmethod
    def _validate_default_zone(cls, value: str) -> str:
        _check_zone(value)
        return value

    @field_validator("user_time_zones")
    @classmethod
    def _validate_user_zones(cls, value: dict[str, str]) -> dict[str, str]:
        for zone_name in value.values():
            _check_zone(zone_name)
        return value

    @model_validator(mode="after")
    def _enforce_required_fields(self) -> "AppSettings":
        if not self.github_token.get_secret_value():
            msg = "GHSTATS_GITHUB_TOKEN must be configured"
            raise ValueError(msg)
        if not self.repo_owner or not self.repo_name:
            msg = "GHSTATS_REPO_OWNER and GHSTATS_REPO_NAME must be configured"
            raise ValueError(msg)
        if self.date_after and self.date_before and self.date_before < self.date_after:
            msg = "GHSTATS_DATE_BEFORE must not be earlier than GHSTATS_DATE_AFTER"
            raise ValueError(msg)
        return self

    def time_zone_for(self, user_id: str) -> Timezone | FixedTimezone:
        """Return the working-hours time zone of a user, falling back to the default zone."""
        return pendulum.timezone(self.user_time_zones.get(user_id, self.default_time_zone))


def _check_zone(name: str) -> None:
    try:
        pendulum.timezone(name)
    except Exception as exc:
        msg = f"Unknown time zone: {name}"
        raise ValueError(msg) from exc


def load_settings() -> AppSettings:
    """Load application settings from supported sources."""
    return AppSettings()
