from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rsspot_exporter.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_AUTH_BASE_URL,
    DEFAULT_CLIENT_ID,
    DEFAULT_HOST,
    DEFAULT_METRICS_PATH,
    DEFAULT_PORT,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SCRAPE_INTERVAL_SECONDS,
)
from rsspot_exporter.errors import ConfigError

LogFormat = Literal["json", "text"]


class ExporterSettings(BaseSettings):
    """Environment-driven exporter configuration."""

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        case_sensitive=False,
        env_ignore_empty=True,
    )

    refresh_token: SecretStr = Field(
        validation_alias=AliasChoices(
            "RACKSPACE_REFRESH_TOKEN",
            "RSSPOT_EXPORTER_REFRESH_TOKEN",
            "RSSPOT_REFRESH_TOKEN",
        ),
    )
    namespace: str = Field(
        min_length=1,
        validation_alias=AliasChoices(
            "RACKSPACE_NAMESPACE",
            "RSSPOT_EXPORTER_NAMESPACE",
            "RACKSPACE_ORG_ID",
            "RACKSPACE_ORGANIZATION",
        ),
    )
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        validation_alias=AliasChoices("RACKSPACE_API_URL", "RSSPOT_EXPORTER_API_URL"),
    )
    auth_base_url: str = Field(
        default=DEFAULT_AUTH_BASE_URL,
        validation_alias=AliasChoices("RACKSPACE_AUTH_URL", "RSSPOT_EXPORTER_AUTH_URL"),
    )
    client_id: str = Field(
        default=DEFAULT_CLIENT_ID,
        validation_alias=AliasChoices("RACKSPACE_CLIENT_ID", "RSSPOT_EXPORTER_CLIENT_ID"),
    )

    host: str = Field(default=DEFAULT_HOST, validation_alias=AliasChoices("HOST", "RSSPOT_EXPORTER_HOST"))
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "RSSPOT_EXPORTER_PORT"),
    )
    metrics_path: str = Field(
        default=DEFAULT_METRICS_PATH,
        validation_alias=AliasChoices("METRICS_PATH", "RSSPOT_EXPORTER_METRICS_PATH"),
    )
    scrape_interval_seconds: int = Field(
        default=DEFAULT_SCRAPE_INTERVAL_SECONDS,
        gt=0,
        validation_alias=AliasChoices(
            "SCRAPE_INTERVAL",
            "RSSPOT_EXPORTER_SCRAPE_INTERVAL",
        ),
    )
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        validation_alias=AliasChoices(
            "REQUEST_TIMEOUT_SECONDS",
            "RSSPOT_EXPORTER_REQUEST_TIMEOUT_SECONDS",
        ),
    )

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "RSSPOT_EXPORTER_LOG_LEVEL"),
    )
    log_format: LogFormat = Field(
        default="json",
        validation_alias=AliasChoices("LOG_FORMAT", "RSSPOT_EXPORTER_LOG_FORMAT"),
    )

    @field_validator("metrics_path")
    @classmethod
    def normalize_metrics_path(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return DEFAULT_METRICS_PATH
        return value if value.startswith("/") else f"/{value}"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def refresh_token_value(self) -> str:
        return self.refresh_token.get_secret_value()


def _env_name(loc: str) -> str:
    for name, info in ExporterSettings.model_fields.items():
        alias = info.validation_alias
        choices: list[str] = []
        if isinstance(alias, AliasChoices):
            choices = [choice for choice in alias.choices if isinstance(choice, str)]
        if loc == name or loc.upper() in (choice.upper() for choice in choices):
            return choices[0] if choices else name.upper()
    return loc


def _describe(exc: ValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        field = _env_name(str(error["loc"][0])) if error["loc"] else "settings"
        if error["type"] == "missing":
            problems.append(f"{field} is required")
        else:
            problems.append(f"{field}: {error['msg']}")
    return "; ".join(problems)


def load_settings(**overrides: Any) -> ExporterSettings:
    """Build settings from the environment, applying non-None overrides first."""

    values: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        alias = ExporterSettings.model_fields[key].validation_alias
        # Overrides are keyed by the primary env alias so they outrank the environment.
        values[alias.choices[0] if isinstance(alias, AliasChoices) else key] = value
    try:
        return ExporterSettings(**values)
    except ValidationError as exc:
        raise ConfigError(f"invalid exporter configuration: {_describe(exc)}") from exc
