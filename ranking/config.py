"""
Configuration for the popular articles ranking job.

Reads from environment variables (and a local .env file when present) and
validates everything up front, so a run either starts with a complete
configuration or fails before any API call is made.
"""

import json
import os
import re
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from ranking.errors import ConfigError
from ranking.models import DateRange, ReportQuery

# Diagnostic windows: all pages, logged only, never used for the ranking
DIAGNOSTIC_WINDOWS = [
    ("all pages, last 7 days", "8daysAgo", "1daysAgo"),
    ("all pages, last 30 days", "30daysAgo", "1daysAgo"),
]
DIAGNOSTIC_LIMIT = 15

RUN_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

WINDOW_FIELDS = {"start_date": "RANKING_START_DATE", "end_date": "RANKING_END_DATE"}

REQUIRED_ENV_VARS = {
    "hasServiceDomain": "MICROCMS_SERVICE_DOMAIN",
    "hasApiKey": "MICROCMS_PATCH_API_KEY",
    "hasGoogleKey": "GOOGLE_SERVICE_ACCOUNT_KEY",
    "hasPropertyId": "GA_PROPERTY_ID",
}


class ServiceAccountKey(BaseModel):
    """The parts of a Google service-account JSON key the GA4 client needs."""

    model_config = ConfigDict(extra="allow")

    client_email: str = Field(min_length=1)
    private_key: SecretStr
    token_uri: str = GOOGLE_TOKEN_URI

    def to_info(self) -> dict:
        """Return the key as the dict google-auth expects."""
        info = self.model_dump(exclude={"private_key"})
        info["private_key"] = self.private_key.get_secret_value()
        return info


class RankingConfig(BaseModel):
    """Validated settings for one ranking run, keyed by environment variable name."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    service_domain: str = Field(alias="MICROCMS_SERVICE_DOMAIN", min_length=1)
    cms_api_key: SecretStr = Field(alias="MICROCMS_PATCH_API_KEY")
    service_account: ServiceAccountKey = Field(alias="GOOGLE_SERVICE_ACCOUNT_KEY")
    property_id: str = Field(alias="GA_PROPERTY_ID", min_length=1)

    endpoint: str = Field("ranking", alias="RANKING_ENDPOINT", min_length=1)
    content_id: str | None = Field(None, alias="RANKING_CONTENT_ID")
    field_name: str = Field("articles", alias="RANKING_FIELD", min_length=1)
    limit: int = Field(5, alias="RANKING_LIMIT", gt=0)
    start_date: str = Field("8daysAgo", alias="RANKING_START_DATE")
    end_date: str = Field("1daysAgo", alias="RANKING_END_DATE")
    article_prefix: str = Field("/articles/", alias="ARTICLE_PATH_PREFIX")
    diagnostics: bool = Field(True, alias="RANKING_DIAGNOSTICS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    run_time: str = Field("06:00", alias="RUN_TIME")

    @field_validator("service_account", mode="before")
    @classmethod
    def _parse_service_account(cls, value):
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"not valid JSON ({e.msg})") from None
        return value

    @field_validator("article_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not (value.startswith("/") and value.endswith("/")):
            raise ValueError("must start and end with '/' (e.g. /articles/)")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @field_validator("run_time")
    @classmethod
    def _check_run_time(cls, value: str) -> str:
        if not RUN_TIME_PATTERN.match(value):
            raise ValueError("must be HH:MM (24-hour)")
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "RankingConfig":
        try:
            DateRange(start_date=self.start_date, end_date=self.end_date)
        except ValidationError as e:
            problems = []
            for err in e.errors():
                reason = str(err.get("ctx", {}).get("error", err["msg"]))
                names = [WINDOW_FIELDS[part] for part in err["loc"] if part in WINDOW_FIELDS]
                problems.append(f"{names[0]}: {reason}" if names else reason)
            raise ValueError("; ".join(problems)) from None
        return self

    @property
    def path_filter(self) -> str:
        """Full-match regex for article detail pages: prefix plus one segment."""
        return f"^{re.escape(self.article_prefix)}[^/]+$"

    def primary_query(self) -> ReportQuery:
        return ReportQuery(
            property_id=self.property_id,
            date_range=DateRange(start_date=self.start_date, end_date=self.end_date),
            path_filter=self.path_filter,
            limit=self.limit,
        )

    def diagnostic_queries(self) -> list[tuple[str, ReportQuery]]:
        """Unfiltered queries whose results are only logged."""
        return [
            (
                label,
                ReportQuery(
                    property_id=self.property_id,
                    date_range=DateRange(start_date=start, end_date=end),
                    limit=DIAGNOSTIC_LIMIT,
                ),
            )
            for label, start, end in DIAGNOSTIC_WINDOWS
        ]


def env_presence(environ: Mapping[str, str]) -> dict[str, bool]:
    """Which required variables are set, safe to log."""
    return {flag: bool(environ.get(var, "").strip()) for flag, var in REQUIRED_ENV_VARS.items()}


def _format_error(error: dict) -> str:
    location = ".".join(str(part) for part in error["loc"]) or "config"
    if error["type"] == "missing":
        return f"{location} is not set"
    return f"{location}: {error['msg']}"


def load_config(environ: Mapping[str, str] | None = None) -> RankingConfig:
    """
    Build a RankingConfig from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ after loading .env
            (existing environment variables take precedence over .env).

    Returns:
        The validated configuration.

    Raises:
        ConfigError: listing every missing or malformed setting.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    # Treat blank values as unset
    values = {key: value for key, value in environ.items() if value.strip()}

    try:
        return RankingConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigError([_format_error(err) for err in e.errors()]) from None
