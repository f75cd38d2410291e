"""
Popular articles ranking – Pydantic models.

Single source of truth for the report query sent to GA4, the rows it returns,
the diagnostic summaries, and the payload written to microCMS.
"""

import re
from datetime import date, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

RELATIVE_DATE_PATTERN = re.compile(r"^(\d+)daysAgo$")


def resolve_date(value: str, today: date) -> date:
    """
    Resolve a GA4 date bound to a calendar date.

    Accepts YYYY-MM-DD, "today", "yesterday" or "NdaysAgo".
    Raises ValueError for anything else.
    """
    if value == "today":
        return today
    if value == "yesterday":
        return today - timedelta(days=1)
    m = RELATIVE_DATE_PATTERN.match(value)
    if m:
        return today - timedelta(days=int(m.group(1)))
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(
            f"{value!r} is not a date (YYYY-MM-DD, today, yesterday or NdaysAgo)"
        ) from None


class DateRange(BaseModel):
    """Report window. Both bounds are inclusive, as in the GA4 Data API."""

    model_config = ConfigDict(frozen=True)

    start_date: str
    end_date: str

    @field_validator("start_date", "end_date")
    @classmethod
    def _check_bound(cls, value: str) -> str:
        value = value.strip()
        resolve_date(value, date.today())
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        today = date.today()
        if resolve_date(self.end_date, today) < resolve_date(self.start_date, today):
            raise ValueError(
                f"end_date {self.end_date!r} is before start_date {self.start_date!r}"
            )
        return self


class ReportQuery(BaseModel):
    """One runReport call: a property, a window, an optional path regex, a row limit."""

    model_config = ConfigDict(frozen=True)

    property_id: str = Field(min_length=1)
    date_range: DateRange
    path_filter: str | None = None
    limit: int = Field(gt=0)

    @field_validator("property_id")
    @classmethod
    def _strip_property_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("property_id must not be blank")
        return value

    @field_validator("path_filter")
    @classmethod
    def _check_path_filter(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"path_filter {value!r} is not a valid regex: {e}") from None
        return value

    @property
    def property_name(self) -> str:
        return f"properties/{self.property_id}"


class ReportRow(BaseModel):
    """
    One (pagePath, screenPageViews) row of a report.

    GA4 returns metric values as strings; views is coerced to int.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    views: int = Field(ge=0)

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"path {value!r} is not rooted at '/'")
        return value


class PageSummary(BaseModel):
    rank: int
    path: str
    views: int


class ReportSummary(BaseModel):
    """Condensed view of a diagnostic report, logged and then discarded."""

    total_pages: int = 0
    pages: list[PageSummary] = Field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: list[ReportRow], top: int = 10) -> "ReportSummary":
        pages = [
            PageSummary(rank=i, path=row.path, views=row.views)
            for i, row in enumerate(rows[:top], start=1)
        ]
        return cls(total_pages=len(rows), pages=pages)


class RankingUpdate(BaseModel):
    """Ordered article ids that replace the ranking field in full."""

    articles: list[str] = Field(default_factory=list)

    def to_content(self, field: str = "articles") -> dict[str, list[str]]:
        """Build the microCMS content body for the given field name."""
        return {field: list(self.articles)}
