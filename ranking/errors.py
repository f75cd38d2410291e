"""
Popular articles ranking – exception types.

Failures of the primary report and of the publish step propagate as one of
these; diagnostic queries catch AnalyticsError locally.
"""


class RankingError(Exception):
    """Base class for all ranking job failures."""


class ConfigError(RankingError):
    """Raised when required settings are missing or malformed."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class AnalyticsError(RankingError):
    """Raised when a GA4 report request fails (transport or auth)."""


class CMSError(RankingError):
    """Raised when the microCMS write request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
