"""
GA4 Data API – page view reports.

Builds runReport requests for the pagePath / screenPageViews pair, runs them,
and returns validated ReportRow lists. Rows are kept in the order the API
returns them; no explicit ordering is requested.
"""

import logging

from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta.types import (
    DateRange,
    Dimension,
    Filter,
    FilterExpression,
    Metric,
    RunReportRequest,
)
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from pydantic import ValidationError

from ranking.config import RankingConfig
from ranking.errors import AnalyticsError
from ranking.models import ReportQuery, ReportRow, ReportSummary

logger = logging.getLogger(__name__)

PATH_DIMENSION = "pagePath"
VIEWS_METRIC = "screenPageViews"


def build_credentials(service_account_info: dict) -> service_account.Credentials:
    """
    Create service-account credentials from a parsed JSON key.

    Raises:
        AnalyticsError: when the key is incomplete or the private key cannot be loaded.
    """
    try:
        return service_account.Credentials.from_service_account_info(service_account_info)
    except (GoogleAuthError, ValueError) as e:
        email = service_account_info.get("client_email")
        raise AnalyticsError(f"Invalid service account key for {email}: {e}") from e


def get_client(config: RankingConfig) -> BetaAnalyticsDataClient:
    """Create a GA4 Data API client authenticated with the configured service account."""
    credentials = build_credentials(config.service_account.to_info())
    return BetaAnalyticsDataClient(credentials=credentials)


def build_request(query: ReportQuery) -> RunReportRequest:
    """Translate a ReportQuery into a runReport request."""
    params = {}
    if query.path_filter is not None:
        params["dimension_filter"] = FilterExpression(
            filter=Filter(
                field_name=PATH_DIMENSION,
                string_filter=Filter.StringFilter(
                    match_type=Filter.StringFilter.MatchType.FULL_REGEXP,
                    value=query.path_filter,
                ),
            )
        )

    return RunReportRequest(
        property=query.property_name,
        date_ranges=[
            DateRange(
                start_date=query.date_range.start_date,
                end_date=query.date_range.end_date,
            )
        ],
        dimensions=[Dimension(name=PATH_DIMENSION)],
        metrics=[Metric(name=VIEWS_METRIC)],
        limit=query.limit,
        **params,
    )


def parse_rows(response) -> list[ReportRow]:
    """Convert runReport response rows to ReportRow, in response order."""
    rows = []
    for row in response.rows:
        path = row.dimension_values[0].value if row.dimension_values else ""
        views = row.metric_values[0].value if row.metric_values else "0"
        try:
            rows.append(ReportRow(path=path, views=views or 0))
        except ValidationError as e:
            logger.warning("Skipping malformed report row path=%r views=%r: %s", path, views, e)
    return rows


def run_report(client: BetaAnalyticsDataClient, query: ReportQuery) -> list[ReportRow]:
    """
    Run one report and return at most query.limit rows.

    Args:
        client: GA4 Data API client
        query: Property, window, optional path filter and row limit

    Returns:
        Rows in the order the API returned them.

    Raises:
        AnalyticsError: on any transport or authentication failure.
    """
    request = build_request(query)
    logger.debug("runReport request: %s", request)
    try:
        response = client.run_report(request)
    except (GoogleAPIError, GoogleAuthError) as e:
        raise AnalyticsError(f"GA4 report for {query.property_name} failed: {e}") from e

    rows = parse_rows(response)
    return rows[: query.limit]


def fetch_report_summary(
    client: BetaAnalyticsDataClient, query: ReportQuery, top: int = 10
) -> ReportSummary | None:
    """Best-effort report for logging; returns None instead of raising."""
    try:
        rows = run_report(client, query)
    except AnalyticsError as e:
        logger.warning("Diagnostic report failed: %s", e)
        return None
    return ReportSummary.from_rows(rows, top=top)
