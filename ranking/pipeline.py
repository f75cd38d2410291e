"""
Popular articles ranking – one run.

Steps, each finished before the next starts:
    1. diagnostic reports (optional, failures are logged and ignored)
    2. primary report for article pages (failure aborts the run)
    3. article ids from report paths
    4. overwrite of the ranking field in microCMS (failure aborts the run)

Inputs and outputs of every step are logged as JSON blocks.
"""

import json
import logging
from datetime import datetime

from ranking.analytics import fetch_report_summary, run_report
from ranking.cms import MicroCMSClient, publish_ranking
from ranking.config import RankingConfig
from ranking.models import RankingUpdate, ReportSummary
from ranking.transform import build_ranking

logger = logging.getLogger(__name__)


def log_step(title: str, data) -> None:
    """Log a titled block; dicts and lists are pretty-printed as JSON."""
    if isinstance(data, (dict, list)):
        body = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    else:
        body = str(data)
    logger.info("\n=== %s ===\n%s\n%s", title, body, "=" * 24)


def run_diagnostics(config: RankingConfig, analytics_client) -> dict[str, ReportSummary | None]:
    """Run the all-pages reports; results are only logged."""
    results = {}
    for label, query in config.diagnostic_queries():
        window = f"{query.date_range.start_date} .. {query.date_range.end_date}"
        log_step(f"Diagnostic report: {label}", f"window: {window}")
        summary = fetch_report_summary(analytics_client, query)
        if summary is None:
            log_step(f"Diagnostic report failed: {label}", "see warning above")
        else:
            log_step(f"Diagnostic report result: {label}", summary.model_dump())
        results[label] = summary
    return results


def run(config: RankingConfig, analytics_client, cms_client: MicroCMSClient) -> RankingUpdate:
    """
    Fetch the top article pages and publish their ids to microCMS.

    Args:
        config: Validated settings
        analytics_client: GA4 Data API client (anything with run_report)
        cms_client: microCMS write client

    Returns:
        The payload that was published.

    Raises:
        AnalyticsError: when the primary report fails; nothing is published.
        CMSError: when the write fails.
    """
    log_step(
        "Run started",
        {
            "propertyId": config.property_id,
            "serviceDomain": config.service_domain,
            "timestamp": datetime.now().isoformat(),
        },
    )

    if config.diagnostics:
        run_diagnostics(config, analytics_client)

    query = config.primary_query()
    log_step(
        "Primary report",
        {
            "window": query.date_range.model_dump(),
            "filter": query.path_filter,
            "limit": query.limit,
        },
    )
    rows = run_report(analytics_client, query)
    log_step("Primary report rows", [row.model_dump() for row in rows])

    update = build_ranking(rows, prefix=config.article_prefix, limit=config.limit)
    log_step("Article ids", update.articles)

    log_step(
        "Publishing ranking",
        {"endpoint": config.endpoint, "contentId": config.content_id, "articleIds": update.articles},
    )
    publish_ranking(
        cms_client,
        config.endpoint,
        update,
        field=config.field_name,
        content_id=config.content_id,
    )

    log_step("Run finished", f"Published {len(update.articles)} article(s) to {config.endpoint}")
    return update
