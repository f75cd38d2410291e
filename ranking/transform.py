"""
Report rows to article ids.

Strips the article path prefix from each row and truncates to the ranking size.
Row order is kept as returned by the report.
"""

import logging

from ranking.models import RankingUpdate, ReportRow

logger = logging.getLogger(__name__)

ARTICLE_PREFIX = "/articles/"


def extract_article_id(path: str, prefix: str = ARTICLE_PREFIX) -> str | None:
    """
    Return the slug of an article detail path, e.g. "/articles/foo" -> "foo".

    Returns None when the path does not start with the prefix or when the rest
    is not exactly one non-empty segment.
    """
    if not path.startswith(prefix):
        return None
    article_id = path[len(prefix) :]
    if not article_id or "/" in article_id:
        return None
    return article_id


def extract_article_ids(
    rows: list[ReportRow], prefix: str = ARTICLE_PREFIX, limit: int | None = None
) -> list[str]:
    """Article ids for the given rows, skipping paths that are not article pages."""
    ids = []
    for row in rows:
        article_id = extract_article_id(row.path, prefix)
        if article_id is None:
            logger.warning("Skipping %r: not an article path under %r", row.path, prefix)
            continue
        ids.append(article_id)
    if limit is not None:
        ids = ids[:limit]
    return ids


def build_ranking(
    rows: list[ReportRow], prefix: str = ARTICLE_PREFIX, limit: int | None = None
) -> RankingUpdate:
    return RankingUpdate(articles=extract_article_ids(rows, prefix, limit))
