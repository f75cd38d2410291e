"""
Popular articles ranking – update script.

Fetches the most viewed article pages from GA4 for the trailing week and
writes their ids, in order, to the "ranking" object API in microCMS.
Designed to run once daily (via cron, CI schedule or scheduler.py).

Required environment (or .env):
    MICROCMS_SERVICE_DOMAIN, MICROCMS_PATCH_API_KEY,
    GOOGLE_SERVICE_ACCOUNT_KEY (JSON), GA_PROPERTY_ID

Exit status is 1 when the configuration is invalid, the primary report fails
or the microCMS write fails.
"""

import logging
import os
import sys

from dotenv import load_dotenv

from ranking import analytics, cms, pipeline
from ranking.config import RankingConfig, env_presence, load_config
from ranking.errors import ConfigError, RankingError
from ranking.models import RankingUpdate

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def run_once(config: RankingConfig) -> RankingUpdate:
    """Build both API clients and run the ranking pipeline once."""
    analytics_client = analytics.get_client(config)
    cms_client = cms.get_client(config.service_domain, config.cms_api_key.get_secret_value())
    return pipeline.run(config, analytics_client, cms_client)


def main() -> int:
    """Main entry point: one ranking update."""
    load_dotenv()
    pipeline.log_step("Environment", env_presence(os.environ))

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Missing or invalid configuration:")
        for problem in e.problems:
            logger.error("  - %s", problem)
        return 1

    logging.getLogger().setLevel(config.log_level)

    try:
        run_once(config)
    except RankingError as e:
        logger.error("Ranking update failed: %s", e)
        return 1

    logger.info("Ranking update completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
