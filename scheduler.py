"""
Popular articles ranking – daily scheduler.

Runs the ranking update once per day using the schedule library.
Alternative to cron for environments where cron isn't available.

Usage:
    python scheduler.py

Configuration:
    - RUN_TIME: Time to run daily (HH:MM format, 24-hour), default 06:00
    - Same environment as update_ranking.py
"""

import logging
import sys
import time
from datetime import datetime

import schedule

from ranking.config import RankingConfig, load_config
from ranking.errors import ConfigError, RankingError
from update_ranking import run_once

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def daily_job(config: RankingConfig) -> bool:
    """Run one ranking update; failures are logged so the scheduler keeps running."""
    logger.info("=" * 50)
    logger.info("Daily job started: %s", datetime.now().isoformat())
    logger.info("=" * 50)

    try:
        update = run_once(config)
    except RankingError as e:
        logger.error("Ranking update failed: %s", e)
        return False

    logger.info("Daily job completed: %d article(s) published.", len(update.articles))
    return True


def run_now_and_schedule(config: RankingConfig) -> None:
    """Run immediately, then schedule for daily execution."""
    logger.info("Ranking scheduler started at %s", datetime.now().isoformat())
    logger.info("Scheduled to run daily at %s", config.run_time)
    logger.info("Running initial job now...")

    daily_job(config)

    schedule.every().day.at(config.run_time).do(daily_job, config)

    logger.info("Scheduler active. Next run at %s daily.", config.run_time)
    logger.info("Press Ctrl+C to stop.")

    while True:
        schedule.run_pending()
        time.sleep(60)


def main() -> int:
    """Entry point for the scheduler."""
    try:
        config = load_config()
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    logging.getLogger().setLevel(config.log_level)

    try:
        run_now_and_schedule(config)
    except KeyboardInterrupt:
        logger.info("Scheduler stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
