"""Tests for the update_ranking and scheduler entry points."""

import pytest
from google.api_core.exceptions import Unauthenticated

import scheduler
import update_ranking
from conftest import FakeAnalyticsClient, FakeCMSClient
from ranking.errors import CMSError

REQUIRED = [
    "MICROCMS_SERVICE_DOMAIN",
    "MICROCMS_PATCH_API_KEY",
    "GOOGLE_SERVICE_ACCOUNT_KEY",
    "GA_PROPERTY_ID",
]


@pytest.fixture
def environment(env, monkeypatch):
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("RANKING_DIAGNOSTICS", "false")
    monkeypatch.setattr(update_ranking, "load_dotenv", lambda: None)
    monkeypatch.setattr("ranking.config.load_dotenv", lambda: None)
    return env


@pytest.fixture
def fakes(environment, monkeypatch):
    analytics_client = FakeAnalyticsClient(primary_rows=[("/articles/foo-bar", "120")])
    cms_client = FakeCMSClient()
    monkeypatch.setattr(update_ranking.analytics, "get_client", lambda config: analytics_client)
    monkeypatch.setattr(update_ranking.cms, "get_client", lambda domain, key: cms_client)
    return analytics_client, cms_client


def test_main_success(fakes):
    _, cms_client = fakes
    assert update_ranking.main() == 0
    assert cms_client.calls[0]["content"] == {"articles": ["foo-bar"]}


def test_main_missing_config_exits_nonzero(monkeypatch, caplog):
    for key in REQUIRED:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(update_ranking, "load_dotenv", lambda: None)
    monkeypatch.setattr("ranking.config.load_dotenv", lambda: None)
    assert update_ranking.main() == 1
    assert "GA_PROPERTY_ID is not set" in caplog.text


def test_main_primary_failure_exits_nonzero_without_publishing(fakes):
    analytics_client, cms_client = fakes
    analytics_client.primary_error = Unauthenticated("expired key")
    assert update_ranking.main() == 1
    assert cms_client.calls == []


def test_scheduler_daily_job_reports_failure(fakes, config):
    analytics_client, cms_client = fakes
    assert scheduler.daily_job(config) is True
    analytics_client.primary_error = Unauthenticated("expired key")
    assert scheduler.daily_job(config) is False
    assert len(cms_client.calls) == 1


def test_main_publish_failure_exits_nonzero(fakes, caplog):
    _, cms_client = fakes
    cms_client.error = CMSError("Unauthorized. Check that the microCMS API key is valid.", 401)
    assert update_ranking.main() == 1
    assert len(cms_client.calls) == 1
    assert "Ranking update failed" in caplog.text


def test_main_unloadable_service_account_key_exits_nonzero(environment, caplog):
    # The fixture key has a placeholder PEM body that google-auth cannot load
    assert update_ranking.main() == 1
    assert "Invalid service account key" in caplog.text


def test_scheduler_daily_job_survives_bad_service_account_key(config):
    assert scheduler.daily_job(config) is False


def test_scheduler_main_missing_config_exits_nonzero(monkeypatch, caplog):
    for key in REQUIRED:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("ranking.config.load_dotenv", lambda: None)
    assert scheduler.main() == 1
    assert "MICROCMS_SERVICE_DOMAIN is not set" in caplog.text
