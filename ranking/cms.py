"""
microCMS – write client.

Only the update (PATCH) call is needed: the ranking field is replaced in full
on every run.

API Endpoint: PATCH https://{service_domain}.microcms.io/api/v1/{endpoint}[/{content_id}]
"""

import logging

import requests
from requests.exceptions import HTTPError

from ranking.errors import CMSError
from ranking.models import RankingUpdate

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-MICROCMS-API-KEY"
TIMEOUT_SECONDS = 30


class MicroCMSClient:
    """Minimal microCMS management client bound to one service domain."""

    def __init__(
        self,
        service_domain: str,
        api_key: str,
        timeout: float = TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        if not service_domain:
            raise ValueError("service_domain is required")
        if not api_key:
            raise ValueError("api_key is required")
        self.service_domain = service_domain
        self.base_url = f"https://{service_domain}.microcms.io/api/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({API_KEY_HEADER: api_key})

    def content_url(self, endpoint: str, content_id: str | None = None) -> str:
        url = f"{self.base_url}/{endpoint}"
        if content_id:
            url = f"{url}/{content_id}"
        return url

    def update(self, endpoint: str, content: dict, content_id: str | None = None) -> dict:
        """
        Overwrite the given fields of an object API (or of one list API entry).

        Args:
            endpoint: API endpoint name, e.g. "ranking"
            content: Fields to write
            content_id: Entry id, only for list-format APIs

        Returns:
            Decoded response body ({} when empty).

        Raises:
            CMSError: on transport failure or non-2xx status.
        """
        url = self.content_url(endpoint, content_id)
        logger.info("PATCH %s", url)
        try:
            response = self.session.patch(url, json=content, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise CMSError(f"Request to {url} failed: {e}") from e

        if response.status_code == 401:
            raise CMSError("Unauthorized. Check that the microCMS API key is valid.", 401)
        if response.status_code == 403:
            raise CMSError("Forbidden. The API key lacks PATCH permission for this endpoint.", 403)

        try:
            response.raise_for_status()
        except HTTPError as e:
            raise CMSError(f"HTTP {response.status_code} from {url}: {e}", response.status_code) from e

        if not response.content:
            return {}
        try:
            return response.json()
        except requests.exceptions.JSONDecodeError:
            logger.warning("Non-JSON response from %s (HTTP %s), ignoring body", url, response.status_code)
            return {}


def get_client(service_domain: str, api_key: str) -> MicroCMSClient:
    return MicroCMSClient(service_domain, api_key)


def publish_ranking(
    client: MicroCMSClient,
    endpoint: str,
    update: RankingUpdate,
    field: str = "articles",
    content_id: str | None = None,
) -> dict:
    """Replace the ranking field with update.articles (an empty list clears it)."""
    return client.update(endpoint, update.to_content(field), content_id=content_id)
