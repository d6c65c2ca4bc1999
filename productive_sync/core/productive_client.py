"""
Productive.io API client for JSON:API resource endpoints.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    JSONAPI_CONTENT_TYPE,
    MAX_RETRIES,
    PRODUCTIVE_API_TOKEN,
    PRODUCTIVE_API_URL,
    PRODUCTIVE_ORGANIZATION_ID,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF,
)
from .errors import ProductiveAPIError

logger = logging.getLogger(__name__)


class ProductiveClient:
    """Client for the Productive.io REST API."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        organization_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT,
    ):
        """
        Initialize Productive client.

        Args:
            api_token: Productive API token. If not provided, uses environment variable.
            organization_id: Productive organization id. If not provided, uses environment variable.
            base_url: API root, defaults to PRODUCTIVE_API_URL.
            timeout: Per-request timeout in seconds.
        """
        self.api_token = api_token or PRODUCTIVE_API_TOKEN
        self.organization_id = organization_id or PRODUCTIVE_ORGANIZATION_ID
        if not self.api_token or not self.organization_id:
            raise ValueError(
                "Productive API token and organization id are required. "
                "Set PRODUCTIVE_API_TOKEN and PRODUCTIVE_ORGANIZATION_ID in environment."
            )

        self.base_url = (base_url or PRODUCTIVE_API_URL).rstrip("/")
        self.timeout = timeout
        self.headers = {
            "X-Auth-Token": self.api_token,
            "X-Organization-Id": str(self.organization_id),
            "Content-Type": JSONAPI_CONTENT_TYPE,
            "Accept": JSONAPI_CONTENT_TYPE,
        }

        # Set up session with retry strategy
        self.session = requests.Session()
        retry_strategy = Retry(
            total=MAX_RETRIES,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """
        GET a JSON:API document.

        Args:
            path: Resource path relative to the API root, e.g. ``tasks``
            params: Query parameters (``page[number]``, ``include`` ...)

        Returns:
            Decoded response body

        Raises:
            ProductiveAPIError: On any non-2xx status
            requests.RequestException: If the request could not be sent
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(
                url,
                params=params or {},
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"API request failed: {e}")
            raise

        if not response.ok:
            raise ProductiveAPIError(response.status_code, _error_body(response))

        return response.json()

    def test_connection(self) -> bool:
        """Cheap authenticated call used by health checks."""
        try:
            self.get("organization_memberships", {"page[size]": 1})
            return True
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False


def _error_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
