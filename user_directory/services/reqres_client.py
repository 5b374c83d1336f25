"""
ReqRes users API transport.
Pure HTTP client: returns raw response bytes and leaves payload interpretation
to the response validator.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from user_directory.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 10  # seconds
MAX_RETRIES = 2
BACKOFF_FACTOR = 0.5


class UserSourceError(Exception):
    """Transport-level failure talking to the upstream user source."""

    def __init__(self, message: str, url: str | None = None, error_type: str | None = None):
        super().__init__(message)
        self.url = url
        self.error_type = error_type


class UserSource(ABC):
    """Port for fetching raw user payloads."""

    @abstractmethod
    def fetch(
        self,
        url: str,
        query: Mapping[str, int | str],
        headers: Mapping[str, str],
        timeout: float,
    ) -> bytes:
        """
        Fetch url and return the body.

        Raises:
            UserSourceError: On timeout, connection or other transport failure.
                A response with a non-success status still returns its body.
        """
        pass

    def close(self) -> None:
        return None


class RequestsUserSource(UserSource):
    """UserSource on a requests session with retries."""

    def __init__(self, max_retries: int = MAX_RETRIES, backoff_factor: float = BACKOFF_FACTOR):
        self._session = self._create_session(max_retries, backoff_factor)

    def _create_session(self, max_retries: int, backoff_factor: float) -> requests.Session:
        """Create requests session with retry strategy."""
        session = requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            # Hand back the last response instead of raising once retries run out
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def fetch(
        self,
        url: str,
        query: Mapping[str, int | str],
        headers: Mapping[str, str],
        timeout: float = REQUEST_TIMEOUT,
    ) -> bytes:
        try:
            response = self._session.get(url, params=dict(query), headers=dict(headers), timeout=timeout)
        except requests.Timeout as e:
            logger.warning("User source request timed out", url=url, timeout=timeout)
            raise UserSourceError(f"Request timed out after {timeout}s", url=url, error_type="timeout") from e
        except requests.RequestException as e:
            logger.warning("User source request failed", url=url, error=str(e), error_type=type(e).__name__)
            raise UserSourceError(f"Request failed: {e}", url=url, error_type=type(e).__name__) from e

        logger.debug(
            "User source response",
            url=url,
            status_code=response.status_code,
            response_size=len(response.content),
        )
        if not response.ok:
            logger.warning("User source returned non-success status", url=url, status_code=response.status_code)

        return response.content

    def close(self) -> None:
        self._session.close()
