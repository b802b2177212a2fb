import logging
import time
from typing import Optional

import requests

from cmssync.conf import get_setting
from cmssync.exceptions import CmsApiError
from cmssync.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


class CmsClient:
    """
    JSON-over-HTTP client used by every CMS adapter.

    Each call waits on the shared RateLimiter, 429 responses are retried
    (Retry-After first, doubling backoff otherwise) and any other non-2xx
    status raises CmsApiError.
    """

    def __init__(self, platform: str, base_url: str, headers: dict,
                 rate_limiter: RateLimiter, timeout: Optional[float] = None):
        self._platform = platform
        self._base_url = base_url.rstrip('/')
        self._session = requests.Session()
        self._session.headers.update(headers)
        self._rate_limiter = rate_limiter
        self._timeout = timeout if timeout is not None else get_setting('REQUEST_TIMEOUT')

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    def get(self, path: str, params: Optional[dict] = None, **kwargs) -> dict:
        return self.request('GET', path, params=params, **kwargs)

    def post(self, path: str, json=None, **kwargs) -> dict:
        return self.request('POST', path, json=json, **kwargs)

    def put(self, path: str, json=None, **kwargs) -> dict:
        return self.request('PUT', path, json=json, **kwargs)

    def patch(self, path: str, json=None, **kwargs) -> dict:
        return self.request('PATCH', path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> dict:
        return self.request('DELETE', path, **kwargs)

    def request(self, method: str, path: str, params: Optional[dict] = None,
                json=None, headers: Optional[dict] = None) -> dict:
        """Send one request and return the decoded JSON body ({} for DELETE and empty bodies)."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        response = self._request_with_retry(
            method, url, params=params, json=json, headers=headers, timeout=self._timeout,
        )
        if method == 'DELETE' or not response.content:
            return {}
        return response.json()

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        backoff = 1.0
        for attempt in range(1, MAX_RETRIES + 1):
            self._rate_limiter.acquire()
            logger.debug("Making %s API request: %s %s", self._platform, method, url)
            response = self._session.request(method, url, **kwargs)

            if response.status_code == 429:
                retry_after = self._parse_retry_after(response)
                wait = retry_after if retry_after is not None else backoff
                logger.warning(
                    "%s: 429 Too Many Requests (attempt %d/%d). Waiting %.1fs before retry.",
                    self._platform, attempt, MAX_RETRIES, wait,
                )
                time.sleep(wait)
                backoff *= 2
                continue

            if not response.ok:
                error = CmsApiError(self._platform, response.status_code, response.reason, response.text)
                logger.error("%s", error)
                raise error
            return response

        raise CmsApiError(
            self._platform, 429, 'Too Many Requests',
            f'{method} {url} failed after {MAX_RETRIES} retries due to rate limiting.',
        )

    @staticmethod
    def _parse_retry_after(response: requests.Response):
        """Return float seconds from Retry-After header, or None if absent/invalid."""
        header = response.headers.get('Retry-After')
        if header is None:
            return None
        try:
            return float(header)
        except (TypeError, ValueError):
            return None
