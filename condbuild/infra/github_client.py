"""
GitHub API client infrastructure for condbuild.

Provides access to the GitHub Packages API for container retention:
- List package versions (newest first, paginated)
- Delete package versions (idempotent)
- Handles rate limiting with exponential backoff
"""

import os
import time
import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Any
from urllib.parse import quote

import requests

from ..domain.version import VersionRecord
from ..exit_codes import APIError

logger = logging.getLogger(__name__)

PER_PAGE = 100


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


class GitHubClient:
    """
    GitHub REST client for container package versions.

    Example:
        client = GitHubClient()
        for version in client.list_package_versions("org", "platform/worker"):
            print(version.id, version.tags)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: int = 30,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to CONDBUILD_TOKEN or GITHUB_TOKEN env var)
            api_url: API base URL (GitHub Enterprise uses a different host)
            max_retries: Maximum retry attempts for rate-limited requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            timeout: HTTP request timeout in seconds
        """
        self.token = token or os.environ.get('CONDBUILD_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.api_url = api_url.rstrip('/')
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self._rate_limit_status: Optional[RateLimitStatus] = None

        self.session = requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'condbuild',
        })
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))

            if remaining >= 0 and limit >= 0:
                self._rate_limit_status = RateLimitStatus(
                    remaining=remaining,
                    limit=limit,
                    reset_time=reset_time,
                    used=used
                )

                if self._rate_limit_status.is_low:
                    logger.warning(
                        f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                        f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                    )
        except (ValueError, TypeError):
            pass  # Ignore parsing errors

    def _request(self, method: str, endpoint: str, **kwargs) -> Optional[requests.Response]:
        """
        Call the GitHub API with rate-limit backoff.

        Returns:
            The response (any status but 403-rate-limited), or None if
            every attempt failed
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
                self._update_rate_limit_from_headers(response.headers)

                if response.status_code in (403, 429) and response.headers.get('X-RateLimit-Remaining') == '0':
                    reset_time = response.headers.get('X-RateLimit-Reset')
                    if reset_time:
                        wait_time = int(reset_time) - int(time.time())
                        if 0 < wait_time < self.max_delay:
                            logger.info(f"Rate limited, waiting {wait_time}s")
                            time.sleep(wait_time)
                            continue

                    delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                    logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                    time.sleep(delay)
                    continue

                return response

            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                if attempt < self.max_retries - 1:
                    delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                    time.sleep(delay)
                continue

        return None

    def _versions_endpoint(self, scope: str, owner: str, package: str) -> str:
        # Package names containing "/" must be URL-encoded
        return f"{scope}/{owner}/packages/container/{quote(package, safe='')}/versions"

    def list_package_versions(self, owner: str, package: str) -> List[VersionRecord]:
        """
        List all versions of a container package, newest first.

        Tries the organization endpoint first and falls back to the user
        endpoint when the owner is not an organization.

        Args:
            owner: Package owner (org or user)
            package: Package name, e.g. "platform/worker"

        Returns:
            List of VersionRecord

        Raises:
            APIError: if the versions cannot be listed
        """
        for scope in ('orgs', 'users'):
            endpoint = self._versions_endpoint(scope, owner, package)
            versions = self._list_pages(endpoint)
            if versions is not None:
                versions.sort(key=lambda v: v.created_at or '', reverse=True)
                return versions
        raise APIError(f"Package {owner}/{package} not found")

    def _list_pages(self, endpoint: str) -> Optional[List[VersionRecord]]:
        """Collect every page; None if the endpoint does not exist."""
        versions: List[VersionRecord] = []
        page = 1
        while True:
            response = self._request('GET', endpoint, params={'per_page': PER_PAGE, 'page': page})
            if response is None:
                raise APIError(f"GitHub API unreachable listing {endpoint}")
            if response.status_code == 404:
                return None
            if response.status_code != 200:
                raise APIError(f"GitHub API error {response.status_code} listing {endpoint}")

            data = response.json()
            if not data:
                break
            versions.extend(VersionRecord.from_api_response(item) for item in data)
            if len(data) < PER_PAGE:
                break
            page += 1
        return versions

    def delete_package_version(self, owner: str, package: str, version_id: int) -> bool:
        """
        Delete one package version.

        A version that is already gone counts as deleted.

        Returns:
            True if the version no longer exists
        """
        for scope in ('orgs', 'users'):
            endpoint = f"{self._versions_endpoint(scope, owner, package)}/{version_id}"
            response = self._request('DELETE', endpoint)
            if response is None:
                return False
            if response.status_code in (200, 204):
                return True
            if response.status_code == 404 and scope == 'orgs':
                continue
            if response.status_code == 404:
                return True
            logger.warning(f"Could not delete version {version_id} of {package}: {response.status_code}")
            return False
        return False
