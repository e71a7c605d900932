"""
npm registry client infrastructure for types-publisher.

Reads package documents from the public npm registry:
- Scoped names are escaped the way the registry expects (``@types%2ffoo``)
- Missing packages return None rather than raising
- Rate limiting and server errors are retried with exponential backoff
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import requests

from ..domain.registry import PublishedState, SemanticVersion
from ..exit_codes import RegistryError

logger = logging.getLogger(__name__)

NPM_REGISTRY_URL = "https://registry.npmjs.org"

# Status codes worth retrying
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def escape_package_name(name: str) -> str:
    """
    Escape a package name for use in a registry URL.

    ``@types/node`` becomes ``@types%2fnode``; unscoped names are unchanged.
    """
    return name.replace('/', '%2f')


def parse_timestamp(value: str) -> datetime:
    """Parse a registry ``time`` entry such as ``2017-04-12T18:37:53.041Z``."""
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def highest_version(version_strings) -> Optional[SemanticVersion]:
    """
    Highest release version among ``version_strings``.

    Prereleases (``0.1.6-beta``) and strings that aren't semver are skipped;
    only plain ``X.Y.Z`` uploads count.
    """
    versions = []
    for version_string in version_strings:
        try:
            version = SemanticVersion.parse(version_string)
        except ValueError:
            logger.debug(f"Skipping unparsable version {version_string!r}")
            continue
        if not version.is_prerelease:
            versions.append(version)
    return max(versions) if versions else None


class RegistryFetcher:
    """
    Client for the npm registry's package document endpoint.

    Example:
        fetcher = RegistryFetcher()
        info = fetcher.fetch_npm_info("@types/node")
        if info:
            print(info["dist-tags"]["latest"])
    """

    def __init__(
        self,
        registry_url: str = NPM_REGISTRY_URL,
        timeout: int = 30,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize RegistryFetcher.

        Args:
            registry_url: Base URL of the registry
            timeout: HTTP request timeout in seconds
            max_retries: Maximum attempts for rate-limited or failed requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
        """
        self.registry_url = registry_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'types-publisher',
        })

    @classmethod
    def from_options(cls, options) -> 'RegistryFetcher':
        return cls(
            registry_url=options.registry_url,
            timeout=options.timeout_seconds,
            max_retries=options.max_retries,
        )

    def fetch_npm_info(self, package_name: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the full registry document of a package.

        Args:
            package_name: Unescaped package name, e.g. ``@types/node``

        Returns:
            The decoded document, or None if the package was never published

        Raises:
            RegistryError: if the registry keeps failing after all retries
            requests.RequestException: on connection failures
        """
        url = f"{self.registry_url}/{escape_package_name(package_name)}"

        for attempt in range(self.max_retries):
            response = self.session.get(url, timeout=self.timeout)

            if response.status_code == 200:
                return response.json()

            if response.status_code == 404:
                return None

            if response.status_code in RETRY_STATUS_CODES and attempt + 1 < self.max_retries:
                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                logger.info(
                    f"Registry returned {response.status_code} for {package_name}, "
                    f"waiting {delay}s (attempt {attempt + 1})"
                )
                self._sleep(delay)
                continue

            break

        raise RegistryError(f"Registry returned {response.status_code} for {package_name}")

    def fetch_published_state(self, package_name: str) -> PublishedState:
        """
        Fetch and summarize the published state of a package we own.

        Raises:
            RegistryError: if the package was never published or lacks a latest tag
        """
        info = self.fetch_npm_info(package_name)
        if info is None:
            raise RegistryError(f"{package_name} has never been published")

        dist_tags = info.get('dist-tags') or {}
        latest = dist_tags.get('latest')
        if not latest:
            raise RegistryError(f"{package_name} has no 'latest' tag")

        versions = info.get('versions') or {}
        highest = highest_version(versions.keys())
        if highest is None:
            raise RegistryError(f"{package_name} has no published release versions")

        try:
            version = SemanticVersion.parse(latest)
        except ValueError:
            raise RegistryError(f"{package_name} has an invalid latest version {latest!r}")

        latest_manifest = versions.get(latest) or {}
        modified = (info.get('time') or {}).get('modified')
        if not modified:
            raise RegistryError(f"{package_name} has no modification time")

        return PublishedState(
            version=version,
            content_hash=latest_manifest.get('typesPublisherContentHash') or '',
            last_modified=parse_timestamp(modified),
            highest_version=highest,
        )
