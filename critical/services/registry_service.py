from dataclasses import dataclass
from dataclasses import field
from typing import Any
from urllib.parse import quote

import requests
import structlog
from ratelimit import limits
from ratelimit import sleep_and_retry

from critical.core.client import get_http_client
from critical.core.config import ApiConfig
from critical.core.exceptions import TransportError
from critical.models.ecosystem import registry_for

logger = structlog.get_logger('registry_service')

# Ceiling on top of the fixed per-request delay: 1200 requests/minute
CALLS = 1200
PERIOD = 60

# Characters left literal when encoding a package name into a path segment
UNRESERVED_MARKS = "!'()*"


@dataclass
class VersionLookup:
    """Outcome of a version-number lookup. `error` is set when the request failed."""
    ecosystem: str
    name: str
    registry: str | None = None
    versions: list[str] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RegistryClient:
    """Client for the ecosyste.ms packages API."""

    def __init__(self, config: ApiConfig, session: requests.Session | None = None):
        self.config = config
        self.base_url = config.base_url.rstrip('/')
        self.session = session or get_http_client(
            user_agent=config.user_agent,
            cache_name=config.cache_name,
            expire_after=config.cache_ttl,
            pool_size=max(config.concurrency * 2, 10),
        )

    @sleep_and_retry
    @limits(calls=CALLS, period=PERIOD)
    def _get(self, url: str) -> requests.Response:
        return self.session.get(url, timeout=self.config.timeout)

    def fetch_json(self, url: str) -> Any:
        """GET a URL and decode its JSON body. Raises TransportError on any failure."""
        try:
            response = self._get(url)
        except requests.RequestException as e:
            raise TransportError(url, reason=str(e)) from e

        if not 200 <= response.status_code < 300:
            raise TransportError(url, status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                url, status=response.status_code, reason='invalid JSON',
            ) from e

    def critical_packages_url(self, page: int, per_page: int) -> str:
        return f"{self.base_url}/packages/critical?per_page={per_page}&page={page}"

    def version_numbers_url(self, registry: str, name: str) -> str:
        return f"{self.base_url}/registries/{registry}/packages/{quote(name, safe=UNRESERVED_MARKS)}/version_numbers"

    def lookup_version_numbers(self, ecosystem: str, name: str) -> VersionLookup:
        registry = registry_for(ecosystem)
        result = VersionLookup(ecosystem=ecosystem, name=name, registry=registry)
        if registry is None:
            return result

        url = self.version_numbers_url(registry, name)
        try:
            data = self.fetch_json(url)
        except TransportError as e:
            result.error = e
            return result

        if not isinstance(data, list):
            result.error = TransportError(url, reason='expected a JSON array')
            return result

        result.versions = [str(v) for v in data if v is not None]
        return result

    def version_numbers(self, ecosystem: str, name: str) -> list[str]:
        """Best-effort version list; a failed lookup counts as no versions known."""
        lookup = self.lookup_version_numbers(ecosystem, name)
        if not lookup.ok:
            logger.debug(
                'Version lookup failed', ecosystem=ecosystem,
                package=name, error=str(lookup.error),
            )
            return []
        return lookup.versions
