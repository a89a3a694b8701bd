import time

import structlog
from pydantic import ValidationError

from critical.core.exceptions import TransportError
from critical.core.stats import ProgressTracker
from critical.models.package import Package
from critical.services.registry_service import RegistryClient

logger = structlog.get_logger('collector_service')


class CollectorService:
    """Collects the full critical-package catalog, one page at a time."""

    def __init__(self, client: RegistryClient):
        self.client = client
        self.per_page = client.config.per_page
        self.delay = client.config.rate_limit_delay

    def fetch_page(self, page: int) -> list[dict]:
        url = self.client.critical_packages_url(page, self.per_page)
        try:
            data = self.client.fetch_json(url)
        finally:
            time.sleep(self.delay)
        if not isinstance(data, list):
            raise TransportError(url, reason='expected a JSON array')
        return data

    def fetch_all_critical_packages(self, progress: ProgressTracker | None = None) -> list[Package]:
        """
        Request pages 1, 2, ... until one comes back empty.

        Any TransportError aborts the whole collection; there is no partial
        catalog.
        """
        progress = progress or ProgressTracker()
        packages: list[Package] = []
        skipped = 0
        page = 1

        while True:
            progress.emit(f'Fetching page {page}...')
            batch = self.fetch_page(page)
            if not batch:
                break

            for item in batch:
                try:
                    packages.append(Package.model_validate(item))
                except ValidationError as e:
                    skipped += 1
                    logger.warning(
                        'Skipping invalid package record', page=page,
                        error=str(e).splitlines()[0],
                    )
            logger.debug('Fetched page', page=page, records=len(batch))
            page += 1

        if skipped:
            logger.warning('Invalid package records skipped', count=skipped)
        return packages
