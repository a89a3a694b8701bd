import concurrent.futures
import time
from collections.abc import Iterator
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from critical.core.stats import ProgressTracker
from critical.models.package import Package
from critical.services.registry_service import RegistryClient

logger = structlog.get_logger('enrichment_service')


@dataclass
class EnrichmentResult:
    package: Package
    versions: list[str]


class EnrichmentService:
    """Fetches version numbers for packages in sequential batches of concurrent lookups."""

    def __init__(self, client: RegistryClient, concurrency: int | None = None):
        self.client = client
        self.concurrency = max(1, concurrency or client.config.concurrency)
        self.delay = client.config.rate_limit_delay

    def lookup(self, package: Package) -> EnrichmentResult:
        versions = self.client.version_numbers(package.ecosystem, package.name)
        time.sleep(self.delay)
        return EnrichmentResult(package=package, versions=versions)

    def iter_batches(
        self,
        packages: Sequence[Package],
        progress: ProgressTracker | None = None,
    ) -> Iterator[list[EnrichmentResult]]:
        """
        Yield one list of results per batch of `concurrency` packages.

        Lookups inside a batch run concurrently and complete in any order.
        The next batch is not started until the caller has consumed the
        current one. Progress advances once per batch, after consumption.
        """
        progress = progress or ProgressTracker()
        progress.total = len(packages)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for start in range(0, len(packages), self.concurrency):
                batch = packages[start:start + self.concurrency]
                futures = [executor.submit(self.lookup, package) for package in batch]
                results = [
                    future.result()
                    for future in concurrent.futures.as_completed(futures)
                ]

                yield results

                completed = progress.advance(len(batch))
                progress.emit(
                    f'Fetched versions for {completed}/{progress.total} packages',
                )

    def fetch_all(
        self,
        packages: Sequence[Package],
        progress: ProgressTracker | None = None,
    ) -> dict[int, list[str]]:
        versions: dict[int, list[str]] = {}
        for results in self.iter_batches(packages, progress):
            for result in results:
                versions[result.package.id] = result.versions
        return versions
