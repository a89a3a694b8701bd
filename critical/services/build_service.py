import os
from pathlib import Path

import structlog

from critical.core.config import PathConfig
from critical.core.repository import IngestionRepository
from critical.core.stats import ProgressTracker
from critical.models.build_info import BuildInfo
from critical.services.collector_service import CollectorService
from critical.services.enrichment_service import EnrichmentService
from critical.services.registry_service import RegistryClient
from critical.services.stats_service import StatsService

logger = structlog.get_logger('build_service')


def remove_database(db_path: Path) -> None:
    """Delete a database file together with its -wal/-shm side files."""
    for path in [db_path, *PathConfig.sidecar_paths(db_path)]:
        path.unlink(missing_ok=True)


class BuildService:
    """
    Full rebuild of the snapshot.

    Phases run strictly in order: paginate, insert the catalog, enrich
    versions, finalize. The database is built next to the destination and
    moved into place only after the build info row is written, so a failed
    build never replaces the previous artifact.
    """

    def __init__(self, client: RegistryClient, concurrency: int | None = None):
        self.collector = CollectorService(client)
        self.enrichment = EnrichmentService(client, concurrency=concurrency)
        self.stats = StatsService()

    def build(
        self,
        output_path: str | Path,
        fetch_versions: bool = True,
        progress: ProgressTracker | None = None,
    ) -> BuildInfo:
        progress = progress or ProgressTracker()
        output = Path(output_path)
        temp = PathConfig.temp_path(output)

        output.parent.mkdir(parents=True, exist_ok=True)
        remove_database(temp)

        progress.emit('Creating database...')
        repo = IngestionRepository(temp)
        try:
            repo.create_schema()

            progress.emit('Fetching critical packages...')
            packages = self.collector.fetch_all_critical_packages(progress)
            progress.emit(f'Found {len(packages)} critical packages')

            progress.emit('Inserting packages...')
            inserted = repo.insert_catalog(packages)
            progress.emit(f'Inserted {inserted} packages')

            if fetch_versions:
                progress.emit('Fetching versions...')
                for results in self.enrichment.iter_batches(packages, progress):
                    repo.insert_version_batch(
                        (result.package.id, result.versions) for result in results
                    )

            info = self.stats.finalize_build(repo)
        except Exception:
            logger.error('Build failed, keeping previous database', output=str(output), partial=str(temp))
            raise
        finally:
            repo.close()

        for sidecar in PathConfig.sidecar_paths(output):
            sidecar.unlink(missing_ok=True)
        os.replace(temp, output)

        progress.emit(
            f'Build complete: {info.package_count} packages, '
            f'{info.version_count} versions, {info.advisory_count} advisories',
        )
        return info
