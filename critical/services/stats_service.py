from datetime import datetime
from datetime import timezone

import structlog

from critical.core.repository import BaseRepository
from critical.core.repository import IngestionRepository
from critical.core.repository import QueryRepository
from critical.models.build_info import BuildInfo
from critical.models.build_info import DatabaseSummary

logger = structlog.get_logger('stats_service')


class StatsService:
    """Aggregate counts over a finished snapshot."""

    @staticmethod
    def live_counts(repo: BaseRepository) -> tuple[int, int, int]:
        return (
            repo.count_rows('packages'),
            repo.count_rows('versions'),
            repo.count_rows('advisories'),
        )

    def finalize_build(self, repo: IngestionRepository) -> BuildInfo:
        """Record the build summary row. Runs once, after every other write."""
        packages, versions, advisories = self.live_counts(repo)
        info = BuildInfo(
            built_at=datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            package_count=packages,
            version_count=versions,
            advisory_count=advisories,
        )
        repo.write_build_info(info)
        logger.debug('Build info written', **info.model_dump())
        return info

    def summarize(self, repo: QueryRepository) -> DatabaseSummary:
        info = repo.get_build_info()
        if info is not None:
            packages, versions, advisories = (
                info.package_count, info.version_count, info.advisory_count,
            )
        else:
            logger.debug('No build info recorded, counting rows')
            packages, versions, advisories = self.live_counts(repo)

        return DatabaseSummary(
            package_count=packages,
            version_count=versions,
            advisory_count=advisories,
            ecosystems=list(repo.get_ecosystem_stats()),
            severities=[
                (severity or 'unknown', count)
                for severity, count in repo.get_severity_stats()
            ],
            built_at=info.built_at if info else None,
        )
