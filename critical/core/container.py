"""Dependency Injection Container."""
from pathlib import Path
from typing import Optional

from critical.core.config import CriticalConfig
from critical.core.config import get_config
from critical.core.repository import QueryRepository
from critical.services.build_service import BuildService
from critical.services.registry_service import RegistryClient
from critical.services.stats_service import StatsService


class Container:
    """Simple DI Container to manage service lifecycles."""

    _instance: Optional['Container'] = None

    def __init__(self) -> None:
        self.config: CriticalConfig = get_config()
        self._registry_client: RegistryClient | None = None

    @classmethod
    def get_instance(cls) -> 'Container':
        if cls._instance is None:
            cls._instance = Container()
        return cls._instance

    # -- Repositories --

    def get_query_repository(self, db_path: str | Path) -> QueryRepository:
        return QueryRepository(db_path)

    # -- Services --

    def get_registry_client(self) -> RegistryClient:
        if not self._registry_client:
            self._registry_client = RegistryClient(self.config.api)
        return self._registry_client

    def create_build_service(self, concurrency: int | None = None) -> BuildService:
        """Factory for BuildService (not singleton as concurrency varies per run)."""
        return BuildService(self.get_registry_client(), concurrency=concurrency)

    def get_stats_service(self) -> StatsService:
        return StatsService()

    def resolve_database(self, db_path: str | Path | None) -> Path:
        """The requested database, or the configured default (CRITICAL_DB_PATH)."""
        return Path(db_path) if db_path else self.config.paths.database


def get_container() -> Container:
    return Container.get_instance()
