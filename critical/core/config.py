"""Configuration management for critical-packages."""
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from critical.__version__ import __version__

DEFAULT_DB_NAME = 'critical-packages.db'


@dataclass
class PathConfig:
    """Locations of the built database artifact."""
    database: Path = field(
        default_factory=lambda: Path(
            os.getenv('CRITICAL_DB_PATH', DEFAULT_DB_NAME),
        ),
    )

    @staticmethod
    def temp_path(output: Path) -> Path:
        return output.with_name(output.name + '.tmp')

    @staticmethod
    def sidecar_paths(db_path: Path) -> list[Path]:
        """SQLite write-ahead-log side files belonging to a database file."""
        return [
            db_path.with_name(db_path.name + '-wal'),
            db_path.with_name(db_path.name + '-shm'),
        ]


@dataclass
class ApiConfig:
    base_url: str = field(
        default_factory=lambda: os.getenv(
            'CRITICAL_API_BASE', 'https://packages.ecosyste.ms/api/v1',
        ),
    )
    per_page: int = 1000
    rate_limit_delay: float = field(
        default_factory=lambda: int(
            os.getenv('CRITICAL_RATE_LIMIT_MS', '50'),
        ) / 1000,
    )
    concurrency: int = field(
        default_factory=lambda: int(
            os.getenv('CRITICAL_CONCURRENCY', '10'),
        ),
    )
    timeout: float = 30.0
    user_agent: str = f'critical-packages/{__version__}'
    # requests-cache sqlite file; in-memory cache when unset
    cache_name: str | None = field(
        default_factory=lambda: os.getenv('CRITICAL_HTTP_CACHE') or None,
    )
    cache_ttl: int = 60 * 60  # 1 hour in seconds


@dataclass
class CriticalConfig:
    paths: PathConfig = field(default_factory=PathConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    @classmethod
    def load(cls) -> 'CriticalConfig':
        return cls()


_config: CriticalConfig | None = None


def get_config() -> CriticalConfig:
    global _config
    if _config is None:
        _config = CriticalConfig.load()
    return _config
