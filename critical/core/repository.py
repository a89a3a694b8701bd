"""Data access layer over the SQLite snapshot, split into write and read sides."""
import json
import sqlite3
from abc import ABC
from collections.abc import Generator
from collections.abc import Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

from critical.core.exceptions import SchemaError
from critical.core.exceptions import TransactionError
from critical.core.schema import SCHEMA_DDL
from critical.core.schema import TABLES
from critical.models.build_info import BuildInfo
from critical.models.package import Advisory
from critical.models.package import Host
from critical.models.package import Package
from critical.models.package import RepoMetadata

logger = structlog.get_logger('repository')

PACKAGE_COLUMNS = [
    'id', 'ecosystem', 'name', 'purl', 'namespace', 'description', 'homepage',
    'repository_url', 'licenses', 'normalized_licenses', 'latest_version',
    'versions_count', 'downloads', 'downloads_period', 'dependent_packages_count',
    'dependent_repos_count', 'first_release_at', 'latest_release_at',
    'last_synced_at', 'keywords',
]
REPO_METADATA_COLUMNS = [
    'package_id', 'owner', 'repo_name', 'full_name', 'host', 'language',
    'stargazers_count', 'forks_count', 'open_issues_count', 'archived', 'fork',
]
ADVISORY_COLUMNS = [
    'package_id', 'uuid', 'url', 'title', 'description', 'severity',
    'published_at', 'cvss_score',
]


def _replace_sql(table: str, columns: list[str]) -> str:
    placeholders = ', '.join('?' for _ in columns)
    return f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def _fts_query(text: str) -> str:
    """Quote every whitespace-separated term so user input is never parsed as FTS syntax."""
    terms = text.split()
    return ' '.join('"' + term.replace('"', '""') + '"' for term in terms)


class BaseRepository(ABC):
    """Abstract base repository handling connection lifecycle."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._connection: sqlite3.Connection | None = None

    def _connect(self) -> sqlite3.Connection:
        raise NotImplementedError

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = self._connect()
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def count_rows(self, table: str) -> int:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        return self.connection.execute(f'SELECT COUNT(*) FROM {table}').fetchone()[0]

    def get_build_info(self) -> BuildInfo | None:
        row = self.connection.execute(
            'SELECT built_at, package_count, version_count, advisory_count '
            'FROM build_info WHERE id = 1',
        ).fetchone()
        if row is None:
            return None
        return BuildInfo(
            built_at=row['built_at'],
            package_count=row['package_count'] or 0,
            version_count=row['version_count'] or 0,
            advisory_count=row['advisory_count'] or 0,
        )


class IngestionRepository(BaseRepository):
    """Write side, owned exclusively by a single build."""

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode; transactions are opened explicitly by transaction()
        conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        conn.execute('PRAGMA journal_mode = WAL')
        # REPLACE must fire the delete trigger or the FTS projection keeps stale terms
        conn.execute('PRAGMA recursive_triggers = ON')
        return conn

    def close(self) -> None:
        """Leave the file in rollback-journal mode so read-only consumers need no -wal/-shm."""
        if self._connection is not None:
            try:
                self._rollback()
                self._connection.execute('PRAGMA journal_mode = DELETE')
            except sqlite3.Error as e:
                logger.warning('Could not checkpoint database', path=str(self.db_path), error=str(e))
        super().close()

    def _rollback(self) -> None:
        if self.connection.in_transaction:
            self.connection.execute('ROLLBACK')

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """All-or-nothing unit of work. Storage failures surface as TransactionError."""
        conn = self.connection
        try:
            conn.execute('BEGIN')
        except sqlite3.Error as e:
            raise TransactionError(f"Could not begin transaction: {e}") from e
        try:
            yield conn
            conn.execute('COMMIT')
        except sqlite3.Error as e:
            self._rollback()
            logger.error('Transaction rolled back', error=str(e))
            raise TransactionError(str(e)) from e
        except BaseException:
            self._rollback()
            raise

    def create_schema(self) -> None:
        """Create all tables, indexes, the FTS table and its triggers on an empty store."""
        existing = self.connection.execute(
            "SELECT name FROM sqlite_master WHERE type IN ('table', 'view')",
        ).fetchall()
        if existing:
            raise SchemaError(
                f"{self.db_path} is not empty: "
                f"{', '.join(row[0] for row in existing)}",
            )

        conn = self.connection
        try:
            conn.execute('BEGIN')
            for statement in SCHEMA_DDL:
                conn.execute(statement)
            conn.execute('COMMIT')
        except sqlite3.Error as e:
            self._rollback()
            raise SchemaError(f"Schema creation failed: {e}") from e
        logger.debug('Schema created', path=str(self.db_path))

    def upsert_package(self, package: Package) -> int:
        normalized = (
            json.dumps(package.normalized_licenses)
            if package.normalized_licenses is not None else None
        )
        self.connection.execute(
            _replace_sql('packages', PACKAGE_COLUMNS),
            [
                package.id, package.ecosystem, package.name, package.purl,
                package.namespace, package.description, package.homepage,
                package.repository_url, package.licenses, normalized,
                package.latest_version, package.versions_count,
                package.downloads, package.downloads_period,
                package.dependent_packages_count, package.dependent_repos_count,
                package.first_release_at, package.latest_release_at,
                package.last_synced_at, package.keywords_text,
            ],
        )
        return package.id

    def upsert_repo_metadata(self, package_id: int, metadata: RepoMetadata | None, host: Host | None) -> None:
        if metadata is None:
            return
        self.connection.execute(
            _replace_sql('repo_metadata', REPO_METADATA_COLUMNS),
            [
                package_id, metadata.owner, metadata.name, metadata.full_name,
                host.name if host else None, metadata.language,
                metadata.stargazers_count, metadata.forks_count,
                metadata.open_issues_count,
                1 if metadata.archived else 0,
                1 if metadata.fork else 0,
            ],
        )

    def upsert_advisories(self, package_id: int, advisories: Iterable[Advisory] | None) -> int:
        """Write advisories keyed by (package_id, uuid). Entries without a uuid are skipped."""
        if not advisories:
            return 0
        rows = [
            [
                package_id, a.uuid, a.url, a.title, a.description,
                a.severity, a.published_at, a.cvss_score,
            ]
            for a in advisories if a is not None and a.uuid
        ]
        if rows:
            self.connection.executemany(
                _replace_sql('advisories', ADVISORY_COLUMNS), rows,
            )
        return len(rows)

    def upsert_versions(self, package_id: int, numbers: Iterable[str] | None) -> int:
        if not numbers:
            return 0
        distinct = list(dict.fromkeys(numbers))
        self.connection.executemany(
            'INSERT OR REPLACE INTO versions (package_id, number) VALUES (?, ?)',
            [(package_id, number) for number in distinct],
        )
        return len(distinct)

    def insert_catalog(self, packages: Iterable[Package]) -> int:
        """Packages with their repository metadata and advisories, in one transaction."""
        count = 0
        with self.transaction():
            for package in packages:
                self.upsert_package(package)
                self.upsert_repo_metadata(
                    package.id, package.repo_metadata, package.host,
                )
                self.upsert_advisories(package.id, package.advisories)
                count += 1
        return count

    def insert_version_batch(self, batch: Iterable[tuple[int, list[str]]]) -> int:
        """Versions of one enrichment batch, in one transaction."""
        count = 0
        with self.transaction():
            for package_id, numbers in batch:
                count += self.upsert_versions(package_id, numbers)
        return count

    def write_build_info(self, info: BuildInfo) -> None:
        self.connection.execute(
            'INSERT OR REPLACE INTO build_info '
            '(id, built_at, package_count, version_count, advisory_count) '
            'VALUES (1, ?, ?, ?, ?)',
            [info.built_at, info.package_count, info.version_count, info.advisory_count],
        )


class QueryRepository(BaseRepository):
    """Read-only side, used by stats, search and show."""

    def _connect(self) -> sqlite3.Connection:
        if not self.db_path.exists():
            raise FileNotFoundError(f"Database not found: {self.db_path}")
        uri = self.db_path.resolve().as_uri() + '?mode=ro'
        return sqlite3.connect(uri, uri=True)

    def get_ecosystem_stats(self) -> Generator[tuple[str, int], None, None]:
        query = """
        SELECT ecosystem, COUNT(*) AS cnt
        FROM packages
        GROUP BY ecosystem
        ORDER BY cnt DESC, ecosystem
        """
        for row in self.connection.execute(query):
            yield (row[0], row[1])

    def get_severity_stats(self) -> Generator[tuple[str | None, int], None, None]:
        query = """
        SELECT severity, COUNT(*) AS cnt
        FROM advisories
        GROUP BY severity
        ORDER BY cnt DESC
        """
        for row in self.connection.execute(query):
            yield (row[0], row[1])

    def get_package(self, ecosystem: str, name: str) -> dict[str, Any] | None:
        row = self.connection.execute(
            'SELECT * FROM packages WHERE ecosystem = ? AND name = ?',
            [ecosystem, name],
        ).fetchone()
        return dict(row) if row else None

    def get_package_by_purl(self, purl: str) -> dict[str, Any] | None:
        row = self.connection.execute(
            'SELECT * FROM packages WHERE purl = ?', [purl],
        ).fetchone()
        return dict(row) if row else None

    def get_versions(self, package_id: int) -> list[str]:
        rows = self.connection.execute(
            'SELECT number FROM versions WHERE package_id = ? ORDER BY number',
            [package_id],
        ).fetchall()
        return [row[0] for row in rows]

    def get_advisories(self, package_id: int) -> list[dict[str, Any]]:
        rows = self.connection.execute(
            'SELECT * FROM advisories WHERE package_id = ? ORDER BY published_at DESC',
            [package_id],
        ).fetchall()
        return [dict(row) for row in rows]

    def get_repo_metadata(self, package_id: int) -> dict[str, Any] | None:
        row = self.connection.execute(
            'SELECT * FROM repo_metadata WHERE package_id = ?', [package_id],
        ).fetchone()
        return dict(row) if row else None

    def search(self, text: str, ecosystem: str | None = None, limit: int = 20) -> list[dict[str, Any]]:
        """Full-text search over ecosystem, name, description and keywords, best match first."""
        match = _fts_query(text)
        if not match:
            return []
        eco_filter = 'AND p.ecosystem = ?' if ecosystem else ''
        query = f"""
        SELECT p.id, p.ecosystem, p.name, p.description, p.latest_version,
               p.downloads, p.dependent_repos_count
        FROM packages_fts
        JOIN packages AS p ON p.id = packages_fts.rowid
        WHERE packages_fts MATCH ? {eco_filter}
        ORDER BY packages_fts.rank
        LIMIT ?
        """
        params: list[Any] = [match]
        if ecosystem:
            params.append(ecosystem)
        params.append(limit)
        return [dict(row) for row in self.connection.execute(query, params)]
