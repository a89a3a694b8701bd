PACKAGES_DDL = """
CREATE TABLE packages (
    id INTEGER PRIMARY KEY,
    ecosystem TEXT NOT NULL,
    name TEXT NOT NULL,
    purl TEXT,
    namespace TEXT,
    description TEXT,
    homepage TEXT,
    repository_url TEXT,
    licenses TEXT,
    normalized_licenses TEXT,
    latest_version TEXT,
    versions_count INTEGER,
    downloads INTEGER,
    downloads_period TEXT,
    dependent_packages_count INTEGER,
    dependent_repos_count INTEGER,
    first_release_at TEXT,
    latest_release_at TEXT,
    last_synced_at TEXT,
    keywords TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
)
""".strip()

VERSIONS_DDL = """
CREATE TABLE versions (
    package_id INTEGER NOT NULL,
    number TEXT NOT NULL,
    PRIMARY KEY (package_id, number),
    FOREIGN KEY (package_id) REFERENCES packages(id)
)
""".strip()

ADVISORIES_DDL = """
CREATE TABLE advisories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    package_id INTEGER NOT NULL,
    uuid TEXT NOT NULL,
    url TEXT,
    title TEXT,
    description TEXT,
    severity TEXT,
    published_at TEXT,
    cvss_score REAL,
    FOREIGN KEY (package_id) REFERENCES packages(id)
)
""".strip()

REPO_METADATA_DDL = """
CREATE TABLE repo_metadata (
    package_id INTEGER PRIMARY KEY,
    owner TEXT,
    repo_name TEXT,
    full_name TEXT,
    host TEXT,
    language TEXT,
    stargazers_count INTEGER,
    forks_count INTEGER,
    open_issues_count INTEGER,
    archived INTEGER,
    fork INTEGER,
    FOREIGN KEY (package_id) REFERENCES packages(id)
)
""".strip()

BUILD_INFO_DDL = """
CREATE TABLE build_info (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    built_at TEXT NOT NULL,
    package_count INTEGER,
    version_count INTEGER,
    advisory_count INTEGER
)
""".strip()

INDEXES_DDL = [
    'CREATE UNIQUE INDEX idx_packages_ecosystem_name ON packages(ecosystem, name)',
    'CREATE INDEX idx_packages_purl ON packages(purl)',
    'CREATE INDEX idx_packages_licenses ON packages(licenses)',
    'CREATE INDEX idx_packages_ecosystem ON packages(ecosystem)',
    'CREATE INDEX idx_advisories_package_id ON advisories(package_id)',
    'CREATE INDEX idx_advisories_uuid ON advisories(uuid)',
    'CREATE INDEX idx_advisories_severity ON advisories(severity)',
    'CREATE UNIQUE INDEX idx_advisories_package_uuid ON advisories(package_id, uuid)',
    'CREATE INDEX idx_repo_full_name ON repo_metadata(full_name)',
    'CREATE INDEX idx_repo_owner ON repo_metadata(owner)',
]

# External-content FTS5 table; rows are maintained only by the triggers below
PACKAGES_FTS_DDL = """
CREATE VIRTUAL TABLE packages_fts USING fts5(
    ecosystem,
    name,
    description,
    keywords,
    content=packages,
    content_rowid=id
)
""".strip()

PACKAGES_FTS_TRIGGERS_DDL = [
    """
CREATE TRIGGER packages_ai AFTER INSERT ON packages BEGIN
    INSERT INTO packages_fts(rowid, ecosystem, name, description, keywords)
    VALUES (new.id, new.ecosystem, new.name, new.description, new.keywords);
END
""".strip(),
    """
CREATE TRIGGER packages_ad AFTER DELETE ON packages BEGIN
    INSERT INTO packages_fts(packages_fts, rowid, ecosystem, name, description, keywords)
    VALUES ('delete', old.id, old.ecosystem, old.name, old.description, old.keywords);
END
""".strip(),
    """
CREATE TRIGGER packages_au AFTER UPDATE ON packages BEGIN
    INSERT INTO packages_fts(packages_fts, rowid, ecosystem, name, description, keywords)
    VALUES ('delete', old.id, old.ecosystem, old.name, old.description, old.keywords);
    INSERT INTO packages_fts(rowid, ecosystem, name, description, keywords)
    VALUES (new.id, new.ecosystem, new.name, new.description, new.keywords);
END
""".strip(),
]

TABLES = ['packages', 'versions', 'advisories', 'repo_metadata', 'build_info']

SCHEMA_DDL = [
    PACKAGES_DDL,
    VERSIONS_DDL,
    ADVISORIES_DDL,
    REPO_METADATA_DDL,
    BUILD_INFO_DDL,
    *INDEXES_DDL,
    PACKAGES_FTS_DDL,
    *PACKAGES_FTS_TRIGGERS_DDL,
]
