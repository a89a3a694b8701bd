from typing import Any
from typing import ClassVar

import structlog
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import ValidationInfo
from pydantic import field_validator

logger = structlog.get_logger('models')


class LenientModel(BaseModel):
    """
    Base for upstream records whose optional fields are best effort.

    An optional field that fails validation falls back to its default
    instead of rejecting the record. Only the names in `required_fields`
    keep strict validation.
    """
    required_fields: ClassVar[frozenset[str]] = frozenset()

    model_config = ConfigDict(extra='allow')

    @field_validator('*', mode='wrap')
    @classmethod
    def invalid_optional_is_default(cls, v: Any, handler, info: ValidationInfo) -> Any:
        try:
            return handler(v)
        except ValidationError:
            if info.field_name in cls.required_fields:
                raise
            logger.debug('Ignoring invalid field', model=cls.__name__, field=info.field_name)
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class Host(LenientModel):
    """Code hosting service a repository lives on (GitHub, GitLab, ...)."""
    name: str | None = None


class RepoMetadata(LenientModel):
    owner: str | None = None
    name: str | None = None
    full_name: str | None = None
    language: str | None = None
    stargazers_count: int | None = None
    forks_count: int | None = None
    open_issues_count: int | None = None
    archived: bool | None = None
    fork: bool | None = None

    @field_validator('owner', mode='before')
    @classmethod
    def extract_owner_login(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return v.get('login') or v.get('name')
        return v


class Advisory(LenientModel):
    """Security advisory attached to a package. `uuid` correlates with the upstream feed."""
    uuid: str | None = None
    url: str | None = None
    title: str | None = None
    description: str | None = None
    severity: str | None = None
    published_at: str | None = None
    cvss_score: float | None = None


class Package(LenientModel):
    """A critical package as returned by /packages/critical."""
    required_fields: ClassVar[frozenset[str]] = frozenset({'id', 'ecosystem', 'name'})

    id: int
    ecosystem: str
    name: str
    purl: str | None = None
    namespace: str | None = None
    description: str | None = None
    homepage: str | None = None
    repository_url: str | None = None
    licenses: str | None = None
    normalized_licenses: list[str] | None = None
    latest_version: str | None = Field(
        alias='latest_release_number', default=None,
    )
    versions_count: int | None = None
    downloads: int | None = None
    downloads_period: str | None = None
    dependent_packages_count: int | None = None
    dependent_repos_count: int | None = None
    first_release_at: str | None = Field(
        alias='first_release_published_at', default=None,
    )
    latest_release_at: str | None = Field(
        alias='latest_release_published_at', default=None,
    )
    last_synced_at: str | None = None
    keywords: list[str] | None = Field(alias='keywords_array', default=None)

    repo_metadata: RepoMetadata | None = None
    host: Host | None = None
    advisories: list[Advisory] = Field(default_factory=list)

    model_config = ConfigDict(
        populate_by_name=True,
        extra='allow',
    )

    @field_validator('advisories', mode='before')
    @classmethod
    def drop_invalid_advisories(cls, v: Any) -> list[Advisory]:
        if not isinstance(v, list):
            return []
        advisories = []
        for entry in v:
            try:
                advisories.append(Advisory.model_validate(entry))
            except ValidationError:
                logger.debug('Dropping malformed advisory', entry=repr(entry)[:80])
        return advisories

    @field_validator('repo_metadata', mode='before')
    @classmethod
    def empty_repo_metadata_is_absent(cls, v: Any) -> Any:
        # the API sends {} for packages without a resolvable repository
        if not v:
            return None
        return v

    @field_validator('normalized_licenses', mode='before')
    @classmethod
    def licenses_as_strings(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [item for item in v if isinstance(item, str)]
        return v

    @field_validator('keywords', mode='before')
    @classmethod
    def keywords_as_strings(cls, v: Any) -> list[str] | None:
        if v is None or not isinstance(v, list):
            return None
        return [str(k) for k in v if k is not None]

    @property
    def keywords_text(self) -> str | None:
        """Space-joined keywords as stored for full-text indexing."""
        if not self.keywords:
            return None
        return ' '.join(self.keywords)
