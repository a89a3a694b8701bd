from pydantic import BaseModel
from pydantic import Field


class BuildInfo(BaseModel):
    """Singleton summary of the last successful build."""
    built_at: str
    package_count: int = 0
    version_count: int = 0
    advisory_count: int = 0


class DatabaseSummary(BaseModel):
    package_count: int = 0
    version_count: int = 0
    advisory_count: int = 0
    ecosystems: list[tuple[str, int]] = Field(default_factory=list)
    severities: list[tuple[str, int]] = Field(default_factory=list)
    built_at: str | None = None
