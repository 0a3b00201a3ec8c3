"""Document metadata, read projections, and search result models"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    """Closed set of documentation categories"""
    base_standards = "Base.Standards"
    base_tools = "Base.Tools"
    standards = "Standards"
    tools = "Tools"
    frameworks = "Frameworks"
    languages = "Languages"
    testing = "Testing"
    security = "Security"
    architecture = "Architecture"
    other = "Other"


class VersionEntry(BaseModel):
    """Marker for a superseded version of a document."""
    version: str
    updated_at: Optional[datetime] = None
    content_hash: str = ""


class DocMetadata(BaseModel):
    """On-disk metadata record, one per document."""
    name: str = ""
    title: str = ""
    description: str = ""
    category: Category = Category.other
    tags: list[str] = Field(default_factory=list, description="Unordered; duplicates dropped")
    version: str = ""
    content: str = Field(default="", description="Always empty on disk; bodies live in the content store")
    url: str = ""
    content_file: str = ""
    content_hash: str = ""
    last_updated: Optional[datetime] = None
    last_successful_update: Optional[datetime] = None
    last_attempted_update: Optional[datetime] = None
    last_checked: Optional[datetime] = None
    versions: list[VersionEntry] = Field(default_factory=list, description="Append-only history")

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        return list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))


class DocSource(BaseModel):
    """Simplified view of a stored document returned to callers."""
    name: str
    url: str
    category: Category
    description: str = ""
    tags: list[str] = []
    version: str = ""
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class CacheEntry:
    """Last successfully loaded (metadata, content) pair for one document."""
    metadata: DocMetadata
    content: str


class LineMatch(BaseModel):
    line: int                       # 1-based
    content: str
    context: list[str]


class SearchHit(BaseModel):
    """All matching lines of a single document."""
    name: str
    url: str
    category: Category
    matches: list[LineMatch]
