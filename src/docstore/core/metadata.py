"""Pure metadata functions: defaults, merge precedence, versioning, projection"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Union
from urllib.parse import unquote, urlsplit

from docstore.core.models import Category, DocMetadata, DocSource, VersionEntry


# Fields a caller may override; everything else is computed by the store.
MERGEABLE_FIELDS = ("name", "title", "description", "category", "tags")

Overrides = Union[DocMetadata, Mapping[str, Any], None]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_metadata(url: str) -> DocMetadata:
    """Content-derived defaults for a document first saved without metadata."""
    parts = urlsplit(url)
    label = f"{parts.hostname or ''}{unquote(parts.path).rstrip('/')}" or url
    return DocMetadata(name=label, title=label, category=Category.other, url=url)


def next_version(previous: Optional[str], now: datetime) -> str:
    """Return a UTC timestamp version strictly newer than previous.

    Bumps by one microsecond when the clock repeats or runs backwards.
    """
    candidate = now.astimezone(timezone.utc)
    if previous:
        try:
            prior = datetime.fromisoformat(previous)
        except ValueError:
            prior = None
        if prior is not None and prior.tzinfo is not None and candidate <= prior:
            candidate = prior + timedelta(microseconds=1)
    return candidate.isoformat(timespec="microseconds")


def _provided(overrides: Overrides) -> dict[str, Any]:
    """Return only the override keys the caller explicitly supplied."""
    if overrides is None:
        return {}
    if isinstance(overrides, DocMetadata):
        data = overrides.model_dump(exclude_unset=True)
    else:
        data = dict(overrides)
    return {k: data[k] for k in MERGEABLE_FIELDS if data.get(k) is not None}


def merge_metadata(
    base: DocMetadata,
    overrides: Overrides = None,
    *,
    existed: bool,
    now: Optional[datetime] = None,
    ) -> DocMetadata:
    """Layer caller overrides onto base (the stored record or the defaults).

    Precedence per field:
      title                             overrides.title > overrides.name > base.title
      name                              overrides.name > base.name
      description, category, tags       overrides > base
      content                           always ""
      version                           next_version(base.version)
      versions                          base.versions + [base.version] when existed
      last_updated, last_successful_update,
      last_attempted_update, last_checked   now
    url, content_file, and content_hash are left as in base; the store sets them.
    """
    now = now or utcnow()
    fields = _provided(overrides)
    if "title" not in fields and fields.get("name"):
        fields["title"] = fields["name"]

    history = [v.model_dump() for v in base.versions]
    if existed and base.version:
        history.append(VersionEntry(
            version=base.version,
            updated_at=base.last_updated,
            content_hash=base.content_hash,
        ).model_dump())

    data = base.model_dump()
    data.update(fields)
    data.update(
        content="",
        version=next_version(base.version if existed else None, now),
        versions=history,
        last_updated=now,
        last_successful_update=now,
        last_attempted_update=now,
        last_checked=now,
    )
    return DocMetadata.model_validate(data)


def mark_attempt(meta: DocMetadata, now: Optional[datetime] = None) -> DocMetadata:
    """Record an update attempt that produced no new content."""
    now = now or utcnow()
    return meta.model_copy(update={"last_attempted_update": now, "last_checked": now})


def to_source(meta: DocMetadata) -> DocSource:
    return DocSource(
        name=meta.title or meta.name,
        url=meta.url,
        category=meta.category,
        description=meta.description,
        tags=list(meta.tags),
        version=meta.version,
        last_updated=meta.last_updated,
    )
