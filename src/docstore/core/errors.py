"""Error taxonomy raised by the docs store"""


class DocsStoreError(Exception):
    """Base class for every error raised by the docs store."""


class InvalidURL(DocsStoreError, ValueError):
    """The document URL is malformed. Never persisted."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Invalid URL: {url!r}{detail}")


class DocNotFound(DocsStoreError, LookupError):
    """No document is stored under the identifier."""


class BackupNotFound(DocsStoreError, LookupError):
    """The requested snapshot does not exist."""

    def __init__(self, timestamp: str | None = None):
        self.timestamp = timestamp
        target = timestamp if timestamp else "no backups available"
        super().__init__(f"Backup not found: {target}")


class BackupFailed(DocsStoreError):
    """Creating a snapshot failed; the I/O error is chained as __cause__."""


class RestoreFailed(DocsStoreError):
    """Copying a snapshot back over the live store failed."""


class WriteFailed(DocsStoreError):
    """Persisting document metadata or content failed."""


class ReadFailed(DocsStoreError):
    """Stored metadata is unreadable or its content file is missing."""


class AlreadyDestroyed(DocsStoreError, RuntimeError):
    """The store was destroyed; no further operations are accepted."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Docs store already destroyed; cannot {operation}")
