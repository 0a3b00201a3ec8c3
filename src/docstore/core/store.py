"""Docs store facade: cached reads, serialized writes, backups, and lifecycle"""

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Optional

from docstore.config import BackupConfig, Settings
from docstore.core.errors import AlreadyDestroyed, DocNotFound, DocsStoreError
from docstore.core.metadata import Overrides, default_metadata, mark_attempt, merge_metadata, to_source
from docstore.core.models import CacheEntry, Category, DocMetadata, DocSource, SearchHit
from docstore.core.search import search_lines
from docstore.core.utils.locks import KeyedLocks, StoreGate
from docstore.core.utils.sanitize import normalize_url, sanitize
from docstore.crud.backups import BackupManager
from docstore.crud.cache import DocCache
from docstore.crud.documents import DocumentFiles


logger = logging.getLogger(__name__)

ACTIVE = "active"
DESTROYING = "destroying"
DESTROYED = "destroyed"


def _matches(meta: DocMetadata, category: Optional[Category], tag: Optional[str]) -> bool:
    if category is not None and meta.category != category:
        return False
    if tag is not None and tag.casefold() not in {t.casefold() for t in meta.tags}:
        return False
    return True


async def _in_thread(func, *args):
    """Run func in a worker thread; a cancelled caller still waits for the thread to finish.

    Keeps locks held by the caller until the file work they guard is done.
    """
    future = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        await asyncio.wait([future])
        raise


class DocsStore:
    """Public surface of the docs store.

    The directory tree under root is the source of truth; this instance owns
    the cache and coordinates access to the tree. Document operations on the
    same identifier are serialized; backup, restore, and destroy exclude all
    document operations.
    """

    def __init__(self, root: Path | str, backup: BackupConfig | None = None, cache_max_entries: int = 0):
        self.root = Path(root)
        self.backup_config = backup or BackupConfig()
        self.cache = DocCache(max_entries=cache_max_entries)
        self.files = DocumentFiles(self.root)
        self.backups = BackupManager(self.root, self.backup_config)
        self._gate = StoreGate()
        self._doc_locks = KeyedLocks()
        self._state = ACTIVE
        self._destroyed = asyncio.Event()
        self._auto_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocsStore":
        return cls(
            settings.storage_path,
            backup=settings.backup_config(),
            cache_max_entries=settings.cache_max_entries,
        )

    @property
    def state(self) -> str:
        return self._state

    @property
    def auto_backup_running(self) -> bool:
        return self._auto_task is not None and not self._auto_task.done()

    async def __aenter__(self) -> "DocsStore":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.destroy()

    def _ensure_active(self, operation: str) -> None:
        if self._state != ACTIVE:
            raise AlreadyDestroyed(operation)

    # --- lifecycle ---

    async def start(self) -> None:
        """Schedule auto-backup if enabled. Idempotent."""
        self._ensure_active("start")
        if self.backup_config.enabled and self._auto_task is None:
            self._auto_task = asyncio.create_task(self._auto_backup_loop())
            logger.info("Auto-backup every %d ms into %s", self.backup_config.interval, self.backups.backup_dir)

    async def _auto_backup_loop(self) -> None:
        interval = self.backup_config.interval / 1000
        while self._state == ACTIVE:
            await asyncio.sleep(interval)
            try:
                await self.create_backup()
            except AlreadyDestroyed:
                return
            except (DocsStoreError, OSError):
                logger.exception("Scheduled backup of %s failed", self.root)

    async def destroy(self) -> None:
        """Stop auto-backup, wait for in-flight operations, and drop the cache. Safe to call twice."""
        if self._state != ACTIVE:
            await self._destroyed.wait()
            return
        self._state = DESTROYING
        try:
            async with self._gate.exclusive():
                task, self._auto_task = self._auto_task, None
                if task is not None:
                    await self._stop_auto_backup(task)
                self.cache.clear()
        finally:
            self._state = DESTROYED
            self._destroyed.set()
        logger.info("Docs store at %s destroyed", self.root)

    async def _stop_auto_backup(self, task: asyncio.Task) -> None:
        """Cancel the auto-backup task; a task that already died is logged, not re-raised."""
        if task.done():
            if not task.cancelled() and task.exception() is not None:
                logger.error("Auto-backup task for %s had stopped", self.root, exc_info=task.exception())
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # --- documents ---

    async def save_doc(self, url: str, content: str, metadata: Overrides = None) -> DocSource:
        """Persist content and merged metadata for url; returns the stored projection."""
        self._ensure_active("save_doc")
        normalized = normalize_url(url)
        doc_id = sanitize(normalized)
        async with self._gate.shared(), self._doc_locks.hold(doc_id):
            self._ensure_active("save_doc")
            try:
                committed = await _in_thread(self._save_sync, doc_id, normalized, content, metadata)
            finally:
                self.cache.invalidate(doc_id)
        logger.debug("Saved %s as %s (version %s)", normalized, doc_id, committed.version)
        return to_source(committed)

    def _save_sync(self, doc_id: str, url: str, content: str, overrides: Overrides) -> DocMetadata:
        existing = self.files.read_metadata(doc_id)
        base = existing if existing is not None else default_metadata(url)
        merged = merge_metadata(base, overrides, existed=existing is not None)
        return self.files.write(doc_id, merged.model_copy(update={"url": url}), content)

    async def _load(self, url: str, operation: str) -> CacheEntry | None:
        self._ensure_active(operation)
        doc_id = sanitize(url)
        entry = self.cache.get(doc_id)
        if entry is not None:
            logger.debug("Cache hit for %s", doc_id)
            return entry
        async with self._gate.shared(), self._doc_locks.hold(doc_id):
            self._ensure_active(operation)
            try:
                entry = await asyncio.to_thread(self.files.read, doc_id)
            except DocNotFound:
                return None
            self.cache.put(doc_id, entry)
        return entry

    async def get_doc(self, url: str) -> DocSource | None:
        """Return the stored document's projection, or None if it was never saved."""
        entry = await self._load(url, "get_doc")
        return to_source(entry.metadata) if entry is not None else None

    async def get_content(self, url: str) -> str | None:
        entry = await self._load(url, "get_content")
        return entry.content if entry is not None else None

    async def remove_doc(self, url: str) -> bool:
        self._ensure_active("remove_doc")
        doc_id = sanitize(url)
        async with self._gate.shared(), self._doc_locks.hold(doc_id):
            self._ensure_active("remove_doc")
            try:
                removed = await _in_thread(self.files.remove, doc_id)
            finally:
                self.cache.invalidate(doc_id)
        if removed:
            logger.info("Removed %s", doc_id)
        return removed

    async def record_attempt(self, url: str) -> DocSource | None:
        """Note an update attempt that produced no new content (e.g. a failed fetch)."""
        self._ensure_active("record_attempt")
        doc_id = sanitize(url)
        async with self._gate.shared(), self._doc_locks.hold(doc_id):
            self._ensure_active("record_attempt")
            meta = await asyncio.to_thread(self.files.read_metadata, doc_id)
            if meta is None:
                return None
            meta = mark_attempt(meta)
            await _in_thread(self.files.write_metadata, doc_id, meta)
            self.cache.invalidate(doc_id)
        return to_source(meta)

    def _read_all(self, with_content: bool) -> list[CacheEntry]:
        entries = []
        for doc_id in self.files.list_ids():
            # Per-id locks are not held here; a concurrent remove may win.
            if with_content:
                try:
                    entries.append(self.files.read(doc_id))
                except DocNotFound:
                    continue
            else:
                meta = self.files.read_metadata(doc_id)
                if meta is not None:
                    entries.append(CacheEntry(meta, ""))
        return entries

    async def list_docs(self, category: Category | str | None = None, tag: str | None = None) -> list[DocSource]:
        """Return stored documents filtered by category and/or tag, sorted by name."""
        self._ensure_active("list_docs")
        category = Category(category) if category is not None else None
        async with self._gate.shared():
            self._ensure_active("list_docs")
            entries = await asyncio.to_thread(self._read_all, False)
        docs = [to_source(e.metadata) for e in entries if _matches(e.metadata, category, tag)]
        return sorted(docs, key=lambda d: d.name.casefold())

    async def search_docs(
        self,
        query: str,
        category: Category | str | None = None,
        tag: str | None = None,
        context: int = 2,
        ) -> list[SearchHit]:
        """Case-insensitive search over document bodies; one hit per matching document."""
        self._ensure_active("search_docs")
        category = Category(category) if category is not None else None
        async with self._gate.shared():
            self._ensure_active("search_docs")
            entries = await asyncio.to_thread(self._read_all, True)
        hits = []
        for e in entries:
            if not _matches(e.metadata, category, tag):
                continue
            matches = search_lines(e.content, query, context)
            if matches:
                source = to_source(e.metadata)
                hits.append(SearchHit(name=source.name, url=source.url, category=source.category, matches=matches))
        return sorted(hits, key=lambda h: h.name.casefold())

    def clear_cache(self) -> None:
        self._ensure_active("clear_cache")
        self.cache.clear()

    # --- backups ---

    async def create_backup(self) -> str:
        """Snapshot the live tree and prune old snapshots. Returns the snapshot stamp."""
        self._ensure_active("create_backup")
        async with self._gate.exclusive():
            self._ensure_active("create_backup")
            return await _in_thread(self.backups.create)

    async def list_backups(self) -> list[str]:
        self._ensure_active("list_backups")
        async with self._gate.shared():
            return await asyncio.to_thread(self.backups.stamps)

    async def restore_from_backup(self, timestamp: Optional[str] = None) -> str:
        """Restore the snapshot with timestamp (newest if None), then clear the cache.

        Bodies left unreferenced by the restored metadata are deleted afterwards.
        """
        self._ensure_active("restore_from_backup")
        async with self._gate.exclusive():
            self._ensure_active("restore_from_backup")
            try:
                stamp = await _in_thread(self.backups.restore, timestamp)
            finally:
                self.cache.clear()
            try:
                await _in_thread(self.files.prune_orphans)
            except DocsStoreError as e:
                # The restore is committed; leftover bodies are only wasted space.
                logger.warning("Restored backup %s but could not remove unreferenced content: %s", stamp, e)
        return stamp
