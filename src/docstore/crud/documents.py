"""Document persistence: one metadata JSON record and one content-addressed body per document"""

import logging
import re
from pathlib import Path

from pydantic import ValidationError

from docstore.core.errors import DocNotFound, ReadFailed, WriteFailed
from docstore.core.models import CacheEntry, DocMetadata
from docstore.core.utils.hashing import sha256
from docstore.crud.files import atomic_write_text, is_temp


logger = logging.getLogger(__name__)

METADATA_DIR = "metadata"
CONTENT_DIR = "content"

_BODY_RE = re.compile(r".+\.[0-9a-f]{16}\.txt")


def content_file_name(doc_id: str, content_hash: str) -> str:
    """Body file name; keyed by content hash so a new body never overwrites the committed one."""
    return f"{doc_id}.{content_hash[:16]}.txt"


class DocumentFiles:
    """Metadata store and content store sharing a root directory.

    Metadata is the commit point: the body is published first under a new
    content-addressed name, then the metadata record that references it.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.metadata_dir = self.root / METADATA_DIR
        self.content_dir = self.root / CONTENT_DIR

    def metadata_path(self, doc_id: str) -> Path:
        return self.metadata_dir / f"{doc_id}.json"

    def content_path(self, file_name: str) -> Path:
        return self.content_dir / file_name

    def list_ids(self) -> list[str]:
        """Return sorted identifiers of every stored document."""
        if not self.metadata_dir.is_dir():
            return []
        return sorted(p.stem for p in self.metadata_dir.glob("*.json") if not is_temp(p))

    def read_metadata(self, doc_id: str) -> DocMetadata | None:
        """Return the stored metadata record, or None if the document does not exist."""
        try:
            raw = self.metadata_path(doc_id).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ReadFailed(f"Failed to read metadata for {doc_id}: {e}") from e
        try:
            return DocMetadata.model_validate_json(raw)
        except ValidationError as e:
            raise ReadFailed(f"Invalid metadata record for {doc_id}: {e}") from e

    def read(self, doc_id: str) -> CacheEntry:
        """Load (metadata, content) for doc_id. DocNotFound if absent; ReadFailed if the body is missing."""
        meta = self.read_metadata(doc_id)
        if meta is None:
            raise DocNotFound(f"Documentation not found: {doc_id}")
        if not meta.content_file:
            return CacheEntry(meta, "")
        try:
            content = self.content_path(meta.content_file).read_text(encoding="utf-8")
        except OSError as e:
            raise ReadFailed(f"Failed to read content {meta.content_file} for {doc_id}: {e}") from e
        return CacheEntry(meta, content)

    def write(self, doc_id: str, metadata: DocMetadata, content: str) -> DocMetadata:
        """Persist content then metadata; returns the committed metadata record.

        metadata.content_file names the previously committed body (if any); it is
        removed only after the new metadata has been published.
        """
        content_hash = sha256(content)
        file_name = content_file_name(doc_id, content_hash)
        previous_file = metadata.content_file
        committed = metadata.model_copy(update={
            "content": "",
            "content_hash": content_hash,
            "content_file": file_name,
        })
        try:
            atomic_write_text(self.content_path(file_name), content)
            atomic_write_text(self.metadata_path(doc_id), committed.model_dump_json(indent=2))
        except OSError as e:
            raise WriteFailed(f"Failed to save documentation {doc_id}: {e}") from e

        if previous_file and previous_file != file_name:
            try:
                self.content_path(previous_file).unlink(missing_ok=True)
            except OSError as e:
                # The new record is committed; an orphaned body is only wasted space.
                logger.warning("Could not remove superseded content %s: %s", previous_file, e)
        return committed

    def write_metadata(self, doc_id: str, metadata: DocMetadata) -> None:
        """Replace the metadata record only; the body is untouched."""
        try:
            atomic_write_text(self.metadata_path(doc_id), metadata.model_dump_json(indent=2))
        except OSError as e:
            raise WriteFailed(f"Failed to save documentation {doc_id}: {e}") from e

    def remove(self, doc_id: str) -> bool:
        """Delete metadata, then every body file of doc_id. Returns False if nothing was stored."""
        pattern = re.compile(rf"{re.escape(doc_id)}\.[0-9a-f]{{16}}\.txt")
        try:
            try:
                self.metadata_path(doc_id).unlink()
                existed = True
            except FileNotFoundError:
                existed = False
            if self.content_dir.is_dir():
                for p in self.content_dir.iterdir():
                    if pattern.fullmatch(p.name):
                        p.unlink(missing_ok=True)
        except OSError as e:
            raise WriteFailed(f"Failed to remove documentation {doc_id}: {e}") from e
        return existed

    def prune_orphans(self) -> int:
        """Delete body files that no metadata record references. Returns count deleted.

        Must run while no write is in flight; a body published ahead of its
        metadata looks like an orphan. Unreadable metadata aborts with ReadFailed
        so a body is never deleted on a guess.
        """
        if not self.content_dir.is_dir():
            return 0
        referenced = set()
        for doc_id in self.list_ids():
            meta = self.read_metadata(doc_id)
            if meta is not None and meta.content_file:
                referenced.add(meta.content_file)
        removed = 0
        try:
            for p in sorted(self.content_dir.iterdir()):
                if _BODY_RE.fullmatch(p.name) and p.name not in referenced:
                    p.unlink(missing_ok=True)
                    removed += 1
        except OSError as e:
            raise WriteFailed(f"Failed to remove unreferenced content in {self.content_dir}: {e}") from e
        if removed:
            logger.info("Removed %d unreferenced content file(s)", removed)
        return removed
