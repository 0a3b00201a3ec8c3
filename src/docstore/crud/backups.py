"""Snapshot persistence: create, list, prune, and restore timestamped store backups"""

import logging
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from docstore.config import BackupConfig
from docstore.core.errors import BackupFailed, BackupNotFound, ReadFailed, RestoreFailed
from docstore.crud.documents import METADATA_DIR
from docstore.crud.files import TMP_SUFFIX, atomic_copy, iter_files


logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "backup-"
STAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"
_STAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{6}Z")


def format_stamp(moment: datetime) -> str:
    """Filesystem-safe UTC stamp with microsecond resolution."""
    return moment.astimezone(timezone.utc).strftime(STAMP_FORMAT)


def parse_stamp(stamp: str) -> datetime | None:
    """Parse a snapshot stamp; None if it is not in STAMP_FORMAT."""
    if not _STAMP_RE.fullmatch(stamp):
        return None
    try:
        return datetime.strptime(stamp, STAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


@dataclass(frozen=True)
class Snapshot:
    stamp: str
    created_at: datetime
    path: Path


class BackupManager:
    """Owns the snapshot namespace beneath the store root."""

    def __init__(self, root: Path, config: BackupConfig):
        self.root = Path(root)
        self.config = config
        backup_path = Path(config.path)
        self.backup_dir = backup_path if backup_path.is_absolute() else self.root / backup_path

    def snapshots(self) -> list[Snapshot]:
        """Return snapshots sorted oldest first by their parsed stamp (never by listing order).

        Listing errors propagate as OSError; callers wrap them in their own failure type.
        """
        if not self.backup_dir.is_dir():
            return []
        found = []
        for p in self.backup_dir.iterdir():
            if not p.is_dir() or not p.name.startswith(SNAPSHOT_PREFIX):
                continue
            stamp = p.name[len(SNAPSHOT_PREFIX):]
            created_at = parse_stamp(stamp)
            if created_at is not None:
                found.append(Snapshot(stamp, created_at, p))
        return sorted(found, key=lambda s: (s.created_at, s.stamp))

    def stamps(self) -> list[str]:
        try:
            return [s.stamp for s in self.snapshots()]
        except OSError as e:
            raise ReadFailed(f"Failed to list backups in {self.backup_dir}: {e}") from e

    def _next_stamp(self, existing: list[Snapshot]) -> str:
        """Current time, pushed past the newest snapshot and any same-microsecond collision."""
        candidate = datetime.now(timezone.utc)
        if existing and candidate <= existing[-1].created_at:
            candidate = existing[-1].created_at + timedelta(microseconds=1)
        while (self.backup_dir / f"{SNAPSHOT_PREFIX}{format_stamp(candidate)}").exists():
            candidate += timedelta(microseconds=1)
        return format_stamp(candidate)

    def create(self) -> str:
        """Copy the live tree into a new snapshot, then prune. Returns the snapshot stamp.

        Files are staged in a hidden temp directory and renamed into place, so a
        snapshot directory is never observed half-written.
        """
        if not self.root.is_dir():
            raise BackupFailed(f"Failed to create backup: store root {self.root} does not exist")
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            stamp = self._next_stamp(self.snapshots())
        except OSError as e:
            raise BackupFailed(f"Failed to create backup in {self.backup_dir}: {e}") from e

        staging = self.backup_dir / f".{SNAPSHOT_PREFIX}{stamp}{TMP_SUFFIX}"
        count = 0
        try:
            staging.mkdir()
            for src in iter_files(self.root, exclude=self.backup_dir):
                dest = staging / src.relative_to(self.root)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest)
                count += 1
            os.rename(staging, self.backup_dir / f"{SNAPSHOT_PREFIX}{stamp}")
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise BackupFailed(f"Failed to create backup {stamp}: {e}") from e

        logger.info("Created backup %s (%d files)", stamp, count)
        self.prune()
        return stamp

    def prune(self) -> int:
        """Delete oldest snapshots beyond max_backups. Returns count deleted."""
        try:
            snapshots = self.snapshots()
        except OSError as e:
            raise BackupFailed(f"Failed to prune backups in {self.backup_dir}: {e}") from e
        excess = len(snapshots) - self.config.max_backups
        if excess <= 0:
            return 0
        for s in snapshots[:excess]:
            try:
                shutil.rmtree(s.path)
            except OSError as e:
                raise BackupFailed(f"Failed to prune backup {s.stamp}: {e}") from e
            logger.info("Pruned backup %s", s.stamp)
        return excess

    def resolve(self, stamp: Optional[str] = None) -> Snapshot:
        """Return the snapshot with the exact stamp, or the newest one when stamp is None."""
        snapshots = self.snapshots()
        if stamp is None:
            if not snapshots:
                raise BackupNotFound()
            return snapshots[-1]
        wanted = stamp.removeprefix(SNAPSHOT_PREFIX)
        for s in snapshots:
            if s.stamp == wanted:
                return s
        raise BackupNotFound(stamp)

    def restore(self, stamp: Optional[str] = None) -> str:
        """Copy every file of a snapshot over the live tree. Returns the restored stamp.

        Live files the snapshot lacks are left untouched. Content files are copied
        before metadata so a restored record never references a missing body.
        """
        try:
            snapshot = self.resolve(stamp)
        except OSError as e:
            raise RestoreFailed(f"Failed to restore backup {stamp or '(newest)'}: {e}") from e
        try:
            files = sorted(
                iter_files(snapshot.path),
                key=lambda p: p.relative_to(snapshot.path).parts[0] == METADATA_DIR,
            )
            for src in files:
                atomic_copy(src, self.root / src.relative_to(snapshot.path))
        except OSError as e:
            raise RestoreFailed(f"Failed to restore backup {snapshot.stamp}: {e}") from e
        logger.info("Restored backup %s (%d files)", snapshot.stamp, len(files))
        return snapshot.stamp
