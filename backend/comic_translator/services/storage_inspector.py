"""Storage usage, duplicate and orphan reports"""
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Set
import logging

from ..models.response import AreaStats, CleanupResult, OrphanReport, StorageStats
from ..utils.helpers import format_bytes, generate_file_hash
from .content_store import ContentStore
from .result_store import ResultStore
from .session_store import SessionStore

logger = logging.getLogger(__name__)


def _area_stats(directory: Path) -> AreaStats:
    if not directory.is_dir():
        return AreaStats()

    files = 0
    size = 0
    for path in directory.iterdir():
        try:
            if path.is_file():
                files += 1
                size += path.stat().st_size
        except OSError as e:
            logger.warning(f"Error reading file stats for {path}: {e}")
    return AreaStats(files=files, size=size, size_formatted=format_bytes(size))


class StorageInspector:
    """Read-only views over the four storage areas"""

    def __init__(
        self,
        content_store: ContentStore,
        result_store: ResultStore,
        session_store: SessionStore,
        exports_dir: Path
    ):
        self.content_store = content_store
        self.result_store = result_store
        self.session_store = session_store
        self.exports_dir = Path(exports_dir)

    def get_stats(self) -> StorageStats:
        """Per-area file counts and sizes plus the overall total"""
        areas = {
            "uploads": _area_stats(self.content_store.directory),
            "results": _area_stats(self.result_store.directory),
            "sessions": _area_stats(self.session_store.directory),
            "exports": _area_stats(self.exports_dir),
        }
        total_files = sum(area.files for area in areas.values())
        total_size = sum(area.size for area in areas.values())
        return StorageStats(
            total=AreaStats(files=total_files, size=total_size, size_formatted=format_bytes(total_size)),
            **areas
        )

    def find_duplicates(self) -> List[List[str]]:
        """
        Groups of upload files with identical content

        Files are bucketed by size first; only same-size buckets are hashed.
        With content addressing this only finds copies stored under
        different extensions or placed in the folder by hand.
        """
        by_size: Dict[int, List[Path]] = defaultdict(list)
        for path in self.content_store.list_files():
            try:
                by_size[path.stat().st_size].append(path)
            except OSError as e:
                logger.warning(f"Error reading file: {path.name} {e}")

        duplicates = []
        for group in by_size.values():
            if len(group) < 2:
                continue
            by_hash: Dict[str, List[str]] = defaultdict(list)
            for path in group:
                try:
                    by_hash[generate_file_hash(path.read_bytes())].append(path.name)
                except OSError as e:
                    logger.warning(f"Error hashing file: {path.name} {e}")
            duplicates.extend(names for names in by_hash.values() if len(names) > 1)
        return duplicates

    def find_orphans(self) -> OrphanReport:
        """
        Uploads no page references and results whose session is gone

        Nothing is removed; an upload that has not yet been added to a
        session is reported here too.
        """
        referenced: Set[str] = set()
        session_ids: Set[str] = set()
        for session in self.session_store.list_sessions():
            session_ids.add(session.id)
            referenced.update(page.content_digest for page in session.pages)

        orphaned_uploads = [
            stored_name
            for digest, stored_name in self.content_store.list_digests()
            if digest not in referenced
        ]
        orphaned_results = [
            path.name
            for session_id, _, path in self.result_store.list_entries()
            if session_id not in session_ids
        ]
        return OrphanReport(orphaned_uploads=orphaned_uploads, orphaned_results=orphaned_results)

    def cleanup(self) -> CleanupResult:
        # Files are never automatically deleted
        logger.info("Storage cleanup requested; nothing removed")
        return CleanupResult()
