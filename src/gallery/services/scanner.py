import asyncio
import logging
import os
from typing import List, Tuple

from gallery.exceptions import FileVanishedError
from gallery.models import ImageRecord
from gallery.services.metadata_extractor import MetadataExtractor
from gallery.services.path_guard import PathGuard
from gallery.utils.image import LISTED_EXTENSIONS, extension_of
from gallery.utils.performance import SCAN_DURATION_SECONDS, PerformanceMonitor

logger = logging.getLogger(__name__)

# (name, is_directory, is_regular_file)
DirEntry = Tuple[str, bool, bool]


def _list_entries(directory: str) -> List[DirEntry]:
    # Symlinks are neither followed nor listed.
    with os.scandir(directory) as it:
        entries = [
            (entry.name, entry.is_dir(follow_symlinks=False), entry.is_file(follow_symlinks=False))
            for entry in it
        ]
    return sorted(entries)


class DirectoryScanner:
    def __init__(self, guard: PathGuard, extractor: MetadataExtractor, extensions=LISTED_EXTENSIONS):
        self.guard = guard
        self.extractor = extractor
        self.extensions = frozenset(extensions)

    async def scan(self, directory: str) -> List[ImageRecord]:
        """
        Recursively collect image records under ``directory`` in name order.

        Unreadable subdirectories are logged and skipped; the rest of the tree
        is still returned.
        """
        monitor = PerformanceMonitor().start()
        records: List[ImageRecord] = []
        await self._walk(directory, records)

        SCAN_DURATION_SECONDS.observe(monitor.stop())
        monitor.report(f"scan {directory}", count=len(records))
        return records

    async def _walk(self, directory: str, records: List[ImageRecord]) -> None:
        try:
            entries = await asyncio.to_thread(_list_entries, directory)
        except OSError as e:
            logger.error(f"Error reading directory {directory}: {e}")
            return

        for name, is_dir, is_file in entries:
            full_path = os.path.join(directory, name)
            if is_dir:
                await self._walk(full_path, records)
            elif is_file and extension_of(name) in self.extensions:
                try:
                    metadata = await self.extractor.extract(full_path)
                except FileVanishedError:
                    logger.warning(f"File disappeared during scan, skipping: {full_path}")
                    continue
                records.append(
                    ImageRecord(
                        relative_path=self.guard.relative_to_root(full_path),
                        file_name=name,
                        metadata=metadata,
                    )
                )
