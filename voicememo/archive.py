"""
Archive copies of processed recordings.

Originals stay where they are; a copy goes to the processed, failed or
invalid directory. An existing file of the same name is never
overwritten: the copy gets a numeric suffix instead (``memo_1.m4a``).
"""

import logging
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def unique_destination(directory: Path, filename: str) -> Path:
    """Path in ``directory`` for ``filename`` that doesn't exist yet."""
    dest = directory / filename
    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while dest.exists():
        dest = directory / f"{stem}_{counter}{suffix}"
        counter += 1
    return dest


class ArchiveService:

    def __init__(
        self,
        archive_dir: Union[str, Path],
        failed_dir: Union[str, Path],
        invalid_dir: Union[str, Path],
    ):
        self.archive_dir = Path(archive_dir)
        self.failed_dir = Path(failed_dir)
        self.invalid_dir = Path(invalid_dir)

    def _copy(self, source: Union[str, Path], directory: Path) -> Path:
        source = Path(source)
        directory.mkdir(parents=True, exist_ok=True)
        dest = unique_destination(directory, source.name)
        shutil.copy2(source, dest)
        logger.debug(f"Copied {source.name} → {dest}")
        return dest

    def archive(self, source: Union[str, Path]) -> Path:
        """Copy a successfully processed recording to the archive directory."""
        return self._copy(source, self.archive_dir)

    def archive_failed(self, source: Union[str, Path]) -> Path:
        return self._copy(source, self.failed_dir)

    def archive_invalid(self, source: Union[str, Path]) -> Path:
        """Copy a recording judged to contain no usable speech."""
        return self._copy(source, self.invalid_dir)
