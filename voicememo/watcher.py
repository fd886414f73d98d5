"""
Recording discovery.

Lists audio files in the voice memos directory (non-recursive) and keeps
only those the ledger hasn't seen reach a terminal state for the job.
"""

import logging
from pathlib import Path
from typing import Iterable, Union

from .ledger import Ledger
from .models import Recording
from .timestamps import recording_timestamp

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = frozenset({".m4a", ".wav", ".mp3", ".aac", ".ogg", ".opus", ".flac", ".webm"})


class RecordingSource:
    """A directory of recordings."""

    def __init__(self, directory: Union[str, Path], extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.directory = Path(directory)
        self.extensions = frozenset(ext.lower() for ext in extensions)

    def audio_files(self) -> list[Path]:
        """Audio files in the directory, sorted by filename.

        Raises:
            FileNotFoundError: the directory doesn't exist.
        """
        if not self.directory.is_dir():
            logger.error(f"Voice memos directory not found: {self.directory}")
            raise FileNotFoundError(f"Voice memos directory not found: {self.directory}")

        files = [
            p for p in self.directory.iterdir()
            if p.is_file() and p.suffix.lower() in self.extensions and not p.name.startswith(".")
        ]
        return sorted(files, key=lambda p: p.name)

    def to_recording(self, path: Union[str, Path]) -> Recording:
        path = Path(path).resolve()
        return Recording(filename=path.name, path=path, recorded_at=recording_timestamp(path))

    def list_new(self, ledger: Ledger, job_name: str) -> list[Recording]:
        """Recordings not yet completed or failed under ``job_name``, in listing order."""
        logger.info(f"Scanning directory: {self.directory}")
        files = self.audio_files()
        logger.info(f"Found {len(files)} audio file(s)")

        new = []
        for path in files:
            if ledger.is_terminal(job_name, path.name):
                continue
            new.append(self.to_recording(path))
            logger.info(f"New file detected: {path.name}")

        logger.info(f"Found {len(new)} new file(s) to process")
        return new
