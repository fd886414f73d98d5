"""
Durable per-recording state, namespaced by job.

File layout (JSON):

    {
      "jobs": {
        "voiceMemo": {
          "20260110 090000-AB12.m4a": "completed",
          "failed": ["20260110 091500-CD34.m4a"],
          "failure_reasons": {"20260110 091500-CD34.m4a": "Transcription failed: ..."}
        }
      }
    }

The file is read once when the ledger is created and rewritten in full
after every change (write ``<file>.tmp``, then rename over the original).
A file that can't be parsed is treated as empty state.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Union

from .errors import LedgerError
from .models import RecordingStatus

logger = logging.getLogger(__name__)

FAILED_KEY = "failed"
REASONS_KEY = "failure_reasons"


class Ledger:
    """In-process ledger state plus the commit rules; persistence is up to subclasses."""

    def __init__(self, state: dict[str, Any] = None):
        self._state: dict[str, Any] = state if state is not None else {"jobs": {}}

    def _save(self):
        """Persist the full state. Raises LedgerError on failure."""

    def _job(self, job_name: str) -> dict[str, Any]:
        jobs = self._state.setdefault("jobs", {})
        job = jobs.get(job_name)
        if not isinstance(job, dict):
            job = jobs[job_name] = {}
        return job

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the current state document."""
        return json.loads(json.dumps(self._state))

    def status(self, job_name: str, filename: str) -> RecordingStatus:
        job = self._state.get("jobs", {}).get(job_name)
        if not isinstance(job, dict):
            return RecordingStatus.UNSEEN
        if job.get(filename) == RecordingStatus.COMPLETED.value:
            return RecordingStatus.COMPLETED
        if filename in (job.get(FAILED_KEY) or []):
            return RecordingStatus.FAILED
        return RecordingStatus.UNSEEN

    def is_terminal(self, job_name: str, filename: str) -> bool:
        return self.status(job_name, filename).is_terminal

    def failure_reason(self, job_name: str, filename: str) -> str:
        job = self._state.get("jobs", {}).get(job_name) or {}
        return (job.get(REASONS_KEY) or {}).get(filename, "")

    def _persist(self, previous: dict[str, Any]):
        """Save, or put ``previous`` back so an unsaved change never counts."""
        try:
            self._save()
        except LedgerError:
            self._state = previous
            raise

    def mark_completed(self, job_name: str, filename: str):
        """Record a terminal ``completed`` state and persist.

        Raises:
            LedgerError: the state file could not be written. The recording
                keeps its previous state.
        """
        previous = self.snapshot()
        self._job(job_name)[filename] = RecordingStatus.COMPLETED.value
        self._persist(previous)

    def mark_failed(self, job_name: str, filename: str, reason: str):
        """Record a terminal ``failed`` state with its reason and persist.

        Raises:
            LedgerError: the state file could not be written. The recording
                keeps its previous state.
        """
        previous = self.snapshot()
        job = self._job(job_name)
        failed = job.setdefault(FAILED_KEY, [])
        if filename not in failed:
            failed.append(filename)
        job.setdefault(REASONS_KEY, {})[filename] = reason
        self._persist(previous)


class InMemoryLedger(Ledger):
    """Ledger that never touches disk."""


class StateLedger(Ledger):
    """JSON-file ledger with atomic rewrites."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(self._load())
        if not self.path.exists():
            self._save()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"jobs": {}}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load state from {self.path}, starting empty: {e}")
            return {"jobs": {}}
        if not isinstance(data, dict) or not isinstance(data.get("jobs"), dict):
            logger.error(f"State file {self.path} has no 'jobs' map, starting empty")
            return {"jobs": {}}
        return data

    def _save(self):
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(self._state, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise LedgerError(f"Could not write state file {self.path}: {e}") from e
