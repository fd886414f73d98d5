"""
Data models for the voice memo pipeline.
No external dependencies — pure Python dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class Intent(str, Enum):
    """Routing decision for a recording's content."""
    TASK = "task"
    REFERENCE = "reference"
    JOURNAL = "journal"


class ItemKind(str, Enum):
    """Kind of item produced by structured extraction."""
    TASK = "TASK"
    REFERENCE = "REFERENCE"


class RecordingStatus(str, Enum):
    """Per-recording state in the ledger."""
    UNSEEN = "unseen"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RecordingStatus.UNSEEN


@dataclass(frozen=True)
class Recording:
    """One source audio file awaiting classification."""
    filename: str
    path: Path
    recorded_at: datetime


@dataclass
class TranscriptionOutcome:
    """Transcript plus quality assessment for one recording."""
    text: str = ""
    succeeded: bool = False
    confidence_score: int = 0
    is_garbage: bool = False
    garbage_reason: Optional[str] = None
    error_message: Optional[str] = None
    intent_hint: Optional[Intent] = None


@dataclass
class ExtractedItem:
    """A task or reference note extracted from a transcript."""
    kind: ItemKind
    title: str
    body: str = ""
    priority: Optional[str] = None
    category: Optional[str] = None


@dataclass
class ExtractionResult:
    items: list[ExtractedItem] = field(default_factory=list)
    succeeded: bool = False
    error: Optional[str] = None


@dataclass
class FormatResult:
    formatted_text: str = ""
    succeeded: bool = False
    error: Optional[str] = None


@dataclass
class SyncOutcome:
    """Result of syncing extracted items to the task/notes databases."""
    created_count: int = 0
    failed_count: int = 0
    per_item_errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        # Partial success counts as success; only a total wipe-out fails.
        return self.created_count > 0 or self.failed_count == 0


@dataclass
class JournalSyncOutcome:
    """Result of appending an entry to the day's journal page."""
    destination_page_id: str = ""
    is_new_page: bool = False
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error_message is None and bool(self.destination_page_id)


@dataclass
class BatchReport:
    """Counts for one invocation of the voice memo job."""
    processed: int = 0
    failed: int = 0
    invalid: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.failed + self.invalid
