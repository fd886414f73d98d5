"""
Voice Memo Pipeline

Voice recordings → Gemini transcription → tasks, notes or a daily journal in Notion.

Each recording is processed at most once: a JSON ledger records every
file that reached ``completed`` or ``failed``, and copies land in the
archive, failed or invalid directory.

Usage:
    from voicememo import load_config, build_voice_memo_job
"""

__version__ = "1.0.0"

from .config import EngineConfig, load_config
from .errors import ConfigError, VoiceMemoError
from .ledger import InMemoryLedger, StateLedger
from .models import (
    BatchReport,
    ExtractedItem,
    Intent,
    ItemKind,
    Recording,
    RecordingStatus,
    TranscriptionOutcome,
)
from .pipeline import VoiceMemoJob, build_voice_memo_job
from .retry import RetryPolicy
from .routing import detect_intent
from .scheduler import JobScheduler
