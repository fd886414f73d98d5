"""
Environment-driven configuration for the voice memo pipeline.
All paths and credentials come from environment variables (optionally via .env).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError
from .retry import DEFAULT_BACKOFF_SECONDS, RetryPolicy
from .watcher import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
VOICE_MEMO_JOB = "voiceMemo"

REQUIRED_VARS = ("GEMINI_API_KEY", "NOTION_API_KEY", "PARENT_PAGE_ID")


def _expand(path: str) -> Path:
    return Path(os.path.expanduser(path))


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Fully environment-driven pipeline configuration."""

    # Credentials
    gemini_api_keys: list[str] = field(default_factory=list)
    notion_api_key: str = ""
    parent_page_id: str = ""

    # Notion databases (created on first start when empty)
    todo_database_id: str = ""
    notes_database_id: str = ""
    journal_database_id: str = ""

    # Directories
    voice_memos_dir: Path = field(default_factory=lambda: _expand("~/VoiceMemos"))
    archive_dir: Path = field(default_factory=lambda: _expand("~/.voicememo/archive"))
    failed_dir: Path = field(default_factory=lambda: _expand("~/.voicememo/failed"))
    invalid_dir: Path = field(default_factory=lambda: _expand("~/.voicememo/invalid"))
    log_file: Path = field(default_factory=lambda: _expand("~/.voicememo/logs/voicememo.log"))
    state_file: Path = field(default_factory=lambda: _expand("~/.voicememo/state.json"))

    # Logging
    log_max_mb: int = 10
    log_backups: int = 5

    # AI settings
    gemini_model: str = DEFAULT_MODEL
    intent_from_transcriber: bool = False
    strip_filler_words: bool = True
    garbage_confidence_threshold: int = 30  # advisory: logged, never gates

    # Retry settings
    max_retries: int = 3
    backoff_seconds: tuple[float, ...] = DEFAULT_BACKOFF_SECONDS

    # Job settings
    job_interval_minutes: int = 5
    job_enabled: bool = True

    supported_formats: frozenset = DEFAULT_EXTENSIONS

    def retry_policy(self) -> RetryPolicy:
        """Shared retry policy for every network-bound step."""
        return RetryPolicy(max_attempts=self.max_retries, delays=self.backoff_seconds)

    def ensure_directories(self):
        """Create all required directories if they don't exist."""
        for d in [
            self.archive_dir,
            self.failed_dir,
            self.invalid_dir,
            self.log_file.parent,
            self.state_file.parent,
        ]:
            d.mkdir(parents=True, exist_ok=True)


def _read_gemini_keys() -> list[str]:
    keys_str = os.environ.get("GEMINI_API_KEYS", "")
    keys = [k.strip() for k in keys_str.split(",") if k.strip()]
    if not keys:
        single = os.environ.get("GEMINI_API_KEY", "").strip()
        if single:
            keys = [single]
    return keys


def load_config(env_file: str = ".env", create_dirs: bool = True) -> EngineConfig:
    """Load configuration from environment variables.

    Required env vars:
        GEMINI_API_KEY  — Gemini API key (or GEMINI_API_KEYS, comma-separated)
        NOTION_API_KEY  — Notion integration token
        PARENT_PAGE_ID  — Notion page the databases live under

    Raises:
        ConfigError: listing every required variable that is missing.
    """
    load_dotenv(env_file)

    keys = _read_gemini_keys()
    missing = []
    for name in REQUIRED_VARS:
        if name == "GEMINI_API_KEY":
            if not keys:
                missing.append(name)
        elif not os.environ.get(name, "").strip():
            missing.append(name)
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        config = EngineConfig(
            gemini_api_keys=keys,
            notion_api_key=os.environ["NOTION_API_KEY"].strip(),
            parent_page_id=os.environ["PARENT_PAGE_ID"].strip(),
            todo_database_id=os.environ.get("NOTION_TODO_DATABASE_ID", "").strip(),
            notes_database_id=os.environ.get("NOTION_NOTES_DATABASE_ID", "").strip(),
            journal_database_id=os.environ.get("NOTION_JOURNAL_DATABASE_ID", "").strip(),
            voice_memos_dir=_expand(os.environ.get("VOICE_MEMOS_DIR", "~/VoiceMemos")),
            archive_dir=_expand(os.environ.get("ARCHIVE_DIR", "~/.voicememo/archive")),
            failed_dir=_expand(os.environ.get("FAILED_DIR", "~/.voicememo/failed")),
            invalid_dir=_expand(os.environ.get("INVALID_DIR", "~/.voicememo/invalid")),
            log_file=_expand(os.environ.get("LOG_FILE", "~/.voicememo/logs/voicememo.log")),
            state_file=_expand(os.environ.get("STATE_FILE", "~/.voicememo/state.json")),
            log_max_mb=int(os.environ.get("LOG_MAX_MB", "10")),
            log_backups=int(os.environ.get("LOG_BACKUPS", "5")),
            gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
            intent_from_transcriber=_flag(os.environ.get("INTENT_FROM_TRANSCRIBER", "false")),
            strip_filler_words=_flag(os.environ.get("STRIP_FILLER_WORDS", "true")),
            garbage_confidence_threshold=int(os.environ.get("GARBAGE_CONFIDENCE_THRESHOLD", "30")),
            max_retries=int(os.environ.get("MAX_RETRIES", "3")),
            job_interval_minutes=int(os.environ.get("VOICE_MEMO_JOB_INTERVAL_MINUTES", "5")),
            job_enabled=_flag(os.environ.get("VOICE_MEMO_JOB_ENABLED", "true")),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    if config.max_retries < 1:
        raise ConfigError("MAX_RETRIES must be at least 1")

    if create_dirs:
        config.ensure_directories()
    logger.info(f"Config loaded | Input: {config.voice_memos_dir} | State: {config.state_file}")
    return config
