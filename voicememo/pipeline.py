"""
Voice memo pipeline orchestrator.

Per recording, strictly one at a time:

    transcribe ─┬─ garbage ──────────────────────────→ archive-invalid → completed
                └─ route ─┬─ TASK/REFERENCE → extract → item sync ─┐
                          └─ JOURNAL ───────→ format  → day sync ──┴→ archive → completed

Any failing step sends the recording to the failed directory and commits
``failed`` with a reason. Every recording ends in a terminal ledger state,
so no file is ever picked up twice.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from .ai import GeminiClient
from .archive import ArchiveService
from .config import VOICE_MEMO_JOB, EngineConfig
from .errors import LedgerError, VoiceMemoError, describe
from .extraction import Extractor
from .journal import JournalFormatter
from .journal_sync import JournalSync
from .ledger import Ledger, StateLedger
from .models import BatchReport, Intent, Recording
from .notion import NotionClient
from .notion_sync import ItemSync
from .routing import detect_intent
from .schema import NotionSchema
from .transcription import Transcriber
from .watcher import RecordingSource

logger = logging.getLogger(__name__)

PROCESSED = "processed"
FAILED = "failed"
INVALID = "invalid"


class StepFailure(VoiceMemoError):
    """A pipeline step gave up; the message is the recording's failure reason."""


class VoiceMemoJob:
    """Scheduled job that drains new recordings through the pipeline."""

    name = VOICE_MEMO_JOB

    def __init__(
        self,
        source: RecordingSource,
        ledger: Ledger,
        transcriber: Transcriber,
        extractor: Extractor,
        formatter: JournalFormatter,
        item_sync: ItemSync,
        journal_sync: JournalSync,
        archive: ArchiveService,
        interval_minutes: int = 5,
        enabled: bool = True,
    ):
        self.source = source
        self.ledger = ledger
        self.transcriber = transcriber
        self.extractor = extractor
        self.formatter = formatter
        self.item_sync = item_sync
        self.journal_sync = journal_sync
        self.archive = archive
        self.interval_minutes = interval_minutes
        self.enabled = enabled

    # ── Batch ────────────────────────────────────────────────────────

    async def execute(self) -> BatchReport:
        """Process every recording that isn't terminal in the ledger yet.

        Raises:
            FileNotFoundError: the voice memos directory is missing.
        """
        report = BatchReport()
        recordings = await asyncio.to_thread(self.source.list_new, self.ledger, self.name)
        if not recordings:
            logger.info("No new files to process")
            return report

        for recording in recordings:
            result = await self.process_recording(recording)
            if result == PROCESSED:
                report.processed += 1
            elif result == INVALID:
                report.invalid += 1
            else:
                report.failed += 1

        logger.info(
            f"Batch complete: {report.processed} processed, "
            f"{report.failed} failed, {report.invalid} invalid"
        )
        return report

    async def process_file(self, path: Union[str, Path]) -> Optional[str]:
        """Run a single file through the pipeline unless it's already terminal."""
        recording = await asyncio.to_thread(self.source.to_recording, path)
        if self.ledger.is_terminal(self.name, recording.filename):
            status = self.ledger.status(self.name, recording.filename)
            logger.info(f"Skipping {recording.filename}: already {status.value}")
            return None
        return await self.process_recording(recording)

    # ── Single recording ─────────────────────────────────────────────

    async def process_recording(self, recording: Recording) -> str:
        """Take one recording to a terminal state. Returns processed/failed/invalid."""
        filename = recording.filename
        logger.info(f"Processing {filename} (recorded {recording.recorded_at:%Y-%m-%d %H:%M})")

        try:
            transcription = await self.transcriber.transcribe(recording.path)
            if not transcription.succeeded:
                raise StepFailure(f"Transcription failed: {transcription.error_message}")

            if transcription.is_garbage:
                logger.warning(
                    f"Invalid recording {filename}: {transcription.garbage_reason or 'no usable speech'} "
                    f"(confidence {transcription.confidence_score})"
                )
                await asyncio.to_thread(self.archive.archive_invalid, recording.path)
                self._commit_completed(filename)
                return INVALID

            intent, text = detect_intent(transcription.text, transcription.intent_hint)
            if intent is Intent.JOURNAL:
                logger.info(f"Detected journal entry in {filename}")
                await self._process_journal(recording, text)
            else:
                logger.info(f"Routing {filename} as {intent.value}")
                await self._process_items(recording, text)

            await asyncio.to_thread(self.archive.archive, recording.path)
        except Exception as e:
            reason = str(e) if isinstance(e, StepFailure) else describe(e)
            logger.error(f"Failed to process {filename}: {reason}")
            await self._archive_failed(recording)
            self._commit_failed(filename, reason)
            return FAILED

        self._commit_completed(filename)
        logger.info(f"Successfully processed {filename}")
        return PROCESSED

    async def _process_items(self, recording: Recording, text: str):
        extraction = await self.extractor.extract(text)
        if not extraction.succeeded:
            raise StepFailure(f"Organization failed: {extraction.error}")

        if not extraction.items:
            logger.info(f"No items found in {recording.filename}, skipping sync")
            return

        outcome = await self.item_sync.sync(
            extraction.items, recording.filename, recording.recorded_at
        )
        if not outcome.succeeded:
            raise StepFailure("Notion sync failed completely")
        if outcome.failed_count:
            logger.warning(f"Sync completed with {outcome.failed_count} failure(s)")

    async def _process_journal(self, recording: Recording, text: str):
        if not text:
            logger.info(f"No journal content in {recording.filename}, skipping sync")
            return

        formatted = await self.formatter.format(text)
        if not formatted.succeeded:
            raise StepFailure(f"Journal formatting failed: {formatted.error}")

        outcome = await self.journal_sync.sync_entry(formatted.formatted_text, recording.recorded_at)
        if not outcome.succeeded:
            raise StepFailure(f"Journal sync failed: {outcome.error_message}")

    # ── Terminal transitions ─────────────────────────────────────────

    async def _archive_failed(self, recording: Recording):
        try:
            await asyncio.to_thread(self.archive.archive_failed, recording.path)
        except OSError as e:
            logger.error(f"Failed to archive {recording.filename}: {e}")

    def _commit_completed(self, filename: str):
        try:
            self.ledger.mark_completed(self.name, filename)
        except LedgerError as e:
            logger.critical(f"Could not record {filename} as completed: {e}")

    def _commit_failed(self, filename: str, reason: str):
        try:
            self.ledger.mark_failed(self.name, filename, reason)
        except LedgerError as e:
            logger.critical(f"Could not record {filename} as failed: {e}")


def build_voice_memo_job(
    config: EngineConfig,
    schema: NotionSchema,
    notion: NotionClient,
    gemini: Optional[GeminiClient] = None,
    ledger: Optional[Ledger] = None,
) -> VoiceMemoJob:
    """Wire every pipeline component from config and the startup schema."""
    gemini = gemini or GeminiClient(config.gemini_api_keys, config.gemini_model)
    ledger = ledger if ledger is not None else StateLedger(config.state_file)
    policy = config.retry_policy()

    return VoiceMemoJob(
        source=RecordingSource(config.voice_memos_dir, config.supported_formats),
        ledger=ledger,
        transcriber=Transcriber(
            gemini,
            policy,
            with_intent=config.intent_from_transcriber,
            strip_filler=config.strip_filler_words,
            confidence_threshold=config.garbage_confidence_threshold,
        ),
        extractor=Extractor(gemini, policy, schema.priorities, schema.categories),
        formatter=JournalFormatter(gemini, policy),
        item_sync=ItemSync(notion, schema, policy),
        journal_sync=JournalSync(notion, schema.journal_database_id, policy),
        archive=ArchiveService(config.archive_dir, config.failed_dir, config.invalid_dir),
        interval_minutes=config.job_interval_minutes,
        enabled=config.job_enabled,
    )
