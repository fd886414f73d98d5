"""
Journal sync: one Notion page per calendar day.

Entries are appended to the page for the recording's local date, so a
backfilled recording lands on the day it was made, not the day it was
processed. Each entry is a time heading followed by paragraph blocks; a
divider separates it from the previous entry on the same page.

The whole find-or-create-then-append runs as one retried unit. A retry
after an append that succeeded but whose response was lost will append
the entry a second time.
"""

import logging
from datetime import datetime
from typing import Optional

import httpx

from .errors import VoiceMemoError, describe
from .models import JournalSyncOutcome
from .notion import MAX_TEXT_LENGTH, NotionClient, block_batches, rich_text, title_property
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def local_date(timestamp: datetime) -> datetime:
    """Timestamp in local time; naive datetimes are already local."""
    if timestamp.tzinfo is not None:
        return timestamp.astimezone()
    return timestamp


def date_key(timestamp: datetime) -> str:
    """YYYY-MM-DD from local date components."""
    return local_date(timestamp).strftime("%Y-%m-%d")


def date_title(timestamp: datetime) -> str:
    """Page title, e.g. ``January 10, 2026``."""
    ts = local_date(timestamp)
    return f"{ts:%B} {ts.day}, {ts.year}"


def time_heading(timestamp: datetime) -> str:
    """Entry heading, e.g. ``9:05 AM``."""
    ts = local_date(timestamp)
    hour = ts.hour % 12 or 12
    return f"{hour}:{ts:%M} {ts:%p}"


def chunk_text(text: str, max_length: int = MAX_TEXT_LENGTH) -> list[str]:
    """Split text into pieces of at most ``max_length`` characters.

    Breaks at the last space before the limit, unless that space sits in
    the first half, in which case the piece is cut hard at the limit.
    """
    chunks = []
    remaining = text
    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break
        break_at = remaining.rfind(" ", 0, max_length + 1)
        if break_at == -1 or break_at < max_length / 2:
            break_at = max_length
        chunks.append(remaining[:break_at])
        remaining = remaining[break_at:].strip()
    return chunks


def build_entry_blocks(text: str, timestamp: datetime, is_first: bool) -> list[dict]:
    """Block run for one entry: [divider], time heading, paragraphs."""
    blocks = []
    if not is_first:
        blocks.append({"object": "block", "type": "divider", "divider": {}})

    blocks.append({
        "object": "block",
        "type": "heading_3",
        "heading_3": {"rich_text": rich_text(time_heading(timestamp))},
    })

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        for chunk in chunk_text(line):
            blocks.append({
                "object": "block",
                "type": "paragraph",
                "paragraph": {"rich_text": rich_text(chunk)},
            })
    return blocks


# =============================================================================
# SYNC
# =============================================================================

class JournalSync:
    """Appends formatted entries to per-day journal pages."""

    def __init__(self, client: NotionClient, journal_database_id: str, policy: RetryPolicy):
        self.client = client
        self.journal_database_id = journal_database_id
        self.policy = policy

    async def find_day_page(self, timestamp: datetime) -> Optional[str]:
        pages = await self.client.query_database(
            self.journal_database_id,
            filter={"property": "date", "date": {"equals": date_key(timestamp)}},
        )
        return pages[0]["id"] if pages else None

    async def _append(self, page_id: str, blocks: list[dict]):
        for batch in block_batches(blocks):
            await self.client.append_block_children(page_id, batch)

    async def _create_day_page(self, text: str, timestamp: datetime) -> str:
        first, *rest = block_batches(build_entry_blocks(text, timestamp, is_first=True))
        page = await self.client.create_page(
            self.journal_database_id,
            properties={
                "title": title_property(date_title(timestamp)),
                "date": {"date": {"start": date_key(timestamp)}},
                "processed": {"checkbox": False},
            },
            children=first,
        )
        for batch in rest:
            await self.client.append_block_children(page["id"], batch)
        return page["id"]

    async def _sync_once(self, text: str, timestamp: datetime) -> JournalSyncOutcome:
        page_id = await self.find_day_page(timestamp)
        if page_id:
            await self._append(page_id, build_entry_blocks(text, timestamp, is_first=False))
            logger.info(f"Appended journal entry to existing page: {page_id}")
            return JournalSyncOutcome(destination_page_id=page_id, is_new_page=False)

        page_id = await self._create_day_page(text, timestamp)
        logger.info(f"Created new journal page: {page_id}")
        return JournalSyncOutcome(destination_page_id=page_id, is_new_page=True)

    async def sync_entry(self, text: str, timestamp: datetime) -> JournalSyncOutcome:
        """Add one entry to the page for ``timestamp``'s day. Never raises for API errors."""
        try:
            return await self.policy.run(
                lambda: self._sync_once(text, timestamp), label="Journal sync"
            )
        except (VoiceMemoError, httpx.HTTPError) as e:
            return JournalSyncOutcome(error_message=describe(e))
