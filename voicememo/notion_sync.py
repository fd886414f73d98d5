"""
Task/reference sync: one Notion page per extracted item.

Each item is checked against the live schema first; an item whose
priority (task) or category (reference) isn't a current option is dropped
and counted as failed without any API call. Valid items are created one
by one, each under its own retry budget, so one bad item never blocks
the rest.
"""

import logging
from datetime import datetime

import httpx

from .errors import ItemValidationError, VoiceMemoError, describe
from .models import ExtractedItem, ItemKind, SyncOutcome
from .notion import NotionClient, rich_text, title_property
from .retry import RetryPolicy
from .schema import NotionSchema

logger = logging.getLogger(__name__)

INITIAL_STATUS = "not started"


class ItemSync:
    """Creates TODO and Notes pages for extracted items."""

    def __init__(self, client: NotionClient, schema: NotionSchema, policy: RetryPolicy):
        self.client = client
        self.schema = schema
        self.policy = policy

    def validate(self, item: ExtractedItem):
        """Raise ItemValidationError if the item uses a value the schema lacks."""
        if item.kind is ItemKind.TASK:
            if item.priority not in self.schema.priorities:
                raise ItemValidationError(
                    f"Invalid priority '{item.priority}' for TODO '{item.title}'"
                )
        elif item.category not in self.schema.categories:
            raise ItemValidationError(
                f"Invalid category '{item.category}' for NOTE '{item.title}'"
            )

    def build_properties(self, item: ExtractedItem, filename: str, recorded_at: datetime) -> dict:
        """Page properties for one item."""
        properties = {
            "title": title_property(item.title),
            "created_date": {"date": {"start": recorded_at.date().isoformat()}},
            "source": {"rich_text": rich_text(filename)},
        }
        if item.kind is ItemKind.TASK:
            properties["description"] = {"rich_text": rich_text(item.body)}
            properties["priority"] = {"select": {"name": item.priority}}
            properties["status"] = {"select": {"name": INITIAL_STATUS}}
        else:
            properties["content"] = {"rich_text": rich_text(item.body)}
            properties["category"] = {"select": {"name": item.category}}
        return properties

    def _database_for(self, item: ExtractedItem) -> str:
        if item.kind is ItemKind.TASK:
            return self.schema.todo_database_id
        return self.schema.notes_database_id

    async def sync(
        self,
        items: list[ExtractedItem],
        filename: str,
        recorded_at: datetime,
    ) -> SyncOutcome:
        """Create a page per valid item. Never raises for per-item failures."""
        outcome = SyncOutcome()
        logger.info(f"Syncing {len(items)} item(s) to Notion")

        for item in items:
            label = "TODO" if item.kind is ItemKind.TASK else "NOTE"
            try:
                self.validate(item)
            except ItemValidationError as e:
                logger.warning(f"{e}, skipping")
                outcome.failed_count += 1
                outcome.per_item_errors.append(f"Invalid item: {item.title}")
                continue

            database_id = self._database_for(item)
            properties = self.build_properties(item, filename, recorded_at)
            try:
                await self.policy.run(
                    lambda: self.client.create_page(database_id, properties),
                    label=f"Create {label}",
                )
            except (VoiceMemoError, httpx.HTTPError) as e:
                outcome.failed_count += 1
                outcome.per_item_errors.append(describe(e))
                logger.error(f"Failed to sync item '{item.title}': {describe(e)}")
                continue

            outcome.created_count += 1
            logger.info(f"Created {label}: {item.title}")

        logger.info(
            f"Sync complete: {outcome.created_count} created, {outcome.failed_count} failed"
        )
        return outcome
