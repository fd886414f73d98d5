"""Tests for voicememo.notion_sync"""

import asyncio

from voicememo.models import ExtractedItem, ItemKind
from voicememo.notion import NotionAPIError
from voicememo.notion_sync import ItemSync

SOURCE = "20260110 090500-AAAA.m4a"


def task(title, priority="asap"):
    return ExtractedItem(kind=ItemKind.TASK, title=title, body="transcript", priority=priority)


def note(title, category="general"):
    return ExtractedItem(kind=ItemKind.REFERENCE, title=title, body="transcript", category=category)


class TestItemSync:

    def test_creates_one_page_per_item(self, notion, schema, policy, recorded_at):
        sync = ItemSync(notion, schema, policy)
        outcome = asyncio.run(sync.sync([task("Buy milk"), note("Idea")], SOURCE, recorded_at))

        assert (outcome.created_count, outcome.failed_count) == (2, 0)
        assert outcome.succeeded
        todo, memo = notion.created
        assert todo["database_id"] == "todo-db"
        assert memo["database_id"] == "notes-db"

    def test_task_properties(self, notion, schema, policy, recorded_at):
        asyncio.run(ItemSync(notion, schema, policy).sync([task("Buy milk", "soon")], SOURCE, recorded_at))

        props = notion.created[0]["properties"]
        assert props["title"]["title"][0]["text"]["content"] == "Buy milk"
        assert props["description"]["rich_text"][0]["text"]["content"] == "transcript"
        assert props["priority"] == {"select": {"name": "soon"}}
        assert props["status"] == {"select": {"name": "not started"}}
        assert props["created_date"] == {"date": {"start": "2026-01-10"}}
        assert props["source"]["rich_text"][0]["text"]["content"] == SOURCE

    def test_reference_properties(self, notion, schema, policy, recorded_at):
        asyncio.run(ItemSync(notion, schema, policy).sync([note("Idea", "feature idea")], SOURCE, recorded_at))

        props = notion.created[0]["properties"]
        assert props["content"]["rich_text"][0]["text"]["content"] == "transcript"
        assert props["category"] == {"select": {"name": "feature idea"}}
        assert "status" not in props

    def test_validation_gate(self, notion, schema, policy, sleeps, recorded_at):
        items = [task("Bad", priority="urgent"), note("Also bad", category="recipes"), task("Good")]
        outcome = asyncio.run(ItemSync(notion, schema, policy).sync(items, SOURCE, recorded_at))

        assert [p["properties"]["title"]["title"][0]["text"]["content"] for p in notion.created] == ["Good"]
        assert outcome.failed_count == 2
        assert outcome.created_count == 1
        assert outcome.per_item_errors == ["Invalid item: Bad", "Invalid item: Also bad"]
        # invalid items are never retried
        assert sleeps.calls == []

    def test_partial_success(self, notion, schema, policy, sleeps, recorded_at):
        notion.fail_titles = {"Flaky"}
        items = [task("One"), task("Flaky"), note("Two")]

        outcome = asyncio.run(ItemSync(notion, schema, policy).sync(items, SOURCE, recorded_at))

        assert outcome.created_count == 2
        assert outcome.failed_count == 1
        assert outcome.succeeded
        # the failing create used its full retry budget
        assert sleeps.calls == [1.0, 5.0]

    def test_transient_create_error_is_retried(self, notion, schema, policy, sleeps, recorded_at):
        notion.create_errors = [NotionAPIError(429, "rate_limited")]
        outcome = asyncio.run(ItemSync(notion, schema, policy).sync([task("One")], SOURCE, recorded_at))

        assert outcome.created_count == 1
        assert sleeps.calls == [1.0]

    def test_permanent_create_error_is_not_retried(self, notion, schema, policy, sleeps, recorded_at):
        notion.create_errors = [NotionAPIError(400, "validation_error", "bad property")]
        outcome = asyncio.run(ItemSync(notion, schema, policy).sync([task("One")], SOURCE, recorded_at))

        assert outcome.failed_count == 1
        assert not outcome.succeeded
        assert sleeps.calls == []

    def test_total_failure(self, notion, schema, policy, recorded_at):
        notion.fail_titles = {"A", "B"}
        outcome = asyncio.run(ItemSync(notion, schema, policy).sync([task("A"), task("B")], SOURCE, recorded_at))
        assert not outcome.succeeded

    def test_long_body_is_split_into_text_objects(self, notion, schema, policy, recorded_at):
        item = task("Long")
        item.body = "x" * 4500
        asyncio.run(ItemSync(notion, schema, policy).sync([item], SOURCE, recorded_at))

        chunks = notion.created[0]["properties"]["description"]["rich_text"]
        assert [len(c["text"]["content"]) for c in chunks] == [2000, 2000, 500]
