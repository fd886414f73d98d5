"""Tests for voicememo.extraction, voicememo.journal and voicememo.prompts"""

import asyncio
import json

import pytest

from conftest import FakeGemini
from voicememo.errors import PermanentError
from voicememo.extraction import Extractor
from voicememo.journal import JournalFormatter
from voicememo.models import ItemKind
from voicememo.prompts import get_extraction_prompt, parse_json_response

TRANSCRIPT = "buy milk asap and an idea for a habit tracker app"


def _items(*items):
    return json.dumps({"items": list(items)})


@pytest.fixture
def extractor_for(schema, policy):
    def make(*responses):
        gemini = FakeGemini(*responses)
        return Extractor(gemini, policy, schema.priorities, schema.categories), gemini
    return make


class TestExtractor:

    def test_extracts_tasks_and_references(self, extractor_for):
        extractor, _ = extractor_for(_items(
            {"type": "TASK", "title": "Buy milk", "body": "buy milk", "priority": "asap"},
            {"type": "REFERENCE", "title": "Habit tracker", "body": "idea", "category": "project idea"},
        ))

        result = asyncio.run(extractor.extract(TRANSCRIPT))

        assert result.succeeded
        task, ref = result.items
        assert (task.kind, task.title, task.priority) == (ItemKind.TASK, "Buy milk", "asap")
        assert (ref.kind, ref.category) == (ItemKind.REFERENCE, "project idea")

    def test_transcript_replaces_model_body(self, extractor_for):
        extractor, _ = extractor_for(_items(
            {"type": "TASK", "title": "Buy milk", "body": "truncated...", "priority": "soon"},
        ))
        result = asyncio.run(extractor.extract(TRANSCRIPT))
        assert result.items[0].body == TRANSCRIPT

    def test_defaults_when_omitted(self, extractor_for):
        extractor, _ = extractor_for(_items(
            {"type": "TASK", "title": "Call mom"},
            {"type": "REFERENCE", "title": "Interesting paper"},
        ))
        task, ref = asyncio.run(extractor.extract(TRANSCRIPT)).items
        assert task.priority == "asap"
        assert ref.category == "general"

    def test_unknown_values_pass_through_for_sync_to_reject(self, extractor_for):
        extractor, _ = extractor_for(_items({"type": "TODO", "title": "x", "priority": "urgent!!"}))
        item = asyncio.run(extractor.extract(TRANSCRIPT)).items[0]
        assert item.kind is ItemKind.TASK
        assert item.priority == "urgent!!"

    def test_empty_items_is_success(self, extractor_for):
        extractor, _ = extractor_for(_items())
        result = asyncio.run(extractor.extract(TRANSCRIPT))
        assert result.succeeded
        assert result.items == []

    def test_malformed_output_is_retried(self, extractor_for, sleeps):
        extractor, gemini = extractor_for(
            "I'm sorry, here you go: items...",
            json.dumps({"things": []}),
            _items({"type": "NOTE", "title": "Habit tracker", "category": "feature idea"}),
        )

        result = asyncio.run(extractor.extract(TRANSCRIPT))

        assert result.succeeded
        assert len(gemini.calls) == 3
        assert sleeps.calls == [1.0, 5.0]

    def test_malformed_output_exhausts_to_failure(self, extractor_for):
        extractor, gemini = extractor_for("not json")
        result = asyncio.run(extractor.extract(TRANSCRIPT))

        assert not result.succeeded
        assert result.error == "Invalid JSON response from AI"
        assert len(gemini.calls) == 3

    def test_item_without_title_is_malformed(self, extractor_for):
        extractor, gemini = extractor_for(_items({"type": "TASK", "priority": "asap"}))
        assert not asyncio.run(extractor.extract(TRANSCRIPT)).succeeded

    def test_prompt_embeds_live_enumeration(self, schema, policy):
        gemini = FakeGemini(_items())
        extractor = Extractor(gemini, policy, ["p1", "p2"], ["c1"], default_category="c1")
        asyncio.run(extractor.extract(TRANSCRIPT))

        prompt = gemini.calls[0]["contents"][0]
        assert '["p1", "p2"]' in prompt
        assert '["c1"]' in prompt
        assert 'priority: "p1"' in prompt
        assert TRANSCRIPT in prompt


class TestJournalFormatter:

    def test_formats_text(self, policy):
        gemini = FakeGemini("  Today was a good day.\n\nI walked a lot.  ")
        result = asyncio.run(JournalFormatter(gemini, policy).format("um today was uh good"))

        assert result.succeeded
        assert result.formatted_text == "Today was a good day.\n\nI walked a lot."
        assert gemini.calls[0]["json_output"] is False

    def test_failure_after_retries(self, policy, sleeps):
        gemini = FakeGemini(ConnectionError("reset"))
        result = asyncio.run(JournalFormatter(gemini, policy).format("text"))

        assert not result.succeeded
        assert result.error == "reset"
        assert sleeps.calls == [1.0, 5.0]

    def test_permanent_failure(self, policy):
        gemini = FakeGemini(PermanentError("API error: 403"))
        result = asyncio.run(JournalFormatter(gemini, policy).format("text"))
        assert not result.succeeded
        assert len(gemini.calls) == 1


class TestPrompts:

    def test_parse_json_response_strips_fences(self):
        assert parse_json_response('```json\n{"items": []}\n```') == {"items": []}
        assert parse_json_response('```\n{"a": 1}```') == {"a": 1}

    def test_parse_json_response_rejects_prose(self):
        assert parse_json_response("no json here") is None
        assert parse_json_response("") is None

    def test_stock_priorities_get_trigger_phrases(self):
        prompt = get_extraction_prompt("t", ["asap", "soon", "eventually"], ["general"], "general")
        assert '"asap": urgent' in prompt
        assert '"eventually": later' in prompt
