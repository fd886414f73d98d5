"""Shared fakes for the pipeline tests: no network, no real sleeping."""

import itertools
import logging
from datetime import datetime

import pytest

from voicememo.notion import NotionAPIError
from voicememo.retry import RetryPolicy
from voicememo.schema import NotionSchema


class RecordedSleep:
    """Stands in for asyncio.sleep and remembers every delay."""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)


class FakeGemini:
    """Returns queued responses in order; an exception in the queue is raised.

    The last response repeats once the queue runs out.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def generate(self, contents, json_output=False):
        self.calls.append({"contents": contents, "json_output": json_output})
        index = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response


class FakeNotion:
    """In-memory stand-in for NotionClient."""

    max_children = 100

    def __init__(self):
        self._ids = itertools.count(1)
        self.pages = {}
        self.created = []
        self.appended = []
        self.queries = []
        self.fail_titles = set()
        self.create_errors = []
        self.query_errors = []

    async def create_page(self, database_id, properties, children=None):
        if self.create_errors:
            raise self.create_errors.pop(0)
        title = "".join(t["text"]["content"] for t in properties["title"]["title"])
        if title in self.fail_titles:
            raise NotionAPIError(503, "service_unavailable", "down")
        self._check_children(children or [])
        page_id = f"page-{next(self._ids)}"
        page = {
            "id": page_id,
            "database_id": database_id,
            "properties": properties,
            "children": list(children or []),
        }
        self.pages[page_id] = page
        self.created.append(page)
        return {"id": page_id}

    def _check_children(self, children):
        if len(children) > self.max_children:
            raise NotionAPIError(400, "validation_error", f"body.children.length should be ≤ `{self.max_children}`")

    async def query_database(self, database_id, filter=None, page_size=100):
        self.queries.append((database_id, filter))
        if self.query_errors:
            raise self.query_errors.pop(0)
        wanted = filter["date"]["equals"] if filter else None
        return [
            {"id": page["id"]}
            for page in self.pages.values()
            if page["database_id"] == database_id
            and page["properties"].get("date", {}).get("date", {}).get("start") == wanted
        ]

    async def append_block_children(self, block_id, children):
        self._check_children(children)
        self.appended.append((block_id, list(children)))
        self.pages[block_id]["children"].extend(children)
        return {"results": children}


@pytest.fixture
def sleeps():
    return RecordedSleep()


@pytest.fixture
def policy(sleeps):
    return RetryPolicy(max_attempts=3, delays=(1.0, 5.0, 30.0), sleep=sleeps)


@pytest.fixture
def schema():
    return NotionSchema(
        todo_database_id="todo-db",
        notes_database_id="notes-db",
        journal_database_id="journal-db",
        priorities=["asap", "soon", "eventually"],
        categories=["project idea", "feature idea", "research item", "general"],
    )


@pytest.fixture
def notion():
    return FakeNotion()


@pytest.fixture
def recorded_at():
    return datetime(2026, 1, 10, 9, 5)


@pytest.fixture(autouse=True)
def info_logs(caplog):
    caplog.set_level(logging.INFO)
