"""Tests for voicememo.notion and voicememo.schema against a mocked Notion API"""

import asyncio
import json

import httpx
import pytest

from voicememo.config import EngineConfig
from voicememo.errors import ConfigError, is_transient
from voicememo.notion import (
    NOTION_VERSION,
    NotionAPIError,
    NotionClient,
    block_batches,
    plain_text,
    rich_text,
)
from voicememo.schema import bootstrap_databases, fetch_schema, initialize_schema, select_options


class FakeNotionAPI:
    """Routes requests like the Notion API would and records them."""

    def __init__(self):
        self.requests = []
        self.databases = {}
        self.query_pages = [[{"id": "p1"}], [{"id": "p2"}]]
        self.fail_with = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body, request.headers))

        if self.fail_with:
            status, payload = self.fail_with
            return httpx.Response(status, json=payload)

        path = request.url.path
        if request.method == "POST" and path == "/v1/databases":
            db_id = f"db-{len(self.databases) + 1}"
            self.databases[db_id] = {"id": db_id, "properties": body["properties"]}
            return httpx.Response(200, json={"id": db_id})
        if request.method == "GET" and path.startswith("/v1/databases/"):
            db_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json=self.databases[db_id])
        if request.method == "POST" and path.endswith("/query"):
            page = self.query_pages.pop(0)
            more = bool(self.query_pages)
            return httpx.Response(200, json={
                "results": page,
                "has_more": more,
                "next_cursor": "cursor-2" if more else None,
            })
        if request.method == "POST" and path == "/v1/pages":
            return httpx.Response(200, json={"id": "new-page"})
        if request.method == "PATCH" and path.endswith("/children"):
            return httpx.Response(200, json={"results": body["children"]})
        return httpx.Response(404, json={"code": "object_not_found", "message": "nope"})


@pytest.fixture
def api():
    return FakeNotionAPI()


def _client(api):
    return NotionClient("secret-token", transport=httpx.MockTransport(api))


def _config(**overrides):
    defaults = dict(gemini_api_keys=["k"], notion_api_key="n", parent_page_id="parent-page")
    defaults.update(overrides)
    return EngineConfig(**defaults)


class TestNotionClient:

    def test_sends_auth_and_version_headers(self, api):
        async def go():
            async with _client(api) as client:
                await client.create_page("db-x", {"title": {"title": rich_text("hi")}})
        asyncio.run(go())

        method, path, body, headers = api.requests[0]
        assert (method, path) == ("POST", "/v1/pages")
        assert headers["Authorization"] == "Bearer secret-token"
        assert headers["Notion-Version"] == NOTION_VERSION
        assert body["parent"] == {"database_id": "db-x"}
        assert "children" not in body

    def test_query_follows_pagination(self, api):
        async def go():
            async with _client(api) as client:
                return await client.query_database(
                    "db-x", filter={"property": "date", "date": {"equals": "2026-01-10"}}
                )
        results = asyncio.run(go())

        assert [r["id"] for r in results] == ["p1", "p2"]
        assert api.requests[1][2]["start_cursor"] == "cursor-2"
        assert api.requests[0][2]["filter"]["date"]["equals"] == "2026-01-10"

    def test_append_block_children(self, api):
        async def go():
            async with _client(api) as client:
                return await client.append_block_children("page-1", [{"type": "divider", "divider": {}}])
        asyncio.run(go())
        method, path, body, _ = api.requests[0]
        assert (method, path) == ("PATCH", "/v1/blocks/page-1/children")
        assert body == {"children": [{"type": "divider", "divider": {}}]}

    def test_error_response_raises_with_status_and_code(self, api):
        api.fail_with = (429, {"object": "error", "code": "rate_limited", "message": "slow down"})

        async def go():
            async with _client(api) as client:
                await client.retrieve_database("db-x")

        with pytest.raises(NotionAPIError) as exc_info:
            asyncio.run(go())
        assert exc_info.value.status == 429
        assert exc_info.value.code == "rate_limited"
        assert is_transient(exc_info.value)

    def test_validation_error_is_permanent(self, api):
        api.fail_with = (400, {"object": "error", "code": "validation_error", "message": "bad"})

        async def go():
            async with _client(api) as client:
                await client.create_page("db", {})

        with pytest.raises(NotionAPIError) as exc_info:
            asyncio.run(go())
        assert not is_transient(exc_info.value)

    def test_rich_text_helpers(self):
        assert rich_text("") == []
        assert [len(t["text"]["content"]) for t in rich_text("y" * 2001)] == [2000, 1]
        assert plain_text(rich_text("hello")) == "hello"
        assert plain_text([{"plain_text": "a"}, {"plain_text": "b"}]) == "ab"

    def test_block_batches(self):
        blocks = [{"n": i} for i in range(205)]
        batches = block_batches(blocks)
        assert [len(b) for b in batches] == [100, 100, 5]
        assert [b["n"] for batch in batches for b in batch] == list(range(205))
        assert block_batches([]) == []


class TestSchema:

    def test_bootstrap_creates_missing_databases(self, api, tmp_path):
        env_file = tmp_path / ".env"
        config = _config(notes_database_id="existing-notes")

        async def go():
            async with _client(api) as client:
                return await bootstrap_databases(client, config, env_file)
        created = asyncio.run(go())

        assert created == ["TODOs", "Journal"]
        assert config.todo_database_id == "db-1"
        assert config.journal_database_id == "db-2"
        assert config.notes_database_id == "existing-notes"
        env_text = env_file.read_text()
        assert "NOTION_TODO_DATABASE_ID='db-1'" in env_text
        assert "NOTION_JOURNAL_DATABASE_ID='db-2'" in env_text
        first_body = api.requests[0][2]
        assert first_body["parent"] == {"type": "page_id", "page_id": "parent-page"}
        assert set(first_body["properties"]) == {
            "title", "description", "priority", "status", "created_date", "source",
        }

    def test_bootstrap_is_noop_when_configured(self, api):
        config = _config(todo_database_id="a", notes_database_id="b", journal_database_id="c")

        async def go():
            async with _client(api) as client:
                return await bootstrap_databases(client, config, env_file=None)

        assert asyncio.run(go()) == []
        assert api.requests == []

    def test_initialize_reads_options_in_order(self, api, tmp_path):
        config = _config()

        async def go():
            async with _client(api) as client:
                return await initialize_schema(client, config, tmp_path / ".env")
        schema = asyncio.run(go())

        assert schema.priorities == ["asap", "soon", "eventually"]
        assert schema.categories == ["project idea", "feature idea", "research item", "general"]
        assert schema.journal_database_id == config.journal_database_id

    def test_fetch_requires_ids(self, api):
        async def go():
            async with _client(api) as client:
                await fetch_schema(client, _config(todo_database_id="a"))

        with pytest.raises(ConfigError, match="NOTION_NOTES_DATABASE_ID"):
            asyncio.run(go())

    def test_select_options_tolerates_missing_property(self):
        assert select_options({"properties": {}}, "priority") == []
        assert select_options({"properties": {"priority": {"rich_text": {}}}}, "priority") == []
