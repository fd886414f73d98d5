"""
Minimal async Notion REST client.

Only the calls the pipeline needs: database retrieve/create/query, page
create and block append. One request = one attempt; retries belong to the
caller's RetryPolicy.
"""

import logging
from typing import Any, Optional

import httpx

from .errors import VoiceMemoError

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

# Notion rejects rich text objects longer than this
MAX_TEXT_LENGTH = 2000

# Notion accepts at most this many child blocks per request
MAX_BLOCKS_PER_REQUEST = 100


class NotionAPIError(VoiceMemoError):
    """Non-2xx response from the Notion API."""

    def __init__(self, status: int, code: str = "", message: str = ""):
        self.status = status
        self.code = code
        super().__init__(f"Notion API error {status} ({code or 'unknown'}): {message}".rstrip(": "))


def block_batches(blocks: list[dict], size: int = MAX_BLOCKS_PER_REQUEST) -> list[list[dict]]:
    """Split a block run into request-sized pieces, keeping order."""
    return [blocks[i:i + size] for i in range(0, len(blocks), size)]


def rich_text(content: str) -> list[dict]:
    """Rich text array for ``content``, split into ≤2000 character text objects."""
    content = content or ""
    if not content:
        return []
    return [
        {"type": "text", "text": {"content": content[i:i + MAX_TEXT_LENGTH]}}
        for i in range(0, len(content), MAX_TEXT_LENGTH)
    ]


def title_property(content: str) -> dict:
    return {"title": rich_text(content[:MAX_TEXT_LENGTH])}


def plain_text(rich: list[dict]) -> str:
    """Concatenate the plain text of a rich text array."""
    parts = []
    for entry in rich or []:
        if "plain_text" in entry:
            parts.append(entry["plain_text"])
        else:
            parts.append(entry.get("text", {}).get("content", ""))
    return "".join(parts)


class NotionClient:
    """Notion API client over a shared httpx.AsyncClient."""

    def __init__(
        self,
        api_key: str,
        base_url: str = NOTION_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Notion-Version": NOTION_VERSION,
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict[str, Any]:
        response = await self.client.request(method, path, json=json)
        if response.is_success:
            return response.json()

        code, message = "", response.text
        try:
            body = response.json()
            code = body.get("code", "")
            message = body.get("message", message)
        except ValueError:
            pass
        logger.debug(f"Notion {method} {path} → {response.status_code} {code}")
        raise NotionAPIError(response.status_code, code, message)

    # ── Databases ────────────────────────────────────────────────────

    async def retrieve_database(self, database_id: str) -> dict:
        return await self._request("GET", f"/databases/{database_id}")

    async def create_database(self, parent_page_id: str, title: str, properties: dict) -> dict:
        return await self._request("POST", "/databases", json={
            "parent": {"type": "page_id", "page_id": parent_page_id},
            "title": rich_text(title),
            "properties": properties,
        })

    async def query_database(
        self,
        database_id: str,
        filter: Optional[dict] = None,
        page_size: int = 100,
    ) -> list[dict]:
        """Return every page matching ``filter``, following pagination."""
        body: dict[str, Any] = {"page_size": page_size}
        if filter:
            body["filter"] = filter

        results: list[dict] = []
        while True:
            data = await self._request("POST", f"/databases/{database_id}/query", json=body)
            results.extend(data.get("results", []))
            if not data.get("has_more"):
                return results
            body["start_cursor"] = data.get("next_cursor")

    # ── Pages and blocks ─────────────────────────────────────────────

    async def create_page(
        self,
        database_id: str,
        properties: dict,
        children: Optional[list[dict]] = None,
    ) -> dict:
        body: dict[str, Any] = {
            "parent": {"database_id": database_id},
            "properties": properties,
        }
        if children:
            body["children"] = children
        return await self._request("POST", "/pages", json=body)

    async def append_block_children(self, block_id: str, children: list[dict]) -> dict:
        return await self._request(
            "PATCH", f"/blocks/{block_id}/children", json={"children": children}
        )
