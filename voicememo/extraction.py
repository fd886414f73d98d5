"""
Structured extraction of tasks and reference notes from a transcript.

The prompt carries the live priority/category options so the model can
only pick values that exist in Notion right now. The answer must be a
JSON object with an ``items`` array; anything else is retried like a
transient failure.
"""

import logging
from typing import Sequence

from .ai import GeminiClient
from .errors import MalformedOutputError, PermanentError, RetryExhaustedError, describe
from .models import ExtractedItem, ExtractionResult, ItemKind
from .prompts import get_extraction_prompt, parse_json_response
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"

_KIND_LABELS = {
    "TASK": ItemKind.TASK,
    "TODO": ItemKind.TASK,
    "REFERENCE": ItemKind.REFERENCE,
    "NOTE": ItemKind.REFERENCE,
}


class Extractor:
    """Turns TASK/REFERENCE transcript text into ExtractedItems."""

    def __init__(
        self,
        client: GeminiClient,
        policy: RetryPolicy,
        priorities: Sequence[str],
        categories: Sequence[str],
        default_category: str = DEFAULT_CATEGORY,
    ):
        self.client = client
        self.policy = policy
        self.priorities = list(priorities)
        self.categories = list(categories)
        self.default_category = default_category

    @property
    def default_priority(self) -> str:
        """The most urgent option (Notion keeps options in the order they were defined)."""
        return self.priorities[0] if self.priorities else ""

    def parse_items(self, raw: str, transcript: str) -> list[ExtractedItem]:
        """Decode the model's answer into items.

        Missing priority/category fall back to the defaults; values are kept
        as-is otherwise, so validation against the schema happens at sync.
        The transcript replaces whatever body text the model echoed back.

        Raises:
            MalformedOutputError: not JSON, no ``items`` array, or a bad item.
        """
        data = parse_json_response(raw)
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise MalformedOutputError("Invalid JSON response from AI")

        items = []
        for entry in data["items"]:
            if not isinstance(entry, dict):
                raise MalformedOutputError(f"Item is not an object: {entry!r}")
            kind = _KIND_LABELS.get(str(entry.get("type", "")).strip().upper())
            if kind is None:
                raise MalformedOutputError(f"Unknown item type: {entry.get('type')!r}")
            title = str(entry.get("title") or "").strip()
            if not title:
                raise MalformedOutputError("Item has no title")

            if kind is ItemKind.TASK:
                items.append(ExtractedItem(
                    kind=kind,
                    title=title,
                    body=transcript,
                    priority=entry.get("priority") or self.default_priority,
                ))
            else:
                items.append(ExtractedItem(
                    kind=kind,
                    title=title,
                    body=transcript,
                    category=entry.get("category") or self.default_category,
                ))
        return items

    async def extract(self, transcript: str) -> ExtractionResult:
        """Extract items from transcript text. Never raises for provider errors."""
        prompt = get_extraction_prompt(
            transcript, self.priorities, self.categories, self.default_category
        )

        async def attempt() -> list[ExtractedItem]:
            raw = await self.client.generate([prompt], json_output=True)
            return self.parse_items(raw, transcript)

        try:
            items = await self.policy.run(attempt, label="Organization")
        except (RetryExhaustedError, PermanentError) as e:
            return ExtractionResult(succeeded=False, error=describe(e))

        logger.info(f"Organization successful: {len(items)} item(s) found")
        return ExtractionResult(items=items, succeeded=True)
