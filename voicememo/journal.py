"""Journal clean-up: filler removal, grammar and paragraphing via Gemini."""

import logging

from .ai import GeminiClient
from .errors import PermanentError, RetryExhaustedError, describe
from .models import FormatResult
from .prompts import get_journal_prompt
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class JournalFormatter:

    def __init__(self, client: GeminiClient, policy: RetryPolicy):
        self.client = client
        self.policy = policy

    async def format(self, transcript: str) -> FormatResult:
        prompt = get_journal_prompt(transcript)

        async def attempt() -> str:
            text = await self.client.generate([prompt])
            return text.strip()

        try:
            formatted = await self.policy.run(attempt, label="Journal formatting")
        except (RetryExhaustedError, PermanentError) as e:
            return FormatResult(succeeded=False, error=describe(e))

        logger.info(f"Journal formatting successful ({len(formatted)} chars)")
        return FormatResult(formatted_text=formatted, succeeded=True)
