"""
Intent routing from transcript text.

A spoken leading keyword decides where a recording goes:

    "To do, buy milk"        → TASK       ("buy milk")
    "Note: the api is slow"  → REFERENCE  ("the api is slow")
    "Journal. Today I..."    → JOURNAL    ("Today I...")
    anything else            → JOURNAL    (unchanged)

Unprefixed text falls to JOURNAL so that free-form content never lands in
the task list by accident. When the transcriber already classified the
recording, its hint wins and the keyword scan is skipped.
"""

import logging
import re
from typing import Optional

from .models import Intent

logger = logging.getLogger(__name__)

# keyword, then any run of separators ("To do," / "TODO:" / "note -")
_KEYWORD_RE = re.compile(
    r"^\s*(?P<keyword>to[\s-]?do|notes?|journal)\b[\s,.:;!\-]*",
    re.IGNORECASE,
)

_KEYWORD_INTENTS = {
    "todo": Intent.TASK,
    "note": Intent.REFERENCE,
    "notes": Intent.REFERENCE,
    "journal": Intent.JOURNAL,
}


def _normalize_keyword(keyword: str) -> str:
    return re.sub(r"[\s-]", "", keyword.lower())


def strip_keyword(text: str) -> str:
    """Remove a leading routing keyword and its punctuation, if present."""
    return _KEYWORD_RE.sub("", text, count=1).strip()


def detect_intent(text: str, hint: Optional[Intent] = None) -> tuple[Intent, str]:
    """Classify transcript text and return it with any routing keyword removed.

    Args:
        text: Cleaned transcript.
        hint: Intent reported by the transcriber, if any. Authoritative.

    Returns:
        (intent, text for the downstream step)
    """
    if hint is not None:
        return hint, text.strip()

    match = _KEYWORD_RE.match(text)
    if not match:
        return Intent.JOURNAL, text.strip()

    intent = _KEYWORD_INTENTS[_normalize_keyword(match.group("keyword"))]
    stripped = text[match.end():].strip()
    logger.debug(f"Keyword '{match.group('keyword')}' → {intent.value}")
    return intent, stripped
