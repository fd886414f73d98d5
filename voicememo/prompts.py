"""
Prompts for transcription, structured extraction and journal clean-up,
plus the tolerant JSON decoder used on model output.

Steps:
    transcription — audio → text + quality verdict (+ optional intent)
    extraction    — TASK/REFERENCE text → items constrained to the live schema
    journal       — JOURNAL text → polished prose
"""

import json
import re
from typing import Any, Optional, Sequence

# =============================================================================
# TRANSCRIPTION PROMPT (transcript + quality assessment in one request)
# =============================================================================

_TRANSCRIPTION_PROMPT = """Analyze this audio recording and provide a transcription with quality assessment.

Return ONLY valid JSON in this exact format:
{{
  "transcription": "The transcribed text exactly as spoken, or empty string if no speech",
  "confidence": <number 0-100>,
  "isGarbage": <boolean>,
  "garbageReason": "<string or null>"{intent_field}
}}

Transcription rules:
{filler_rule}
- Keep any leading keyword such as "to do", "note" or "journal" exactly as spoken

Quality assessment rules:
- confidence 80-100: Clear speech with understandable content
- confidence 50-79: Partially audible speech, some unclear portions
- confidence 20-49: Mostly noise with possible fragments of speech
- confidence 0-19: No discernible speech (pure noise, silence, button sounds)

Mark isGarbage=true if ANY of these apply:
- Less than 2 words of actual speech
- Only background noise, static, or ambient sounds
- Recording is mostly silence
- Speech is completely unintelligible
- Only sounds like button clicks, breathing, or non-verbal sounds

If isGarbage=true, set garbageReason to explain why.
{intent_rules}Return ONLY the JSON, no markdown or explanation."""

_INTENT_FIELD = ',\n  "intent": "TASK|REFERENCE|JOURNAL"'

_INTENT_RULES = """
Classify the intent of the recording:
- TASK: something the speaker needs to do ("to do", "need to", "remember to")
- REFERENCE: information worth keeping ("note", ideas, facts, research items)
- JOURNAL: personal reflection, diary, or anything ambiguous

"""

_FILLER_STRIP = "- Remove filler words (um, uh, er, you know) but otherwise transcribe verbatim"
_FILLER_KEEP = "- Transcribe verbatim, including filler words"


def get_transcription_prompt(with_intent: bool = False, strip_filler: bool = True) -> str:
    """Prompt for the combined transcription + quality-gate request."""
    return _TRANSCRIPTION_PROMPT.format(
        intent_field=_INTENT_FIELD if with_intent else "",
        intent_rules=_INTENT_RULES if with_intent else "",
        filler_rule=_FILLER_STRIP if strip_filler else _FILLER_KEEP,
    )


# =============================================================================
# EXTRACTION PROMPT (enumerations come from the live Notion schema)
# =============================================================================

_EXTRACTION_PROMPT = """Given this transcript, extract all actionable items and notes.

Rules:
- Items with explicit markers or directive phrasing ("to do", "need to", "remember to") → type: "TASK"
- Everything else worth keeping → type: "REFERENCE"

Priority triggers for TASKs (most urgent first):
{priority_lines}

Return JSON with these enums:
- types: ["TASK", "REFERENCE"]
- priorities: {priorities}
- categories: {categories}

Default values:
- priority: "{default_priority}"
- category: "{default_category}"

Transcript:
{transcript}

Return valid JSON only, no markdown:
{{
  "items": [
    {{
      "type": "TASK|REFERENCE",
      "title": "short title, under 80 characters",
      "body": "string",
      "priority": "one of the priorities (TASK only)",
      "category": "one of the categories (REFERENCE only)"
    }}
  ]
}}
If nothing is worth extracting, return {{"items": []}}."""


# Trigger phrases for the stock priority options; custom options are listed bare
PRIORITY_TRIGGERS = {
    "asap": "urgent, immediate, asap, today, right now",
    "soon": "tomorrow, this week, in a few days, by Friday",
    "eventually": "later, sometime, next week",
}


def get_extraction_prompt(
    transcript: str,
    priorities: Sequence[str],
    categories: Sequence[str],
    default_category: str,
) -> str:
    """Extraction prompt constrained to the priority/category values that exist right now."""
    default_priority = priorities[0] if priorities else ""
    priority_lines = "\n".join(
        f'- "{p}": {PRIORITY_TRIGGERS[p]}' if p in PRIORITY_TRIGGERS else f'- "{p}"'
        for p in priorities
    ) or "- (none defined)"
    return _EXTRACTION_PROMPT.format(
        priority_lines=priority_lines,
        priorities=json.dumps(list(priorities)),
        categories=json.dumps(list(categories)),
        default_priority=default_priority,
        default_category=default_category,
        transcript=transcript,
    )


# =============================================================================
# JOURNAL PROMPT
# =============================================================================

_JOURNAL_PROMPT = """Clean up the following voice journal transcript.

Instructions:
1. Remove filler words (um, uh, like, you know, I mean, basically, actually, sort of, kind of)
2. Fix grammar and punctuation
3. Format into natural paragraphs at topic or thought changes
4. Preserve the original meaning and tone
5. Keep it conversational but polished
6. Do NOT add any commentary, headers, or metadata
7. Return ONLY the cleaned text, nothing else

Transcript:
{transcript}"""


def get_journal_prompt(transcript: str) -> str:
    return _JOURNAL_PROMPT.format(transcript=transcript)


# =============================================================================
# RESPONSE PARSING
# =============================================================================

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?|```")


def parse_json_response(text: str) -> Optional[Any]:
    """Decode model output as JSON, tolerating Markdown code fences.

    Returns None when the text isn't JSON.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    if not cleaned:
        return None
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        return None
