"""
Quality-gated transcription.

One Gemini request returns the transcript together with a confidence
score and a garbage verdict (and, when enabled, an intent guess). Only the
explicit garbage flag decides whether the pipeline continues; the
confidence score is logged for observability.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from .ai import GeminiClient, audio_part
from .errors import (
    EmptyTranscriptError,
    MalformedOutputError,
    PermanentError,
    RetryExhaustedError,
    describe,
)
from .models import Intent, TranscriptionOutcome
from .prompts import get_transcription_prompt, parse_json_response
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

_INTENT_LABELS = {
    "TASK": Intent.TASK,
    "REFERENCE": Intent.REFERENCE,
    "JOURNAL": Intent.JOURNAL,
}


def _parse_confidence(value) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        raise MalformedOutputError(f"Invalid confidence value: {value!r}")
    return max(0, min(100, score))


def parse_transcription(raw: str, with_intent: bool = False) -> TranscriptionOutcome:
    """Turn the model's JSON answer into a TranscriptionOutcome.

    Raises:
        MalformedOutputError: not JSON, or a required field is missing.
        EmptyTranscriptError: a usable (non-garbage) verdict with no text.
    """
    data = parse_json_response(raw)
    if not isinstance(data, dict):
        raise MalformedOutputError("Transcription response is not a JSON object")

    for key in ("transcription", "confidence", "isGarbage"):
        if key not in data:
            raise MalformedOutputError(f"Transcription response missing '{key}'")

    text = str(data.get("transcription") or "").strip()
    is_garbage = bool(data.get("isGarbage"))
    if not text and not is_garbage:
        raise EmptyTranscriptError("Empty transcription returned")

    hint: Optional[Intent] = None
    if with_intent:
        hint = _INTENT_LABELS.get(str(data.get("intent") or "").strip().upper())

    return TranscriptionOutcome(
        text=text,
        succeeded=True,
        confidence_score=_parse_confidence(data.get("confidence")),
        is_garbage=is_garbage,
        garbage_reason=data.get("garbageReason") or None,
        intent_hint=hint,
    )


class Transcriber:
    """Turns one recording into a TranscriptionOutcome."""

    def __init__(
        self,
        client: GeminiClient,
        policy: RetryPolicy,
        with_intent: bool = False,
        strip_filler: bool = True,
        confidence_threshold: int = 30,
    ):
        self.client = client
        self.policy = policy
        self.with_intent = with_intent
        self.strip_filler = strip_filler
        self.confidence_threshold = confidence_threshold

    async def transcribe(self, audio_path: Path) -> TranscriptionOutcome:
        """Transcribe and assess one recording. Never raises for provider errors."""
        audio_path = Path(audio_path)
        try:
            data = await asyncio.to_thread(audio_path.read_bytes)
        except OSError as e:
            logger.error(f"Could not read {audio_path.name}: {e}")
            return TranscriptionOutcome(succeeded=False, error_message=str(e))

        prompt = get_transcription_prompt(self.with_intent, self.strip_filler)
        contents = [prompt, audio_part(data, audio_path.name)]
        size_mb = len(data) / (1024 * 1024)
        logger.info(f"Transcribing {audio_path.name} ({size_mb:.2f} MB)")

        async def attempt() -> TranscriptionOutcome:
            raw = await self.client.generate(contents, json_output=True)
            return parse_transcription(raw, self.with_intent)

        try:
            outcome = await self.policy.run(attempt, label=f"Transcription of {audio_path.name}")
        except (RetryExhaustedError, PermanentError) as e:
            return TranscriptionOutcome(succeeded=False, error_message=describe(e))

        logger.info(
            f"Transcribed {audio_path.name}: {len(outcome.text)} chars, "
            f"confidence {outcome.confidence_score}"
        )
        if not outcome.is_garbage and outcome.confidence_score < self.confidence_threshold:
            logger.warning(
                f"Low confidence ({outcome.confidence_score}) for {audio_path.name}, continuing"
            )
        return outcome
