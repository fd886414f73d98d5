"""
Gemini AI client with API key rotation.

Uses the google-genai SDK (async surface, ``client.aio``). One call = one
attempt; retrying is left to the caller's RetryPolicy so the backoff
schedule is the same for every step.

Rate limit handling:
- On 429 the client rotates to the next configured key before re-raising,
  so the next attempt goes out on a fresh key.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .errors import EmptyTranscriptError, PermanentError, TransientError

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".opus": "audio/ogg",
    ".flac": "audio/flac",
    ".webm": "audio/webm",
}

_ACCEPTED_FINISH = ("STOP", "FinishReason.STOP", "UNSPECIFIED", "FinishReason.UNSPECIFIED", "0", "1")


def mime_type_for(filename: Union[str, Path]) -> str:
    """MIME type Gemini expects for an audio file, by extension."""
    return MIME_TYPES.get(Path(filename).suffix.lower(), "audio/mpeg")


def audio_part(data: bytes, filename: Union[str, Path]) -> types.Part:
    """Inline (base64) audio part for a generate_content request."""
    return types.Part.from_bytes(data=data, mime_type=mime_type_for(filename))


class GeminiClient:
    """Gemini API client with round-robin key rotation on quota errors."""

    def __init__(self, api_keys: Sequence[str], model_name: str = "gemini-3-flash-preview"):
        if not api_keys:
            raise ValueError("At least one API key is required")
        self._keys = list(api_keys)
        self._model_name = model_name
        self._key_index = 0
        self._clients: dict[int, genai.Client] = {}

    @property
    def model_name(self) -> str:
        return self._model_name

    def _get_client(self) -> genai.Client:
        idx = self._key_index % len(self._keys)
        if idx not in self._clients:
            self._clients[idx] = genai.Client(api_key=self._keys[idx])
        return self._clients[idx]

    def _rotate_key(self):
        if len(self._keys) > 1:
            self._key_index += 1
            logger.warning(
                f"Rotating to Gemini key {self._key_index % len(self._keys) + 1}/{len(self._keys)}"
            )

    async def generate(self, contents: list, json_output: bool = False) -> str:
        """Send one generate_content request and return the response text.

        Raises:
            PermanentError: 4xx other than throttling/timeouts.
            TransientError: 429/5xx, or an abnormal finish reason.
            EmptyTranscriptError: successful response with empty text.
        """
        config = types.GenerateContentConfig(
            temperature=1.0,  # Google recommends 1.0 to avoid looping
            top_p=0.95,
            response_mime_type="application/json" if json_output else None,
        )
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self._model_name,
                contents=contents,
                config=config,
            )
        except genai_errors.ClientError as e:
            if e.code in (408, 429):
                if e.code == 429:
                    self._rotate_key()
                raise TransientError(f"API error: {e.code} - {e.message}") from e
            raise PermanentError(f"API error: {e.code} - {e.message}") from e
        except genai_errors.ServerError as e:
            raise TransientError(f"API error: {e.code} - {e.message}") from e

        return self._validate_response(response)

    @staticmethod
    def _validate_response(response) -> str:
        """Validate a Gemini API response and return its text."""
        if not response or not getattr(response, "candidates", None):
            raise EmptyTranscriptError("No response returned from API")

        candidate = response.candidates[0]
        finish = getattr(candidate, "finish_reason", None)
        if finish and str(finish) not in _ACCEPTED_FINISH:
            if "MAX_TOKENS" in str(finish) and response.text:
                logger.warning("Response hit max token limit — returning partial content")
                return response.text
            raise TransientError(f"Abnormal finish reason: {finish}")

        text: Optional[str] = response.text
        if not text or not text.strip():
            raise EmptyTranscriptError("No text returned from API")
        return text
