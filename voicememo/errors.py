"""
Exception hierarchy and transient/permanent error classification.

Provider errors are classified by HTTP status where one is available:
408, 429 and 5xx are transient, every other 4xx is permanent.
Network failures and anything unrecognised are treated as transient.
"""

import asyncio
from typing import Optional

import httpx

# 4xx codes worth retrying; 409 is Notion's conflict_error on concurrent edits
_RETRYABLE_CLIENT_CODES = {408, 409, 429}


class VoiceMemoError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(VoiceMemoError):
    """Missing or invalid configuration."""


class TransientError(VoiceMemoError):
    """A failure that may succeed if the same call is repeated."""


class PermanentError(VoiceMemoError):
    """A failure that will not go away on retry (bad key, not found, bad request)."""


class MalformedOutputError(TransientError):
    """The model answered, but not with the JSON shape we asked for."""


class EmptyTranscriptError(TransientError):
    """The provider returned a successful response with no usable text."""


class ItemValidationError(VoiceMemoError):
    """An extracted item uses a priority/category the schema doesn't have."""


class LedgerError(VoiceMemoError):
    """The state ledger could not be persisted."""


class RetryExhaustedError(VoiceMemoError):
    """Raised by RetryPolicy once every attempt has failed."""

    def __init__(self, label: str, attempts: int, last_error: BaseException):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(str(last_error))


def status_code_of(exc: BaseException) -> Optional[int]:
    """Best-effort HTTP status lookup across google-genai, httpx and Notion errors."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    for attr in ("status", "status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_transient(exc: BaseException) -> bool:
    """Return True if a failed call should be attempted again."""
    if isinstance(exc, PermanentError):
        return False
    if isinstance(exc, (TransientError, httpx.TransportError, asyncio.TimeoutError)):
        return True
    if isinstance(exc, (ItemValidationError, ConfigError)):
        return False

    code = status_code_of(exc)
    if code is None:
        return True
    if code >= 500 or code in _RETRYABLE_CLIENT_CODES:
        return True
    return not 400 <= code < 500


def describe(exc: BaseException) -> str:
    """Short one-line description for logs and failure reasons."""
    if isinstance(exc, RetryExhaustedError):
        exc = exc.last_error
    message = str(exc).strip()
    return message or exc.__class__.__name__
