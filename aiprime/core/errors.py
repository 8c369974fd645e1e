"""
Error Taxonomy
Typed pipeline errors and the translation keys the dashboard shows for them.
"""

from enum import Enum
from typing import Optional

import httpx


class ErrorKey(str, Enum):
    """Dotted translation keys resolved to localized text by the client."""
    API_KEY_MISSING = "errors.apiKeyMissing"
    API_KEY_INVALID = "errors.apiKeyInvalid"
    QUOTA_EXCEEDED = "errors.quotaExceeded"
    PROMPT_REJECTED = "errors.promptRejected"
    VIDEO_GEN = "errors.videoGen"
    SERVER_UNAVAILABLE = "errors.serverUnavailable"
    NETWORK_ERROR = "errors.networkError"
    INVALID_RESPONSE = "errors.invalidResponse"
    JOB_NOT_FOUND = "errors.jobNotFound"
    GENERIC = "errors.generic"


class PipelineError(Exception):
    """Base exception for errors surfaced to API callers and job status."""

    error_key: ErrorKey = ErrorKey.GENERIC
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_key: Optional[ErrorKey] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_key is not None:
            self.error_key = error_key
        if status_code is not None:
            self.status_code = status_code


class ApiKeyMissingError(PipelineError):
    """The server has no Gemini API key configured."""
    error_key = ErrorKey.API_KEY_MISSING

    def __init__(self, message: str = "GEMINI_API_KEY is not configured on the server."):
        super().__init__(message)


class PromptRejectedError(PipelineError):
    """The model refused the prompt (safety filters)."""
    error_key = ErrorKey.PROMPT_REJECTED


class VideoGenerationError(PipelineError):
    """The video operation failed, timed out, or returned nothing."""
    error_key = ErrorKey.VIDEO_GEN


class VideoDownloadError(VideoGenerationError):
    """The generated video could not be fetched from its signed URL."""


class JobNotFoundError(PipelineError):
    error_key = ErrorKey.JOB_NOT_FOUND
    status_code = 404

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class InvalidJobTransitionError(PipelineError):
    """A status change that the job lifecycle does not allow."""
    status_code = 409


class BackupFormatError(PipelineError):
    """A backup payload does not match the expected structure."""
    status_code = 400

    def __init__(self, message: str = "Invalid backup data structure."):
        super().__init__(message)


# SDK error statuses with a dedicated key
_STATUS_KEYS = {
    "RESOURCE_EXHAUSTED": ErrorKey.QUOTA_EXCEEDED,
    "UNAVAILABLE": ErrorKey.SERVER_UNAVAILABLE,
}

# Ordered: the first matching substring wins
_MESSAGE_KEYS = (
    ("API key not valid", ErrorKey.API_KEY_INVALID),
    ("API_KEY_INVALID", ErrorKey.API_KEY_INVALID),
    ("RESOURCE_EXHAUSTED", ErrorKey.QUOTA_EXCEEDED),
    ("quota", ErrorKey.QUOTA_EXCEEDED),
    ("SAFETY", ErrorKey.PROMPT_REJECTED),
    ("blocked", ErrorKey.PROMPT_REJECTED),
    ("responsible AI", ErrorKey.PROMPT_REJECTED),
)


def classify_error(exc: BaseException, default: ErrorKey = ErrorKey.GENERIC) -> ErrorKey:
    """
    Map an exception to the translation key shown to the user.

    Typed pipeline errors carry their own key. SDK errors (google-genai
    ``APIError`` exposes ``status`` and ``code``) are classified by status
    first, then by message text. Transport failures are network errors.
    """
    if isinstance(exc, PipelineError):
        return exc.error_key
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError)):
        return ErrorKey.NETWORK_ERROR

    status = getattr(exc, "status", None)
    if isinstance(status, str) and status in _STATUS_KEYS:
        return _STATUS_KEYS[status]
    if getattr(exc, "code", None) == 429:
        return ErrorKey.QUOTA_EXCEEDED

    message = str(exc)
    for needle, key in _MESSAGE_KEYS:
        if needle in message:
            return key

    return default


def error_payload(error: str, details: Optional[ErrorKey] = None) -> dict:
    """Build the JSON body returned for failed requests."""
    return {"error": error, "details": details.value if details is not None else None}
