"""
Error taxonomy for Course Engine.

Local errors (answer keys, time updates, duplicate answers) are raised
synchronously and handled by the immediate caller. Sync errors come out of the
network layer and carry a ``retryable`` flag the retry utility consults.
"""

import json
from typing import Optional

import httpx
from pydantic import ValidationError


class CourseEngineError(Exception):
    """Base class for all engine errors."""


class MalformedAnswerKey(CourseEngineError, ValueError):
    """A question's correct-answer field cannot be read for its declared type."""

    def __init__(self, question_id: str, raw_answer: str, reason: str):
        self.question_id = question_id
        self.raw_answer = raw_answer
        self.reason = reason
        super().__init__(f"Malformed answer key for question {question_id}: {reason} ({raw_answer!r})")


class UnsupportedQuestionType(CourseEngineError, ValueError):
    """Raised at ingestion for question types the engine does not handle."""

    def __init__(self, raw_type: str):
        self.raw_type = raw_type
        super().__init__(f"Unsupported question type: {raw_type!r}")


class InvalidSubmission(CourseEngineError, ValueError):
    """Submitted payload does not fit the question it targets."""


class InvalidTime(CourseEngineError, ValueError):
    """Video time is negative, NaN, infinite or not a number."""


class DuplicateAnswer(CourseEngineError):
    """A second answer or skip was recorded for the same question."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question {question_id} has already been answered")


class SyncError(CourseEngineError):
    """Failure talking to the remote data service."""

    retryable: bool = False
    default_message: str = "Synchronization failed"
    recovery_suggestion: Optional[str] = None

    def __init__(self, message: Optional[str] = None, *, retryable: Optional[bool] = None):
        self.message = message or self.default_message
        if retryable is not None:
            self.retryable = retryable
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class Timeout(SyncError):
    retryable = True
    default_message = "Request timed out. Please check your internet connection and try again."
    recovery_suggestion = (
        "Check your internet connection and try again. "
        "If the problem persists, the server may be experiencing issues."
    )


class ConnectionFailure(SyncError):
    retryable = True
    default_message = "Unable to connect to the server. Please check your internet connection."
    recovery_suggestion = Timeout.recovery_suggestion


class ServiceUnavailable(SyncError):
    retryable = True
    default_message = "Service is currently unavailable. Please try again later."
    recovery_suggestion = "The service is temporarily unavailable. Please try again in a few minutes."


class NetworkError(SyncError):
    retryable = True
    default_message = "Network error"
    recovery_suggestion = "Please try again. If the problem continues, contact support."

    def __init__(self, message: Optional[str] = None, *, retryable: Optional[bool] = None):
        super().__init__(f"Network error: {message}" if message else None, retryable=retryable)


class InvalidRequest(SyncError):
    default_message = "Invalid request"


class DecodingFailure(SyncError):
    default_message = "Data parsing error"


class NotFound(SyncError):
    default_message = "Requested record was not found"


_TERMINAL_STATUS = {400: InvalidRequest, 401: InvalidRequest, 403: InvalidRequest, 404: NotFound}
_UNAVAILABLE_STATUS = {502, 503, 504}


def _classify_message(message: str) -> SyncError:
    text = message.lower()

    # Auth and bad-request failures will not be fixed by retrying
    if any(m in text for m in ("unauthorized", "forbidden", "bad request", "401", "403", "400")):
        return InvalidRequest(message)
    if "404" in text or "not found" in text:
        return NotFound(message)

    if "timed out" in text or "timeout" in text:
        return Timeout()
    if "connection" in text or "network" in text:
        return ConnectionFailure()
    if "unavailable" in text or any(code in text for code in ("502", "503", "504")):
        return ServiceUnavailable()
    if "temporary" in text or "retry" in text:
        return NetworkError(message)

    return NetworkError(message, retryable=False)


def classify_error(exc: BaseException) -> SyncError:
    """Map a raw transport or decoding error to the SyncError taxonomy."""
    if isinstance(exc, SyncError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return Timeout()
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in _TERMINAL_STATUS:
            return _TERMINAL_STATUS[status](f"HTTP {status}: {exc.response.text[:200]}")
        if status in _UNAVAILABLE_STATUS:
            return ServiceUnavailable()
        if status >= 500:
            return NetworkError(f"HTTP {status}")
        return InvalidRequest(f"HTTP {status}")
    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
        return ConnectionFailure()
    if isinstance(exc, (json.JSONDecodeError, ValidationError, httpx.DecodingError, ValueError)):
        return DecodingFailure(f"Data parsing error: {exc}")

    return _classify_message(str(exc))


def user_message(exc: BaseException) -> str:
    """Friendly text for an error surfaced to the UI layer."""
    if isinstance(exc, Timeout):
        return "The request timed out. Please check your internet connection and try again."
    if isinstance(exc, ConnectionFailure):
        return "Unable to connect to the server. Please check your internet connection and try again."
    if isinstance(exc, ServiceUnavailable):
        return "The service is temporarily unavailable. Please try again in a few minutes."
    if isinstance(exc, InvalidRequest):
        return "Invalid course. Please try a different course."
    if isinstance(exc, NotFound):
        return "No course content was found. Please try a different course."
    if isinstance(exc, DecodingFailure):
        return "There was an issue loading the course content. Please try again."
    if isinstance(exc, SyncError):
        return exc.message
    return "An unexpected error occurred. Please try again later."
