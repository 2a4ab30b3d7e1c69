"""
Sync client for Course Engine.
Pushes answer events and enrollments to the remote data service with
bounded retry-with-backoff and error classification.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Optional, TypeVar

import httpx

from course_engine.core.config import Settings
from course_engine.core.observability import ObservabilityService, get_observability_service
from course_engine.core.retry import exponential_backoff, with_retry
from course_engine.domain.errors import DecodingFailure, InvalidRequest, SyncError, classify_error
from course_engine.domain.schemas import AnswerEvent, EnrollmentRecord

T = TypeVar("T")

logger = logging.getLogger(__name__)

RESPONSES_TABLE = "user_question_responses"
ENROLLMENTS_TABLE = "user_course_enrollments"


class EnrollmentResult(str, Enum):
    CREATED = "created"
    ALREADY_ENROLLED = "already_enrolled"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, SyncError) and error.retryable


def _require(value: str, field: str) -> None:
    if not value or not value.strip():
        raise InvalidRequest(f"Missing {field}")


class SyncClient:
    """Async client for storing session results on the remote service."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        observability: Optional[ObservabilityService] = None,
    ):
        self.settings = settings
        self.base_url = settings.rest_base_url
        self.headers = settings.rest_headers()
        self.max_attempts = settings.sync_max_attempts
        self.backoff = exponential_backoff(settings.sync_base_delay_seconds)
        self.observability = observability or get_observability_service()
        self._sleep = sleep
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)
        self._pending: set[asyncio.Task] = set()

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _run(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run one logical sync operation under the retry policy."""
        started = time.perf_counter()
        try:
            return await with_retry(
                call,
                max_attempts=self.max_attempts,
                backoff=self.backoff,
                should_retry=_is_retryable,
                transform_error=classify_error,
                sleep=self._sleep,
                on_attempt=lambda _: self.observability.record_sync_attempt(operation),
                name=operation,
            )
        except SyncError as e:
            self.observability.record_sync_failure(operation, e.kind)
            logger.error(f"{operation} failed: {e}")
            raise
        finally:
            self.observability.record_sync_duration(operation, time.perf_counter() - started)

    async def submit_answer_event(self, event: AnswerEvent) -> None:
        """
        Store one answer event.

        Raises:
            SyncError: when the event cannot be stored within the retry budget
        """
        _require(event.user_id, "user_id")
        _require(event.question_id, "question_id")

        async def call() -> None:
            response = await self.client.post(
                f"{self.base_url}/{RESPONSES_TABLE}",
                json=event.to_insert_payload(),
                headers={**self.headers, "Prefer": "return=minimal"},
            )
            response.raise_for_status()

        logger.info(f"Tracking question response for question {event.question_id}")
        await self._run("answer_event", call)
        logger.info(f"Tracked question response for question {event.question_id}")

    async def submit_enrollment(self, record: EnrollmentRecord) -> EnrollmentResult:
        """
        Enroll a user in a course unless an enrollment already exists.

        Callers gating course start must await this.

        Raises:
            SyncError: when enrollment cannot be confirmed within the retry budget
        """
        _require(record.user_id, "user_id")
        _require(record.course_id, "course_id")

        async def call() -> EnrollmentResult:
            existing = await self.client.get(
                f"{self.base_url}/{ENROLLMENTS_TABLE}",
                params={
                    "select": "id",
                    "user_id": f"eq.{record.user_id}",
                    "course_id": f"eq.{record.course_id}",
                },
                headers=self.headers,
            )
            existing.raise_for_status()
            rows = existing.json()
            if not isinstance(rows, list):
                raise DecodingFailure("Enrollment lookup did not return a list")
            if rows:
                return EnrollmentResult.ALREADY_ENROLLED

            created = await self.client.post(
                f"{self.base_url}/{ENROLLMENTS_TABLE}",
                json=record.to_insert_payload(),
                headers={**self.headers, "Prefer": "return=minimal"},
            )
            created.raise_for_status()
            return EnrollmentResult.CREATED

        logger.info(f"Tracking enrollment for user {record.user_id} in course {record.course_id}")
        result = await self._run("enrollment", call)
        logger.info(f"Enrollment for user {record.user_id} in course {record.course_id}: {result.value}")
        return result

    async def _submit_quietly(self, event: AnswerEvent) -> None:
        try:
            await self.submit_answer_event(event)
        except SyncError as e:
            logger.warning(f"Failed to track question response for {event.question_id}: {e}")

    def fire_answer_event(self, event: AnswerEvent) -> Optional[asyncio.Task]:
        """
        Submit an answer event in the background.

        Failures are logged, never raised. Without a running event loop the
        event is dropped and None is returned.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, dropping response for question {event.question_id}")
            return None
        task = asyncio.create_task(self._submit_quietly(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all background submissions to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def check_connection(self) -> bool:
        """Whether the remote service currently answers queries."""
        status = await self.observability.check_connection(self.client, self.base_url, self.headers)
        return bool(status["healthy"])

    async def aclose(self) -> None:
        """Abandon in-flight submissions and close the HTTP client."""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info(f"Abandoned {len(pending)} in-flight answer submissions")
        if self._owns_client:
            await self.client.aclose()
