"""
Course repository backed by the remote service's REST interface.
Fetches course details and timestamp-ordered questions with the same retry
policy the sync client uses.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import httpx

from course_engine.core.config import Settings
from course_engine.core.retry import exponential_backoff, with_retry
from course_engine.domain.errors import DecodingFailure, InvalidRequest, NotFound, SyncError, classify_error
from course_engine.domain.models import Course, Question
from course_engine.domain.schemas import ingest_questions

logger = logging.getLogger(__name__)

QUESTION_COLUMNS = (
    "id,course_id,timestamp,question,type,options,correct_answer,"
    "explanation,visual_context,frame_timestamp,metadata"
)


class SupabaseCourseRepository:
    """Repository for courses and their questions."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.base_url = settings.rest_base_url
        self.headers = settings.rest_headers()
        self._sleep = sleep
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)

    async def _get_rows(self, table: str, params: dict[str, str], name: str) -> list[dict[str, Any]]:
        async def call() -> list[dict[str, Any]]:
            response = await self.client.get(
                f"{self.base_url}/{table}", params=params, headers=self.headers
            )
            response.raise_for_status()
            rows = response.json()
            if not isinstance(rows, list):
                raise DecodingFailure(f"Expected a list of {table} rows")
            return rows

        return await with_retry(
            call,
            max_attempts=self.settings.sync_max_attempts,
            backoff=exponential_backoff(self.settings.sync_base_delay_seconds),
            should_retry=lambda e: isinstance(e, SyncError) and e.retryable,
            transform_error=classify_error,
            sleep=self._sleep,
            name=name,
        )

    async def fetch_course(self, course_id: str) -> Course:
        """
        Get course details by ID.

        Raises:
            InvalidRequest: for an empty course id
            NotFound: when no course has this id
            SyncError: for transport failures after retries
        """
        if not course_id:
            raise InvalidRequest("Invalid course ID provided")

        logger.info(f"Fetching course with ID: {course_id}")
        rows = await self._get_rows(
            "courses", {"select": "*", "id": f"eq.{course_id}", "limit": "1"}, "fetch_course"
        )
        if not rows:
            raise NotFound(f"Course {course_id} not found")

        try:
            course = Course.model_validate(rows[0])
        except ValueError as e:
            raise DecodingFailure("Failed to parse course data") from e

        logger.info(f"Fetched course: {course.title}")
        return course

    async def fetch_questions(self, course_id: str) -> list[Question]:
        """
        Get a course's questions sorted ascending by timestamp.

        Unsupported or malformed rows are dropped during ingestion.
        """
        if not course_id:
            raise InvalidRequest("Invalid course ID provided")

        logger.info(f"Fetching questions for course: {course_id}")
        rows = await self._get_rows(
            "questions",
            {"select": QUESTION_COLUMNS, "course_id": f"eq.{course_id}", "order": "timestamp.asc"},
            "fetch_questions",
        )
        questions = ingest_questions(rows)
        logger.info(f"Fetched {len(questions)} questions for course {course_id}")
        return questions

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            await self.client.aclose()
