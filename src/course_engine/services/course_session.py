"""
Course session for Course Engine.

Wires the answer codec, question scheduler, progress tracker and sync client
into the flow a UI layer drives: time updates surface at most one question,
answers and skips are evaluated and recorded once, and results are synced in
the background.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Optional

from course_engine.core.config import get_settings
from course_engine.domain.errors import InvalidSubmission
from course_engine.domain.models import (
    Course,
    CourseStatistics,
    EvaluationResult,
    Payload,
    Question,
    SubmittedAnswer,
    format_timestamp,
)
from course_engine.domain.ports import CourseRepository, ResultSync
from course_engine.domain.schemas import AnswerEvent, EnrollmentRecord

from .answer_codec import AnswerCodec
from .progress_tracker import ProgressTracker
from .question_scheduler import QuestionScheduler

logger = logging.getLogger(__name__)


class CourseSession:
    """One continuous playback interaction with a course."""

    def __init__(
        self,
        course_id: str,
        questions: Sequence[Question],
        sync: Optional[ResultSync] = None,
        user_id: Optional[str] = None,
        course: Optional[Course] = None,
        codec: Optional[AnswerCodec] = None,
        tracker: Optional[ProgressTracker] = None,
    ):
        self.course_id = course_id
        self.course = course
        self.questions = list(questions)
        self.sync = sync
        self.user_id = user_id or get_settings().default_user_id
        self.codec = codec or AnswerCodec()
        self.tracker = tracker or ProgressTracker()
        self._presentable = {q.id for q in self.questions if self.codec.is_presentable(q)}
        self.scheduler = QuestionScheduler(is_presentable=lambda q: q.id in self._presentable)
        self.duration_seconds = 0.0
        self._current: Optional[Question] = None

    @classmethod
    async def load(
        cls,
        repository: CourseRepository,
        course_id: str,
        sync: Optional[ResultSync] = None,
        user_id: Optional[str] = None,
    ) -> "CourseSession":
        """Fetch the course and its questions concurrently and start a session."""
        logger.info(f"Loading course data for ID: {course_id}")
        course, questions = await asyncio.gather(
            repository.fetch_course(course_id), repository.fetch_questions(course_id)
        )
        logger.info(f"Loaded course '{course.title}' with {len(questions)} questions")
        if not questions:
            logger.warning(f"No questions found for course {course_id}")
        return cls(course_id, questions, sync=sync, user_id=user_id, course=course)

    async def enroll(self):
        """Ensure the user is enrolled before playback starts. Returns the sync result."""
        if self.sync is None:
            return None
        return await self.sync.submit_enrollment(
            EnrollmentRecord(user_id=self.user_id, course_id=self.course_id)
        )

    @property
    def current_question(self) -> Optional[Question]:
        return self._current

    def update_video_time(self, seconds: float) -> Optional[Question]:
        """
        Record playback time and return the question to show, if any.

        While a question is shown no new scheduling decision is made.
        """
        self.tracker.record_time(seconds)
        if self._current is None:
            self._current = self.scheduler.next_due_question(self.questions, self.tracker.progress)
        return self._current

    def update_video_duration(self, seconds: float) -> None:
        self.duration_seconds = seconds
        logger.debug(f"Video duration updated: {format_timestamp(seconds)}")

    def _require_current(self) -> Question:
        if self._current is None:
            raise InvalidSubmission("No question is currently shown")
        return self._current

    def submit(self, payload: Payload, response_time_ms: Optional[int] = None) -> EvaluationResult:
        """Evaluate and record an answer to the current question."""
        question = self._require_current()
        if payload is None:
            return self.skip(response_time_ms)

        submitted = SubmittedAnswer(
            question_id=question.id,
            type=question.type,
            payload=payload,
            response_time_ms=response_time_ms,
        )
        evaluation = self.codec.evaluate(question, submitted)
        self.tracker.record_answer(question.id, evaluation)
        self._send(question, evaluation, response_time_ms)
        return evaluation

    def skip(self, response_time_ms: Optional[int] = None) -> EvaluationResult:
        """Skip the current question; it counts as incorrect."""
        question = self._require_current()
        evaluation = self.codec.evaluate(question, SubmittedAnswer.skip(question, response_time_ms))
        self.tracker.record_skip(question.id)
        self._send(question, evaluation, response_time_ms)
        return evaluation

    def _send(self, question: Question, evaluation: EvaluationResult, response_time_ms: Optional[int]) -> None:
        if self.sync is None:
            return
        self.sync.fire_answer_event(
            AnswerEvent(
                user_id=self.user_id,
                question_id=question.id,
                course_id=self.course_id,
                selected_answer=evaluation.normalized_answer_text,
                is_correct=evaluation.is_correct,
                response_time_ms=response_time_ms,
            )
        )

    def continue_video(self) -> None:
        """Dismiss the current question so playback and scheduling resume."""
        logger.info("Continuing video after question")
        self._current = None

    @property
    def progress_percentage(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.tracker.current_video_time_seconds / self.duration_seconds * 100

    def statistics(self) -> CourseStatistics:
        return CourseStatistics(
            total_questions=len(self.questions),
            answered_questions=self.tracker.total_answered(),
            correct_answers=self.tracker.correct_count,
            duration=format_timestamp(self.duration_seconds),
            progress=self.progress_percentage,
        )

    def reset(self) -> None:
        """Start the course over (progress, current question and time)."""
        self.tracker.reset()
        self._current = None
