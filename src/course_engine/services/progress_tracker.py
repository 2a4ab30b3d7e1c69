"""
Progress tracker for Course Engine.
Single owner of a session's progress state. In-memory only, no I/O.
"""

import logging
import math
from collections.abc import Callable
from numbers import Real
from typing import Optional

from course_engine.core.observability import ObservabilityService, get_observability_service
from course_engine.domain.errors import DuplicateAnswer, InvalidTime
from course_engine.domain.models import EvaluationResult, SessionProgress

logger = logging.getLogger(__name__)

ProgressListener = Callable[["ProgressTracker"], None]


class ProgressTracker:
    """Accumulates answers, skips and video time for one session."""

    def __init__(self, observability: Optional[ObservabilityService] = None):
        self._progress = SessionProgress()
        self._listeners: list[ProgressListener] = []
        self.observability = observability or get_observability_service()

    @property
    def progress(self) -> SessionProgress:
        return self._progress

    @property
    def correct_count(self) -> int:
        return self._progress.correct_count

    @property
    def current_video_time_seconds(self) -> float:
        return self._progress.current_video_time_seconds

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """
        Register a callback invoked after every successful mutation.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Progress listener failed: {e}")

    def record_time(self, seconds: float) -> None:
        """Update the current video time. Raises InvalidTime for negative or non-finite values."""
        if isinstance(seconds, bool) or not isinstance(seconds, Real):
            raise InvalidTime(f"Video time must be a number, got {seconds!r}")
        if not math.isfinite(seconds) or seconds < 0:
            raise InvalidTime(f"Video time must be finite and non-negative, got {seconds!r}")

        self._progress.current_video_time_seconds = float(seconds)
        self._notify()

    def _ensure_unanswered(self, question_id: str) -> None:
        if question_id in self._progress.answered_question_ids:
            logger.warning(f"Rejected duplicate answer for question {question_id}")
            raise DuplicateAnswer(question_id)

    def record_answer(self, question_id: str, evaluation: EvaluationResult) -> None:
        """Record an evaluated answer. Raises DuplicateAnswer if already answered or skipped."""
        self._ensure_unanswered(question_id)

        self._progress.answered_question_ids.add(question_id)
        self._progress.per_question_result[question_id] = evaluation.is_correct
        if evaluation.is_correct:
            self._progress.correct_count += 1

        self.observability.record_answer("correct" if evaluation.is_correct else "incorrect")
        logger.info(f"Recorded answer for question {question_id}: correct={evaluation.is_correct}")
        self._notify()

    def record_skip(self, question_id: str) -> None:
        """Record a skipped question as incorrect. Raises DuplicateAnswer if already answered."""
        self._ensure_unanswered(question_id)

        self._progress.answered_question_ids.add(question_id)
        self._progress.skipped_question_ids.add(question_id)
        self._progress.per_question_result[question_id] = False

        self.observability.record_answer("skipped")
        logger.info(f"Recorded skip for question {question_id}")
        self._notify()

    def total_answered(self) -> int:
        return len(self._progress.answered_question_ids)

    def success_rate(self) -> float:
        """Fraction of answered questions that were correct; 0.0 when nothing is answered."""
        answered = self.total_answered()
        if answered == 0:
            return 0.0
        return self._progress.correct_count / answered

    def is_answered(self, question_id: str) -> bool:
        return question_id in self._progress.answered_question_ids

    def was_skipped(self, question_id: str) -> bool:
        return question_id in self._progress.skipped_question_ids

    def result_for(self, question_id: str) -> Optional[bool]:
        return self._progress.per_question_result.get(question_id)

    def snapshot(self) -> SessionProgress:
        """Independent copy of the current progress."""
        return self._progress.model_copy(deep=True)

    def reset(self) -> None:
        """Discard all progress and start over at time zero."""
        logger.info("Resetting course progress")
        self._progress = SessionProgress()
        self._notify()
