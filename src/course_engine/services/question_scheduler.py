"""
Question scheduler for Course Engine.
Decides which question, if any, should interrupt playback. Pure queries only.
"""

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Optional

from course_engine.domain.models import Question, SessionProgress

logger = logging.getLogger(__name__)


class QuestionState(str, Enum):
    PENDING = "pending"
    DUE = "due"
    ANSWERED = "answered"
    SKIPPED = "skipped"


class QuestionScheduler:
    """Selects the next due question from a timestamp-sorted question list."""

    def __init__(self, is_presentable: Optional[Callable[[Question], bool]] = None):
        self.is_presentable = is_presentable

    def state_of(self, question: Question, progress: SessionProgress) -> QuestionState:
        """Lifecycle state of one question for the given progress."""
        if question.id in progress.skipped_question_ids:
            return QuestionState.SKIPPED
        if question.id in progress.answered_question_ids:
            return QuestionState.ANSWERED
        if progress.current_video_time_seconds >= question.timestamp_seconds:
            return QuestionState.DUE
        return QuestionState.PENDING

    def next_due_question(
        self, questions: Sequence[Question], progress: SessionProgress
    ) -> Optional[Question]:
        """
        Return the first due, unanswered question in list order.

        The list is expected to be sorted ascending by timestamp, so the first
        match is the earliest one. Questions rejected by ``is_presentable`` are
        never returned.
        """
        for question in questions:
            if self.state_of(question, progress) is not QuestionState.DUE:
                continue
            if self.is_presentable is not None and not self.is_presentable(question):
                continue
            logger.info(
                f"Question {question.id} due at {progress.current_video_time_seconds}s "
                f"(trigger {question.timestamp_seconds}s)"
            )
            return question
        return None
