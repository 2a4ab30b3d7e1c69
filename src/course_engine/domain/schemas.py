"""
Wire records (DTOs) for the remote data service.
Field names follow the service's JSON schema; conversion to domain models
happens here so unsupported or malformed records never reach the engine.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import UnsupportedQuestionType
from .models import TRUE_FALSE_OPTIONS, Question, QuestionMetadata, QuestionType

logger = logging.getLogger(__name__)


def _decode_json_string(value: Any) -> Any:
    """Accept JSON values that the service sometimes sends as encoded strings."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None
    return value


class QuestionRecord(BaseModel):
    """Question row as returned by the ``questions`` table."""

    id: str
    course_id: str
    timestamp: int = Field(..., ge=0)
    question: str
    type: str
    options: Optional[list[str]] = None
    correct_answer: str
    explanation: Optional[str] = None
    visual_context: Optional[str] = None
    frame_timestamp: Optional[int] = None
    metadata: Optional[QuestionMetadata] = None

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _stringify_answer(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("options", mode="before")
    @classmethod
    def _parse_options(cls, value: Any) -> Any:
        value = _decode_json_string(value)
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            return None
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def _parse_metadata(cls, value: Any) -> Any:
        value = _decode_json_string(value)
        if not isinstance(value, dict):
            return None
        try:
            return QuestionMetadata.model_validate(value)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable question metadata: {e.error_count()} errors")
            return None

    def to_question(self) -> Question:
        """Convert to a domain Question. Raises UnsupportedQuestionType for unknown types."""
        question_type = QuestionType.parse(self.type)

        options = self.options
        if question_type is QuestionType.TRUE_FALSE:
            options = list(TRUE_FALSE_OPTIONS)

        return Question(
            id=self.id,
            course_id=self.course_id,
            timestamp_seconds=float(self.timestamp),
            prompt=self.question,
            type=question_type,
            raw_options=tuple(options) if options is not None else None,
            raw_correct_answer=self.correct_answer,
            explanation=self.explanation,
            type_metadata=self.metadata,
            visual_context=self.visual_context,
            frame_timestamp=self.frame_timestamp,
        )


def ingest_questions(rows: Iterable[dict[str, Any]]) -> list[Question]:
    """
    Decode raw question rows into domain questions.

    Rows that fail validation or carry an unsupported type are dropped with a
    warning. The result is sorted ascending by timestamp, keeping service order
    for equal timestamps.
    """
    questions: list[Question] = []

    for row in rows:
        row_id = row.get("id", "<unknown>") if isinstance(row, dict) else "<unknown>"
        try:
            questions.append(QuestionRecord.model_validate(row).to_question())
        except UnsupportedQuestionType as e:
            logger.warning(f"Skipping question {row_id}: {e}")
        except ValidationError as e:
            logger.warning(f"Skipping question {row_id}: failed validation ({e.error_count()} errors)")

    questions.sort(key=lambda q: q.timestamp_seconds)
    logger.info(f"Ingested {len(questions)} questions")
    return questions


def selected_answer_value(normalized_answer_text: str) -> int:
    """Integer stored in ``selected_answer``: the text's value when numeric, else 0."""
    try:
        return int(normalized_answer_text.strip())
    except ValueError:
        return 0


class AnswerEvent(BaseModel):
    """A user's answer to one question, sent to ``user_question_responses``."""

    user_id: str
    question_id: str
    course_id: str
    selected_answer: str = Field(..., description="Normalized answer text")
    is_correct: bool
    response_time_ms: Optional[int] = Field(None, ge=0)

    def to_insert_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "question_id": self.question_id,
            "selected_answer": selected_answer_value(self.selected_answer),
            "is_correct": self.is_correct,
            "response_time_ms": self.response_time_ms or 0,
        }


class EnrollmentRecord(BaseModel):
    """New enrollment of a user in a course, sent to ``user_course_enrollments``."""

    user_id: str
    course_id: str
    progress_percentage: int = 0
    current_question_index: int = 0
    total_questions_answered: int = 0
    total_questions_correct: int = 0

    def to_insert_payload(self) -> dict[str, Any]:
        return self.model_dump()
