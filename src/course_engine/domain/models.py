"""
Domain models for Course Engine.
Core entities and values separate from the remote service's wire records.
"""

import re
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnsupportedQuestionType

TRUE_FALSE_OPTIONS = ("True", "False")

LEFT_ID_PREFIX = "L"
RIGHT_ID_PREFIX = "R"

_VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/watch\?.*v=([^&\n?#]+)"),
]


class QuestionType(str, Enum):
    """Closed set of question types the engine evaluates."""

    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SEQUENCING = "sequencing"
    MATCHING = "matching"

    @classmethod
    def parse(cls, raw: str) -> "QuestionType":
        """Normalize a type string from the remote service ("True-False" -> TRUE_FALSE)."""
        normalized = (raw or "").strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedQuestionType(raw) from None


class MatchingPair(BaseModel):
    """One left/right pair of a matching question."""

    model_config = ConfigDict(frozen=True)

    left: str
    right: str


class QuestionMetadata(BaseModel):
    """Type-specific payload attached to a question."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    requires_video_overlay: Optional[bool] = None
    video_overlay: Optional[bool] = None

    # Sequencing
    sequence_items: Optional[tuple[str, ...]] = None
    sequence_type: Optional[str] = None

    # Matching
    matching_pairs: Optional[tuple[MatchingPair, ...]] = None
    relationship_type: Optional[str] = None


class Question(BaseModel):
    """Immutable question record, constructed once from a decoded remote record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique question identifier")
    course_id: str = Field(..., description="Owning course identifier")
    timestamp_seconds: float = Field(..., ge=0, description="Video time that triggers the question")
    prompt: str = Field(..., description="Question text")
    type: QuestionType = Field(..., description="Question type")
    raw_options: Optional[tuple[str, ...]] = Field(None, description="Options as sent by the service")
    raw_correct_answer: str = Field(..., description="Correct answer, encoding depends on type")
    explanation: Optional[str] = Field(None, description="Explanation shown after answering")
    type_metadata: Optional[QuestionMetadata] = Field(None, description="Type-specific payload")
    visual_context: Optional[str] = Field(None, description="Visual context hint")
    frame_timestamp: Optional[int] = Field(None, description="Frame the question refers to")

    @property
    def sequence_items(self) -> list[str]:
        if self.type is not QuestionType.SEQUENCING or self.type_metadata is None:
            return []
        return list(self.type_metadata.sequence_items or ())

    @property
    def matching_pairs(self) -> list[MatchingPair]:
        if self.type is not QuestionType.MATCHING or self.type_metadata is None:
            return []
        return list(self.type_metadata.matching_pairs or ())

    @property
    def left_items(self) -> list[str]:
        return [pair.left for pair in self.matching_pairs]

    @property
    def right_items(self) -> list[str]:
        # Presentation layers shuffle these; ids stay tied to this order.
        return [pair.right for pair in self.matching_pairs]

    @property
    def options(self) -> list[str]:
        """Options a UI can present for this question."""
        if self.type is QuestionType.TRUE_FALSE:
            return list(TRUE_FALSE_OPTIONS)
        if self.type is QuestionType.SEQUENCING:
            return self.sequence_items
        if self.type is QuestionType.MATCHING:
            return self.left_items + self.right_items
        return list(self.raw_options or ())

    @property
    def has_presentable_options(self) -> bool:
        return len(self.options) > 0

    def matching_item_ids(self) -> tuple[dict[str, str], dict[str, str]]:
        """Return (left id -> content, right id -> content) for matching questions."""
        left = {f"{LEFT_ID_PREFIX}{i}": item for i, item in enumerate(self.left_items)}
        right = {f"{RIGHT_ID_PREFIX}{i}": item for i, item in enumerate(self.right_items)}
        return left, right


class IndexKey(BaseModel):
    """Answer key for multiple choice and true/false questions."""

    model_config = ConfigDict(frozen=True)

    index: int


class SequenceKey(BaseModel):
    """Answer key for sequencing questions: original item indices in correct order."""

    model_config = ConfigDict(frozen=True)

    order: tuple[int, ...]


class MatchingKey(BaseModel):
    """Answer key for matching questions: the set of (left, right) contents."""

    model_config = ConfigDict(frozen=True)

    pairs: frozenset[tuple[str, str]]

    @property
    def total_pairs(self) -> int:
        return len(self.pairs)


AnswerKey = Union[IndexKey, SequenceKey, MatchingKey]

Payload = Union[int, list[int], dict[str, str], None]


class SubmittedAnswer(BaseModel):
    """A user's response as produced by the UI layer. ``payload=None`` is a skip."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    type: QuestionType
    payload: Payload = None
    response_time_ms: Optional[int] = Field(None, ge=0)

    @property
    def is_skip(self) -> bool:
        return self.payload is None

    @classmethod
    def skip(cls, question: Question, response_time_ms: Optional[int] = None) -> "SubmittedAnswer":
        return cls(
            question_id=question.id,
            type=question.type,
            payload=None,
            response_time_ms=response_time_ms,
        )


class EvaluationResult(BaseModel):
    """Outcome of checking one submission."""

    model_config = ConfigDict(frozen=True)

    is_correct: bool
    normalized_answer_text: str


SKIPPED_ANSWER_TEXT = "skipped"


class SessionProgress(BaseModel):
    """Per-session progress state. Mutated only through ProgressTracker."""

    answered_question_ids: set[str] = Field(default_factory=set)
    skipped_question_ids: set[str] = Field(default_factory=set)
    correct_count: int = 0
    per_question_result: dict[str, bool] = Field(default_factory=dict)
    current_video_time_seconds: float = 0.0


class Course(BaseModel):
    """Course details from the remote service."""

    id: str
    title: str
    description: str = ""
    youtube_url: str = ""
    created_at: str = ""
    published: bool = False

    @property
    def video_id(self) -> str:
        """Extract the YouTube video id from watch, short or embed URLs."""
        for pattern in _VIDEO_ID_PATTERNS:
            match = pattern.search(self.youtube_url)
            if match:
                return match.group(1)
        return ""


def format_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS."""
    total = int(seconds)
    return f"{total // 60:02d}:{total % 60:02d}"


class CourseStatistics(BaseModel):
    """Summary numbers for a course session."""

    total_questions: int
    answered_questions: int
    correct_answers: int
    duration: str
    progress: float

    @property
    def success_rate(self) -> float:
        """Percentage of answered questions that were correct."""
        if self.answered_questions <= 0:
            return 0.0
        return self.correct_answers / self.answered_questions * 100

    @property
    def has_questions(self) -> bool:
        return self.total_questions > 0
