"""
Domain layer for Course Engine.
Contains ports (interfaces), models (entities and values), schemas (wire records) and errors.
"""

from .errors import (
    ConnectionFailure,
    CourseEngineError,
    DecodingFailure,
    DuplicateAnswer,
    InvalidRequest,
    InvalidSubmission,
    InvalidTime,
    MalformedAnswerKey,
    NetworkError,
    NotFound,
    ServiceUnavailable,
    SyncError,
    Timeout,
    UnsupportedQuestionType,
)
from .models import (
    AnswerKey,
    Course,
    CourseStatistics,
    EvaluationResult,
    IndexKey,
    MatchingKey,
    MatchingPair,
    Question,
    QuestionMetadata,
    QuestionType,
    SequenceKey,
    SessionProgress,
    SubmittedAnswer,
)
from .ports import CourseRepository, ResultSync
from .schemas import AnswerEvent, EnrollmentRecord, QuestionRecord

__all__ = [
    # Models (domain entities and values)
    "Question",
    "QuestionType",
    "QuestionMetadata",
    "MatchingPair",
    "AnswerKey",
    "IndexKey",
    "SequenceKey",
    "MatchingKey",
    "SubmittedAnswer",
    "EvaluationResult",
    "SessionProgress",
    "Course",
    "CourseStatistics",
    # Ports (interfaces)
    "CourseRepository",
    "ResultSync",
    # Schemas (wire records)
    "QuestionRecord",
    "AnswerEvent",
    "EnrollmentRecord",
    # Errors
    "CourseEngineError",
    "MalformedAnswerKey",
    "UnsupportedQuestionType",
    "InvalidSubmission",
    "InvalidTime",
    "DuplicateAnswer",
    "SyncError",
    "Timeout",
    "ConnectionFailure",
    "ServiceUnavailable",
    "NetworkError",
    "InvalidRequest",
    "DecodingFailure",
    "NotFound",
]
