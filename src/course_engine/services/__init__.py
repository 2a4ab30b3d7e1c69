"""
Services package for Course Engine.
Contains the answer codec, question scheduler, progress tracker, sync client
and the course session that wires them together.
"""

from .answer_codec import AnswerCodec
from .course_session import CourseSession
from .progress_tracker import ProgressTracker
from .question_scheduler import QuestionScheduler, QuestionState
from .sync_client import EnrollmentResult, SyncClient

__all__ = [
    "AnswerCodec",
    "QuestionScheduler",
    "QuestionState",
    "ProgressTracker",
    "SyncClient",
    "EnrollmentResult",
    "CourseSession",
]
