"""
Domain ports (interfaces) for Course Engine.
The engine depends on these protocols, not on a concrete remote service.
"""

from abc import abstractmethod
from typing import Protocol

from .models import Course, Question
from .schemas import AnswerEvent, EnrollmentRecord


class CourseRepository(Protocol):
    """Port for course and question data access."""

    @abstractmethod
    async def fetch_course(self, course_id: str) -> Course:
        """Get course details by ID."""
        pass

    @abstractmethod
    async def fetch_questions(self, course_id: str) -> list[Question]:
        """Get a course's questions, sorted ascending by timestamp."""
        pass


class ResultSync(Protocol):
    """Port for pushing session results to the remote service."""

    @abstractmethod
    async def submit_answer_event(self, event: AnswerEvent) -> None:
        """Store one answer event."""
        pass

    @abstractmethod
    async def submit_enrollment(self, record: EnrollmentRecord) -> object:
        """Ensure the user is enrolled in the course."""
        pass

    @abstractmethod
    def fire_answer_event(self, event: AnswerEvent) -> object:
        """Submit an answer event without waiting for the result."""
        pass
