"""
Repositories package for Course Engine.
Contains the data access layer for courses and questions.
"""

from .supabase_course_repository import SupabaseCourseRepository

__all__ = ["SupabaseCourseRepository"]
