"""
Course Engine Package.
Answer evaluation, question scheduling, progress tracking and result sync
for video courses with timed quiz questions.
"""

__version__ = "1.0.0"
__app_name__ = "Course Engine"

# Package metadata
__all__ = ["__version__", "__app_name__"]
