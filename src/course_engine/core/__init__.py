"""
Core package for Course Engine.
Contains configuration, observability, and the retry utility.
"""

from .config import Settings, get_settings, validate_settings

__all__ = [
    "Settings",
    "get_settings",
    "validate_settings",
]
