"""
Progress Tracker: locally stored unfinished quiz attempts.
"""

from .formatting import format_last_saved, format_time_remaining
from .store import ProgressStore

__all__ = ["ProgressStore", "format_time_remaining", "format_last_saved"]
