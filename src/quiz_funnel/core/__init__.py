"""
Quiz Funnel Core Package

Shared data models and payload validation. Everything the funnel reasons
about is a frozen dataclass defined here; parsing from API payloads goes
through ``core.schemas`` first.
"""

from .models import (
    Bundle,
    Category,
    FeatureFlags,
    GradeAxis,
    IncompleteRecord,
    PaperType,
    Quiz,
    QuickQuizHandoff,
    QuizLaunchContext,
    SelectionState,
    Subject,
)

__all__ = [
    "Bundle",
    "Category",
    "FeatureFlags",
    "GradeAxis",
    "IncompleteRecord",
    "PaperType",
    "Quiz",
    "QuickQuizHandoff",
    "QuizLaunchContext",
    "SelectionState",
    "Subject",
]
