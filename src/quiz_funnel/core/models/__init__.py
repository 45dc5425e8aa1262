"""
Core Models Package

Immutable, validated data models that serve as the single source of truth
for the quiz-selection funnel.

**DESIGN RATIONALE:**

All models in this package are frozen dataclasses. This ensures:
1. Transitions are pure: a reducer returns a new state, never mutates one
2. States compare by value, so "back restores the exact prior state" is
   checkable with ``==``
3. Safe to hand to worker threads while a request is in flight
"""

from .selection import Category, GradeAxis, PaperType, SelectionState
from .catalog import FeatureFlags, Subject
from .quizzes import (
    Bundle,
    IncompleteRecord,
    Quiz,
    QuickQuizHandoff,
    QuizLaunchContext,
)

__all__ = [
    "Category",
    "GradeAxis",
    "PaperType",
    "SelectionState",
    "FeatureFlags",
    "Subject",
    "Bundle",
    "IncompleteRecord",
    "Quiz",
    "QuickQuizHandoff",
    "QuizLaunchContext",
]
