"""
Module: funnel.options

Purpose:
    Derive the selectable options for every funnel screen. All functions
    are pure over (state, feature flags, subject catalog); nothing here is
    stored on the state, so an option that is not offered cannot be chosen
    without the reducer noticing.

Key Functions:
    - category_options(): Categories with their enabled flag
    - subject_options(): Active catalog subjects for the current band
    - paper_type_options(): Legal paper types for the current axes
    - topic_options(): Lessonwise topics for the current subject
    - requires_term(): Whether the grade path must pass the term chooser

Key Classes:
    - Option: (value, label, enabled) triple rendered by choosers

Dependencies:
    - quiz_funnel.core.models: SelectionState, Category, PaperType, Subject
    - quiz_funnel.common.subjects: Built-in fallback lists

Used By:
    - quiz_funnel.funnel.transitions: Legality checks
    - quiz_funnel.funnel.screens: Term routing
    - quiz_funnel.funnel.controller: View building
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from quiz_funnel.common.subjects import (
    BAND_GRADE_6_9,
    BAND_GRADE_10_11,
    BAND_GRADE_12_13,
    BAND_SCHOLARSHIP,
    GRADES,
    MEDIUMS,
    TERMS,
    fallback_subjects,
    lessonwise_topics,
)
from quiz_funnel.core.models import Category, FeatureFlags, PaperType, SelectionState, Subject

logger = logging.getLogger(__name__)

_GRADE_RE = re.compile(r"^(?:grade-)?(\d{1,2})$")

TERM_GRADE_RANGE = (6, 13)
TERM_PAPER_TYPES = frozenset({PaperType.MODEL_PAPERS, PaperType.SCHOOL_PAPERS})

_CATEGORY_LABELS = {
    Category.SCHOLARSHIP: "Scholarship Grade 5",
    Category.ADVANCED_LEVEL: "A/L",
    Category.ORDINARY_LEVEL: "O/L",
}

_PAPER_TYPE_LABELS = {
    PaperType.PAST_PAPERS: "Past Papers",
    PaperType.MODEL_PAPERS: "Model Papers",
    PaperType.SCHOOL_PAPERS: "School Papers",
    PaperType.LESSONWISE: "Lessonwise Select",
    PaperType.QUICK_QUIZ: "Quick Quiz",
}


@dataclass(frozen=True)
class Option:
    """A selectable entry on a chooser screen."""

    value: str
    label: str
    enabled: bool = True


# ─────────────────────────────────────────────────────────────────────────────
# Grade helpers
# ─────────────────────────────────────────────────────────────────────────────

def grade_number(grade: str) -> Optional[int]:
    """
    Numeric grade from a grade key.

    Example:
        >>> grade_number("grade-8")
        8
        >>> grade_number("kindergarten") is None
        True
    """
    match = _GRADE_RE.match((grade or "").strip().lower())
    return int(match.group(1)) if match else None


def grade_band(number: Optional[int]) -> Optional[str]:
    """
    Catalog band for a numeric grade.

    Grades below 6 share the general "Grade 6-9" list; grades outside
    1-13 have no band.
    """
    if number is None or number < 1 or number > 13:
        return None
    if number <= 9:
        return BAND_GRADE_6_9
    if number <= 11:
        return BAND_GRADE_10_11
    return BAND_GRADE_12_13


def category_band(category: Category) -> str:
    """Catalog band backing a category track."""
    if category is Category.SCHOLARSHIP:
        return BAND_SCHOLARSHIP
    if category is Category.ADVANCED_LEVEL:
        return BAND_GRADE_12_13
    if category is Category.ORDINARY_LEVEL:
        return BAND_GRADE_10_11
    raise AssertionError(f"Unhandled category: {category!r}")


def implied_grade(category: Category) -> str:
    """Grade key the resolver expects for a category track."""
    if category is Category.SCHOLARSHIP:
        return "grade-5"
    if category is Category.ADVANCED_LEVEL:
        return "grade-12"
    if category is Category.ORDINARY_LEVEL:
        return "grade-11"
    raise AssertionError(f"Unhandled category: {category!r}")


def in_term_grade_range(state: SelectionState) -> bool:
    """True on the grade path when the numeric grade is within 6-13."""
    if not state.on_grade_path:
        return False
    number = grade_number(state.grade)
    low, high = TERM_GRADE_RANGE
    return number is not None and low <= number <= high


def requires_term(state: SelectionState) -> bool:
    """Whether the chosen paper type routes through the term chooser."""
    return in_term_grade_range(state) and state.paper_type in TERM_PAPER_TYPES


# ─────────────────────────────────────────────────────────────────────────────
# Option derivation
# ─────────────────────────────────────────────────────────────────────────────

def category_label(category: Optional[Category]) -> str:
    return _CATEGORY_LABELS[category] if category else "Select by Grade"


def category_options(flags: FeatureFlags) -> Tuple[Option, ...]:
    """Every category, flagged enabled/disabled ("coming soon") per the snapshot."""
    return tuple(
        Option(value=category.value, label=_CATEGORY_LABELS[category], enabled=flags.is_enabled(category))
        for category in Category
    )


def grade_options() -> Tuple[Option, ...]:
    return tuple(Option(value=g, label=f"Grade {grade_number(g)}") for g in GRADES)


def medium_options() -> Tuple[Option, ...]:
    return tuple(Option(value=v, label=label) for v, label in MEDIUMS)


# The category paths use the same vocabulary under a different field
language_options = medium_options


def subject_band(state: SelectionState) -> Optional[str]:
    """Catalog band whose subjects apply to the current state."""
    if state.category is not None:
        return category_band(state.category)
    return grade_band(grade_number(state.grade))


def subject_options(state: SelectionState, subjects: Sequence[Subject]) -> List[Subject]:
    """
    Subjects offered for the current state.

    Catalog entries of the band are filtered by ``is_active`` and sorted
    by ``display_order`` (then name). If the catalog has no active entry
    for the band the built-in list for that band is used instead.

    Scholarship has no subject axis and always yields an empty list.

    Args:
        state: Current selection
        subjects: Catalog snapshot (may be empty)

    Returns:
        Ordered subjects; empty when no band applies
    """
    if state.category is Category.SCHOLARSHIP:
        return []
    band = subject_band(state)
    if band is None:
        return []

    active = [s for s in subjects if s.category == band and s.is_active]
    if not active:
        logger.debug(f"No active catalog subjects for {band!r}, using built-in list")
        return fallback_subjects(band)
    return sorted(active, key=lambda s: (s.display_order, s.name))


def subject_values(state: SelectionState, subjects: Sequence[Subject]) -> List[str]:
    return [s.value for s in subject_options(state, subjects)]


def paper_type_options(state: SelectionState) -> Tuple[PaperType, ...]:
    """
    Legal paper types for the current axes.

    - Scholarship: past and model papers only
    - Grade path, grade 6-13: model and school papers only
    - Grade path otherwise: every non-lessonwise type
    - A/L, O/L: every non-lessonwise type, plus lessonwise once a subject
      is chosen

    Example:
        >>> state = SelectionState(grade="grade-8", medium="english", subject="mathematics")
        >>> paper_type_options(state)
        (<PaperType.MODEL_PAPERS: 'model-papers'>, <PaperType.SCHOOL_PAPERS: 'school-papers'>)
    """
    general = (
        PaperType.PAST_PAPERS,
        PaperType.MODEL_PAPERS,
        PaperType.SCHOOL_PAPERS,
        PaperType.QUICK_QUIZ,
    )
    category = state.category
    if category is None:
        if in_term_grade_range(state):
            return (PaperType.MODEL_PAPERS, PaperType.SCHOOL_PAPERS)
        return general
    if category is Category.SCHOLARSHIP:
        return (PaperType.PAST_PAPERS, PaperType.MODEL_PAPERS)
    if category in (Category.ADVANCED_LEVEL, Category.ORDINARY_LEVEL):
        if state.subject:
            return general[:3] + (PaperType.LESSONWISE,) + general[3:]
        return general
    raise AssertionError(f"Unhandled category: {category!r}")


def paper_type_option_list(state: SelectionState) -> Tuple[Option, ...]:
    return tuple(Option(value=p.value, label=_PAPER_TYPE_LABELS[p]) for p in paper_type_options(state))


def term_options() -> Tuple[Option, ...]:
    return tuple(Option(value=v, label=label) for v, label in TERMS)


def topic_options(state: SelectionState) -> Tuple[Option, ...]:
    """Lessonwise topics for the current track and subject (empty off-branch)."""
    if state.category not in (Category.ADVANCED_LEVEL, Category.ORDINARY_LEVEL):
        return ()
    if state.paper_type is not PaperType.LESSONWISE or not state.subject:
        return ()
    return tuple(Option(value=v, label=label) for v, label in lessonwise_topics(state.category, state.subject))


def option_values(options: Iterable[Option]) -> List[str]:
    return [o.value for o in options]
