"""
Module: selection

Purpose:
    Provides SelectionState - the single source of truth for where a
    student is inside the quiz-selection funnel - together with the closed
    variants (Category, PaperType, GradeAxis) that drive every branching
    rule of the funnel.

Key Classes:
    - Category: Exam track (Scholarship / A/L / O/L; None = grade path)
    - PaperType: Paper kind offered once subject axes are fixed
    - GradeAxis: The three inputs of the select-by-grade form
    - SelectionState: Immutable funnel state

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - quiz_funnel.funnel.transitions: Reducer over SelectionState
    - quiz_funnel.funnel.screens: Screen derivation
    - quiz_funnel.funnel.options: Option derivation
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class Category(Enum):
    """
    Top-level exam track.

    "No category" (the select-by-grade path) is represented by ``None``
    wherever a Category is optional, never by a member of this enum.
    """

    SCHOLARSHIP = "scholarship"
    ADVANCED_LEVEL = "al"
    ORDINARY_LEVEL = "ol"

    @property
    def has_subject_axis(self) -> bool:
        """Scholarship papers are general; the other tracks pick a subject."""
        return self is not Category.SCHOLARSHIP


class PaperType(Enum):
    """Paper kinds. Values match the resolver API's ``type`` parameter."""

    PAST_PAPERS = "past-papers"
    MODEL_PAPERS = "model-papers"
    SCHOOL_PAPERS = "school-papers"
    LESSONWISE = "lessonwise"
    QUICK_QUIZ = "quick-quiz"


class GradeAxis(Enum):
    """Inputs of the select-by-grade form on the entry screen."""

    GRADE = "grade"
    MEDIUM = "medium"
    SUBJECT = "subject"


@dataclass(frozen=True)
class SelectionState:
    """
    Immutable funnel state.

    Empty strings mean "unset" for the free-text axes; ``category`` and
    ``paper_type`` use ``None``.

    Attributes:
        category: Exam track, or None for the select-by-grade path
        grade: Grade key like "grade-8" (grade path only)
        medium: Language of instruction (grade path only)
        language: Language axis of the category paths
        subject: Subject key; its domain depends on category/grade
        paper_type: Chosen paper kind
        term: "1st-term" etc. (grade path, model/school papers, grade 6-13)
        topic: Lessonwise topic (A/L and O/L only)
        search_query: Free text, only active on the bundle list
        grade_confirmed: The grade path's "Go" resolved successfully

    Invariants:
        - term and topic are never both set
        - grade_confirmed implies category is None and grade, medium
          and subject are all set

    Example:
        >>> state = SelectionState(category=Category.ADVANCED_LEVEL, language="english")
        >>> state.on_grade_path
        False
    """

    category: Optional[Category] = None
    grade: str = ""
    medium: str = ""
    language: str = ""
    subject: str = ""
    paper_type: Optional[PaperType] = None
    term: str = ""
    topic: str = ""
    search_query: str = ""
    grade_confirmed: bool = False

    def __post_init__(self) -> None:
        """Validate cross-field invariants on construction."""
        if self.term and self.topic:
            raise ValueError(
                f"term ({self.term!r}) and topic ({self.topic!r}) are mutually exclusive"
            )
        if self.grade_confirmed:
            if self.category is not None:
                raise ValueError("grade_confirmed is only valid on the grade path")
            if not self.grade_axes_complete:
                raise ValueError("grade_confirmed requires grade, medium and subject")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def on_grade_path(self) -> bool:
        """True when no category is chosen (grade/medium are authoritative)."""
        return self.category is None

    @property
    def grade_axes_complete(self) -> bool:
        """True when grade, medium and subject are all set."""
        return bool(self.grade and self.medium and self.subject)

    @property
    def effective_medium(self) -> str:
        """Medium sent to the resolver: ``medium`` on the grade path, else ``language``."""
        return self.medium if self.on_grade_path else self.language

    # ─────────────────────────────────────────────────────────────────────────
    # Axis setters (each clears its dependents)
    # ─────────────────────────────────────────────────────────────────────────

    def with_category(self, category: Optional[Category]) -> SelectionState:
        """Switch track; clears every axis that depends on the category."""
        return replace(
            self,
            category=category,
            language="",
            subject="",
            paper_type=None,
            term="",
            topic="",
            search_query="",
            grade_confirmed=False,
        )

    def with_language(self, language: str) -> SelectionState:
        """Set the category-path language; subject and below are cleared."""
        return replace(
            self,
            language=language,
            subject="",
            paper_type=None,
            term="",
            topic="",
            search_query="",
        )

    def with_grade(self, grade: str) -> SelectionState:
        """Set the grade; the subject list depends on it so subject is cleared."""
        return replace(self, grade=grade, subject="", grade_confirmed=False)

    def with_medium(self, medium: str) -> SelectionState:
        return replace(self, medium=medium, grade_confirmed=False)

    def with_subject(self, subject: str) -> SelectionState:
        """Set the subject; topic (and the paper type it hangs off) are cleared."""
        return replace(
            self,
            subject=subject,
            paper_type=None,
            term="",
            topic="",
            search_query="",
            grade_confirmed=False if self.on_grade_path else self.grade_confirmed,
        )

    def with_paper_type(self, paper_type: Optional[PaperType]) -> SelectionState:
        return replace(self, paper_type=paper_type, term="", topic="", search_query="")

    def with_term(self, term: str) -> SelectionState:
        return replace(self, term=term, topic="", search_query="")

    def with_topic(self, topic: str) -> SelectionState:
        return replace(self, topic=topic, term="", search_query="")

    def with_search(self, query: str) -> SelectionState:
        return replace(self, search_query=query)

    def to_dict(self) -> dict:
        """Plain representation (enum values as strings) for logs and handoffs."""
        return {
            "category": self.category.value if self.category else None,
            "grade": self.grade,
            "medium": self.medium,
            "language": self.language,
            "subject": self.subject,
            "paper_type": self.paper_type.value if self.paper_type else None,
            "term": self.term,
            "topic": self.topic,
            "search_query": self.search_query,
            "grade_confirmed": self.grade_confirmed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SelectionState:
        """
        Rebuild a state from ``to_dict`` output (or a returned quiz context).

        Raises:
            ValueError: If an enum value is unknown or invariants fail
        """
        category = data.get("category") or None
        paper_type = data.get("paper_type") or None
        return cls(
            category=Category(category) if category else None,
            grade=data.get("grade") or "",
            medium=data.get("medium") or "",
            language=data.get("language") or "",
            subject=data.get("subject") or "",
            paper_type=PaperType(paper_type) if paper_type else None,
            term=data.get("term") or "",
            topic=data.get("topic") or "",
            search_query=data.get("search_query") or "",
            grade_confirmed=bool(data.get("grade_confirmed", False)),
        )
