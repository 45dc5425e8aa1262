"""
Module: funnel.query

Purpose:
    Translate a SelectionState into the Bundle Resolver's query. This is the
    only place that decides which of (grade, medium) or (language) is
    authoritative, and where the scholarship subject substitution happens.

Key Functions:
    - build_query(): SelectionState -> ResolverQuery

Key Classes:
    - ResolverQuery: Immutable resolver request parameters

Used By:
    - quiz_funnel.funnel.transitions: Effects carry a ResolverQuery
    - quiz_funnel.funnel.resume: Launch context fields
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from quiz_funnel.common.subjects import SCHOLARSHIP_SUBJECT
from quiz_funnel.core.models import Category, PaperType, SelectionState

from .options import implied_grade


@dataclass(frozen=True)
class ResolverQuery:
    """
    Parameters of a ``resolve_bundles`` call.

    ``topic`` is recorded for the handoff but is not sent: the resolver has
    no topic parameter and lessonwise results come back unfiltered.
    """

    grade: str
    medium: str
    subject: str
    paper_type: Optional[PaperType] = None
    term: str = ""
    topic: str = ""

    def params(self) -> Dict[str, str]:
        """Query-string parameters; ``type`` and ``term`` only when set."""
        params = {"grade": self.grade, "medium": self.medium, "subject": self.subject}
        if self.paper_type is not None:
            params["type"] = self.paper_type.value
        if self.term:
            params["term"] = self.term
        return params


def build_query(state: SelectionState) -> ResolverQuery:
    """
    Build the resolver query for ``state``.

    The grade path sends ``grade``/``medium``; category paths send the
    track's implied grade and ``language`` as the medium. Scholarship has
    no subject axis, so ``subject="scholarship"`` is substituted here.

    Example:
        >>> state = SelectionState(category=Category.SCHOLARSHIP, paper_type=PaperType.PAST_PAPERS)
        >>> build_query(state).subject
        'scholarship'
    """
    if state.category is None:
        return ResolverQuery(
            grade=state.grade,
            medium=state.medium,
            subject=state.subject,
            paper_type=state.paper_type,
            term=state.term,
        )

    subject = SCHOLARSHIP_SUBJECT if state.category is Category.SCHOLARSHIP else state.subject
    return ResolverQuery(
        grade=implied_grade(state.category),
        medium=state.language,
        subject=subject,
        paper_type=state.paper_type,
        term=state.term,
        topic=state.topic,
    )
