"""
Module: funnel.resume

Purpose:
    Decide what happens when a student activates a quiz on the bundle list:
    payment gating first, then reconciliation against the Progress
    Tracker's incomplete attempts. Both steps are pure.

Key Functions:
    - gate(): Locked or None
    - reconcile(): Fresh or ResumePrompt for a quiz
    - launch_context(): Build the handoff to the quiz-taking flow

Key Classes:
    - Fresh, ResumePrompt, Locked: Activation outcomes
    - ResumeChoice: Answer to a resume prompt

Used By:
    - quiz_funnel.funnel.controller: Funnel.activate() / Funnel.start()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from quiz_funnel.core.models import IncompleteRecord, Quiz, QuizLaunchContext, SelectionState

from .query import build_query


@dataclass(frozen=True)
class Fresh:
    """No saved attempt; the quiz starts at question 0."""

    quiz: Quiz


@dataclass(frozen=True)
class ResumePrompt:
    """A saved attempt exists; the student chooses to continue or restart."""

    quiz: Quiz
    record: IncompleteRecord


@dataclass(frozen=True)
class Locked:
    """The quiz requires access the student has not bought."""

    quiz: Quiz


Activation = Union[Locked, Fresh, ResumePrompt]


class ResumeChoice(Enum):
    START_FRESH = "start-fresh"
    CONTINUE = "continue"


def gate(quiz: Quiz) -> Optional[Locked]:
    return Locked(quiz) if quiz.requires_access else None


def reconcile(quiz: Quiz, records: Iterable[IncompleteRecord]) -> Union[Fresh, ResumePrompt]:
    """
    Match a quiz against incomplete attempts by id.

    When several records share the id the most recently saved wins.

    Example:
        >>> reconcile(Quiz(id="q1", title="Q1"), [])
        Fresh(quiz=Quiz(id='q1', title='Q1', ...))  # doctest: +SKIP
    """
    matches = [r for r in records if r.quiz_id == quiz.id]
    if not matches:
        return Fresh(quiz)
    latest = max(matches, key=lambda r: r.last_saved_at)
    return ResumePrompt(quiz, latest)


def activate(quiz: Quiz, records: Iterable[IncompleteRecord]) -> Activation:
    """Gate first, then reconcile."""
    locked = gate(quiz)
    if locked is not None:
        return locked
    return reconcile(quiz, records)


def launch_context(state: SelectionState, quiz: Quiz, *, resume: bool) -> QuizLaunchContext:
    """
    Context handed to the quiz-taking flow.

    Grade, medium, subject and type come from the quiz when it carries
    them (search results may sit outside the current funnel scope) and
    from the resolver query otherwise.
    """
    query = build_query(state)
    paper_type = query.paper_type.value if query.paper_type else ""
    return QuizLaunchContext(
        quiz_id=quiz.id,
        grade=quiz.grade or query.grade,
        medium=quiz.medium or query.medium,
        subject=quiz.subject or query.subject,
        paper_type=quiz.type or paper_type,
        category=state.category.value if state.category else None,
        language=state.language,
        topic=state.topic,
        term=state.term,
        resume=resume,
    )
