"""
Module: funnel.transitions

Purpose:
    Pure transition function of the selection funnel. ``apply`` takes the
    current state, an event and the catalog snapshot, and returns a
    Transition: the next state plus an optional effect for the controller
    to carry out (resolve bundles, hand off to quick quiz, ...).

    Transitions never perform I/O and never read module state. Feature
    flags arrive through the injected CatalogSnapshot.

Key Functions:
    - apply(): (state, event, catalog) -> Transition
    - back_state(): Screen-specific inverse used when no history exists
    - confirm_grade(): Completes the grade path's "Go" after discovery

Key Classes:
    - Event types: ChooseCategory, ChooseLanguage, ChooseSubject,
      SetGradeAxis, Go, ChoosePaperType, ChooseTerm, ChooseTopic, Search
    - Effect types: ComingSoon, DiscoverBundles, ResolveBundles,
      StartQuickQuiz, SearchQuizzes, RestoreScopedResults
    - Transition: Result of apply()
    - InvalidTransitionError: Raised in strict mode for illegal choices

Dependencies:
    - quiz_funnel.core.models: SelectionState and variants
    - .options: Legal option sets
    - .screens: Screen derivation

Used By:
    - quiz_funnel.funnel.machine: FunnelMachine
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from quiz_funnel.common.subjects import GRADES
from quiz_funnel.core.models import (
    Category,
    GradeAxis,
    PaperType,
    QuickQuizHandoff,
    SelectionState,
)

from .catalog import CatalogSnapshot
from .options import (
    medium_options,
    option_values,
    paper_type_options,
    requires_term,
    subject_values,
    term_options,
    topic_options,
)
from .query import ResolverQuery, build_query
from .screens import ScreenId, screen

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """
    An event that option derivation should have made impossible.

    Only raised when transitions run in strict (development) mode;
    otherwise the event is logged and rejected.
    """

    def __init__(self, message: str, state: SelectionState, event: object):
        super().__init__(message)
        self.state = state
        self.event = event


# ─────────────────────────────────────────────────────────────────────────────
# Events
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChooseCategory:
    category: Category


@dataclass(frozen=True)
class ChooseLanguage:
    language: str


@dataclass(frozen=True)
class ChooseSubject:
    subject: str


@dataclass(frozen=True)
class SetGradeAxis:
    """Edit one field of the select-by-grade form; empty value clears it."""

    axis: GradeAxis
    value: str


@dataclass(frozen=True)
class Go:
    """Submit the select-by-grade form."""


@dataclass(frozen=True)
class ChoosePaperType:
    paper_type: PaperType


@dataclass(frozen=True)
class ChooseTerm:
    term: str


@dataclass(frozen=True)
class ChooseTopic:
    topic: str


@dataclass(frozen=True)
class Search:
    query: str


Event = Union[
    ChooseCategory,
    ChooseLanguage,
    ChooseSubject,
    SetGradeAxis,
    Go,
    ChoosePaperType,
    ChooseTerm,
    ChooseTopic,
    Search,
]


# ─────────────────────────────────────────────────────────────────────────────
# Effects
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ComingSoon:
    """A disabled path was chosen; ``category`` is None for the grade path."""

    category: Optional[Category]


@dataclass(frozen=True)
class DiscoverBundles:
    """Grade-path availability check that gates the paper-type screen."""

    query: ResolverQuery


@dataclass(frozen=True)
class ResolveBundles:
    query: ResolverQuery


@dataclass(frozen=True)
class StartQuickQuiz:
    handoff: QuickQuizHandoff


@dataclass(frozen=True)
class SearchQuizzes:
    query: str


@dataclass(frozen=True)
class RestoreScopedResults:
    """Search was cleared; show the funnel-scoped bundles again."""


Effect = Union[ComingSoon, DiscoverBundles, ResolveBundles, StartQuickQuiz, SearchQuizzes, RestoreScopedResults]


@dataclass(frozen=True)
class Transition:
    """
    Result of applying one event.

    Attributes:
        state: Next state (the input state when rejected)
        effect: Work for the controller, if any
        rejected: The event had no effect on state
        reason: Why the event was rejected
        navigational: The change moves through the funnel and should be
            recorded for back-navigation (form edits and search are not)
    """

    state: SelectionState
    effect: Optional[Effect] = None
    rejected: bool = False
    reason: str = ""
    navigational: bool = True


def _reject(state: SelectionState, reason: str, effect: Optional[Effect] = None) -> Transition:
    return Transition(state=state, effect=effect, rejected=True, reason=reason, navigational=False)


def _invalid(state: SelectionState, event: object, reason: str, strict: bool) -> Transition:
    if strict:
        raise InvalidTransitionError(reason, state, event)
    logger.warning(f"Rejected invalid transition {event!r}: {reason}")
    return _reject(state, reason)


# ─────────────────────────────────────────────────────────────────────────────
# Reducer
# ─────────────────────────────────────────────────────────────────────────────

def apply(
    state: SelectionState,
    event: Event,
    catalog: CatalogSnapshot,
    *,
    strict: bool = False,
) -> Transition:
    """
    Apply ``event`` to ``state``.

    Args:
        state: Current state
        event: User event
        catalog: Flags + subjects snapshot for this session
        strict: Raise InvalidTransitionError instead of rejecting

    Returns:
        Transition with the next state and optional effect

    Raises:
        InvalidTransitionError: In strict mode, for choices the option
            derivation would not have offered

    Example:
        >>> t = apply(SelectionState(), ChooseCategory(Category.ADVANCED_LEVEL), CatalogSnapshot())
        >>> screen(t.state)
        <ScreenId.CATEGORY_LANGUAGE_CHOOSER: 'category-language'>
    """
    current = screen(state)

    if isinstance(event, ChooseCategory):
        return _choose_category(state, event, catalog)

    if isinstance(event, ChooseLanguage):
        if state.category is None or not state.category.has_subject_axis:
            return _invalid(state, event, "language is only chosen on the A/L and O/L paths", strict)
        if event.language not in option_values(medium_options()):
            return _invalid(state, event, f"unknown language {event.language!r}", strict)
        if event.language == state.language:
            return _reject(state, "language unchanged")
        return Transition(state=state.with_language(event.language))

    if isinstance(event, ChooseSubject):
        if state.category is None or not state.category.has_subject_axis:
            return _invalid(state, event, "subject chooser is only used on the A/L and O/L paths", strict)
        if not state.language:
            return _invalid(state, event, "choose a language before a subject", strict)
        if event.subject not in subject_values(state, catalog.subjects):
            return _invalid(state, event, f"subject {event.subject!r} is not offered", strict)
        return Transition(state=state.with_subject(event.subject))

    if isinstance(event, SetGradeAxis):
        return _set_grade_axis(state, event, catalog, current, strict)

    if isinstance(event, Go):
        if current is not ScreenId.ENTRY_CHOOSER or state.category is not None:
            return _invalid(state, event, "Go is only available on the select-by-grade form", strict)
        if not catalog.flags.grade_selection_enabled:
            return _reject(state, "grade selection is disabled", ComingSoon(None))
        if not state.grade_axes_complete:
            return _invalid(state, event, "grade, medium and subject are required", strict)
        return Transition(
            state=state,
            effect=DiscoverBundles(build_query(state)),
            navigational=False,
        )

    if isinstance(event, ChoosePaperType):
        return _choose_paper_type(state, event, current, strict)

    if isinstance(event, ChooseTerm):
        if current is not ScreenId.TERM_CHOOSER:
            return _invalid(state, event, f"term cannot be chosen on {current.value}", strict)
        if event.term not in option_values(term_options()):
            return _invalid(state, event, f"unknown term {event.term!r}", strict)
        next_state = state.with_term(event.term)
        return Transition(state=next_state, effect=ResolveBundles(build_query(next_state)))

    if isinstance(event, ChooseTopic):
        if current is not ScreenId.TOPIC_CHOOSER:
            return _invalid(state, event, f"topic cannot be chosen on {current.value}", strict)
        if event.topic not in option_values(topic_options(state)):
            return _invalid(state, event, f"topic {event.topic!r} is not offered", strict)
        next_state = state.with_topic(event.topic)
        return Transition(state=next_state, effect=ResolveBundles(build_query(next_state)))

    if isinstance(event, Search):
        if current is not ScreenId.BUNDLE_LIST:
            return _reject(state, "search is only active on the bundle list")
        query = event.query.strip()
        next_state = state.with_search(query)
        effect: Effect = SearchQuizzes(query) if query else RestoreScopedResults()
        return Transition(state=next_state, effect=effect, navigational=False)

    raise TypeError(f"Unknown funnel event: {event!r}")


def _choose_category(state: SelectionState, event: ChooseCategory, catalog: CatalogSnapshot) -> Transition:
    category = event.category
    if not catalog.flags.is_enabled(category):
        logger.info(f"Category {category.value!r} is disabled; showing coming-soon")
        return _reject(state, f"{category.value} is not available yet", ComingSoon(category))
    return Transition(state=state.with_category(category))


def _set_grade_axis(
    state: SelectionState,
    event: SetGradeAxis,
    catalog: CatalogSnapshot,
    current: ScreenId,
    strict: bool,
) -> Transition:
    if not catalog.flags.grade_selection_enabled:
        return _reject(state, "grade selection is disabled", ComingSoon(None))
    if state.category is not None or current is not ScreenId.ENTRY_CHOOSER:
        return _invalid(state, event, "grade axes are only edited on the select-by-grade form", strict)

    value = event.value
    if event.axis is GradeAxis.GRADE:
        if value and value not in GRADES:
            return _invalid(state, event, f"unknown grade {value!r}", strict)
        next_state = state.with_grade(value) if value != state.grade else state
    elif event.axis is GradeAxis.MEDIUM:
        if value and value not in option_values(medium_options()):
            return _invalid(state, event, f"unknown medium {value!r}", strict)
        next_state = state.with_medium(value)
    elif event.axis is GradeAxis.SUBJECT:
        if value and value not in subject_values(state, catalog.subjects):
            return _invalid(state, event, f"subject {value!r} is not offered for {state.grade or 'no grade'}", strict)
        next_state = replace(state, subject=value)
    else:
        raise AssertionError(f"Unhandled grade axis: {event.axis!r}")

    return Transition(state=next_state, navigational=False)


def _choose_paper_type(
    state: SelectionState,
    event: ChoosePaperType,
    current: ScreenId,
    strict: bool,
) -> Transition:
    paper_type = event.paper_type
    if current is not ScreenId.PAPER_TYPE_CHOOSER:
        return _invalid(state, event, f"paper type cannot be chosen on {current.value}", strict)
    if paper_type not in paper_type_options(state):
        return _invalid(state, event, f"{paper_type.value} is not offered for the current selection", strict)

    if paper_type is PaperType.QUICK_QUIZ:
        # Terminal escape: nothing is resolved and the funnel stays put
        return Transition(state=state, effect=StartQuickQuiz(quick_quiz_handoff(state)), navigational=False)

    next_state = state.with_paper_type(paper_type)
    if paper_type is PaperType.LESSONWISE or requires_term(next_state):
        return Transition(state=next_state)
    return Transition(state=next_state, effect=ResolveBundles(build_query(next_state)))


def quick_quiz_handoff(state: SelectionState) -> QuickQuizHandoff:
    """Context for the quick-quiz configuration flow."""
    category = state.category
    query = build_query(state)
    return QuickQuizHandoff(
        grade=query.grade,
        medium=state.medium if category is None else "",
        subject=query.subject,
        category=category.value if category else None,
        language=state.language,
    )


def confirm_grade(state: SelectionState) -> SelectionState:
    """
    Complete the grade path's "Go" once the discovery call succeeded.

    Raises:
        ValueError: If the form is not complete (SelectionState invariant)
    """
    return replace(state, grade_confirmed=True, paper_type=None, term="", topic="", search_query="")


def back_state(state: SelectionState) -> SelectionState:
    """
    Screen-specific inverse of the forward transition that produced the
    current screen.

    Used when the funnel has no recorded history (e.g. it was restored from
    a context returned by the quiz flow). With history, the machine
    restores the exact recorded state instead.

    Example:
        >>> s = SelectionState(grade="grade-8", medium="english", subject="mathematics",
        ...                    grade_confirmed=True, paper_type=PaperType.MODEL_PAPERS)
        >>> screen(back_state(s))
        <ScreenId.PAPER_TYPE_CHOOSER: 'paper-type'>
    """
    current = screen(state)

    if current is ScreenId.BUNDLE_LIST:
        cleared = state.with_search("")
        if cleared.term:
            return replace(cleared, term="")
        if cleared.topic:
            return replace(cleared, topic="")
        return cleared.with_paper_type(None)

    if current in (ScreenId.TERM_CHOOSER, ScreenId.TOPIC_CHOOSER):
        return state.with_paper_type(None)

    if current is ScreenId.PAPER_TYPE_CHOOSER:
        if state.category is None:
            return replace(state, grade_confirmed=False)
        if state.category is Category.SCHOLARSHIP:
            return state.with_category(None)
        return replace(state, subject="", topic="", term="")

    if current is ScreenId.SUBJECT_CHOOSER:
        return replace(state, language="")

    if current is ScreenId.CATEGORY_LANGUAGE_CHOOSER:
        return state.with_category(None)

    return state


__all__ = [
    "apply",
    "back_state",
    "confirm_grade",
    "quick_quiz_handoff",
    "InvalidTransitionError",
    "Transition",
    "ChooseCategory",
    "ChooseLanguage",
    "ChooseSubject",
    "SetGradeAxis",
    "Go",
    "ChoosePaperType",
    "ChooseTerm",
    "ChooseTopic",
    "Search",
    "ComingSoon",
    "DiscoverBundles",
    "ResolveBundles",
    "StartQuickQuiz",
    "SearchQuizzes",
    "RestoreScopedResults",
]
