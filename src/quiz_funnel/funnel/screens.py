"""
Module: funnel.screens

Purpose:
    Screen derivation. ``screen(state)`` is a pure function: the screen is
    never stored, so back-navigation only has to restore state.

Key Classes:
    - ScreenId: Render modes of the funnel

Key Functions:
    - screen(): Which screen a state renders
"""

from __future__ import annotations

from enum import Enum

from quiz_funnel.core.models import Category, PaperType, SelectionState

from .options import requires_term


class ScreenId(Enum):
    ENTRY_CHOOSER = "entry"
    CATEGORY_LANGUAGE_CHOOSER = "category-language"
    SUBJECT_CHOOSER = "subject"
    PAPER_TYPE_CHOOSER = "paper-type"
    TERM_CHOOSER = "term"
    TOPIC_CHOOSER = "topic"
    BUNDLE_LIST = "bundles"

    @property
    def is_terminal(self) -> bool:
        """The bundle list is the only screen that triggers resolution."""
        return self is ScreenId.BUNDLE_LIST


def screen(state: SelectionState) -> ScreenId:
    """
    Screen rendered for ``state``.

    Example:
        >>> screen(SelectionState())
        <ScreenId.ENTRY_CHOOSER: 'entry'>
        >>> screen(SelectionState(category=Category.SCHOLARSHIP))
        <ScreenId.PAPER_TYPE_CHOOSER: 'paper-type'>
    """
    category = state.category

    if category is None:
        if not state.grade_confirmed:
            return ScreenId.ENTRY_CHOOSER
        if state.paper_type is None:
            return ScreenId.PAPER_TYPE_CHOOSER
        if requires_term(state) and not state.term:
            return ScreenId.TERM_CHOOSER
        return ScreenId.BUNDLE_LIST

    if category is Category.SCHOLARSHIP:
        if state.paper_type is None:
            return ScreenId.PAPER_TYPE_CHOOSER
        return ScreenId.BUNDLE_LIST

    if category in (Category.ADVANCED_LEVEL, Category.ORDINARY_LEVEL):
        if not state.language:
            return ScreenId.CATEGORY_LANGUAGE_CHOOSER
        if not state.subject:
            return ScreenId.SUBJECT_CHOOSER
        if state.paper_type is None:
            return ScreenId.PAPER_TYPE_CHOOSER
        if state.paper_type is PaperType.LESSONWISE and not state.topic:
            return ScreenId.TOPIC_CHOOSER
        return ScreenId.BUNDLE_LIST

    raise AssertionError(f"Unhandled category: {category!r}")
