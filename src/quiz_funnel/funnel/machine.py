"""
Module: funnel.machine

Purpose:
    Holds the current SelectionState and its navigation history. Forward
    navigational transitions push the prior state, so ``back()`` restores
    it exactly; without history the pure ``back_state`` inverse is used.

Key Classes:
    - FunnelMachine: Stateful wrapper around transitions.apply

Dependencies:
    - .transitions: Pure reducer
    - .screens: Screen derivation

Used By:
    - quiz_funnel.funnel.controller: Funnel
"""

from __future__ import annotations

import logging
from typing import List, Optional

from quiz_funnel.core.models import SelectionState

from .catalog import CatalogSnapshot
from .screens import ScreenId, screen
from .transitions import Event, Transition, apply, back_state, confirm_grade

logger = logging.getLogger(__name__)


class FunnelMachine:
    """
    Current funnel state plus back-navigation history.

    Args:
        catalog: Flags + subjects snapshot used for every transition
        strict: Raise on invalid transitions instead of rejecting them
        initial_state: Start somewhere other than the entry chooser
            (e.g. a selection context returned by the quiz flow)

    Example:
        >>> machine = FunnelMachine(CatalogSnapshot())
        >>> machine.screen
        <ScreenId.ENTRY_CHOOSER: 'entry'>
    """

    def __init__(
        self,
        catalog: CatalogSnapshot,
        *,
        strict: bool = False,
        initial_state: Optional[SelectionState] = None,
    ):
        self.catalog = catalog
        self.strict = strict
        self._state = initial_state or SelectionState()
        self._history: List[SelectionState] = []

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def screen(self) -> ScreenId:
        return screen(self._state)

    @property
    def history(self) -> List[SelectionState]:
        """Copy of the recorded prior states, oldest first."""
        return list(self._history)

    def apply(self, event: Event) -> Transition:
        """
        Apply an event, recording history for navigational changes.

        Raises:
            InvalidTransitionError: In strict mode only
        """
        transition = apply(self._state, event, self.catalog, strict=self.strict)
        if transition.rejected:
            logger.debug(f"Event {type(event).__name__} rejected: {transition.reason}")
        elif transition.state != self._state:
            if transition.navigational:
                self._history.append(self._state)
            self._state = transition.state
        return transition

    def confirm_grade(self) -> SelectionState:
        """Record the grade path's successful "Go" as a navigational step."""
        confirmed = confirm_grade(self._state)
        self._history.append(self._state)
        self._state = confirmed
        return confirmed

    def back_target(self) -> SelectionState:
        """State that ``back()`` would restore, without moving."""
        if self._history:
            return self._history[-1]
        return back_state(self._state)

    def back(self) -> SelectionState:
        """Move back one step; a no-op on the entry chooser without history."""
        if self._history:
            self._state = self._history.pop()
        else:
            self._state = back_state(self._state)
        return self._state

    def reset(self, state: Optional[SelectionState] = None) -> None:
        """Jump to ``state`` (entry by default) and forget history."""
        self._state = state or SelectionState()
        self._history.clear()
