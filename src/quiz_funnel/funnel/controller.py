"""
Module: funnel.controller

Purpose:
    Orchestrate one funnel session.
    Enter → Dispatch events → Carry out effects → Poll completions → Activate

    The controller owns the FunnelMachine, runs the effects the reducer
    emits through a dispatcher, and applies their completions only if they
    are still current. Every request carries a token and a snapshot of the
    state it was issued for; a completion whose token is no longer the
    latest of its kind, or whose snapshot no longer matches the current
    state, is dropped.

Key Classes:
    - Funnel: Session controller
    - FunnelView: Snapshot rendered by the host
    - FunnelError: Resolution failure stored on the view
    - RequestKind: Discovery, bundle resolution or search

Dependencies:
    - .machine: State + history
    - .dispatch: Inline/threaded execution
    - .resume: Gating and resume reconciliation

Used By:
    - Host dashboards (UI layer)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from quiz_funnel.api.client import ApiClient, ApiError
from quiz_funnel.config import FunnelConfig
from quiz_funnel.core.models import (
    Bundle,
    IncompleteRecord,
    QuickQuizHandoff,
    Quiz,
    QuizLaunchContext,
    SelectionState,
)
from quiz_funnel.core.schemas import ValidationError
from quiz_funnel.progress.store import ProgressStore

from .catalog import CatalogSnapshot, load_catalog
from .dispatch import InlineDispatcher, Outcome, ThreadedDispatcher
from .machine import FunnelMachine
from .options import (
    Option,
    category_label,
    category_options,
    grade_options,
    language_options,
    medium_options,
    paper_type_option_list,
    subject_options,
    term_options,
    topic_options,
)
from .protocols import BundleResolver, CatalogProvider, ProgressTracker
from .query import ResolverQuery, build_query
from .resume import Activation, Locked, ResumeChoice, ResumePrompt, activate, launch_context
from .screens import ScreenId, screen
from .transitions import (
    ComingSoon,
    DiscoverBundles,
    Effect,
    Event,
    RestoreScopedResults,
    ResolveBundles,
    SearchQuizzes,
    StartQuickQuiz,
)

logger = logging.getLogger(__name__)

# Failures that leave the funnel where it is with a retryable error
RESOLUTION_ERRORS = (ApiError, ValidationError)


class RequestKind(Enum):
    DISCOVERY = "discovery"
    BUNDLES = "resolution"
    SEARCH = "search"


class FunnelError(Exception):
    """
    A resolver call failed; the funnel keeps its state and offers retry.

    Attributes:
        kind: Which request failed
        cause: The underlying ApiError / ValidationError
    """

    def __init__(self, message: str, kind: RequestKind, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.cause = cause


class QuizLockedError(Exception):
    """``start()`` was called for a quiz that requires payment."""

    def __init__(self, quiz: Quiz):
        super().__init__(f"Quiz {quiz.id!r} requires access")
        self.quiz = quiz


@dataclass
class _PendingRequest:
    token: int
    kind: RequestKind
    key: SelectionState
    call: Callable[[], Any]


@dataclass(frozen=True)
class FunnelView:
    """
    Everything a host needs to render the funnel.

    Attributes:
        screen: Current screen
        state: Current selection
        options: Choices for the current screen
        grade_form: Grade/medium/subject choices of the select-by-grade
            form (entry screen, grade selection enabled only)
        bundles: Resolved bundles (bundle list, no search active)
        search_results: Quizzes matching the search (search active)
        error: Last resolution failure, if still relevant
        loading: A current request is in flight
        coming_soon: Label of the disabled path the student just chose
        back_screen: Screen ``back()`` would show (None on the entry screen)
        degraded: Catalog data came from built-in defaults
    """

    screen: ScreenId
    state: SelectionState
    options: Tuple[Option, ...] = ()
    grade_form: Dict[str, Tuple[Option, ...]] = field(default_factory=dict)
    bundles: Tuple[Bundle, ...] = ()
    search_results: Tuple[Quiz, ...] = ()
    error: Optional[FunnelError] = None
    loading: bool = False
    coming_soon: Optional[str] = None
    back_screen: Optional[ScreenId] = None
    degraded: bool = False

    @property
    def searching(self) -> bool:
        return bool(self.state.search_query)

    @property
    def quizzes(self) -> Tuple[Quiz, ...]:
        """Quizzes currently listed (search results or the bundles' quizzes)."""
        if self.searching:
            return self.search_results
        return tuple(q for b in self.bundles for q in b.quizzes)


def _scoped(state: SelectionState) -> SelectionState:
    """Comparison key for requests that ignore the search box."""
    return state.with_search("") if state.search_query else state


def _key_for(kind: RequestKind, state: SelectionState) -> SelectionState:
    return state if kind is RequestKind.SEARCH else _scoped(state)


class Funnel:
    """
    Quiz-selection funnel session.

    Args:
        catalog_provider: Subjects + feature flags source
        bundle_resolver: Bundle resolution and search
        progress_tracker: Incomplete attempts (no resume prompts when None)
        config: Session configuration (defaults when None)
        dispatcher: Request runner (InlineDispatcher when None)
        initial_state: Start from a saved/returned selection instead of
            the entry chooser

    Example:
        >>> client = ApiClient("https://api.example.com/api")
        >>> funnel = Funnel(client, client, ProgressStore(path))
        >>> funnel.enter()
        >>> funnel.dispatch(ChooseCategory(Category.ADVANCED_LEVEL)).screen
        <ScreenId.CATEGORY_LANGUAGE_CHOOSER: 'category-language'>
    """

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        bundle_resolver: BundleResolver,
        progress_tracker: Optional[ProgressTracker] = None,
        *,
        config: Optional[FunnelConfig] = None,
        dispatcher=None,
        initial_state: Optional[SelectionState] = None,
    ):
        self.catalog_provider = catalog_provider
        self.bundle_resolver = bundle_resolver
        self.progress_tracker = progress_tracker
        self.config = config or FunnelConfig()
        self.dispatcher = dispatcher or InlineDispatcher()
        self._initial_state = initial_state

        self._machine: Optional[FunnelMachine] = None
        self._next_token = 0
        self._latest: Dict[RequestKind, int] = {}
        self._pending: Dict[int, _PendingRequest] = {}
        self._failed: Optional[_PendingRequest] = None
        self._error: Optional[FunnelError] = None
        self._coming_soon: Optional[str] = None
        self._bundles: Tuple[Bundle, ...] = ()
        self._bundles_for: Optional[SelectionState] = None
        self._search_results: Tuple[Quiz, ...] = ()
        self._search_for: Optional[SelectionState] = None
        self._handoff: Optional[QuickQuizHandoff] = None

    @classmethod
    def from_config(cls, config: FunnelConfig, *, threaded: bool = False, **kwargs) -> Funnel:
        """Wire the HTTP client and the file progress store from ``config``."""
        client = ApiClient.from_config(config)
        dispatcher = ThreadedDispatcher(config.max_workers) if threaded else None
        return cls(
            client,
            client,
            ProgressStore.from_config(config),
            config=config,
            dispatcher=dispatcher,
            **kwargs,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Session lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def enter(self) -> FunnelView:
        """
        Load the catalog snapshot and show the first screen.

        Never raises for catalog failures; the snapshot falls back to
        defaults instead. Re-entering resets the session.
        """
        catalog = load_catalog(self.catalog_provider, default_flags=self.config.flags_fallback)
        self._machine = FunnelMachine(
            catalog,
            strict=self.config.strict_transitions,
            initial_state=self._initial_state,
        )
        self._invalidate()
        self._bundles, self._bundles_for = (), None
        self._search_results, self._search_for = (), None
        self._ensure_results()
        logger.info(f"Funnel entered on {self._machine.screen.value}")
        return self.view()

    def close(self) -> None:
        self.dispatcher.shutdown()

    @property
    def machine(self) -> FunnelMachine:
        if self._machine is None:
            raise RuntimeError("Funnel.enter() has not been called")
        return self._machine

    @property
    def state(self) -> SelectionState:
        return self.machine.state

    @property
    def catalog(self) -> CatalogSnapshot:
        return self.machine.catalog

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def dispatch(self, event: Event) -> FunnelView:
        """
        Apply a user event and start any request it calls for.

        Raises:
            InvalidTransitionError: Only with ``strict_transitions``
        """
        before = self.machine.state
        transition = self.machine.apply(event)
        self._coming_soon = None
        if self.machine.state != before:
            self._error = None
            self._failed = None
        if transition.effect is not None:
            self._run_effect(transition.effect)
        return self.view()

    def back(self) -> FunnelView:
        """
        Go back one step. Never blocked by in-flight requests; they are
        invalidated instead.
        """
        self._invalidate()
        self._error = None
        self._failed = None
        self._coming_soon = None
        target = self.machine.back()
        logger.debug(f"Back to {screen(target).value}")
        self._ensure_results()
        return self.view()

    def retry(self) -> FunnelView:
        """Re-issue the last failed request for the current state."""
        failed = self._failed
        if failed is None:
            logger.debug("Nothing to retry")
            return self.view()
        if failed.key != _key_for(failed.kind, self.machine.state):
            logger.debug("Failed request no longer matches the current state")
            self._failed = None
            self._error = None
            return self.view()
        self._failed = None
        self._error = None
        self._issue(failed.kind, failed.call)
        return self.view()

    def poll(self) -> int:
        """Apply completions queued by a threaded dispatcher."""
        return self.dispatcher.drain()

    def handoff(self) -> Optional[QuickQuizHandoff]:
        """Take the pending quick-quiz handoff, if the student chose Quick Quiz."""
        handoff, self._handoff = self._handoff, None
        return handoff

    # ─────────────────────────────────────────────────────────────────────────
    # Effects and requests
    # ─────────────────────────────────────────────────────────────────────────

    def _run_effect(self, effect: Effect) -> None:
        resolver = self.bundle_resolver

        if isinstance(effect, ComingSoon):
            self._coming_soon = category_label(effect.category)
        elif isinstance(effect, DiscoverBundles):
            q = effect.query
            self._issue(
                RequestKind.DISCOVERY,
                lambda: resolver.resolve_bundles(q.grade, q.medium, q.subject, None),
            )
        elif isinstance(effect, ResolveBundles):
            self._issue(RequestKind.BUNDLES, self._resolve_call(effect.query))
        elif isinstance(effect, SearchQuizzes):
            text = effect.query
            self._issue(RequestKind.SEARCH, lambda: resolver.search(text))
        elif isinstance(effect, RestoreScopedResults):
            self._latest.pop(RequestKind.SEARCH, None)
            self._search_results, self._search_for = (), None
            if self._failed is not None and self._failed.kind is RequestKind.SEARCH:
                self._failed, self._error = None, None
            self._ensure_results()
        elif isinstance(effect, StartQuickQuiz):
            self._handoff = effect.handoff
            logger.info(f"Quick quiz handoff: {effect.handoff.to_dict()}")
        else:
            raise TypeError(f"Unknown funnel effect: {effect!r}")

    def _resolve_call(self, query: ResolverQuery) -> Callable[[], Any]:
        resolver = self.bundle_resolver
        paper_type = query.paper_type.value if query.paper_type else None
        return lambda: resolver.resolve_bundles(
            query.grade, query.medium, query.subject, paper_type, query.term or None
        )

    def _ensure_results(self) -> None:
        """Resolve bundles for the bundle list if they are neither loaded nor in flight."""
        state = self.machine.state
        if screen(state) is not ScreenId.BUNDLE_LIST:
            return
        key = _scoped(state)
        if self._bundles_for == key or self._in_flight(RequestKind.BUNDLES, key):
            return
        self._issue(RequestKind.BUNDLES, self._resolve_call(build_query(state)))

    def _in_flight(self, kind: RequestKind, key: SelectionState) -> bool:
        token = self._latest.get(kind)
        pending = self._pending.get(token) if token is not None else None
        return pending is not None and pending.key == key

    def _issue(self, kind: RequestKind, call: Callable[[], Any]) -> int:
        self._next_token += 1
        token = self._next_token
        request = _PendingRequest(token=token, kind=kind, key=_key_for(kind, self.machine.state), call=call)
        self._latest[kind] = token
        self._pending[token] = request
        logger.debug(f"Issued {kind.value} request #{token}")
        self.dispatcher.submit(token, call, self._complete)
        return token

    def _invalidate(self) -> None:
        if self._pending:
            logger.debug(f"Invalidating {len(self._pending)} in-flight request(s)")
        self._latest.clear()
        self._pending.clear()

    def _complete(self, outcome: Outcome) -> None:
        request = self._pending.pop(outcome.token, None)
        if request is None:
            logger.debug(f"Discarding stale response #{outcome.token} (invalidated)")
            return
        if self._latest.get(request.kind) != outcome.token:
            logger.debug(f"Discarding stale {request.kind.value} response #{outcome.token} (superseded)")
            return
        if request.key != _key_for(request.kind, self.machine.state):
            logger.debug(f"Discarding stale {request.kind.value} response #{outcome.token} (state changed)")
            return

        if not outcome.ok:
            self._fail(request, outcome.error)
            return

        if request.kind is RequestKind.DISCOVERY:
            self.machine.confirm_grade()
            logger.info(f"Grade selection confirmed: {len(outcome.value)} bundle(s) available")
        elif request.kind is RequestKind.BUNDLES:
            self._bundles = tuple(outcome.value)
            self._bundles_for = request.key
            logger.info(f"Showing {len(self._bundles)} bundle(s)")
        elif request.kind is RequestKind.SEARCH:
            self._search_results = tuple(outcome.value)
            self._search_for = request.key

    def _fail(self, request: _PendingRequest, error: BaseException) -> None:
        if not isinstance(error, RESOLUTION_ERRORS):
            raise error
        logger.warning(f"{request.kind.value} request #{request.token} failed: {error}")
        self._failed = request
        self._error = FunnelError(str(error), request.kind, error)

    # ─────────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────────

    def view(self) -> FunnelView:
        machine = self.machine
        state = machine.state
        current = machine.screen
        catalog = machine.catalog

        options: Tuple[Option, ...] = ()
        grade_form: Dict[str, Tuple[Option, ...]] = {}
        if current is ScreenId.ENTRY_CHOOSER:
            options = category_options(catalog.flags)
            if catalog.flags.grade_selection_enabled:
                grade_form = {
                    "grade": grade_options(),
                    "medium": medium_options(),
                    "subject": self._subject_option_list(state),
                }
        elif current is ScreenId.CATEGORY_LANGUAGE_CHOOSER:
            options = language_options()
        elif current is ScreenId.SUBJECT_CHOOSER:
            options = self._subject_option_list(state)
        elif current is ScreenId.PAPER_TYPE_CHOOSER:
            options = paper_type_option_list(state)
        elif current is ScreenId.TERM_CHOOSER:
            options = term_options()
        elif current is ScreenId.TOPIC_CHOOSER:
            options = topic_options(state)

        bundles: Tuple[Bundle, ...] = ()
        results: Tuple[Quiz, ...] = ()
        if current is ScreenId.BUNDLE_LIST:
            if self._bundles_for == _scoped(state):
                bundles = self._bundles
            if state.search_query and self._search_for == state:
                results = self._search_results

        loading = any(
            request.key == _key_for(request.kind, state) and self._latest.get(request.kind) == token
            for token, request in self._pending.items()
        )
        back_screen = None
        if current is not ScreenId.ENTRY_CHOOSER or machine.history:
            back_screen = screen(machine.back_target())

        return FunnelView(
            screen=current,
            state=state,
            options=options,
            grade_form=grade_form,
            bundles=bundles,
            search_results=results,
            error=self._error,
            loading=loading,
            coming_soon=self._coming_soon,
            back_screen=back_screen,
            degraded=catalog.degraded,
        )

    def _subject_option_list(self, state: SelectionState) -> Tuple[Option, ...]:
        return tuple(Option(value=s.value, label=s.name) for s in subject_options(state, self.catalog.subjects))

    # ─────────────────────────────────────────────────────────────────────────
    # Quiz activation
    # ─────────────────────────────────────────────────────────────────────────

    def _find_quiz(self, quiz_id: str) -> Quiz:
        for quiz in self.view().quizzes:
            if quiz.id == quiz_id:
                return quiz
        raise KeyError(f"Quiz {quiz_id!r} is not listed")

    def _incomplete(self) -> List[IncompleteRecord]:
        if self.progress_tracker is None:
            return []
        return list(self.progress_tracker.list_incomplete())

    def activate(self, quiz_id: str) -> Activation:
        """
        What happens when the student picks a listed quiz.

        Returns:
            Locked (needs payment), ResumePrompt (saved attempt found) or
            Fresh

        Raises:
            KeyError: If the quiz is not currently listed
        """
        quiz = self._find_quiz(quiz_id)
        outcome = activate(quiz, self._incomplete())
        logger.debug(f"Activated {quiz_id}: {type(outcome).__name__}")
        return outcome

    def start(self, quiz_id: str, choice: ResumeChoice = ResumeChoice.START_FRESH) -> QuizLaunchContext:
        """
        Hand a listed quiz to the quiz-taking flow.

        The saved attempt is never touched here; with ``resume=False`` the
        quiz-taking flow discards it. Continuing when nothing was saved
        starts fresh.

        Raises:
            KeyError: If the quiz is not currently listed
            QuizLockedError: If the quiz requires payment
        """
        outcome = self.activate(quiz_id)
        if isinstance(outcome, Locked):
            raise QuizLockedError(outcome.quiz)

        resume = False
        if isinstance(outcome, ResumePrompt):
            resume = choice is ResumeChoice.CONTINUE
        elif choice is ResumeChoice.CONTINUE:
            logger.warning(f"No saved attempt for {quiz_id}; starting fresh")

        context = launch_context(self.machine.state, outcome.quiz, resume=resume)
        logger.info(f"Launching quiz {quiz_id} (resume={resume})")
        return context
