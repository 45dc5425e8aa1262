"""
Quiz-selection funnel.

The pure layer (``transitions``, ``screens``, ``options``, ``query``,
``resume``) never performs I/O; ``machine`` adds history and
``controller`` adds requests, staleness handling and activation.
"""

from .catalog import CatalogSnapshot, load_catalog
from .controller import Funnel, FunnelError, FunnelView, QuizLockedError, RequestKind
from .dispatch import InlineDispatcher, Outcome, ThreadedDispatcher
from .machine import FunnelMachine
from .options import Option
from .query import ResolverQuery, build_query
from .resume import Fresh, Locked, ResumeChoice, ResumePrompt, launch_context, reconcile
from .screens import ScreenId, screen
from .transitions import (
    ChooseCategory,
    ChooseLanguage,
    ChoosePaperType,
    ChooseSubject,
    ChooseTerm,
    ChooseTopic,
    ComingSoon,
    DiscoverBundles,
    Go,
    InvalidTransitionError,
    ResolveBundles,
    RestoreScopedResults,
    Search,
    SearchQuizzes,
    SetGradeAxis,
    StartQuickQuiz,
    Transition,
    apply,
    back_state,
    confirm_grade,
)

__all__ = [
    "CatalogSnapshot",
    "load_catalog",
    "Funnel",
    "FunnelError",
    "FunnelView",
    "QuizLockedError",
    "RequestKind",
    "InlineDispatcher",
    "ThreadedDispatcher",
    "Outcome",
    "FunnelMachine",
    "Option",
    "ResolverQuery",
    "build_query",
    "Fresh",
    "Locked",
    "ResumeChoice",
    "ResumePrompt",
    "launch_context",
    "reconcile",
    "ScreenId",
    "screen",
    "ChooseCategory",
    "ChooseLanguage",
    "ChoosePaperType",
    "ChooseSubject",
    "ChooseTerm",
    "ChooseTopic",
    "Go",
    "Search",
    "SetGradeAxis",
    "ComingSoon",
    "DiscoverBundles",
    "ResolveBundles",
    "RestoreScopedResults",
    "SearchQuizzes",
    "StartQuickQuiz",
    "InvalidTransitionError",
    "Transition",
    "apply",
    "back_state",
    "confirm_grade",
]
