"""
Module: quizzes

Purpose:
    Resolver results (Quiz, Bundle), the Progress Tracker's incomplete
    attempt record, and the handoff contexts passed to the quiz-taking and
    quick-quiz configuration flows.

Key Classes:
    - Quiz: Opaque quiz as far as the funnel is concerned (id, title, gating)
    - Bundle: Resolver-returned group of quizzes
    - IncompleteRecord: Saved, unfinished attempt
    - QuizLaunchContext: Fully-resolved context handed to quiz delivery
    - QuickQuizHandoff: Context handed to the quick-quiz configuration flow

Dependencies:
    - dataclasses (std)
    - datetime (std)

Used By:
    - quiz_funnel.api.client: Payload parsing
    - quiz_funnel.funnel.resume: Resume reconciliation
    - quiz_funnel.progress.store: Record persistence
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z``; naive values are assumed to be UTC.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime the way the API writes it (UTC, ``Z`` suffix)."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Quiz:
    """
    Quiz as seen by the funnel.

    Only ``id``, ``title``, ``is_locked`` and ``is_free`` drive behaviour
    (gating and resume reconciliation); the rest is carried for display.
    """

    id: str
    title: str
    is_locked: bool = False
    is_free: bool = False
    subject: str = ""
    grade: str = ""
    medium: str = ""
    type: str = ""
    year: Optional[int] = None
    question_count: int = 0
    time_limit: int = 0
    difficulty: str = ""
    display_order: int = 0

    @property
    def requires_access(self) -> bool:
        """Locked quizzes that are not free must go through payment."""
        return self.is_locked and not self.is_free

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Quiz:
        """Parse an API quiz payload."""
        year = data.get("year")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            is_locked=bool(data.get("isLocked", False)),
            is_free=bool(data.get("isFree", False)),
            subject=str(data.get("subject") or ""),
            grade=str(data.get("grade") or ""),
            medium=str(data.get("medium") or ""),
            type=str(data.get("type") or ""),
            year=int(year) if year not in (None, "") else None,
            question_count=int(data.get("questionCount") or 0),
            time_limit=int(data.get("timeLimit") or 0),
            difficulty=str(data.get("difficulty") or ""),
            display_order=int(data.get("displayOrder") or 0),
        )


@dataclass(frozen=True)
class Bundle:
    """
    Group of quizzes sharing year/difficulty metadata.

    Attributes:
        id: Bundle identifier
        title: Display title
        description: Display description
        year: Year label (the API sends it as a string)
        paper_count: Number of papers advertised
        difficulty: Difficulty label
        quizzes: Quizzes in display order
    """

    id: str
    title: str
    description: str = ""
    year: str = ""
    paper_count: int = 0
    difficulty: str = ""
    quizzes: Tuple[Quiz, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Bundle:
        """Parse an API bundle payload (quizzes sorted by display order)."""
        quizzes = tuple(
            sorted(
                (Quiz.from_dict(q) for q in data.get("quizzes") or []),
                key=lambda q: q.display_order,
            )
        )
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            year=str(data.get("year") or ""),
            paper_count=int(data.get("paperCount") or len(quizzes)),
            difficulty=str(data.get("difficulty") or ""),
            quizzes=quizzes,
        )


@dataclass(frozen=True)
class IncompleteRecord:
    """
    Unfinished attempt stored by the Progress Tracker.

    Attributes:
        quiz_id: Quiz the attempt belongs to
        current_index: Zero-based index of the question to resume at
        total_questions: Question count of the attempt
        time_remaining: Seconds left on the attempt clock
        last_saved_at: Aware UTC datetime of the last save
        quiz_title: Display title
        quiz_data: Selection context saved with the attempt
    """

    quiz_id: str
    current_index: int
    total_questions: int
    time_remaining: int
    last_saved_at: datetime
    quiz_title: str = ""
    quiz_data: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        if self.current_index < 0:
            raise ValueError(f"current_index must be non-negative: {self.current_index}")
        if self.time_remaining < 0:
            raise ValueError(f"time_remaining must be non-negative: {self.time_remaining}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IncompleteRecord:
        return cls(
            quiz_id=str(data["quizId"]),
            current_index=int(data.get("currentQuestionIndex", 0)),
            total_questions=int(data.get("totalQuestions", 0)),
            time_remaining=int(data.get("timeRemaining", 0)),
            last_saved_at=parse_timestamp(str(data["lastSavedAt"])),
            quiz_title=str(data.get("quizTitle") or ""),
            quiz_data=dict(data.get("quizData") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "currentQuestionIndex": self.current_index,
            "totalQuestions": self.total_questions,
            "timeRemaining": self.time_remaining,
            "lastSavedAt": format_timestamp(self.last_saved_at),
            "quizData": dict(self.quiz_data),
        }


@dataclass(frozen=True)
class QuizLaunchContext:
    """
    Fully-resolved context handed to the quiz-taking flow.

    The funnel does not await the quiz flow; it only produces this value.
    ``resume`` tells the quiz flow to reopen the stored attempt instead of
    discarding it and starting at question 0.
    """

    quiz_id: str
    grade: str
    medium: str
    subject: str
    paper_type: str
    category: Optional[str]
    language: str
    topic: str
    term: str
    resume: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "grade": self.grade,
            "medium": self.medium,
            "subject": self.subject,
            "paperType": self.paper_type,
            "category": self.category,
            "language": self.language,
            "topic": self.topic,
            "term": self.term,
            "resume": self.resume,
        }


@dataclass(frozen=True)
class QuickQuizHandoff:
    """Context handed to the quick-quiz configuration flow."""

    grade: str
    medium: str
    subject: str
    category: Optional[str]
    language: str
    paper_type: str = "quick-quiz"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grade": self.grade,
            "medium": self.medium or self.language,
            "subject": self.subject,
            "quizType": self.category,
            "language": self.language,
            "paperType": self.paper_type,
        }
