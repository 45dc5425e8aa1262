"""
Unit tests for gating, resume reconciliation and the launch context.
"""

from datetime import timedelta

import pytest

from conftest import make_quiz, make_record
from quiz_funnel.core.models import Category, PaperType, SelectionState
from quiz_funnel.funnel.resume import (
    Fresh,
    Locked,
    ResumePrompt,
    activate,
    launch_context,
    reconcile,
)


class TestReconcile:
    def test_matching_record_yields_resume_prompt(self, now):
        quiz = make_quiz("q1")
        record = make_record("q1", saved_at=now)

        outcome = reconcile(quiz, [make_record("q9"), record])

        assert outcome == ResumePrompt(quiz, record)

    def test_no_matching_record_yields_fresh(self):
        quiz = make_quiz("q1")

        assert reconcile(quiz, [make_record("q2")]) == Fresh(quiz)

    def test_latest_record_wins_when_duplicated(self, now):
        older = make_record("q1", current_index=2, saved_at=now - timedelta(hours=3))
        newer = make_record("q1", current_index=7, saved_at=now)

        outcome = reconcile(make_quiz("q1"), [newer, older])

        assert outcome.record.current_index == 7


class TestActivate:
    def test_locked_quiz_is_gated_before_reconciliation(self):
        quiz = make_quiz("q1", is_locked=True)

        assert activate(quiz, [make_record("q1")]) == Locked(quiz)

    def test_locked_but_free_quiz_is_not_gated(self):
        quiz = make_quiz("q1", is_locked=True, is_free=True)

        assert isinstance(activate(quiz, []), Fresh)


class TestLaunchContext:
    @pytest.fixture
    def state(self) -> SelectionState:
        return SelectionState(
            category=Category.ADVANCED_LEVEL,
            language="english",
            subject="physics",
            paper_type=PaperType.LESSONWISE,
            topic="waves",
        )

    def test_context_from_selection(self, state):
        context = launch_context(state, make_quiz("q1"), resume=True)

        assert context.to_dict() == {
            "quizId": "q1",
            "grade": "grade-12",
            "medium": "english",
            "subject": "physics",
            "paperType": "lessonwise",
            "category": "al",
            "language": "english",
            "topic": "waves",
            "term": "",
            "resume": True,
        }

    def test_quiz_fields_take_precedence(self, state):
        quiz = make_quiz("s1", subject="chemistry", grade="grade-13", type="past-papers")

        context = launch_context(state.with_search("organic"), quiz, resume=False)

        assert (context.subject, context.grade, context.paper_type) == ("chemistry", "grade-13", "past-papers")
        assert context.resume is False
