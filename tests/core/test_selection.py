"""
Unit Tests for SelectionState

Tests the invariants and the dependent-axis clearing of the axis setters.
"""

import pytest

from quiz_funnel.core.models import Category, PaperType, SelectionState


class TestSelectionStateInvariants:
    """Tests for __post_init__ validation."""

    def test_term_and_topic_together_then_raises_error(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            SelectionState(category=Category.ADVANCED_LEVEL, term="1st-term", topic="waves")

    def test_grade_confirmed_with_category_then_raises_error(self):
        with pytest.raises(ValueError, match="grade path"):
            SelectionState(
                category=Category.ORDINARY_LEVEL,
                grade="grade-8",
                medium="english",
                subject="science",
                grade_confirmed=True,
            )

    def test_grade_confirmed_without_subject_then_raises_error(self):
        with pytest.raises(ValueError, match="requires grade, medium and subject"):
            SelectionState(grade="grade-8", medium="english", grade_confirmed=True)

    def test_default_state_is_grade_path(self):
        state = SelectionState()

        assert state.on_grade_path
        assert not state.grade_axes_complete


class TestAxisSetters:
    """Resetting an axis clears every axis that depends on it."""

    @pytest.fixture
    def deep_al_state(self) -> SelectionState:
        return SelectionState(
            category=Category.ADVANCED_LEVEL,
            language="english",
            subject="physics",
            paper_type=PaperType.LESSONWISE,
            topic="waves",
            search_query="pendulum",
        )

    def test_with_category_clears_dependents(self, deep_al_state):
        state = deep_al_state.with_category(Category.ORDINARY_LEVEL)

        assert state.category is Category.ORDINARY_LEVEL
        assert (state.language, state.subject, state.term, state.topic, state.search_query) == ("", "", "", "", "")
        assert state.paper_type is None

    def test_with_subject_clears_topic(self, deep_al_state):
        state = deep_al_state.with_subject("chemistry")

        assert state.subject == "chemistry"
        assert state.topic == ""
        assert state.paper_type is None
        assert state.language == "english"

    def test_with_language_clears_subject_and_below(self, deep_al_state):
        state = deep_al_state.with_language("tamil")

        assert state.language == "tamil"
        assert state.subject == ""
        assert state.paper_type is None

    def test_with_grade_clears_subject_and_unconfirms(self):
        confirmed = SelectionState(grade="grade-8", medium="english", subject="science", grade_confirmed=True)

        state = confirmed.with_grade("grade-10")

        assert state.subject == ""
        assert not state.grade_confirmed
        assert state.medium == "english"

    def test_with_term_clears_topic_and_with_topic_clears_term(self):
        base = SelectionState(category=Category.ADVANCED_LEVEL, language="english", subject="physics")

        assert base.with_topic("waves").with_term("1st-term").topic == ""
        assert base.with_term("1st-term").with_topic("waves").term == ""

    def test_effective_medium_follows_authoritative_pair(self):
        grade_path = SelectionState(grade="grade-8", medium="sinhala", language="english")
        category_path = SelectionState(category=Category.ADVANCED_LEVEL, medium="sinhala", language="english")

        assert grade_path.effective_medium == "sinhala"
        assert category_path.effective_medium == "english"


class TestSelectionStateSerialization:
    """Tests for to_dict / from_dict."""

    def test_from_dict_restores_enums(self):
        data = {
            "category": "al",
            "language": "english",
            "subject": "physics",
            "paper_type": "past-papers",
        }

        state = SelectionState.from_dict(data)

        assert state.category is Category.ADVANCED_LEVEL
        assert state.paper_type is PaperType.PAST_PAPERS
        assert SelectionState.from_dict(state.to_dict()) == state

    def test_from_dict_when_unknown_category_then_raises_error(self):
        with pytest.raises(ValueError):
            SelectionState.from_dict({"category": "phd"})
