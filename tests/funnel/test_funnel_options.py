"""
Unit tests for option derivation.

Tests the legal option sets offered on each chooser screen.
"""

import pytest

from quiz_funnel.core.models import Category, FeatureFlags, PaperType, SelectionState, Subject
from quiz_funnel.funnel.options import (
    category_options,
    grade_band,
    grade_number,
    option_values,
    paper_type_options,
    requires_term,
    subject_options,
    topic_options,
)


def grade_path(grade: str, **kwargs) -> SelectionState:
    return SelectionState(grade=grade, medium="english", subject="mathematics", **kwargs)


class TestGradeHelpers:
    @pytest.mark.parametrize(
        "grade, expected",
        [("grade-8", 8), ("grade-13", 13), ("12", 12), ("grade-x", None), ("", None)],
    )
    def test_grade_number(self, grade, expected):
        assert grade_number(grade) == expected

    @pytest.mark.parametrize(
        "number, band",
        [(5, "Grade 6-9"), (9, "Grade 6-9"), (10, "Grade 10-11"), (13, "Grade 12-13"), (14, None), (None, None)],
    )
    def test_grade_band(self, number, band):
        assert grade_band(number) == band


class TestPaperTypeOptions:
    """Legal paper types per category and grade."""

    @pytest.mark.parametrize("number", range(6, 14))
    def test_grade_path_in_term_range_offers_model_and_school_only(self, number):
        state = grade_path(f"grade-{number}")

        assert set(paper_type_options(state)) == {PaperType.MODEL_PAPERS, PaperType.SCHOOL_PAPERS}

    def test_grade_path_outside_term_range_offers_general_set(self):
        options = paper_type_options(grade_path("grade-5"))

        assert set(options) == {
            PaperType.PAST_PAPERS,
            PaperType.MODEL_PAPERS,
            PaperType.SCHOOL_PAPERS,
            PaperType.QUICK_QUIZ,
        }

    def test_scholarship_offers_past_and_model_only(self):
        state = SelectionState(category=Category.SCHOLARSHIP)

        assert paper_type_options(state) == (PaperType.PAST_PAPERS, PaperType.MODEL_PAPERS)

    @pytest.mark.parametrize("category", [Category.ADVANCED_LEVEL, Category.ORDINARY_LEVEL])
    def test_lessonwise_offered_only_once_subject_is_set(self, category):
        without_subject = SelectionState(category=category, language="english")
        with_subject = SelectionState(category=category, language="english", subject="mathematics")

        assert PaperType.LESSONWISE not in paper_type_options(without_subject)
        assert PaperType.LESSONWISE in paper_type_options(with_subject)

    def test_lessonwise_never_offered_on_grade_path_or_scholarship(self):
        for state in (grade_path("grade-5"), grade_path("grade-8"), SelectionState(category=Category.SCHOLARSHIP)):
            assert PaperType.LESSONWISE not in paper_type_options(state)


class TestRequiresTerm:
    def test_grade_path_model_papers_in_range_requires_term(self):
        assert requires_term(grade_path("grade-8", paper_type=PaperType.MODEL_PAPERS))

    def test_grade_five_never_requires_term(self):
        assert not requires_term(grade_path("grade-5", paper_type=PaperType.MODEL_PAPERS))

    def test_category_path_never_requires_term(self):
        state = SelectionState(
            category=Category.ORDINARY_LEVEL, language="english", subject="science",
            paper_type=PaperType.SCHOOL_PAPERS,
        )

        assert not requires_term(state)


class TestSubjectOptions:
    """Catalog filtering, ordering and fallback."""

    @pytest.fixture
    def subjects(self):
        return [
            Subject("chemistry", "Chemistry", "Grade 12-13", display_order=2),
            Subject("physics", "Physics", "Grade 12-13", display_order=1),
            Subject("agriculture", "Agriculture", "Grade 12-13", is_active=False, display_order=0),
            Subject("science", "Science", "Grade 10-11", display_order=1),
        ]

    def test_active_subjects_of_band_sorted_by_display_order(self, subjects):
        state = SelectionState(category=Category.ADVANCED_LEVEL, language="english")

        assert [s.value for s in subject_options(state, subjects)] == ["physics", "chemistry"]

    def test_falls_back_to_built_in_list_when_band_has_no_active_subjects(self, subjects):
        state = SelectionState(grade="grade-7", medium="english")

        values = [s.value for s in subject_options(state, subjects)]

        assert values[:2] == ["mathematics", "science"]

    def test_grade_five_uses_lower_band(self):
        state = SelectionState(grade="grade-5", medium="english")

        assert "mathematics" in [s.value for s in subject_options(state, [])]

    def test_scholarship_has_no_subjects(self, subjects):
        assert subject_options(SelectionState(category=Category.SCHOLARSHIP), subjects) == []

    def test_no_grade_yields_no_subjects(self, subjects):
        assert subject_options(SelectionState(), subjects) == []


class TestTopicAndCategoryOptions:
    def test_al_physics_lessonwise_topics(self):
        state = SelectionState(
            category=Category.ADVANCED_LEVEL, language="english", subject="physics",
            paper_type=PaperType.LESSONWISE,
        )

        assert option_values(topic_options(state)) == [
            "waves", "mechanics", "thermodynamics", "optics", "electricity", "modern-physics",
        ]

    def test_topics_empty_off_lessonwise_branch(self):
        state = SelectionState(
            category=Category.ADVANCED_LEVEL, language="english", subject="physics",
            paper_type=PaperType.PAST_PAPERS,
        )

        assert topic_options(state) == ()

    def test_category_options_reflect_flags(self):
        options = {o.value: o.enabled for o in category_options(FeatureFlags.conservative())}

        assert options == {"scholarship": False, "al": True, "ol": False}
