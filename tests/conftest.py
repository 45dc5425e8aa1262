import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

# Add src to sys.path so we can import quiz_funnel
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from quiz_funnel.api.client import ApiError  # noqa: E402
from quiz_funnel.core.models import (  # noqa: E402
    Bundle,
    FeatureFlags,
    IncompleteRecord,
    Quiz,
    Subject,
)
from quiz_funnel.funnel.catalog import CatalogSnapshot  # noqa: E402


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────

class FakeCatalog:
    """Catalog Provider returning canned data, or raising when told to."""

    def __init__(self, flags=None, subjects=None, flags_error=None, subjects_error=None):
        self.flags = flags or FeatureFlags.all_enabled()
        self.subjects = list(subjects or [])
        self.flags_error = flags_error
        self.subjects_error = subjects_error

    def get_feature_flags(self) -> FeatureFlags:
        if self.flags_error:
            raise self.flags_error
        return self.flags

    def get_subjects(self) -> List[Subject]:
        if self.subjects_error:
            raise self.subjects_error
        return list(self.subjects)


class FakeResolver:
    """Bundle Resolver recording every call."""

    def __init__(self, bundles=None, search_results=None):
        self.bundles = list(bundles or [])
        self.search_results = list(search_results or [])
        self.calls: List[tuple] = []
        self.searches: List[str] = []
        self.error: Optional[Exception] = None

    def resolve_bundles(self, grade, medium, subject, paper_type, term=None):
        self.calls.append((grade, medium, subject, paper_type, term))
        if self.error:
            raise self.error
        return list(self.bundles)

    def search(self, query):
        self.searches.append(query)
        if self.error:
            raise self.error
        return list(self.search_results)


class FakeProgress:
    """Progress Tracker backed by a dict."""

    def __init__(self, records=None):
        self.records: Dict[str, IncompleteRecord] = {r.quiz_id: r for r in records or []}

    def list_incomplete(self) -> List[IncompleteRecord]:
        return list(self.records.values())


class ManualDispatcher:
    """Holds submitted calls until the test completes them, in any order."""

    def __init__(self):
        self.submitted: List[tuple] = []

    def submit(self, token, call, on_complete):
        self.submitted.append((token, call, on_complete))

    def complete(self, index: int = 0):
        from quiz_funnel.funnel.dispatch import _run

        token, call, on_complete = self.submitted.pop(index)
        on_complete(_run(token, call))

    def complete_all(self):
        while self.submitted:
            self.complete(0)

    def drain(self) -> int:
        return 0

    def shutdown(self) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def make_quiz(quiz_id: str, **kwargs) -> Quiz:
    kwargs.setdefault("title", f"Quiz {quiz_id}")
    return Quiz(id=quiz_id, **kwargs)


def make_bundle(bundle_id: str, *quizzes: Quiz) -> Bundle:
    return Bundle(id=bundle_id, title=f"Bundle {bundle_id}", year="2024", quizzes=tuple(quizzes))


def make_record(quiz_id: str, current_index: int = 3, saved_at: datetime = NOW) -> IncompleteRecord:
    return IncompleteRecord(
        quiz_id=quiz_id,
        current_index=current_index,
        total_questions=20,
        time_remaining=600,
        last_saved_at=saved_at,
        quiz_title=f"Quiz {quiz_id}",
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def all_enabled() -> CatalogSnapshot:
    """Snapshot with every flag on and the built-in subject lists."""
    return CatalogSnapshot(flags=FeatureFlags.all_enabled())


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver(
        bundles=[make_bundle("b1", make_quiz("q1"), make_quiz("q2", is_locked=True))],
        search_results=[make_quiz("s1", subject="chemistry", grade="grade-12")],
    )


@pytest.fixture
def progress() -> FakeProgress:
    return FakeProgress()


@pytest.fixture
def api_error() -> ApiError:
    return ApiError("Service unavailable", status=503)
