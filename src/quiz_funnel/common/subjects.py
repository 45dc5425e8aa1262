"""
Module: common.subjects

Purpose:
    Built-in catalog data the funnel falls back to when the Catalog
    Provider is unreachable or returns no active subjects for a band, plus
    the fixed axis vocabularies (grades, mediums, terms, lessonwise topics).

    The fallback is deterministic and versioned: FALLBACK_CATALOG_VERSION
    must equal the validator's SUBJECT_SCHEMA_VERSION and every entry must
    pass ``validate_subject``. Bumping the catalog contract without
    revisiting this table fails the test suite.

Key Functions:
    - fallback_subjects(): Built-in subjects for a catalog band
    - lessonwise_topics(): Built-in topic list for a track and subject

Dependencies:
    - quiz_funnel.core.models: Subject
    - quiz_funnel.core.schemas: Schema version

Used By:
    - quiz_funnel.funnel.options: Option derivation
    - quiz_funnel.funnel.catalog: Snapshot fallback
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from quiz_funnel.core.models import Category, Subject
from quiz_funnel.core.schemas import SUBJECT_SCHEMA_VERSION

__all__ = [
    "FALLBACK_CATALOG_VERSION",
    "BAND_GRADE_6_9",
    "BAND_GRADE_10_11",
    "BAND_GRADE_12_13",
    "BAND_SCHOLARSHIP",
    "GRADES",
    "MEDIUMS",
    "TERMS",
    "SCHOLARSHIP_SUBJECT",
    "fallback_subjects",
    "fallback_catalog",
    "lessonwise_topics",
]

FALLBACK_CATALOG_VERSION = 2
if FALLBACK_CATALOG_VERSION != SUBJECT_SCHEMA_VERSION:
    raise RuntimeError(
        f"Built-in subject fallback (v{FALLBACK_CATALOG_VERSION}) is out of step "
        f"with the catalog schema (v{SUBJECT_SCHEMA_VERSION})"
    )

BAND_GRADE_6_9 = "Grade 6-9"
BAND_GRADE_10_11 = "Grade 10-11"
BAND_GRADE_12_13 = "Grade 12-13"
BAND_SCHOLARSHIP = "Scholarship"

GRADES: Tuple[str, ...] = tuple(f"grade-{n}" for n in range(5, 14))

# (value, label)
MEDIUMS: Tuple[Tuple[str, str], ...] = (
    ("sinhala", "Sinhala"),
    ("english", "English"),
    ("tamil", "Tamil"),
)

TERMS: Tuple[Tuple[str, str], ...] = (
    ("1st-term", "1st Term"),
    ("2nd-term", "2nd Term"),
    ("3rd-term", "3rd Term"),
)

# Resolver key used for the subject-less scholarship track
SCHOLARSHIP_SUBJECT = "scholarship"


_FALLBACK: Dict[str, Tuple[Tuple[str, str], ...]] = {
    BAND_GRADE_6_9: (
        ("mathematics", "Mathematics"),
        ("science", "Science"),
        ("english", "English"),
        ("sinhala", "Sinhala"),
        ("history", "History"),
        ("geography", "Geography"),
        ("ict", "ICT"),
        ("commerce", "Commerce"),
    ),
    BAND_GRADE_10_11: (
        ("mother-language-sinhala", "Mother Language (Sinhala)"),
        ("mother-language-tamil", "Mother Language (Tamil)"),
        ("religion-buddhism", "Religion (Buddhism)"),
        ("religion-christianity", "Religion (Catholicism / Christianity)"),
        ("religion-islam", "Religion (Islam)"),
        ("religion-hinduism", "Religion (Hinduism)"),
        ("english", "English Language"),
        ("mathematics", "Mathematics"),
        ("science", "Science"),
        ("history", "History"),
    ),
    BAND_GRADE_12_13: (
        ("physics", "Physics"),
        ("chemistry", "Chemistry"),
        ("combined-mathematics", "Combined Mathematics"),
        ("biology", "Biology"),
    ),
    BAND_SCHOLARSHIP: (
        (SCHOLARSHIP_SUBJECT, "Scholarship (General)"),
    ),
}


# (value, label) per (track, subject)
_TOPICS: Dict[Tuple[Category, str], Tuple[Tuple[str, str], ...]] = {
    (Category.ADVANCED_LEVEL, "physics"): (
        ("waves", "Waves Related Questions"),
        ("mechanics", "Mechanics"),
        ("thermodynamics", "Thermodynamics"),
        ("optics", "Optics"),
        ("electricity", "Electricity & Magnetism"),
        ("modern-physics", "Modern Physics"),
    ),
    (Category.ADVANCED_LEVEL, "chemistry"): (
        ("organic", "Organic Chemistry"),
        ("inorganic", "Inorganic Chemistry"),
        ("physical", "Physical Chemistry"),
        ("analytical", "Analytical Chemistry"),
    ),
    (Category.ADVANCED_LEVEL, "combined-mathematics"): (
        ("algebra", "Algebra"),
        ("geometry", "Geometry"),
        ("trigonometry", "Trigonometry"),
        ("calculus", "Calculus"),
        ("statistics", "Statistics & Probability"),
    ),
    (Category.ADVANCED_LEVEL, "biology"): (
        ("cell-biology", "Cell Biology"),
        ("genetics", "Genetics"),
        ("ecology", "Ecology"),
        ("human-biology", "Human Biology"),
        ("plant-biology", "Plant Biology"),
    ),
    (Category.ORDINARY_LEVEL, "mathematics"): (
        ("algebra", "Algebra"),
        ("geometry", "Geometry"),
        ("statistics", "Statistics"),
        ("measurement", "Measurement"),
    ),
    (Category.ORDINARY_LEVEL, "science"): (
        ("physics", "Physics"),
        ("chemistry", "Chemistry"),
        ("biology", "Biology"),
    ),
}


def fallback_subjects(band: str) -> List[Subject]:
    """
    Built-in subjects for a catalog band, in display order.

    Args:
        band: Catalog band (e.g. "Grade 12-13")

    Returns:
        Subjects with ``display_order`` matching list position; empty for an
        unknown band.

    Example:
        >>> [s.value for s in fallback_subjects("Grade 12-13")]
        ['physics', 'chemistry', 'combined-mathematics', 'biology']
    """
    return [
        Subject(value=value, name=name, category=band, is_active=True, display_order=index)
        for index, (value, name) in enumerate(_FALLBACK.get(band, ()))
    ]


def fallback_catalog() -> List[Subject]:
    """Every built-in subject across all bands."""
    subjects: List[Subject] = []
    for band in _FALLBACK:
        subjects.extend(fallback_subjects(band))
    return subjects


def lessonwise_topics(category: Category, subject: str) -> Tuple[Tuple[str, str], ...]:
    """
    Lessonwise topics for a track and subject.

    Returns:
        Tuple of (value, label); empty when no topic list is known.

    Example:
        >>> [v for v, _ in lessonwise_topics(Category.ADVANCED_LEVEL, "physics")][:2]
        ['waves', 'mechanics']
    """
    return _TOPICS.get((category, subject), ())
