"""Common catalog vocabularies shared across the funnel."""

from __future__ import annotations

from .subjects import (
    FALLBACK_CATALOG_VERSION,
    GRADES,
    MEDIUMS,
    SCHOLARSHIP_SUBJECT,
    TERMS,
    fallback_catalog,
    fallback_subjects,
    lessonwise_topics,
)

__all__ = [
    "FALLBACK_CATALOG_VERSION",
    "GRADES",
    "MEDIUMS",
    "SCHOLARSHIP_SUBJECT",
    "TERMS",
    "fallback_catalog",
    "fallback_subjects",
    "lessonwise_topics",
]
