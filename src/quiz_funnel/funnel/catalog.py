"""
Module: funnel.catalog

Purpose:
    Load the read-only catalog snapshot (feature flags + subjects) once on
    funnel entry. A failed or malformed fetch never blocks navigation: the
    flags fall back to the configured defaults and the subjects to the
    built-in list, each with a warning.

Key Functions:
    - load_catalog(): Fetch with per-part fallback

Key Classes:
    - CatalogSnapshot: Immutable flags + subjects pair passed to transitions

Dependencies:
    - requests: Transport errors raised by the API client
    - quiz_funnel.api.client: ApiError
    - quiz_funnel.common.subjects: Built-in fallback

Used By:
    - quiz_funnel.funnel.transitions: Injected into apply()
    - quiz_funnel.funnel.controller: Funnel.enter()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import requests

from quiz_funnel.api.client import ApiError
from quiz_funnel.common.subjects import fallback_catalog
from quiz_funnel.core.models import FeatureFlags, Subject
from quiz_funnel.core.schemas import ValidationError

from .protocols import CatalogProvider

logger = logging.getLogger(__name__)

# Failures that mean "configuration unavailable" rather than a bug
CATALOG_ERRORS = (ApiError, ValidationError, requests.RequestException, KeyError, TypeError, ValueError)


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Catalog state as seen by one funnel session.

    Attributes:
        flags: Feature-flag snapshot
        subjects: Catalog subjects (may include inactive entries)
        flags_from_fallback: Flags are the defaults, not the server's
        subjects_from_fallback: Subjects are the built-in list
    """

    flags: FeatureFlags = field(default_factory=FeatureFlags.conservative)
    subjects: Tuple[Subject, ...] = ()
    flags_from_fallback: bool = False
    subjects_from_fallback: bool = False

    @property
    def degraded(self) -> bool:
        return self.flags_from_fallback or self.subjects_from_fallback

    @classmethod
    def offline(cls, flags: Optional[FeatureFlags] = None) -> CatalogSnapshot:
        """Snapshot built entirely from defaults."""
        return cls(
            flags=flags or FeatureFlags.conservative(),
            subjects=tuple(fallback_catalog()),
            flags_from_fallback=True,
            subjects_from_fallback=True,
        )


def load_catalog(
    provider: CatalogProvider,
    *,
    default_flags: Optional[FeatureFlags] = None,
) -> CatalogSnapshot:
    """
    Fetch flags and subjects, degrading each independently.

    Args:
        provider: Catalog Provider
        default_flags: Flags to use if the settings fetch fails
            (conservative defaults when None)

    Returns:
        CatalogSnapshot; never raises for transport or payload errors
    """
    flags_from_fallback = False
    subjects_from_fallback = False

    try:
        flags = provider.get_feature_flags()
    except CATALOG_ERRORS as e:
        flags = default_flags or FeatureFlags.conservative()
        flags_from_fallback = True
        logger.warning(f"Feature flags unavailable, using defaults: {e}")

    try:
        subjects = tuple(provider.get_subjects())
    except CATALOG_ERRORS as e:
        subjects = tuple(fallback_catalog())
        subjects_from_fallback = True
        logger.warning(f"Subject catalog unavailable, using built-in list: {e}")

    logger.info(
        f"Catalog loaded: {len(subjects)} subjects, flags={flags}"
        + (" (degraded)" if flags_from_fallback or subjects_from_fallback else "")
    )
    return CatalogSnapshot(
        flags=flags,
        subjects=subjects,
        flags_from_fallback=flags_from_fallback,
        subjects_from_fallback=subjects_from_fallback,
    )
