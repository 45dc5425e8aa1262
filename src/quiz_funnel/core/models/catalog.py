"""
Module: catalog

Purpose:
    Read-only catalog data consumed by the funnel: subject entries and the
    admin-controlled feature flags. Both are parsed from API payloads
    (camelCase) into frozen dataclasses.

Key Classes:
    - Subject: One catalog subject (band, active flag, display order)
    - FeatureFlags: Immutable snapshot of the category/path toggles

Dependencies:
    - dataclasses (std)

Used By:
    - quiz_funnel.funnel.options: Subject derivation, category gating
    - quiz_funnel.funnel.catalog: Snapshot loading with fallback
    - quiz_funnel.api.client: Payload parsing
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .selection import Category


@dataclass(frozen=True)
class Subject:
    """
    Catalog subject entry.

    Attributes:
        value: Subject key sent to the resolver (e.g. "combined-mathematics")
        name: Display name
        category: Catalog band ("Grade 6-9", "Grade 10-11", "Grade 12-13",
            "Scholarship")
        is_active: Inactive subjects are never offered
        display_order: Ascending sort key within a band
    """

    value: str
    name: str
    category: str
    is_active: bool = True
    display_order: int = 0

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Subject value must be non-empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Subject:
        """Parse an API subject payload."""
        return cls(
            value=str(data["value"]),
            name=str(data.get("name") or data["value"]),
            category=str(data["category"]),
            is_active=bool(data.get("isActive", True)),
            display_order=int(data.get("displayOrder") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "name": self.name,
            "category": self.category,
            "isActive": self.is_active,
            "displayOrder": self.display_order,
        }


@dataclass(frozen=True)
class FeatureFlags:
    """
    Admin-controlled toggles (immutable snapshot).

    Fetched once on funnel entry and passed explicitly into every
    transition; never read from module state.

    Example:
        >>> flags = FeatureFlags.conservative()
        >>> flags.is_enabled(Category.ADVANCED_LEVEL)
        True
        >>> flags.grade_selection_enabled
        False
    """

    scholarship_enabled: bool
    advanced_level_enabled: bool
    ordinary_level_enabled: bool
    grade_selection_enabled: bool

    @classmethod
    def conservative(cls) -> FeatureFlags:
        """
        Defaults used when the settings fetch fails.

        Grade selection and scholarship off, A/L on, so the funnel stays
        navigable without exposing tracks that may not be provisioned.
        """
        return cls(
            scholarship_enabled=False,
            advanced_level_enabled=True,
            ordinary_level_enabled=False,
            grade_selection_enabled=False,
        )

    @classmethod
    def all_enabled(cls) -> FeatureFlags:
        return cls(True, True, True, True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FeatureFlags:
        """Parse the API ``/settings`` payload."""
        return cls(
            scholarship_enabled=bool(data.get("enableScholarship", False)),
            advanced_level_enabled=bool(data.get("enableAL", False)),
            ordinary_level_enabled=bool(data.get("enableOL", False)),
            grade_selection_enabled=bool(data.get("enableGradeSelection", False)),
        )

    def is_enabled(self, category: Category) -> bool:
        """Whether ``category`` may be entered."""
        if category is Category.SCHOLARSHIP:
            return self.scholarship_enabled
        if category is Category.ADVANCED_LEVEL:
            return self.advanced_level_enabled
        if category is Category.ORDINARY_LEVEL:
            return self.ordinary_level_enabled
        raise AssertionError(f"Unhandled category: {category!r}")
