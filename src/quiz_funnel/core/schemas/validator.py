"""
Schema Validation Utilities

Validates API payloads (catalog, settings, bundles, quizzes) and locally
stored progress records before they are turned into models.

Basic required-field and type checks always run; ``strict=True`` adds full
JSON Schema validation against the ``*.schema.json`` files shipped next to
this module.

``SUBJECT_SCHEMA_VERSION`` versions the catalog contract. The built-in
fallback subject lists (``quiz_funnel.common.subjects``) carry the same
version and must validate against the same rules, so the fallback cannot
silently diverge from what the catalog serves.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


# Schema version constants
SUBJECT_SCHEMA_VERSION = 2  # v2 adds displayOrder + isActive to the catalog contract
PROGRESS_SCHEMA_VERSION = 1

KNOWN_SUBJECT_BANDS = ("Grade 6-9", "Grade 10-11", "Grade 12-13", "Scholarship")


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _require(data: Any, required: list[str], path: str = "") -> None:
    if not isinstance(data, dict):
        raise ValidationError(
            f"Expected an object, got {type(data).__name__}",
            path=path,
        )
    missing = [f for f in required if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )


def _strict(data: Any, schema_name: str, path: str = "") -> None:
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path)
        raise ValidationError(
            f"Schema validation failed: {e.message}",
            path=f"{path}.{location}" if path and location else (path or location),
            errors=[e.message],
        )


def validate_subject(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """
    Validate a catalog subject entry.

    Args:
        data: Subject dictionary (API camelCase)
        strict: If True, also run JSON Schema validation
        path: Location prefix used in error messages

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["value", "name", "category"], path)

    value = data["value"]
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid subject value: {value!r}", path=f"{path}.value".lstrip("."))

    category = data["category"]
    if category not in KNOWN_SUBJECT_BANDS:
        raise ValidationError(
            f"Unknown subject category: {category!r} (expected one of {KNOWN_SUBJECT_BANDS})",
            path=f"{path}.category".lstrip("."),
        )

    order = data.get("displayOrder", 0)
    if not isinstance(order, int) or isinstance(order, bool):
        raise ValidationError(
            f"Invalid displayOrder: {order!r} (must be an integer)",
            path=f"{path}.displayOrder".lstrip("."),
        )

    if strict:
        _strict(data, "subject", path)


def validate_settings(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate the ``/settings`` feature-flag payload.

    Raises:
        ValidationError: If data is invalid
    """
    flags = ["enableScholarship", "enableAL", "enableOL", "enableGradeSelection"]
    _require(data, flags)
    for flag in flags:
        if not isinstance(data[flag], bool):
            raise ValidationError(
                f"Invalid {flag}: {data[flag]!r} (must be a boolean)",
                path=flag,
            )

    if strict:
        _strict(data, "settings")


def validate_quiz(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """
    Validate a quiz payload (search result or bundle member).

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["id", "title"], path)
    if not str(data["id"]).strip():
        raise ValidationError("Quiz id must be non-empty", path=f"{path}.id".lstrip("."))

    for flag in ("isLocked", "isFree"):
        if flag in data and data[flag] is not None and not isinstance(data[flag], bool):
            raise ValidationError(
                f"Invalid {flag}: {data[flag]!r} (must be a boolean)",
                path=f"{path}.{flag}".lstrip("."),
            )

    if strict:
        _strict(data, "quiz", path)


def validate_bundle(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """
    Validate a quiz bundle payload, including its quizzes.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["id", "title", "quizzes"], path)

    quizzes = data["quizzes"]
    if not isinstance(quizzes, list):
        raise ValidationError("quizzes must be a list", path=f"{path}.quizzes".lstrip("."))
    for i, quiz in enumerate(quizzes):
        validate_quiz(quiz, path=f"{path}.quizzes[{i}]".lstrip("."))

    if strict:
        _strict(data, "bundle", path)


def validate_progress_record(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a locally stored incomplete-attempt record.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["quizId", "currentQuestionIndex", "totalQuestions", "timeRemaining", "lastSavedAt"])

    for field_name in ("currentQuestionIndex", "totalQuestions", "timeRemaining"):
        value = data[field_name]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValidationError(
                f"Invalid {field_name}: {value!r} (must be a non-negative integer)",
                path=field_name,
            )

    if not isinstance(data["lastSavedAt"], str):
        raise ValidationError("lastSavedAt must be an ISO timestamp string", path="lastSavedAt")

    if strict:
        _strict(data, "progress")
