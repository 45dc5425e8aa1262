"""
Schemas Package

JSON schema definitions and validation utilities for API payloads and
stored progress records.
"""

from .validator import (
    validate_bundle,
    validate_progress_record,
    validate_quiz,
    validate_settings,
    validate_subject,
    ValidationError,
    SUBJECT_SCHEMA_VERSION,
    PROGRESS_SCHEMA_VERSION,
)

__all__ = [
    "validate_bundle",
    "validate_progress_record",
    "validate_quiz",
    "validate_settings",
    "validate_subject",
    "ValidationError",
    "SUBJECT_SCHEMA_VERSION",
    "PROGRESS_SCHEMA_VERSION",
]
