"""
Module: progress.store

Purpose:
    Local store of unfinished quiz attempts (the Progress Tracker). The
    quiz-taking flow saves an attempt after every answer; the funnel
    reads the incomplete list to offer "resume" when a quiz is activated.

    Records live in one JSON file guarded by portalocker. Attempts older
    than ``max_age_days`` are pruned on read, and a corrupt or invalid
    file degrades to "no saved attempts" with a warning.

Key Classes:
    - ProgressStore: save / load / clear / list_incomplete

Dependencies:
    - portalocker (via .file_locking): Cross-process locking
    - quiz_funnel.core.schemas: Record validation

Used By:
    - quiz_funnel.funnel.controller: Progress Tracker
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from quiz_funnel.core.models import IncompleteRecord
from quiz_funnel.core.schemas import PROGRESS_SCHEMA_VERSION, ValidationError, validate_progress_record

from .file_locking import locked_read_json, locked_read_modify_write_json

logger = logging.getLogger(__name__)


def _empty() -> Dict[str, Any]:
    return {"version": PROGRESS_SCHEMA_VERSION, "records": {}}


def _records_of(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict) or not isinstance(data.get("records"), dict):
        return {}
    return data["records"]


class ProgressStore:
    """
    File-backed Progress Tracker.

    Args:
        path: JSON file holding the records (created on first save)
        max_age_days: Records saved longer ago than this are dropped

    Example:
        >>> store = ProgressStore(Path("/tmp/quiz_progress.json"))
        >>> store.list_incomplete()
        []
    """

    def __init__(self, path: Path, max_age_days: int = 7):
        if max_age_days <= 0:
            raise ValueError(f"max_age_days must be positive: {max_age_days}")
        self.path = Path(path)
        self.max_age = timedelta(days=max_age_days)

    @classmethod
    def from_config(cls, config) -> ProgressStore:
        return cls(config.resolved_progress_path, max_age_days=config.progress_max_age_days)

    def _is_expired(self, record: IncompleteRecord, now: datetime) -> bool:
        return now - record.last_saved_at > self.max_age

    def _parse(self, quiz_id: str, raw: Any) -> Optional[IncompleteRecord]:
        try:
            validate_progress_record(raw)
            return IncompleteRecord.from_dict(raw)
        except (ValidationError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Ignoring invalid progress record for {quiz_id!r}: {e}")
            return None

    def _read(self) -> Dict[str, Any]:
        try:
            return _records_of(locked_read_json(self.path, default=_empty))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Progress file {self.path} unreadable, treating as empty: {e}")
            return {}

    # ─────────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────────

    def save(self, record: IncompleteRecord, *, now: Optional[datetime] = None) -> IncompleteRecord:
        """
        Store (or replace) the attempt for ``record.quiz_id``.

        ``last_saved_at`` is stamped with ``now`` (current UTC time by default).

        Returns:
            The record as stored
        """
        stamped = replace(record, last_saved_at=now or datetime.now(timezone.utc))

        def modifier(existing: Dict[str, Any]) -> Dict[str, Any]:
            data = existing if isinstance(existing, dict) else _empty()
            records = _records_of(data)
            records[stamped.quiz_id] = stamped.to_dict()
            return {"version": PROGRESS_SCHEMA_VERSION, "records": records}

        locked_read_modify_write_json(self.path, modifier, default=_empty)
        logger.debug(f"Saved progress for {stamped.quiz_id} at question {stamped.current_index}")
        return stamped

    def load(self, quiz_id: str, *, now: Optional[datetime] = None) -> Optional[IncompleteRecord]:
        """
        Saved attempt for ``quiz_id``; expired attempts are removed and None
        is returned.
        """
        raw = self._read().get(quiz_id)
        if raw is None:
            return None
        record = self._parse(quiz_id, raw)
        if record is None:
            return None
        if self._is_expired(record, now or datetime.now(timezone.utc)):
            logger.info(f"Progress for {quiz_id} expired, clearing")
            self.clear(quiz_id)
            return None
        return record

    def clear(self, quiz_id: str) -> None:
        """Forget the attempt for ``quiz_id`` (no-op when none is stored)."""
        if not self.path.exists():
            return

        def modifier(existing: Dict[str, Any]) -> Dict[str, Any]:
            records = _records_of(existing)
            records.pop(quiz_id, None)
            return {"version": PROGRESS_SCHEMA_VERSION, "records": records}

        locked_read_modify_write_json(self.path, modifier, default=_empty)
        logger.debug(f"Cleared progress for {quiz_id}")

    def list_incomplete(self, *, now: Optional[datetime] = None) -> List[IncompleteRecord]:
        """
        Every unexpired, valid attempt, most recently saved first.

        Expired records are pruned from the file as a side effect.
        """
        now = now or datetime.now(timezone.utc)
        valid: List[IncompleteRecord] = []
        expired: List[str] = []

        for quiz_id, raw in self._read().items():
            record = self._parse(quiz_id, raw)
            if record is None:
                continue
            if self._is_expired(record, now):
                expired.append(quiz_id)
            else:
                valid.append(record)

        if expired:
            expired_ids = set(expired)

            def modifier(existing: Dict[str, Any]) -> Dict[str, Any]:
                records = {k: v for k, v in _records_of(existing).items() if k not in expired_ids}
                return {"version": PROGRESS_SCHEMA_VERSION, "records": records}

            locked_read_modify_write_json(self.path, modifier, default=_empty)
            logger.info(f"Pruned {len(expired)} expired progress record(s)")

        valid.sort(key=lambda r: r.last_saved_at, reverse=True)
        return valid
