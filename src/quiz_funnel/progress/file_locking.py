"""
Module: progress.file_locking

Purpose:
    Cross-platform file locking for the progress file. The dashboard and
    the quiz-taking flow may run in separate processes that both touch
    the same file, so every read and write holds a portalocker lock.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_read_json: Read JSON under a shared lock
    - locked_read_modify_write_json: Read-modify-write JSON under an
      exclusive lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - quiz_funnel.progress.store: ProgressStore
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generator

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'r+', 'w', ...).
        lock_type: LOCK_EX for exclusive, LOCK_SH for shared.

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        ...     data = f.read()
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_read_json(
    path: Path,
    default: Callable[[], Dict[str, Any]] = dict,
) -> Dict[str, Any]:
    """
    Read a JSON object under a shared lock.

    Missing or empty files yield ``default()``.

    Raises:
        json.JSONDecodeError: If the file holds invalid JSON
    """
    if not path.exists():
        return default()
    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        content = f.read()
    if not content.strip():
        return default()
    return json.loads(content)


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Dict[str, Any]], Dict[str, Any]],
    default: Callable[[], Dict[str, Any]] = dict,
) -> Dict[str, Any]:
    """
    Read JSON, apply modifier, write back - all with exclusive lock.

    Unreadable content is replaced by ``default()`` with a warning rather
    than blocking every later save.

    Args:
        path: Path to JSON file.
        modifier: Function that takes existing data, returns modified data.
        default: Factory for default data if the file is missing or corrupt.

    Returns:
        The modified data that was written.

    Example:
        >>> def drop(existing):
        ...     existing["records"].pop("quiz-1", None)
        ...     return existing
        >>> locked_read_modify_write_json(progress_path, drop)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if not path.exists():
        path.write_text(json.dumps(default(), indent=2), encoding='utf-8')

    with open(path, 'r+', encoding='utf-8') as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            f.seek(0)
            content = f.read()
            existing = default()
            if content.strip():
                try:
                    existing = json.loads(content)
                except json.JSONDecodeError as e:
                    logger.warning(f"Discarding corrupt {path.name}: {e}")

            modified = modifier(existing)

            f.seek(0)
            f.truncate()
            json.dump(modified, f, indent=2, ensure_ascii=False)

            return modified
        finally:
            portalocker.unlock(f)
