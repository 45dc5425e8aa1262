"""
Module: config

Purpose:
    Configuration dataclass for a funnel session. Immutable configuration
    with validation on construction, plus an environment loader for hosts
    that configure the dashboard through environment variables.

Key Classes:
    - FunnelConfig: API endpoint, progress storage and funnel behaviour

Key Functions:
    - default_progress_path(): Per-user location of the progress file

Dependencies:
    - dataclasses (std)
    - pathlib (std)

Used By:
    - quiz_funnel.funnel.controller: Funnel
    - quiz_funnel.api.client: ApiClient.from_config()
    - quiz_funnel.progress.store: ProgressStore.from_config()
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from quiz_funnel.core.models import FeatureFlags

ENV_API_URL = "QUIZ_FUNNEL_API_URL"
ENV_API_TOKEN = "QUIZ_FUNNEL_API_TOKEN"
ENV_TIMEOUT = "QUIZ_FUNNEL_TIMEOUT"
ENV_PROGRESS_PATH = "QUIZ_FUNNEL_PROGRESS_PATH"
ENV_STRICT = "QUIZ_FUNNEL_STRICT"

DEFAULT_API_URL = "http://localhost:8080/api"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def default_progress_path() -> Path:
    """
    Location of the local quiz-progress file.

    Windows: %LOCALAPPDATA%/Quiz Funnel/quiz_progress.json
    macOS: ~/Library/Application Support/Quiz Funnel/quiz_progress.json
    Other: ~/.local/share/Quiz Funnel/quiz_progress.json
    """
    if platform.system() == "Windows":
        base = os.environ.get("LOCALAPPDATA", os.environ.get("APPDATA"))
        root = Path(base) / "Quiz Funnel" if base else Path.home() / ".quiz_funnel"
    elif platform.system() == "Darwin":
        root = Path.home() / "Library/Application Support/Quiz Funnel"
    else:
        root = Path.home() / ".local/share/Quiz Funnel"
    return root / "quiz_progress.json"


@dataclass(frozen=True)
class FunnelConfig:
    """
    Configuration for a funnel session (immutable).

    Attributes:
        api_base_url: Base URL of the dashboard API (no trailing slash needed)
        api_token: Bearer token sent with every request, if any
        request_timeout: Seconds before an API call fails (None = no timeout)
        progress_path: JSON file holding incomplete attempts
        progress_max_age_days: Attempts older than this are pruned
        strict_transitions: Raise InvalidTransitionError instead of
            logging and rejecting (development builds)
        default_flags: Flags used when /settings is unavailable
            (conservative defaults when None)
        max_workers: Thread pool size for ThreadedDispatcher

    Example:
        >>> config = FunnelConfig(api_base_url="https://api.example.com", strict_transitions=True)
        >>> config.progress_max_age_days
        7
    """

    api_base_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None
    request_timeout: Optional[float] = 15.0
    progress_path: Optional[Path] = None
    progress_max_age_days: int = 7
    strict_transitions: bool = False
    default_flags: Optional[FeatureFlags] = None
    max_workers: int = 2

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.api_base_url or not self.api_base_url.startswith(("http://", "https://")):
            raise ValueError(f"api_base_url must be an http(s) URL: {self.api_base_url!r}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive: {self.request_timeout}")
        if self.progress_max_age_days <= 0:
            raise ValueError(f"progress_max_age_days must be positive: {self.progress_max_age_days}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")

    @property
    def resolved_progress_path(self) -> Path:
        return self.progress_path or default_progress_path()

    @property
    def flags_fallback(self) -> FeatureFlags:
        return self.default_flags or FeatureFlags.conservative()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> FunnelConfig:
        """
        Build a config from environment variables.

        Unset variables keep the defaults. ``QUIZ_FUNNEL_TIMEOUT=0`` disables
        the timeout.

        Raises:
            ValueError: If a variable is malformed
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        if env.get(ENV_API_URL):
            kwargs["api_base_url"] = env[ENV_API_URL].strip()
        if env.get(ENV_API_TOKEN):
            kwargs["api_token"] = env[ENV_API_TOKEN].strip()
        if env.get(ENV_TIMEOUT):
            try:
                timeout = float(env[ENV_TIMEOUT])
            except ValueError:
                raise ValueError(f"{ENV_TIMEOUT} must be a number: {env[ENV_TIMEOUT]!r}")
            kwargs["request_timeout"] = timeout if timeout > 0 else None
        if env.get(ENV_PROGRESS_PATH):
            kwargs["progress_path"] = Path(env[ENV_PROGRESS_PATH]).expanduser()
        if env.get(ENV_STRICT):
            kwargs["strict_transitions"] = env[ENV_STRICT].strip().lower() in _TRUE_VALUES

        return cls(**kwargs)
