"""
Unit tests for FunnelConfig and logging utilities.
"""

import logging
from pathlib import Path
from queue import Queue

import pytest

from quiz_funnel.config import FunnelConfig
from quiz_funnel.core.models import FeatureFlags
from quiz_funnel.logging_utils import attach_queue_handler, detach_queue_handler


class TestFunnelConfig:
    def test_defaults(self):
        config = FunnelConfig()

        assert config.progress_max_age_days == 7
        assert not config.strict_transitions
        assert config.flags_fallback == FeatureFlags.conservative()

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"api_base_url": "ftp://example.com"}, "api_base_url"),
            ({"request_timeout": 0}, "request_timeout"),
            ({"progress_max_age_days": 0}, "progress_max_age_days"),
            ({"max_workers": 0}, "max_workers"),
        ],
    )
    def test_invalid_values_raise(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            FunnelConfig(**kwargs)

    def test_from_env(self, tmp_path):
        env = {
            "QUIZ_FUNNEL_API_URL": "https://api.example.com/api",
            "QUIZ_FUNNEL_API_TOKEN": "abc",
            "QUIZ_FUNNEL_TIMEOUT": "2.5",
            "QUIZ_FUNNEL_PROGRESS_PATH": str(tmp_path / "p.json"),
            "QUIZ_FUNNEL_STRICT": "yes",
        }

        config = FunnelConfig.from_env(env)

        assert config.api_base_url == "https://api.example.com/api"
        assert config.api_token == "abc"
        assert config.request_timeout == 2.5
        assert config.resolved_progress_path == tmp_path / "p.json"
        assert config.strict_transitions

    def test_from_env_zero_timeout_disables_timeout(self):
        assert FunnelConfig.from_env({"QUIZ_FUNNEL_TIMEOUT": "0"}).request_timeout is None

    def test_from_env_bad_timeout_raises(self):
        with pytest.raises(ValueError, match="QUIZ_FUNNEL_TIMEOUT"):
            FunnelConfig.from_env({"QUIZ_FUNNEL_TIMEOUT": "soon"})

    def test_from_env_empty_keeps_defaults(self):
        assert FunnelConfig.from_env({}) == FunnelConfig()

    def test_default_progress_path_is_json_file(self):
        assert isinstance(FunnelConfig().resolved_progress_path, Path)
        assert FunnelConfig().resolved_progress_path.name == "quiz_progress.json"


class TestQueueLogging:
    def test_attached_handler_forwards_package_logs(self):
        log_queue = Queue()
        handler = attach_queue_handler(log_queue, level=logging.DEBUG)
        try:
            logging.getLogger("quiz_funnel.funnel.controller").debug("issued request")
            logging.getLogger("quiz_funnel.funnel.catalog").warning("using defaults")
        finally:
            detach_queue_handler(handler)

        messages = [log_queue.get_nowait() for _ in range(log_queue.qsize())]
        assert ("quiz_funnel.funnel.controller: issued request", "INFO") in messages
        assert ("quiz_funnel.funnel.catalog: using defaults", "WARNING") in messages

    def test_detached_handler_stops_forwarding(self):
        log_queue = Queue()
        handler = attach_queue_handler(log_queue)
        detach_queue_handler(handler)

        logging.getLogger("quiz_funnel").warning("after detach")

        assert log_queue.empty()
