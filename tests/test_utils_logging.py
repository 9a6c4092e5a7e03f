"""Tests for logging setup and the challenge audit logger."""

import logging
import logging.handlers
from unittest.mock import MagicMock

from challenge_engine.utils.logging import (
    get_challenge_logger,
    log_challenge_event,
    setup_logging,
)


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("WARNING")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)

    def test_file_handlers(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        setup_logging("INFO", log_to_file=True)

        handlers = [
            h
            for h in logging.getLogger().handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert {h.level for h in handlers} == {logging.INFO, logging.ERROR}
        assert (tmp_path / "logs").is_dir()
        for h in handlers:
            h.close()


class TestChallengeAuditLog:
    def test_default_logger_name(self):
        assert get_challenge_logger() is not None

    def test_log_challenge_event(self):
        audit = MagicMock()
        log_challenge_event("challenge.claimed", {"user_id": 1, "points": 50}, logger=audit)
        audit.info.assert_called_once_with("challenge.claimed", user_id=1, points=50)
