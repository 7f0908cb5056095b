"""Tests for logging setup and the server entry point's logging wiring."""

from __future__ import annotations

import logging
from typing import Iterator
from unittest.mock import patch

import pytest

from pi400admin.backend import server
from pi400admin.config.settings import LoggingConfig, Settings
from pi400admin.utils.logging import APP_LOGGER, SERVER_LOGGER, setup_logging


def _own_handlers(name: str) -> list[logging.Handler]:
    return [h for h in logging.getLogger(name).handlers if getattr(h, "_pi400admin_handler", False)]


@pytest.fixture(autouse=True)
def restore_loggers() -> Iterator[None]:
    saved = {
        name: (list(logging.getLogger(name).handlers), logging.getLogger(name).level)
        for name in (APP_LOGGER, SERVER_LOGGER)
    }
    yield
    for name, (handlers, level) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)


class TestSetupLogging:
    def test_level_and_stderr_handler(self) -> None:
        setup_logging(LoggingConfig(level="debug"))
        assert logging.getLogger(APP_LOGGER).level == logging.DEBUG
        assert len(_own_handlers(APP_LOGGER)) == 1

    def test_repeated_calls_do_not_stack_handlers(self) -> None:
        setup_logging(LoggingConfig())
        setup_logging(LoggingConfig(level="WARNING"))
        setup_logging(LoggingConfig())
        assert len(_own_handlers(APP_LOGGER)) == 1
        assert logging.getLogger(APP_LOGGER).level == logging.INFO

    def test_foreign_handlers_kept(self) -> None:
        foreign = logging.NullHandler()
        logging.getLogger(APP_LOGGER).addHandler(foreign)
        setup_logging(LoggingConfig())
        assert foreign in logging.getLogger(APP_LOGGER).handlers

    def test_file_handler(self, tmp_path) -> None:
        log_file = tmp_path / "admin.log"
        setup_logging(LoggingConfig(file=str(log_file), format="%(name)s|%(message)s"))
        logging.getLogger("pi400admin.backend.handlers").warning("disk full")
        for handler in _own_handlers(APP_LOGGER):
            handler.flush()
        assert "pi400admin.backend.handlers|disk full" in log_file.read_text()

    def test_server_loggers_share_handlers(self) -> None:
        setup_logging(LoggingConfig(), server=True)
        assert _own_handlers(SERVER_LOGGER) == _own_handlers(APP_LOGGER)
        assert len(_own_handlers(SERVER_LOGGER)) == 1

    def test_server_loggers_untouched_by_default(self) -> None:
        setup_logging(LoggingConfig())
        assert _own_handlers(SERVER_LOGGER) == []


class TestServerMain:
    def test_uvicorn_keeps_installed_handlers(self) -> None:
        with patch.object(server.uvicorn, "run") as run:
            server.main(Settings())
        run.assert_called_once()
        assert run.call_args.kwargs["log_config"] is None
        assert run.call_args.kwargs["port"] == 5000
        assert len(_own_handlers(SERVER_LOGGER)) == 1

    def test_non_loopback_open_cors_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        settings = Settings()
        settings.server.host = "0.0.0.0"
        with patch.object(server.uvicorn, "run"), caplog.at_level(logging.WARNING, logger=APP_LOGGER):
            server.main(settings)
        assert "non-loopback address 0.0.0.0" in caplog.text

    def test_loopback_does_not_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        with patch.object(server.uvicorn, "run"), caplog.at_level(logging.WARNING, logger=APP_LOGGER):
            server.main(Settings())
        assert "non-loopback" not in caplog.text
