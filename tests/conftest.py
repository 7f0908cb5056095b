"""Shared test fixtures for the pi400admin test suite.

Provides common fixtures used across unit tests: default settings, a
recording mock executor, and canned command results.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from pi400admin.backend.executor import CommandExecutor
from pi400admin.backend.handlers import AdminHandlers
from pi400admin.config.settings import Settings
from pi400admin.domain.models import CommandResult


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Default settings (four allow-listed services, wlan0/eth0 uplinks)."""
    return Settings()


# ---------------------------------------------------------------------------
# Command Result Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ok_result() -> CommandResult:
    """A command that exited 0 and printed 'started'."""
    return CommandResult(ok=True, text="started\n", exit_code=0)


@pytest.fixture
def failed_result() -> CommandResult:
    """A command that exited 5 with a systemd error on stderr."""
    return CommandResult(
        ok=False,
        text="Failed to start target-ssh.service: Unit target-ssh.service not found.\n",
        exit_code=5,
    )


@pytest.fixture
def timeout_result() -> CommandResult:
    """A command that was killed after the timeout."""
    return CommandResult(
        ok=False,
        text="command timed out after 8s: /usr/bin/systemctl restart kiosk",
        timed_out=True,
    )


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_executor(ok_result: CommandResult) -> AsyncMock:
    """A mock CommandExecutor that records every request and succeeds."""
    executor = AsyncMock(spec=CommandExecutor)
    executor.run.return_value = ok_result
    return executor


@pytest.fixture
def handlers(settings: Settings, mock_executor: AsyncMock) -> AdminHandlers:
    """AdminHandlers wired to the mock executor and default settings."""
    return AdminHandlers.from_settings(settings, mock_executor)
