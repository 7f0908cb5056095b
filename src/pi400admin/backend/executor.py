"""One-shot external command execution with a bounded timeout.

Every privileged action ends here. Programs are launched directly with
``asyncio.create_subprocess_exec`` (no shell), stdout and stderr are
captured in full, and the handling task is suspended until the child
exits or the timeout elapses. A timed-out child is killed together with
its process group and reaped before the result is returned.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from abc import ABC, abstractmethod

from pi400admin.domain.models import CommandRequest, CommandResult

logger = logging.getLogger(__name__)


class CommandExecutor(ABC):
    """Abstract interface for running a CommandRequest.

    Request handlers depend only on this interface so tests can inject a
    recording mock in place of real process execution.
    """

    @abstractmethod
    async def run(self, request: CommandRequest) -> CommandResult:
        """Run the command and return a normalized result.

        Implementations never raise for command-level failures (timeout,
        non-zero exit, missing binary); those are reported in the result.
        """
        ...


class SubprocessExecutor(CommandExecutor):
    """Runs each request in a fresh child process.

    Args:
        max_output_bytes: Optional cap on captured stdout/stderr. Output
            past the cap is dropped and the result is flagged ``truncated``.
            None (the default) keeps everything.
    """

    def __init__(self, max_output_bytes: int | None = None) -> None:
        self._max_output_bytes = max_output_bytes

    async def run(self, request: CommandRequest) -> CommandResult:
        command_line = request.display()
        logger.debug("Executing command: %s", command_line)

        try:
            process = await asyncio.create_subprocess_exec(
                *request.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Cannot launch %s: %s", command_line, e)
            return CommandResult(ok=False, text=str(e))

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=request.timeout
            )
        except asyncio.TimeoutError:
            await _kill(process)
            logger.warning("Command timed out after %ss: %s", request.timeout, command_line)
            return CommandResult(
                ok=False,
                text=f"command timed out after {request.timeout:g}s: {command_line}",
                timed_out=True,
            )
        except asyncio.CancelledError:
            await _kill(process)
            raise

        exit_code = process.returncode
        if exit_code in request.ok_exit_codes:
            text, truncated = self._decode(stdout_bytes)
            logger.debug("Command %s exited %d", command_line, exit_code)
            return CommandResult(ok=True, text=text, exit_code=exit_code, truncated=truncated)

        text, truncated = self._decode(stderr_bytes)
        logger.warning("Command %s returned exit code %s", command_line, exit_code)
        return CommandResult(ok=False, text=text, exit_code=exit_code, truncated=truncated)

    def _decode(self, data: bytes) -> tuple[str, bool]:
        truncated = False
        if self._max_output_bytes is not None and len(data) > self._max_output_bytes:
            data = data[: self._max_output_bytes]
            truncated = True
        return data.decode("utf-8", errors="replace"), truncated


async def _kill(process: asyncio.subprocess.Process) -> None:
    """SIGKILL the child's process group and reap the child."""
    if process.returncode is None:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            process.kill()
    await process.wait()
