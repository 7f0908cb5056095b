"""Core domain models for the pi400admin system.

These models represent the data structures flowing through the backend:
parsed sub-actions, request bodies, pending external-process invocations,
their outcomes, and the uniform response envelope returned by every
API endpoint.
"""

from __future__ import annotations

import enum
import shlex
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Bound applied to every external command unless configured otherwise
DEFAULT_COMMAND_TIMEOUT = 8.0


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ServiceAction(str, enum.Enum):
    """Operations the service manager may perform on an allow-listed unit."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"


class NatAction(str, enum.Enum):
    """NAT toggle direction."""

    ON = "on"
    OFF = "off"


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class ServiceRequest(BaseModel):
    name: str = Field(description="Service name, must be allow-listed")


class NatRequest(BaseModel):
    uplink: str | None = Field(
        default=None, description="Internet-facing interface (e.g. 'wlan0')"
    )


# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


class CommandRequest(BaseModel):
    """A pending external-process invocation.

    The program is always an absolute path so that no search path decides
    which binary runs. Arguments are passed as discrete argv entries, never
    through a shell.
    """

    model_config = ConfigDict(frozen=True)

    program: str = Field(description="Absolute path of the program to run")
    args: tuple[str, ...] = Field(default=(), description="Ordered argument list")
    timeout: float = Field(default=DEFAULT_COMMAND_TIMEOUT, gt=0)
    ok_exit_codes: frozenset[int] = Field(
        default=frozenset({0}), description="Exit statuses that count as success"
    )

    @field_validator("program")
    @classmethod
    def _program_is_absolute(cls, value: str) -> str:
        if not PurePosixPath(value).is_absolute():
            raise ValueError(f"program path must be absolute: {value!r}")
        return value

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        """Human-readable command line (for messages and logs only)."""
        return shlex.join(self.argv)


class CommandResult(BaseModel):
    """Outcome of one command invocation.

    ``text`` carries stdout on success, stderr on a non-zero exit, the OS
    error text on launch failure and a timeout message on timeout.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    text: str = ""
    exit_code: int | None = None
    timed_out: bool = False
    truncated: bool = False


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class TextPayload(BaseModel):
    text: str


class ApiResponse(BaseModel):
    """Uniform envelope: ``{ok, data, error}``.

    Exactly one of ``data`` / ``error`` is set, matching ``ok``.
    """

    ok: bool
    data: TextPayload | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _one_of_data_or_error(self) -> ApiResponse:
        if self.ok and (self.data is None or self.error is not None):
            raise ValueError("successful response must carry data and no error")
        if not self.ok and (self.data is not None or self.error is None):
            raise ValueError("failed response must carry an error and no data")
        return self

    @classmethod
    def success(cls, text: str) -> ApiResponse:
        return cls(ok=True, data=TextPayload(text=text), error=None)

    @classmethod
    def failure(cls, message: str) -> ApiResponse:
        return cls(ok=False, data=None, error=message)
