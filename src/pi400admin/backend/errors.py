"""Error taxonomy for the backend.

Handlers raise these; the HTTP layer turns them into envelopes carrying
the matching status code.
"""

from __future__ import annotations

from pi400admin.domain.models import CommandResult


class AdminError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MalformedRequest(AdminError):
    """Bad sub-action or unparseable body."""

    status_code = 400


class Forbidden(AdminError):
    """Target identifier is not allow-listed."""

    status_code = 403


class ExecutionFailure(AdminError):
    """External command exited non-zero or could not be launched."""

    status_code = 500

    def __init__(self, message: str, result: CommandResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class ExecutionTimeout(ExecutionFailure):
    """External command did not finish within its bound."""
