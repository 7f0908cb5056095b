"""Operator console for the admin API.

Public API:
    AdminClient -- HTTP client for the admin API
    ConsoleError -- Raised when the API cannot be reached
    ConsoleState -- What the operator sees (status text, busy, last error)
    ConsoleSession -- Drives an AdminClient and updates a ConsoleState
"""

from pi400admin.console.client import AdminClient, ConsoleError
from pi400admin.console.state import ConsoleSession, ConsoleState

__all__ = ["AdminClient", "ConsoleError", "ConsoleSession", "ConsoleState"]
