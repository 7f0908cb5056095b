"""Operator console state and the session that drives it.

ConsoleState holds what the operator sees (a status text block, a busy
flag and the last error). ConsoleSession issues API calls and feeds the
replies back into the state: a refresh loads the service status and
then the logs, and a successful service action triggers a status reload.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from pi400admin.console.client import AdminClient, ConsoleError, Reply
from pi400admin.domain.models import ServiceAction

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n"


class ConsoleState(BaseModel):
    status: str = Field(default="", description="Text block shown to the operator")
    busy: bool = Field(default=False)
    last_error: str | None = Field(default=None)

    def _append(self, text: str) -> None:
        if self.status:
            self.status += SEPARATOR
        self.status += text

    def refresh(self) -> None:
        self.busy = True

    def status_loaded(self, text: str) -> None:
        self.busy = False
        self.status = text

    def logs_loaded(self, text: str) -> None:
        self.busy = False
        self._append(text)

    def action_started(self) -> None:
        self.busy = True

    def action_done(self, ok: bool, text: str) -> bool:
        """Record an action outcome. Returns True if status should be reloaded."""
        self.busy = False
        if not ok:
            self.last_error = text
            return False
        self.last_error = None
        if text.strip():
            self._append(text)
        return True


class ConsoleSession:
    """Binds an AdminClient to a ConsoleState."""

    def __init__(
        self,
        client: AdminClient,
        services: list[str],
        state: ConsoleState | None = None,
    ) -> None:
        self.client = client
        self.services = services
        self.state = state if state is not None else ConsoleState()

    async def _load_status(self) -> None:
        try:
            reply = await self.client.services_status()
        except ConsoleError as e:
            self.state.action_done(False, str(e))
            return
        if not reply.ok:
            self.state.action_done(False, reply.text)
            return
        self.state.status_loaded(reply.text)

    async def _load_logs(self) -> None:
        try:
            reply = await self.client.logs()
        except ConsoleError as e:
            self.state.action_done(False, str(e))
            return
        if not reply.ok:
            self.state.action_done(False, reply.text)
            return
        self.state.logs_loaded(reply.text)

    async def refresh(self) -> ConsoleState:
        self.state.refresh()
        await self._load_status()
        await self._load_logs()
        return self.state

    async def service_action(self, action: ServiceAction, name: str) -> ConsoleState:
        self.state.action_started()
        try:
            reply: Reply = await self.client.service_action(action.value, name)
        except ConsoleError as e:
            self.state.action_done(False, str(e))
            return self.state
        if self.state.action_done(reply.ok, reply.text):
            await self._load_status()
        return self.state

    def render(self) -> str:
        """Render the console as a text block for a terminal."""
        lines = ["Pi400 Admin Panel", "=" * 17]
        buttons = "  ".join(f"[{svc}: start|restart|stop]" for svc in self.services)
        lines.append(buttons)
        if self.state.busy:
            lines.append("(working...)")
        if self.state.last_error:
            lines.append(f"Error: {self.state.last_error}")
        lines.append("")
        lines.append(self.state.status)
        return "\n".join(lines)
