"""Request validation and dispatch.

Each handler validates its inputs (sub-action enum first, then the
allow-list), delegates to the executor, and returns the payload text.
Failures are raised as AdminError subclasses and rendered into the
uniform envelope by the HTTP layer.
"""

from __future__ import annotations

import logging

from pi400admin.backend.allowlist import AllowedServiceSet
from pi400admin.backend.commands import CommandTable
from pi400admin.backend.errors import (
    ExecutionFailure,
    ExecutionTimeout,
    Forbidden,
    MalformedRequest,
)
from pi400admin.backend.executor import CommandExecutor
from pi400admin.config.settings import Settings
from pi400admin.domain.models import CommandRequest, NatAction, ServiceAction

logger = logging.getLogger(__name__)


def parse_service_action(action: str) -> ServiceAction:
    try:
        return ServiceAction(action)
    except ValueError:
        allowed = ", ".join(a.value for a in ServiceAction)
        raise MalformedRequest(f"invalid action '{action}' (expected one of: {allowed})") from None


def parse_nat_action(action: str) -> NatAction:
    try:
        return NatAction(action)
    except ValueError:
        allowed = ", ".join(a.value for a in NatAction)
        raise MalformedRequest(f"invalid action '{action}' (expected one of: {allowed})") from None


class AdminHandlers:
    """Validates requests and runs the matching fixed command.

    Args:
        executor: Runs CommandRequests (a mock in tests).
        commands: Builds the fixed command lines.
        services: Units that may be targeted by start/stop/restart.
        uplinks: Interfaces that may be named as the NAT uplink.
        default_uplink: Uplink used when the request names none.
        log_units: Units whose journal is tailed by logs().
        log_lines: Number of journal lines returned by logs().
    """

    def __init__(
        self,
        executor: CommandExecutor,
        commands: CommandTable,
        services: AllowedServiceSet,
        uplinks: AllowedServiceSet,
        default_uplink: str,
        log_units: list[str],
        log_lines: int = 200,
    ) -> None:
        if default_uplink not in uplinks:
            raise ValueError(f"default uplink {default_uplink!r} is not allow-listed")
        self._executor = executor
        self._commands = commands
        self._services = services
        self._uplinks = uplinks
        self._default_uplink = default_uplink
        self._log_units = list(log_units)
        self._log_lines = log_lines

    @classmethod
    def from_settings(cls, settings: Settings, executor: CommandExecutor) -> AdminHandlers:
        return cls(
            executor=executor,
            commands=CommandTable(settings.commands),
            services=AllowedServiceSet(settings.services.allowed),
            uplinks=AllowedServiceSet(settings.nat.allowed_uplinks),
            default_uplink=settings.nat.default_uplink,
            log_units=settings.services.effective_log_units,
            log_lines=settings.services.log_lines,
        )

    @property
    def services(self) -> AllowedServiceSet:
        return self._services

    async def _execute(self, request: CommandRequest) -> str:
        result = await self._executor.run(request)
        if result.ok:
            return result.text
        if result.timed_out:
            raise ExecutionTimeout(result.text, result)
        raise ExecutionFailure(result.text, result)

    async def service_action(self, action: str, name: str) -> str:
        parsed = parse_service_action(action)
        if not self._services.contains(name):
            logger.warning("Rejected %s for non-allow-listed service %r", parsed.value, name)
            raise Forbidden(f"service '{name}' not allowed")
        logger.info("systemctl %s %s", parsed.value, name)
        return await self._execute(self._commands.service_action(parsed, name))

    async def services_status(self) -> str:
        return await self._execute(self._commands.services_status(self._services))

    async def net_status(self) -> str:
        sections = []
        for request in self._commands.net_status():
            output = await self._execute(request)
            sections.append(f"$ {request.display()}\n{output}")
        return "\n".join(sections)

    async def logs(self) -> str:
        return await self._execute(self._commands.logs(self._log_units, self._log_lines))

    async def target_ip(self) -> str:
        return await self._execute(self._commands.target_ip())

    async def nat(self, action: str, uplink: str | None = None) -> str:
        parsed = parse_nat_action(action)
        if uplink is None:
            uplink = self._default_uplink
        elif not self._uplinks.contains(uplink):
            logger.warning("Rejected NAT %s for non-allow-listed uplink %r", parsed.value, uplink)
            raise Forbidden(f"interface '{uplink}' not allowed")
        logger.info("NAT %s via %s", parsed.value, uplink)
        return await self._execute(self._commands.nat(parsed, uplink))

    async def usb_ensure(self) -> str:
        logger.info("Re-initializing USB gadget")
        return await self._execute(self._commands.usb_ensure())
