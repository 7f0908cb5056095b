"""Fixed command lines for every privileged action.

This module is the only place where argument vectors are assembled.
Program paths come from configuration and are absolute; the only
caller-influenced arguments are parsed enum values and names that have
already passed an allow-list check.
"""

from __future__ import annotations

from pi400admin.backend.allowlist import AllowedServiceSet
from pi400admin.config.settings import CommandsConfig
from pi400admin.domain.models import CommandRequest, NatAction, ServiceAction


class CommandTable:
    """Builds CommandRequests from the configured program paths."""

    def __init__(self, config: CommandsConfig) -> None:
        self._config = config

    def _request(self, program: str, *args: str, ok_exit_codes: frozenset[int] | None = None) -> CommandRequest:
        return CommandRequest(
            program=program,
            args=args,
            timeout=self._config.timeout,
            ok_exit_codes=ok_exit_codes or frozenset({0}),
        )

    def service_action(self, action: ServiceAction, name: str) -> CommandRequest:
        return self._request(self._config.systemctl, action.value, name)

    def services_status(self, services: AllowedServiceSet) -> CommandRequest:
        # systemctl exits 3 when any listed unit is inactive; the dump is still valid
        return self._request(
            self._config.systemctl,
            "status",
            "--no-pager",
            "--lines=0",
            *services,
            ok_exit_codes=frozenset(self._config.status_ok_exit_codes),
        )

    def net_status(self) -> list[CommandRequest]:
        return [
            self._request(self._config.ip, "-brief", "address"),
            self._request(self._config.ip, "route"),
            self._request(self._config.iptables, "-t", "nat", "-S", "POSTROUTING"),
        ]

    def logs(self, units: list[str], lines: int) -> CommandRequest:
        args = ["--no-pager", "-n", str(lines)]
        for unit in units:
            args.extend(["-u", unit])
        return self._request(self._config.journalctl, *args)

    def target_ip(self) -> CommandRequest:
        return self._request(self._config.target_ip_script)

    def nat(self, action: NatAction, uplink: str) -> CommandRequest:
        return self._request(self._config.nat_script, action.value, uplink)

    def usb_ensure(self) -> CommandRequest:
        return self._request(self._config.usb_gadget_script, "ensure")
