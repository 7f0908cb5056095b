"""Command-line interface for pi400admin.

Provides the main entry point for running the admin API server and a
terminal console that drives it (status, logs, service actions, NAT,
USB gadget re-init, polling watch).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pi400admin.domain.models import NatAction, ServiceAction

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pi400admin",
        description="Raspberry Pi 400 local admin panel",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/pi400admin.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the admin API server")
    subparsers.add_parser("status", help="Show service status and recent logs")
    subparsers.add_parser("logs", help="Show recent logs of the managed units")
    subparsers.add_parser("net", help="Show network status")
    subparsers.add_parser("target-ip", help="Show the IP address of the attached target")
    subparsers.add_parser("usb-ensure", help="Re-initialize the USB gadget")

    svc_parser = subparsers.add_parser("svc", help="Start, stop or restart a service")
    svc_parser.add_argument("action", choices=[a.value for a in ServiceAction])
    svc_parser.add_argument("name", help="Service name (must be allow-listed on the server)")

    nat_parser = subparsers.add_parser("nat", help="Turn NAT for the target on or off")
    nat_parser.add_argument("action", choices=[a.value for a in NatAction])
    nat_parser.add_argument(
        "--uplink", type=str, default=None,
        help="Internet-facing interface (server default when omitted)",
    )

    watch_parser = subparsers.add_parser("watch", help="Poll status and logs periodically")
    watch_parser.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between refreshes (default: console.poll_interval)",
    )

    return parser.parse_args(argv)


async def _console(settings, args) -> int:
    """Run one console command against the admin API. Returns an exit code."""
    from pi400admin.console.client import AdminClient, ConsoleError
    from pi400admin.console.state import ConsoleSession

    async with AdminClient(
        base_url=settings.console.api_base,
        timeout=settings.console.timeout,
    ) as client:
        session = ConsoleSession(client=client, services=settings.console.services)
        try:
            if args.command == "status":
                await session.refresh()
                print(session.render())
                return 1 if session.state.last_error else 0

            if args.command == "watch":
                interval = args.interval or settings.console.poll_interval
                while True:
                    await session.refresh()
                    print("\033[2J\033[H" + session.render(), flush=True)
                    await asyncio.sleep(interval)

            if args.command == "svc":
                await session.service_action(ServiceAction(args.action), args.name)
                print(session.render())
                return 1 if session.state.last_error else 0

            if args.command == "logs":
                reply = await client.logs()
            elif args.command == "net":
                reply = await client.net_status()
            elif args.command == "target-ip":
                reply = await client.target_ip()
            elif args.command == "usb-ensure":
                reply = await client.usb_ensure()
            elif args.command == "nat":
                reply = await client.nat(args.action, args.uplink)
            else:
                raise ValueError(f"unknown console command: {args.command}")
        except ConsoleError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

    print(reply.text)
    return 0 if reply.ok else 1


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pi400admin CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from pi400admin.config.settings import load_settings
    from pi400admin.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info(
            "Starting admin API on %s:%d", settings.server.host, settings.server.port
        )
        from pi400admin.backend.server import main as serve
        serve(settings)
        return

    try:
        code = asyncio.run(_console(settings, args))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
