"""Tests for the admin API HTTP client."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import ValidationError

from pi400admin.backend.server import create_app
from pi400admin.config.settings import Settings
from pi400admin.console.client import AdminClient, ConsoleError, Reply, parse_reply


def _envelope(text: str | None = None, error: str | None = None) -> str:
    if error is None:
        return json.dumps({"ok": True, "data": {"text": text}, "error": None})
    return json.dumps({"ok": False, "data": None, "error": error})


class TestParseReply:
    def test_success_envelope(self) -> None:
        assert parse_reply(_envelope("started\n")) == Reply(ok=True, text="started\n")

    def test_error_envelope(self) -> None:
        reply = parse_reply(_envelope(error="service 'rm-rf' not allowed"))
        assert reply == Reply(ok=False, text="error: service 'rm-rf' not allowed")

    def test_not_json(self) -> None:
        assert parse_reply("Internal Server Error") == Reply(ok=False, text="Internal Server Error")

    def test_json_without_envelope(self) -> None:
        body = '{"detail": "Not Found"}'
        assert parse_reply(body) == Reply(ok=False, text=body)

    def test_ok_without_text(self) -> None:
        body = '{"ok": true, "data": null, "error": null}'
        assert parse_reply(body).ok is False

    def test_reply_is_immutable(self) -> None:
        reply = parse_reply(_envelope("x"))
        with pytest.raises(ValidationError):
            reply.text = "y"


class TestAdminClient:
    def test_init_defaults(self) -> None:
        client = AdminClient()
        assert client._base_url == "http://127.0.0.1:5000"
        assert client._timeout == 10.0

    def test_init_strips_slash(self) -> None:
        client = AdminClient(base_url="http://127.0.0.1:5001/")
        assert client._base_url == "http://127.0.0.1:5001"

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        with pytest.raises(ConsoleError, match="Not connected"):
            await AdminClient().health()

    @pytest.mark.asyncio
    async def test_requests_and_payloads(self) -> None:
        seen: list[tuple[str, str, bytes]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, request.content))
            return httpx.Response(200, text=_envelope("done"))

        async with AdminClient(transport=httpx.MockTransport(handler)) as client:
            assert (await client.service_action("restart", "kiosk")).text == "done"
            await client.nat("off")
            await client.nat("on", "eth0")
            await client.usb_ensure()
            await client.target_ip()

        assert seen[0][:2] == ("POST", "/api/svc/restart")
        assert json.loads(seen[0][2]) == {"name": "kiosk"}
        assert seen[1][:2] == ("POST", "/api/nat/off")
        assert json.loads(seen[1][2]) == {}
        assert json.loads(seen[2][2]) == {"uplink": "eth0"}
        assert seen[3][:2] == ("POST", "/api/usb/ensure")
        assert seen[4][:2] == ("GET", "/api/target/ip")

    @pytest.mark.asyncio
    async def test_error_status_is_parsed_not_raised(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text=_envelope(error="service 'x' not allowed"))

        async with AdminClient(transport=httpx.MockTransport(handler)) as client:
            reply = await client.service_action("start", "x")
        assert reply == Reply(ok=False, text="error: service 'x' not allowed")

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with AdminClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConsoleError, match="GET /api/logs failed") as exc_info:
                await client.logs()
        assert exc_info.value.path == "/api/logs"


class TestAgainstServer:
    @pytest.mark.asyncio
    async def test_round_trip_through_app(self, mock_executor: AsyncMock) -> None:
        app = create_app(settings=Settings(), executor=mock_executor)
        transport = httpx.ASGITransport(app=app)
        async with AdminClient(base_url="http://pi400", transport=transport) as client:
            assert await client.health() == Reply(ok=True, text="ok")
            assert await client.service_action("start", "target-ssh") == Reply(
                ok=True, text="started\n"
            )
            forbidden = await client.service_action("start", "rm-rf")
        assert forbidden == Reply(ok=False, text="error: service 'rm-rf' not allowed")
        assert mock_executor.run.await_count == 1
