"""HTTP client for the admin API.

Sends operator requests to the backend and extracts the display text
from the response envelope.
"""

from __future__ import annotations

import json
import logging

import httpx
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class ConsoleError(Exception):
    """Raised when the admin API cannot be reached."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class Reply(BaseModel):
    """Display text of one API call and whether the envelope reported success."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    text: str


def parse_reply(body: str) -> Reply:
    """Extract the display text from a response body.

    A successful envelope yields its ``data.text``; a failed one yields
    ``error: <message>``. Anything that is not an envelope is returned
    as-is and counted as a failure.
    """
    try:
        value = json.loads(body)
    except ValueError:
        return Reply(ok=False, text=body)
    if isinstance(value, dict):
        data = value.get("data")
        if value.get("ok") is True and isinstance(data, dict) and isinstance(data.get("text"), str):
            return Reply(ok=True, text=data["text"])
        if isinstance(value.get("error"), str):
            return Reply(ok=False, text=f"error: {value['error']}")
    return Reply(ok=False, text=body)


class AdminClient:
    """Talks to the admin API over HTTP."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5000",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def health(self) -> Reply:
        return await self._get("/api/health")

    async def services_status(self) -> Reply:
        return await self._get("/api/status/services")

    async def net_status(self) -> Reply:
        return await self._get("/api/status/net")

    async def logs(self) -> Reply:
        return await self._get("/api/logs")

    async def target_ip(self) -> Reply:
        return await self._get("/api/target/ip")

    async def service_action(self, action: str, name: str) -> Reply:
        return await self._post(f"/api/svc/{action}", {"name": name})

    async def nat(self, action: str, uplink: str | None = None) -> Reply:
        payload = {"uplink": uplink} if uplink else {}
        return await self._post(f"/api/nat/{action}", payload)

    async def usb_ensure(self) -> Reply:
        return await self._post("/api/usb/ensure", None)

    async def _get(self, path: str) -> Reply:
        return await self._request("GET", path, None)

    async def _post(self, path: str, payload: dict | None) -> Reply:
        return await self._request("POST", path, payload)

    async def _request(self, method: str, path: str, payload: dict | None) -> Reply:
        if self._client is None:
            raise ConsoleError("Not connected to admin API", path=path)
        try:
            resp = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise ConsoleError(f"{method} {path} failed: {e}", path=path) from e
        reply = parse_reply(resp.text)
        logger.debug("%s %s -> %d (ok=%s)", method, path, resp.status_code, reply.ok)
        return reply

    async def __aenter__(self) -> AdminClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()
