"""REST API server that runs on the Pi 400.

Routes operator requests to AdminHandlers and wraps every reply in the
``{ok, data, error}`` envelope. The server is meant to bind to loopback
only; CORS is fully open for the local console.

    GET  /api/health             -> {"ok": true, "data": {"text": "ok"}, ...}
    GET  /api/status/services    -> systemctl status for all allow-listed units
    GET  /api/status/net         -> ip address / ip route / NAT rules
    GET  /api/logs               -> last journal lines of the fixed units
    GET  /api/target/ip          -> IP address of the attached target
    POST /api/nat/{on|off}       <- {"uplink": "wlan0"} (optional)
    POST /api/usb/ensure         -> re-run the USB gadget setup
    POST /api/svc/{start|stop|restart} <- {"name": "target-ssh"}
"""

from __future__ import annotations

import ipaddress
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pi400admin import __version__
from pi400admin.backend.errors import AdminError, ExecutionFailure
from pi400admin.backend.executor import CommandExecutor, SubprocessExecutor
from pi400admin.backend.handlers import AdminHandlers
from pi400admin.config.settings import Settings
from pi400admin.domain.models import ApiResponse, NatRequest, ServiceRequest
from pi400admin.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def is_loopback(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.failure(message).model_dump(),
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "malformed request: " + ("; ".join(parts) or "invalid body")


async def _envelope(call: Awaitable[str]) -> ApiResponse:
    try:
        text = await call
    except AdminError:
        raise
    except Exception as e:
        logger.exception("Unhandled error in request handler")
        raise ExecutionFailure(f"internal error: {e}") from e
    return ApiResponse.success(text)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    executor: CommandExecutor | None = None,
) -> FastAPI:
    """Create the admin REST API application.

    Args:
        settings: Loaded configuration. Defaults are used when None.
        executor: Optional pre-configured CommandExecutor (for testing).
    """
    if settings is None:
        settings = Settings()
    if executor is None:
        executor = SubprocessExecutor(max_output_bytes=settings.commands.max_output_bytes)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        handlers: AdminHandlers = app.state.handlers
        logger.info(
            "Admin API started (services=%s, uplinks=%s, timeout=%ss)",
            ", ".join(handlers.services),
            ", ".join(settings.nat.allowed_uplinks),
            settings.commands.timeout,
        )
        yield
        logger.info("Admin API stopped")

    app = FastAPI(
        title="pi400admin",
        description="Raspberry Pi 400 local admin panel API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.handlers = AdminHandlers.from_settings(settings, executor)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AdminError)
    async def admin_error_handler(request: Request, exc: AdminError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(400, _describe_validation_error(exc))

    def _handlers() -> AdminHandlers:
        return app.state.handlers

    # -------------------------------------------------------------------
    # Read-only endpoints
    # -------------------------------------------------------------------

    @app.get("/api/health")
    async def health() -> ApiResponse:
        return ApiResponse.success("ok")

    @app.get("/api/status/services")
    async def status_services() -> ApiResponse:
        return await _envelope(_handlers().services_status())

    @app.get("/api/status/net")
    async def status_net() -> ApiResponse:
        return await _envelope(_handlers().net_status())

    @app.get("/api/logs")
    async def logs() -> ApiResponse:
        return await _envelope(_handlers().logs())

    @app.get("/api/target/ip")
    async def target_ip() -> ApiResponse:
        return await _envelope(_handlers().target_ip())

    # -------------------------------------------------------------------
    # State-changing endpoints
    # -------------------------------------------------------------------

    @app.post("/api/nat/{action}")
    async def nat(action: str, request: NatRequest | None = None) -> ApiResponse:
        uplink = request.uplink if request is not None else None
        return await _envelope(_handlers().nat(action, uplink))

    @app.post("/api/usb/ensure")
    async def usb_ensure() -> ApiResponse:
        return await _envelope(_handlers().usb_ensure())

    @app.post("/api/svc/{action}")
    async def service_action(action: str, request: ServiceRequest) -> ApiResponse:
        return await _envelope(_handlers().service_action(action, request.name))

    return app


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def main(settings: Settings | None = None) -> None:
    """Run the admin API server."""
    if settings is None:
        settings = Settings()
    setup_logging(settings.logging, server=True)
    host = settings.server.host
    if not is_loopback(host) and "*" in settings.server.cors_origins:
        logger.warning(
            "Binding to non-loopback address %s with CORS open to any origin; "
            "restrict server.cors_origins before exposing the API",
            host,
        )
    app = create_app(settings)
    # log_config=None keeps uvicorn from replacing the handlers installed above
    uvicorn.run(app, host=host, port=settings.server.port, log_config=None)


if __name__ == "__main__":
    main()
