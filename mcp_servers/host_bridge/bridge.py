"""Discovery facade served from inside the host process.

A controller running outside the host points `MCP_HOST_BRIDGE_URL` at this
service and learns the debug endpoint and focused target from `GET /status`.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import suppress
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit

from .config import HostBridgeConfig
from .errors import UpstreamUnavailableError
from .runtime import HostRuntime, current_host, register_host
from .surfaces import (
    DEBUG_PORT_SWITCH,
    SurfaceInfo,
    debug_endpoint_from_host,
    ensure_hidden_surface,
    focused_target_info,
    surface_target_info,
)

logger = logging.getLogger("mcp.host_bridge.bridge")

DEFAULT_BRIDGE_PORT = 9231


class _BridgeHandler(BaseHTTPRequestHandler):
    server: _BridgeHttpServer

    def _send_json(self, status: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _not_found(self) -> None:
        self._send_json(404, {"error": "Not found."})

    def do_GET(self) -> None:  # noqa: N802
        path = urlsplit(self.path).path.rstrip("/")
        if path != "/status":
            self._not_found()
            return
        try:
            status = self.server.service.status()
        except Exception as exc:  # noqa: BLE001
            logger.exception("bridge status failed")
            self._send_json(500, {"error": str(exc)})
            return
        self._send_json(200, status)

    def do_POST(self) -> None:  # noqa: N802
        self._not_found()

    def do_PUT(self) -> None:  # noqa: N802
        self._not_found()

    def do_DELETE(self) -> None:  # noqa: N802
        self._not_found()

    def do_PATCH(self) -> None:  # noqa: N802
        self._not_found()

    def do_HEAD(self) -> None:  # noqa: N802
        self._not_found()

    def do_OPTIONS(self) -> None:  # noqa: N802
        self._not_found()

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("bridge %s " + format, self.address_string(), *args)


class _BridgeHttpServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], service: BridgeService) -> None:
        super().__init__(address, _BridgeHandler)
        self.service = service


class BridgeService:
    """Serves `GET /status` with the host's current endpoint and focused (or hidden) surface."""

    def __init__(
        self,
        host: HostRuntime | None = None,
        *,
        port: int = DEFAULT_BRIDGE_PORT,
        bind: str = "127.0.0.1",
        embed_selector: str | None = None,
        embed_type: str | None = None,
        headless: bool = False,
        debug_port: int | None = None,
    ) -> None:
        self.host = host
        self.port = int(port)
        self.bind = bind
        self.embed_selector = embed_selector
        self.embed_type = HostBridgeConfig.normalize_embed_type(embed_type)
        self.headless = bool(headless)
        self.debug_port = debug_port
        self._server: _BridgeHttpServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int] | None:
        if self._server is None:
            return None
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    @property
    def url(self) -> str | None:
        addr = self.address
        return f"http://{addr[0]}:{addr[1]}" if addr else None

    def _host(self) -> HostRuntime | None:
        return self.host if self.host is not None else current_host()

    def status(self) -> dict[str, Any]:
        info: SurfaceInfo | None
        if self.headless:
            info = surface_target_info(ensure_hidden_surface())
        else:
            info = focused_target_info()
        return {
            "debugEndpoint": debug_endpoint_from_host(),
            "targetId": info.target_id if info else None,
            "surfaceId": info.surface_id if info else None,
            "windowId": info.window_id if info else None,
            "embedSelector": self.embed_selector,
            "embedType": self.embed_type,
        }

    def start(self) -> BridgeService:
        if self._server is not None:
            return self
        host = self._host()
        if host is None:
            raise UpstreamUnavailableError(
                "The bridge can only be started from inside the host process",
                suggestion="Register the host runtime before starting the bridge",
            )
        if current_host() is None:
            register_host(host)
        if self.debug_port and not host.is_ready():
            host.append_switch(DEBUG_PORT_SWITCH, str(self.debug_port))

        self._server = _BridgeHttpServer((self.bind, self.port), self)
        self._thread = threading.Thread(target=self._server.serve_forever, name="host-bridge", daemon=True)
        self._thread.start()
        logger.info("bridge listening on %s", self.url)
        return self

    def stop(self) -> None:
        server = self._server
        thread = self._thread
        self._server = None
        self._thread = None
        if server is not None:
            with suppress(Exception):
                server.shutdown()
            with suppress(Exception):
                server.server_close()
        if thread is not None:
            thread.join(timeout=2.0)


def start_bridge(host: HostRuntime | None = None, **kwargs: Any) -> BridgeService:
    return BridgeService(host, **kwargs).start()


__all__ = ["BridgeService", "DEFAULT_BRIDGE_PORT", "start_bridge"]
