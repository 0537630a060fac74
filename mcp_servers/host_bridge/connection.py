"""Cached live transport to the host debug endpoint, bound to one target."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from .config import HostBridgeConfig, get_config
from .errors import InternalError, TargetNotFoundError, UpstreamUnavailableError
from .http_client import HttpClientError
from .session_cdp import CdpCommandError, CdpConnection, CdpTransportError, browser_ws_url
from .targets import Target, resolve_target

logger = logging.getLogger("mcp.host_bridge.connection")

# Target types that correspond to inspectable windows/views.
SURFACE_TARGET_TYPES = frozenset({"page", "webview", "iframe", "other"})

ConnectFunc = Callable[[str, float], CdpConnection]
ResolveFunc = Callable[[HostBridgeConfig], Target]


def _default_connect(debug_endpoint: str, timeout: float) -> CdpConnection:
    ws_url = browser_ws_url(debug_endpoint, timeout=min(timeout, 5.0))
    return CdpConnection(ws_url, timeout=timeout)


@dataclass
class HostConnection:
    transport: CdpConnection
    debug_endpoint: str
    target: Target | None = None

    @property
    def target_id(self) -> str | None:
        return self.target.target_id if self.target is not None else None

    def is_connected(self) -> bool:
        try:
            return bool(self.transport.connected)
        except Exception:
            return False


def find_surface(transport: CdpConnection, target_id: str) -> bool:
    """Search every open surface for one whose own target id equals `target_id`.

    Each candidate gets a short-lived session that is released before moving on.
    Transport failures propagate; per-candidate protocol errors are skipped.
    """
    listing = transport.send("Target.getTargets")
    infos = listing.get("targetInfos") if isinstance(listing, dict) else None
    for info in infos or []:
        if not isinstance(info, dict) or info.get("type") not in SURFACE_TARGET_TYPES:
            continue
        candidate = info.get("targetId")
        if not isinstance(candidate, str) or not candidate:
            continue
        session_id: str | None = None
        try:
            session_id = transport.attach(candidate)
            result = transport.send("Target.getTargetInfo", session_id=session_id)
            resolved = (result.get("targetInfo") or {}).get("targetId")
            if resolved == target_id:
                return True
        except CdpTransportError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.debug("surface lookup failed target=%s: %s", candidate, exc)
        finally:
            if session_id is not None:
                transport.detach(session_id)
    return False


class ConnectionCache:
    """Owns the single live host connection for this process."""

    def __init__(self, connect: ConnectFunc | None = None, resolve: ResolveFunc | None = None) -> None:
        self._connect = connect or _default_connect
        self._resolve = resolve or resolve_target
        self._conn: HostConnection | None = None
        # One resolution in flight at a time; overlapping calls would otherwise open two transports.
        self._lock = threading.RLock()

    @property
    def current(self) -> HostConnection | None:
        return self._conn

    def reset(self) -> None:
        """Drop all cached state unconditionally (best-effort close)."""
        with self._lock:
            conn = self._conn
            self._conn = None
        if conn is not None:
            with suppress(Exception):
                conn.transport.close()

    def ensure_connection(self, config: HostBridgeConfig | None = None) -> HostConnection:
        with self._lock:
            cfg = config or get_config()
            target = self._resolve(cfg)
            cached = self._conn

            if cached is not None and cached.is_connected() and cached.debug_endpoint == target.debug_endpoint:
                if cached.target_id == target.target_id:
                    cached.target = target
                    return cached
                try:
                    found = find_surface(cached.transport, target.target_id)
                except CdpTransportError as exc:
                    logger.info("cached transport failed during surface search: %s", exc)
                    found = False
                if found:
                    logger.info("rebound cached transport to target=%s", target.target_id)
                    cached.target = target
                    return cached

            self.reset()
            try:
                transport = self._connect(target.debug_endpoint, cfg.cdp_timeout)
            except HttpClientError as exc:
                raise UpstreamUnavailableError(
                    f"Unable to connect to host debug endpoint {target.debug_endpoint}: {exc}",
                    suggestion="Check MCP_HOST_DEBUG_ENDPOINT and that the host runs with remote debugging enabled",
                ) from exc
            conn = HostConnection(transport=transport, debug_endpoint=target.debug_endpoint)
            self._conn = conn
            logger.info("connected to host endpoint=%s", target.debug_endpoint)

            try:
                found = find_surface(transport, target.target_id)
            except HttpClientError as exc:
                self.reset()
                raise UpstreamUnavailableError(
                    f"Host transport failed while searching for target {target.target_id}: {exc}",
                    suggestion="Retry; if it persists, check the host debug endpoint",
                ) from exc
            if not found:
                raise TargetNotFoundError(
                    f"Unable to find host target {target.target_id} via the debug protocol",
                    suggestion="Ensure the target surface is open, or set MCP_HOST_TARGET_ID",
                    details={"debugEndpoint": target.debug_endpoint},
                )
            conn.target = target
            return conn

    def send_to_target(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send one command on a fresh session to the bound target, releasing it afterwards."""
        # Held across attach, send and detach so a reconnect cannot swap the transport mid-command.
        with self._lock:
            conn = self.ensure_connection()
            target_id = conn.target_id
            if not target_id:
                raise TargetNotFoundError("No host target is bound to the current connection")
            try:
                with conn.transport.session(target_id) as session_id:
                    return conn.transport.send(method, params or {}, session_id=session_id)
            except CdpTransportError as exc:
                self.reset()
                raise UpstreamUnavailableError(
                    f"Host transport dropped during {method}: {exc}",
                    suggestion="Retry the call; the connection will be re-established",
                ) from exc
            except CdpCommandError as exc:
                raise InternalError(str(exc), details={"method": method, "error": exc.error}) from exc
            except HttpClientError as exc:
                raise UpstreamUnavailableError(f"{method} failed: {exc}") from exc


connection_cache = ConnectionCache()


__all__ = [
    "ConnectionCache",
    "HostConnection",
    "SURFACE_TARGET_TYPES",
    "connection_cache",
    "find_surface",
]
