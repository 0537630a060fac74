"""Surface lookup inside the host process.

A surface is any host object with an `id`, an optional `window_id`, an
`is_destroyed()` check and a `debugger` exposing `is_attached()`, `attach()`,
`detach()` and `send_command(method, params=None)`. Devtools control uses
`open_devtools(**options)`, `close_devtools()`, `toggle_devtools()` and
`inspect_element(x, y)`.
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from .errors import UpstreamUnavailableError
from .runtime import current_host, require_host, resolve_pending

logger = logging.getLogger("mcp.host_bridge.surfaces")

DEBUG_PORT_SWITCH = "remote-debugging-port"


@dataclass(frozen=True, slots=True)
class SurfaceInfo:
    target_id: str | None
    surface_id: Any = None
    window_id: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"targetId": self.target_id, "surfaceId": self.surface_id, "windowId": self.window_id}


def surface_target_info(surface: Any) -> SurfaceInfo | None:
    """Ask a surface's own debugger for its protocol-level target id."""
    if surface is None:
        return None

    target_id: str | None = None
    debugger = getattr(surface, "debugger", None)
    attached_here = False
    try:
        if debugger is None:
            raise AttributeError("surface has no debugger")
        if not debugger.is_attached():
            debugger.attach()
            attached_here = True
        result = resolve_pending(debugger.send_command("Target.getTargetInfo"))
        info = result.get("targetInfo") if isinstance(result, dict) else None
        if isinstance(info, dict) and isinstance(info.get("targetId"), str):
            target_id = info["targetId"]
    except Exception as exc:  # noqa: BLE001
        logger.debug("surface target lookup failed: %s", exc)
        target_id = None
    finally:
        if attached_here:
            with suppress(Exception):
                if debugger.is_attached():
                    debugger.detach()

    window_id = getattr(surface, "window_id", None)
    return SurfaceInfo(target_id=target_id, surface_id=getattr(surface, "id", None), window_id=window_id)


def get_focused_surface() -> Any | None:
    host = current_host()
    if host is None:
        return None
    return host.focused_surface()


def focused_target_info() -> SurfaceInfo | None:
    return surface_target_info(get_focused_surface())


_hidden_lock = threading.Lock()
_hidden_surface: Any | None = None


def ensure_hidden_surface() -> Any:
    """Return the dedicated hidden surface, creating it on first use or after it was destroyed."""
    global _hidden_surface
    host = require_host()
    host.when_ready()
    with _hidden_lock:
        current = _hidden_surface
        if current is not None:
            destroyed = True
            with suppress(Exception):
                destroyed = bool(current.is_destroyed())
            if not destroyed:
                return current
        try:
            surface = host.create_hidden_surface()
        except Exception as exc:  # noqa: BLE001
            raise UpstreamUnavailableError(
                f"Unable to create a hidden surface: {exc}",
                suggestion="Check that the host can open windows, or set MCP_HOST_HEADLESS_ENGINE=driver",
            ) from exc
        _hidden_surface = surface
        logger.info("hidden surface created id=%s", getattr(surface, "id", None))
        return surface


def forget_hidden_surface() -> None:
    global _hidden_surface
    with _hidden_lock:
        _hidden_surface = None


def debug_endpoint_from_host() -> str | None:
    """`http://127.0.0.1:<port>` from the host's remote-debugging-port switch."""
    host = current_host()
    if host is None:
        return None
    port = host.get_switch_value(DEBUG_PORT_SWITCH)
    if not port:
        return None
    return f"http://127.0.0.1:{port}"


__all__ = [
    "DEBUG_PORT_SWITCH",
    "SurfaceInfo",
    "debug_endpoint_from_host",
    "ensure_hidden_surface",
    "focused_target_info",
    "forget_hidden_surface",
    "get_focused_surface",
    "surface_target_info",
]
