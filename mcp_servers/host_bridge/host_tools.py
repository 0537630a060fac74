"""Operator conveniences on the host: status, devtools, embedded browser, reset."""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import get_config
from .connection import ConnectionCache, connection_cache
from .errors import GatewayError, InternalError, InvalidArgumentError, NotFoundError, UpstreamUnavailableError
from .runtime import is_host_process, require_host, resolve_pending
from .surfaces import debug_endpoint_from_host, focused_target_info, get_focused_surface

logger = logging.getLogger("mcp.host_bridge.host")

DEVTOOLS_ACTIONS = ("open", "close", "toggle", "inspect")

# Runs in the bound page; sets `src` on the configured embed element.
_EMBED_SCRIPT = """(() => {
  const selector = %(selector)s;
  const url = %(url)s;
  const element = document.querySelector(selector);
  if (!element) {
    throw new Error("Embed element not found: " + selector);
  }
  element.setAttribute("src", url);
  return true;
})()"""


def status() -> dict[str, Any]:
    """Effective configuration plus what the host currently has focused."""
    cfg = get_config()
    in_host = is_host_process()
    focused = focused_target_info() if in_host else None
    payload = cfg.to_dict()
    payload["debugEndpoint"] = cfg.debug_endpoint or debug_endpoint_from_host()
    payload["targetId"] = cfg.target_id or (focused.target_id if focused else None)
    payload["runningInHost"] = in_host
    payload["focusedSurfaceId"] = focused.surface_id if focused else None
    payload["focusedWindowId"] = focused.window_id if focused else None
    conn = connection_cache.current
    payload["connected"] = bool(conn is not None and conn.is_connected())
    return payload


def _focused_surface() -> Any:
    require_host()
    surface = get_focused_surface()
    if surface is None:
        raise NotFoundError("No focused host surface found", suggestion="Focus a host window and retry")
    return surface


def devtools(
    action: str,
    *,
    x: int | None = None,
    y: int | None = None,
    options: dict[str, Any] | None = None,
) -> dict[str, Any]:
    if action not in DEVTOOLS_ACTIONS:
        raise InvalidArgumentError(
            f"Unknown devtools action: {action}", suggestion=f"Use one of {', '.join(DEVTOOLS_ACTIONS)}"
        )
    surface = _focused_surface()
    try:
        if action == "open":
            surface.open_devtools(**dict(options or {}))
        elif action == "close":
            surface.close_devtools()
        elif action == "toggle":
            surface.toggle_devtools()
        else:
            if x is None or y is None:
                raise InvalidArgumentError("inspect needs both x and y")
            surface.inspect_element(int(x), int(y))
    except GatewayError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise InternalError(f"devtools {action} failed: {type(exc).__name__}: {exc}") from exc
    result: dict[str, Any] = {"action": action, "surfaceId": getattr(surface, "id", None)}
    if action == "inspect":
        result.update({"x": int(x), "y": int(y)})  # type: ignore[arg-type]
    return result


def embed(url: str, *, bounds: dict[str, Any] | None = None, cache: ConnectionCache | None = None) -> dict[str, Any]:
    """Point the configured embedded browser at `url`."""
    cfg = get_config()
    if not cfg.embed_selector and cfg.embed_type != "native_view":
        raise NotFoundError(
            "Embedded browser is not configured",
            suggestion="Set MCP_HOST_EMBED_SELECTOR (or MCP_HOST_EMBED_TYPE=native_view)",
        )
    if not url:
        raise InvalidArgumentError("Missing url for embedded browser")

    if cfg.embed_type == "native_view":
        if not is_host_process():
            raise UpstreamUnavailableError("Native view embedding requires running inside the host process")
        if not bounds:
            raise InvalidArgumentError(
                "Missing bounds for native view embedding", suggestion='Pass bounds={"x","y","width","height"}'
            )
        host = require_host()
        create = getattr(host, "create_native_view", None)
        if create is None:
            raise UpstreamUnavailableError("This host does not support native view embedding")
        try:
            view = resolve_pending(create(url, dict(bounds)))
        except Exception as exc:  # noqa: BLE001
            raise InternalError(f"Native view embedding failed: {exc}") from exc
        logger.info("embedded native view url=%s", url)
        return {"embedType": "native_view", "url": url, "viewId": getattr(view, "id", None)}

    embed_type = cfg.embed_type or "iframe"
    expression = _EMBED_SCRIPT % {"selector": json.dumps(cfg.embed_selector), "url": json.dumps(url)}
    response = (cache or connection_cache).send_to_target(
        "Runtime.evaluate",
        {"expression": expression, "returnByValue": True, "awaitPromise": True},
    )
    details = response.get("exceptionDetails")
    if isinstance(details, dict):
        exc_obj = details.get("exception") if isinstance(details.get("exception"), dict) else {}
        message = exc_obj.get("description") or details.get("text") or "Embed script failed"
        raise NotFoundError(str(message), details={"selector": cfg.embed_selector})
    return {"embedType": embed_type, "selector": cfg.embed_selector, "url": url}


def reset(cache: ConnectionCache | None = None) -> dict[str, Any]:
    (cache or connection_cache).reset()
    return {"reset": True}


__all__ = ["DEVTOOLS_ACTIONS", "devtools", "embed", "reset", "status"]
