"""Resolve which host surface (debug endpoint + target id) a call should reach.

Three strategies, depending on where the gateway runs:
- inside the host: ask the host for its focused (or hidden) surface;
- outside, explicit endpoint/target configured: use them as-is;
- outside, only a bridge URL: query the in-host BridgeService `/status`.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from .config import MODE_HEADLESS, HostBridgeConfig, get_config, set_config
from .errors import UpstreamUnavailableError
from .http_client import HttpClientError, http_get_json, join_url
from .runtime import is_host_process
from .surfaces import (
    SurfaceInfo,
    debug_endpoint_from_host,
    ensure_hidden_surface,
    focused_target_info,
    surface_target_info,
)

logger = logging.getLogger("mcp.host_bridge.targets")


@dataclass(frozen=True, slots=True)
class Target:
    debug_endpoint: str
    target_id: str
    surface_id: Any = None
    window_id: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "debugEndpoint": self.debug_endpoint,
            "targetId": self.target_id,
            "surfaceId": self.surface_id,
            "windowId": self.window_id,
        }


def _str_or_none(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def fetch_bridge_status(bridge_url: str, timeout: float = 2.0) -> dict[str, Any]:
    """GET `<bridge_url>/status` and return the decoded object."""
    status_url = join_url(bridge_url, "status")
    try:
        data = http_get_json(status_url, timeout=timeout)
    except HttpClientError as exc:
        raise UpstreamUnavailableError(
            f"Bridge discovery failed at {status_url}: {exc}",
            suggestion="Check MCP_HOST_BRIDGE_URL, or set MCP_HOST_DEBUG_ENDPOINT and MCP_HOST_TARGET_ID directly",
        ) from exc
    if not isinstance(data, dict):
        raise UpstreamUnavailableError(
            f"Bridge discovery at {status_url} returned a malformed payload",
            suggestion="Check MCP_HOST_BRIDGE_URL points at the host bridge, or set MCP_HOST_DEBUG_ENDPOINT directly",
        )
    return data


def _resolve_in_host(config: HostBridgeConfig) -> Target:
    debug_endpoint = config.debug_endpoint or debug_endpoint_from_host()
    info: SurfaceInfo | None
    if config.mode == MODE_HEADLESS and config.headless_engine == "host":
        info = surface_target_info(ensure_hidden_surface())
    else:
        info = focused_target_info()

    if not debug_endpoint:
        raise UpstreamUnavailableError(
            "Host debug endpoint is unavailable",
            suggestion="Set MCP_HOST_DEBUG_ENDPOINT or start the host with the remote-debugging-port switch",
        )
    if info is None or not info.target_id:
        raise UpstreamUnavailableError(
            "Host target id is unavailable",
            suggestion="Ensure a host window is focused (or use headless mode) and remote debugging is enabled",
        )
    return Target(
        debug_endpoint=debug_endpoint,
        target_id=info.target_id,
        surface_id=info.surface_id,
        window_id=info.window_id,
    )


def _merge_bridge_status(config: HostBridgeConfig, status: dict[str, Any]) -> HostBridgeConfig:
    """Fill fields the caller left empty; explicit values always win."""
    bridge_selector = _str_or_none(status.get("embedSelector"))
    bridge_type = HostBridgeConfig.normalize_embed_type(status.get("embedType")) or (
        "iframe" if bridge_selector else None
    )
    return dataclasses.replace(
        config,
        debug_endpoint=config.debug_endpoint or _str_or_none(status.get("debugEndpoint")),
        target_id=config.target_id or _str_or_none(status.get("targetId")),
        embed_selector=config.embed_selector or bridge_selector,
        embed_type=config.embed_type or bridge_type,
    )


def _resolve_outside_host(config: HostBridgeConfig) -> Target:
    needs_bridge = bool(config.bridge_url) and (
        not config.debug_endpoint or not config.target_id or (not config.embed_selector and not config.embed_type)
    )
    surface_id = None
    window_id = None
    if needs_bridge and config.bridge_url:
        status = fetch_bridge_status(config.bridge_url, timeout=config.http_timeout)
        merged = _merge_bridge_status(config, status)
        if merged != config:
            # The bridge-supplied target stays transient; only endpoint and embed settings persist.
            set_config(dataclasses.replace(merged, target_id=config.target_id))
            logger.info("bridge discovery merged endpoint=%s target=%s", merged.debug_endpoint, merged.target_id)
        config = merged
        surface_id = status.get("surfaceId")
        window_id = status.get("windowId")

    if not config.debug_endpoint:
        raise UpstreamUnavailableError(
            "Host debug endpoint is missing",
            suggestion="Provide MCP_HOST_DEBUG_ENDPOINT (or debug_endpoint override)",
        )
    if not config.target_id:
        raise UpstreamUnavailableError(
            "Host target id is missing",
            suggestion="Provide MCP_HOST_TARGET_ID (or target_id override), or set MCP_HOST_BRIDGE_URL",
        )
    return Target(
        debug_endpoint=config.debug_endpoint,
        target_id=config.target_id,
        surface_id=surface_id,
        window_id=window_id,
    )


def resolve_target(config: HostBridgeConfig | None = None) -> Target:
    cfg = config or get_config()
    if is_host_process():
        return _resolve_in_host(cfg)
    return _resolve_outside_host(cfg)


__all__ = ["Target", "fetch_bridge_status", "resolve_target"]
