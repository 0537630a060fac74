"""Start the gateway from inside the host process."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .config import MODE_HEADLESS, load_config, set_config
from .runtime import HostRuntime, register_host
from .surfaces import (
    DEBUG_PORT_SWITCH,
    debug_endpoint_from_host,
    ensure_hidden_surface,
    focused_target_info,
    surface_target_info,
)

if TYPE_CHECKING:
    from .main import McpServer

logger = logging.getLogger("mcp.host_bridge.embedded")


def start_embedded_server(
    host: HostRuntime,
    *,
    mode: str = "host_process",
    debug_port: int | None = None,
    embed_selector: str | None = None,
    embed_type: str | None = None,
    headless_engine: str | None = None,
    ready_timeout: float | None = None,
) -> McpServer:
    """Register `host`, bind the config to its focused (or hidden) surface and return a server.

    The caller decides how to serve it (`server.serve()` on stdio, usually on a
    background thread so the host's own loop keeps running).
    """
    from .main import McpServer

    register_host(host)
    if debug_port and not host.is_ready():
        host.append_switch(DEBUG_PORT_SWITCH, str(debug_port))
    host.when_ready(ready_timeout)

    if mode == MODE_HEADLESS and headless_engine == "host":
        info = surface_target_info(ensure_hidden_surface())
    else:
        info = focused_target_info()
    debug_endpoint = f"http://127.0.0.1:{debug_port}" if debug_port else debug_endpoint_from_host()

    overrides: dict[str, Any] = {
        "mode": mode,
        "debug_endpoint": debug_endpoint,
        "target_id": info.target_id if info else None,
        "embed_selector": embed_selector,
        "embed_type": embed_type,
        "headless_engine": headless_engine,
    }
    config = load_config(overrides)
    set_config(config)
    logger.info(
        "embedded gateway ready mode=%s endpoint=%s target=%s",
        config.mode,
        config.debug_endpoint,
        config.target_id,
    )
    return McpServer(config)


__all__ = ["start_embedded_server"]
