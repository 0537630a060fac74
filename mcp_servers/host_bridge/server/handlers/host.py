"""
Host status, devtools, embedded browser and connection reset handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ... import host_tools
from ..types import ToolResult
from ._args import require_str

if TYPE_CHECKING:
    from ...config import HostBridgeConfig


def handle_status(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(host_tools.status())


def handle_devtools(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    options = args.get("options")
    result = host_tools.devtools(
        require_str(args, "action"),
        x=args.get("x"),
        y=args.get("y"),
        options=options if isinstance(options, dict) else None,
    )
    return ToolResult.json(result)


def handle_embed(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    bounds = args.get("bounds")
    result = host_tools.embed(require_str(args, "url"), bounds=bounds if isinstance(bounds, dict) else None)
    return ToolResult.json(result)


def handle_reset(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(host_tools.reset())


HOST_HANDLERS: dict[str, tuple] = {
    "host_status": (handle_status, False),
    "host_devtools": (handle_devtools, True),
    "host_embed": (handle_embed, False),
    "host_reset": (handle_reset, False),
}
