"""
Raw debug-protocol handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...errors import InvalidArgumentError
from ...protocol_gateway import protocol_gateway
from ..types import ToolResult
from ._args import arg_limit, require_str

if TYPE_CHECKING:
    from ...config import HostBridgeConfig


def handle_cdp_send(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    params = args.get("params")
    if params is not None and not isinstance(params, dict):
        raise InvalidArgumentError("'params' must be an object", suggestion="Provide params={...}")
    return ToolResult.json(protocol_gateway.send(require_str(args, "method"), params or {}))


def handle_cdp_domains(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(protocol_gateway.list_domains())


def handle_cdp_search(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(protocol_gateway.search(str(args.get("query") or ""), arg_limit(args)))


PROTOCOL_HANDLERS: dict[str, tuple] = {
    "host_cdp_send": (handle_cdp_send, False),
    "host_cdp_domains": (handle_cdp_domains, False),
    "host_cdp_search": (handle_cdp_search, False),
}
