"""
Reflective host API handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...api_gateway import api_gateway
from ...errors import InvalidArgumentError
from ..types import ToolResult
from ._args import arg_limit, arg_list, require_present, require_str

if TYPE_CHECKING:
    from ...config import HostBridgeConfig


def handle_api_call(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.call(require_str(args, "path"), arg_list(args)))


def handle_api_get(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.get(require_str(args, "path")))


def handle_api_set(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    value = require_present(args, "value")
    return ToolResult.json(api_gateway.set(require_str(args, "path"), value))


def handle_api_search(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.search(str(args.get("query") or ""), arg_limit(args)))


def handle_api_describe(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.describe(require_str(args, "name")))


def handle_eval(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    code = args.get("code")
    if not isinstance(code, str) or not code.strip():
        raise InvalidArgumentError("Missing 'code'", suggestion="Provide code as a non-empty string")
    timeout_ms = args.get("timeout_ms")
    try:
        timeout = int(timeout_ms) if timeout_ms is not None else None
    except (TypeError, ValueError):
        timeout = None
    return ToolResult.json(api_gateway.evaluate(code, timeout))


API_HANDLERS: dict[str, tuple] = {
    "host_api_call": (handle_api_call, True),
    "host_api_get": (handle_api_get, True),
    "host_api_set": (handle_api_set, True),
    "host_api_search": (handle_api_search, False),
    "host_api_describe": (handle_api_describe, False),
    "host_eval": (handle_eval, True),
}
