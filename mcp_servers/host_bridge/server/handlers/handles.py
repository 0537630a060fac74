"""
Handle table handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...api_gateway import api_gateway
from ..types import ToolResult
from ._args import arg_list, require_present, require_str

if TYPE_CHECKING:
    from ...config import HostBridgeConfig


def handle_handle_call(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    result = api_gateway.handle_call(require_str(args, "handle_id"), require_str(args, "method"), arg_list(args))
    return ToolResult.json(result)


def handle_handle_get(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.handle_get(require_str(args, "handle_id"), require_str(args, "property")))


def handle_handle_set(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    value = require_present(args, "value")
    result = api_gateway.handle_set(require_str(args, "handle_id"), require_str(args, "property"), value)
    return ToolResult.json(result)


def handle_handle_release(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.handle_release(require_str(args, "handle_id")))


def handle_handle_list(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(api_gateway.handle_list())


HANDLE_HANDLERS: dict[str, tuple] = {
    "host_handle_call": (handle_handle_call, True),
    "host_handle_get": (handle_handle_get, True),
    "host_handle_set": (handle_handle_set, True),
    "host_handle_release": (handle_handle_release, False),
    "host_handle_list": (handle_handle_list, False),
}
