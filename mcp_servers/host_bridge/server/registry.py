"""
Tool registry with dispatch table for the MCP server.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..runtime import is_host_process
from .types import ToolResult

if TYPE_CHECKING:
    from ..config import HostBridgeConfig

logger = logging.getLogger("mcp.host_bridge.registry")

# Type alias for handler function
HandlerFunc = Callable[["HostBridgeConfig", dict[str, Any]], ToolResult]


class ToolRegistry:
    """Registry for tool handlers; tools that need the in-process host are refused elsewhere."""

    def __init__(self) -> None:
        # name -> (handler, requires_host)
        self._handlers: dict[str, tuple[HandlerFunc, bool]] = {}

    def register(self, name: str, handler: HandlerFunc, requires_host: bool = False) -> None:
        """Register a tool handler."""
        self._handlers[name] = (handler, requires_host)

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, bool]]) -> None:
        """Register multiple handlers at once."""
        self._handlers.update(handlers)

    def get(self, name: str) -> tuple[HandlerFunc, bool] | None:
        return self._handlers.get(name)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def dispatch(self, name: str, config: HostBridgeConfig, arguments: dict[str, Any]) -> ToolResult:
        """
        Dispatch tool call to appropriate handler.

        Raises:
            KeyError: If tool not found
        """
        handler_info = self._handlers.get(name)
        if handler_info is None:
            raise KeyError(f"Unknown tool: {name}")

        handler, requires_host = handler_info
        if requires_host and not is_host_process():
            logger.info("tool=%s refused: not running inside the host", name)
            return ToolResult.error(
                "This tool needs the gateway to run inside the host process",
                tool=name,
                suggestion="Start the gateway with start_embedded_server(host), or use host_cdp_send from outside",
                details={"kind": "upstream_unavailable", "mode": config.mode},
            )
        return handler(config, arguments)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    """Create registry with all host-bridge handlers."""
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    return registry


__all__ = ["HandlerFunc", "ToolRegistry", "create_default_registry"]
