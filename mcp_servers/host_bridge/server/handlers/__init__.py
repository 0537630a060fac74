"""
Tool handlers organized by domain.

All handlers follow the signature: (config, arguments) -> ToolResult.
Gateway errors propagate to the server loop, which renders them as error results.
"""

from .api import API_HANDLERS
from .handles import HANDLE_HANDLERS
from .host import HOST_HANDLERS
from .protocol import PROTOCOL_HANDLERS

ALL_HANDLERS: dict[str, tuple] = {
    **API_HANDLERS,
    **HANDLE_HANDLERS,
    **PROTOCOL_HANDLERS,
    **HOST_HANDLERS,
}

__all__ = [
    "ALL_HANDLERS",
    "API_HANDLERS",
    "HANDLE_HANDLERS",
    "HOST_HANDLERS",
    "PROTOCOL_HANDLERS",
]
