"""Raw debug-protocol pass-through to the bound host target."""

from __future__ import annotations

import logging
from typing import Any

from .catalog import list_protocol_domains, search_protocol
from .config import get_config
from .connection import ConnectionCache, connection_cache
from .errors import PolicyViolationError

logger = logging.getLogger("mcp.host_bridge.protocol")

HIGH_RISK_DOMAINS = frozenset({"Storage", "Network", "CacheStorage", "IndexedDB", "DOMStorage", "ServiceWorker"})
DESTRUCTIVE_VERBS = ("clear", "delete", "remove", "unregister", "dispose")


def is_destructive_method(method: str) -> bool:
    """`Domain.command` on a high-risk domain whose command name contains a destructive verb."""
    domain, sep, command = str(method or "").partition(".")
    if not sep or not domain or not command:
        return False
    if domain not in HIGH_RISK_DOMAINS:
        return False
    lowered = command.lower()
    return any(verb in lowered for verb in DESTRUCTIVE_VERBS)


class ProtocolGateway:
    def __init__(self, cache: ConnectionCache | None = None) -> None:
        self.cache = cache if cache is not None else connection_cache

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if is_destructive_method(method) and not get_config().allow_destructive_protocol:
            logger.info("blocked destructive protocol command method=%s", method)
            raise PolicyViolationError(
                f"Blocked potentially destructive protocol command: {method}",
                suggestion="Set MCP_HOST_ALLOW_DESTRUCTIVE_PROTOCOL=true to allow it",
                details={"method": method},
            )
        return {"result": self.cache.send_to_target(method, params or {})}

    def list_domains(self) -> dict[str, Any]:
        return {"domains": list_protocol_domains()}

    def search(self, query: str, limit: int = 10) -> dict[str, Any]:
        return {"results": search_protocol(query, limit)}


protocol_gateway = ProtocolGateway()


__all__ = ["DESTRUCTIVE_VERBS", "HIGH_RISK_DOMAINS", "ProtocolGateway", "is_destructive_method", "protocol_gateway"]
