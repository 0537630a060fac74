"""Structured gateway errors.

Every failure that crosses the gateway boundary is one of these kinds. Tool
handlers turn them into error results; nothing here is allowed to crash the
server process.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for errors surfaced to the controller with a readable message."""

    kind = "internal"

    def __init__(
        self,
        reason: str,
        *,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.suggestion = suggestion
        self.details = dict(details or {})

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.reason}. Suggestion: {self.suggestion}"
        return self.reason

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": False, "kind": self.kind, "error": self.reason}
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        if self.details:
            payload["details"] = self.details
        return payload


class PolicyViolationError(GatewayError):
    """Allowlist or destructive-command gate rejected the request."""

    kind = "policy_violation"


class NotFoundError(GatewayError):
    kind = "not_found"


class TargetNotFoundError(NotFoundError):
    """No surface on the transport reports the resolved target id."""

    kind = "target_not_found"


class NotCallableError(GatewayError):
    kind = "not_callable"


class InvalidArgumentError(GatewayError):
    """Tool arguments are missing or malformed; nothing reached the host."""

    kind = "invalid_argument"


class UpstreamUnavailableError(GatewayError):
    """Host, bridge or debug transport is unreachable."""

    kind = "upstream_unavailable"


class TimeoutExceededError(GatewayError):
    kind = "timeout"


class InternalError(GatewayError):
    """Unexpected exception raised by a host call."""

    kind = "internal"


__all__ = [
    "GatewayError",
    "InternalError",
    "InvalidArgumentError",
    "NotCallableError",
    "NotFoundError",
    "PolicyViolationError",
    "TargetNotFoundError",
    "TimeoutExceededError",
    "UpstreamUnavailableError",
]
