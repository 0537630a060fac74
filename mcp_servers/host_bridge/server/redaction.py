"""Redaction utilities for logging.

Tool arguments can carry host values, scripts and credentials; logs get their
shape, never their content.
"""

from __future__ import annotations

from typing import Any

_SENSITIVE_KEYS = {
    "secret",
    "password",
    "token",
    "auth",
    "authorization",
    "cookie",
    "cookies",
    "api-key",
    "x-api-key",
}

# Payload-bearing arguments per tool.
_PAYLOAD_KEYS: dict[str, set[str]] = {
    "host_api_call": {"args"},
    "host_api_set": {"value"},
    "host_handle_call": {"args"},
    "host_handle_set": {"value"},
    "host_eval": {"code"},
    "host_cdp_send": {"params"},
}


def _redacted_summary(value: Any) -> str:
    if value is None:
        return "<redacted>"
    if isinstance(value, (bytes, bytearray)):
        return f"<redacted bytes len={len(value)}>"
    if isinstance(value, str):
        return f"<redacted str len={len(value)}>"
    if isinstance(value, (list, tuple, set)):
        return f"<redacted list len={len(value)}>"
    if isinstance(value, dict):
        return f"<redacted dict keys={len(value)}>"
    return f"<redacted {type(value).__name__}>"


def redact_tool_arguments(tool: str, args: dict[str, Any]) -> dict[str, Any]:
    """Redact tool arguments for safe logging."""
    if not isinstance(args, dict):
        return {}
    payload_keys = _PAYLOAD_KEYS.get(tool, set())
    out: dict[str, Any] = {}
    for key, value in args.items():
        lk = str(key).lower()
        if lk in payload_keys or lk in _SENSITIVE_KEYS:
            out[key] = _redacted_summary(value)
        else:
            out[key] = value
    return out


def redact_jsonrpc_for_log(payload: dict[str, Any]) -> dict[str, Any]:
    """Copy of a JSON-RPC frame with tool-call arguments redacted."""
    msg = dict(payload) if isinstance(payload, dict) else {}
    if msg.get("method") in {"tools/call", "call_tool"}:
        params = msg.get("params")
        if isinstance(params, dict):
            name = params.get("name")
            args = params.get("arguments") or params.get("args")
            if isinstance(name, str) and isinstance(args, dict):
                params = dict(params)
                params["arguments"] = redact_tool_arguments(name, args)
                params.pop("args", None)
                msg["params"] = params
    return msg


__all__ = ["redact_jsonrpc_for_log", "redact_tool_arguments"]
