"""Host-bridge tool schema definitions."""

from __future__ import annotations

from typing import Any

_SCHEMA = "http://json-schema.org/draft-07/schema#"


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"$schema": _SCHEMA, "type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


_PATH = {"type": "string", "description": "Dot-separated path from a catalog root, e.g. App.getVersion"}
_HANDLE_ID = {"type": "string", "description": "Handle id returned as {handleId, typeTag}"}
_ARGS = {"type": "array", "items": {}, "default": [], "description": "Positional arguments"}
_LIMIT = {"type": "integer", "default": 10, "minimum": 0, "description": "Maximum results"}

HOST_API_CALL_TOOL: dict[str, Any] = {
    "name": "host_api_call",
    "description": """Call a host API by dot-path (or read it when it is not callable).
USAGE:
- host_api_call(path="App.getVersion")
- host_api_call(path="Window.getFocused")
- host_api_call(path="Clipboard.writeText", args=["hello"])

Plain results come back as {"value": ...}. Anything else is boxed:
{"value": {"handleId": "3f2c...", "typeTag": "Window"}}; continue with host_handle_*.""",
    "inputSchema": _schema({"path": _PATH, "args": _ARGS}, ["path"]),
}

HOST_API_GET_TOOL: dict[str, Any] = {
    "name": "host_api_get",
    "description": "Read a host property by dot-path, e.g. host_api_get(path=\"NativeTheme.shouldUseDarkColors\").",
    "inputSchema": _schema({"path": _PATH}, ["path"]),
}

HOST_API_SET_TOOL: dict[str, Any] = {
    "name": "host_api_set",
    "description": "Assign a plain value to a host property, e.g. host_api_set(path=\"NativeTheme.themeSource\", value=\"dark\").",
    "inputSchema": _schema({"path": _PATH, "value": {"description": "Plain JSON value to assign"}}, ["path", "value"]),
}

HOST_API_SEARCH_TOOL: dict[str, Any] = {
    "name": "host_api_search",
    "description": "Search the host API catalog by name or description (case-insensitive).",
    "inputSchema": _schema({"query": {"type": "string"}, "limit": _LIMIT}, ["query"]),
}

HOST_API_DESCRIBE_TOOL: dict[str, Any] = {
    "name": "host_api_describe",
    "description": "Describe one catalog module or class: methods, properties, static and instance members.",
    "inputSchema": _schema({"name": {"type": "string", "description": "Catalog entry name, e.g. Window"}}, ["name"]),
}

HOST_HANDLE_CALL_TOOL: dict[str, Any] = {
    "name": "host_handle_call",
    "description": "Call a method on a handle, e.g. host_handle_call(handle_id=\"...\", method=\"getTitle\").",
    "inputSchema": _schema({"handle_id": _HANDLE_ID, "method": {"type": "string"}, "args": _ARGS}, ["handle_id", "method"]),
}

HOST_HANDLE_GET_TOOL: dict[str, Any] = {
    "name": "host_handle_get",
    "description": "Read a property of a handle. Missing properties read as null.",
    "inputSchema": _schema({"handle_id": _HANDLE_ID, "property": {"type": "string"}}, ["handle_id", "property"]),
}

HOST_HANDLE_SET_TOOL: dict[str, Any] = {
    "name": "host_handle_set",
    "description": "Assign a plain value to a property of a handle.",
    "inputSchema": _schema(
        {"handle_id": _HANDLE_ID, "property": {"type": "string"}, "value": {"description": "Plain JSON value"}},
        ["handle_id", "property", "value"],
    ),
}

HOST_HANDLE_RELEASE_TOOL: dict[str, Any] = {
    "name": "host_handle_release",
    "description": "Release a handle. Released ids are permanently invalid.",
    "inputSchema": _schema({"handle_id": _HANDLE_ID}, ["handle_id"]),
}

HOST_HANDLE_LIST_TOOL: dict[str, Any] = {
    "name": "host_handle_list",
    "description": "List live handles as [{id, typeTag}] (values are never exposed).",
    "inputSchema": _schema({}),
}

HOST_EVAL_TOOL: dict[str, Any] = {
    "name": "host_eval",
    "description": """Evaluate Python inside the host process (requires MCP_HOST_ALLOW_UNSAFE_EVAL=true).
`host` is the host namespace, `runtime` the host runtime. An expression returns its value;
a statement block returns its `result` variable.
USAGE:
- host_eval(code="host.App.getName()")
- host_eval(code="wins = host.Window.getAllWindows()\\nresult = len(wins)", timeout_ms=2000)""",
    "inputSchema": _schema(
        {
            "code": {"type": "string", "description": "Python source"},
            "timeout_ms": {"type": "integer", "default": 5000, "minimum": 1},
        },
        ["code"],
    ),
}

HOST_CDP_SEND_TOOL: dict[str, Any] = {
    "name": "host_cdp_send",
    "description": """Send one raw debug-protocol command to the bound host target.
Destructive commands (clear/delete/remove/unregister/dispose on Storage, Network, CacheStorage,
IndexedDB, DOMStorage, ServiceWorker) need MCP_HOST_ALLOW_DESTRUCTIVE_PROTOCOL=true.
USAGE:
- host_cdp_send(method="Runtime.evaluate", params={"expression": "document.title", "returnByValue": true})""",
    "inputSchema": _schema(
        {
            "method": {"type": "string", "description": "Domain.command"},
            "params": {"type": "object", "default": {}},
        },
        ["method"],
    ),
}

HOST_CDP_DOMAINS_TOOL: dict[str, Any] = {
    "name": "host_cdp_domains",
    "description": "List all known debug-protocol domains (sorted, deduplicated).",
    "inputSchema": _schema({}),
}

HOST_CDP_SEARCH_TOOL: dict[str, Any] = {
    "name": "host_cdp_search",
    "description": "Search debug-protocol commands and events by Domain.name or description.",
    "inputSchema": _schema({"query": {"type": "string"}, "limit": _LIMIT}, ["query"]),
}

HOST_STATUS_TOOL: dict[str, Any] = {
    "name": "host_status",
    "description": "Show the effective configuration, whether the gateway runs inside the host, and the focused surface.",
    "inputSchema": _schema({}),
}

HOST_DEVTOOLS_TOOL: dict[str, Any] = {
    "name": "host_devtools",
    "description": """Control devtools on the focused host surface.
USAGE:
- host_devtools(action="open", options={"mode": "detach"})
- host_devtools(action="inspect", x=120, y=40)""",
    "inputSchema": _schema(
        {
            "action": {"type": "string", "enum": ["open", "close", "toggle", "inspect"]},
            "x": {"type": "integer"},
            "y": {"type": "integer"},
            "options": {"type": "object", "description": "For open: options passed to the host"},
        },
        ["action"],
    ),
}

HOST_EMBED_TOOL: dict[str, Any] = {
    "name": "host_embed",
    "description": """Point the configured embedded browser at a URL.
iframe/webview embeds set `src` on MCP_HOST_EMBED_SELECTOR; native_view embeds need bounds.""",
    "inputSchema": _schema(
        {
            "url": {"type": "string"},
            "bounds": {
                "type": "object",
                "properties": {
                    "x": {"type": "integer"},
                    "y": {"type": "integer"},
                    "width": {"type": "integer"},
                    "height": {"type": "integer"},
                },
            },
        },
        ["url"],
    ),
}

HOST_RESET_TOOL: dict[str, Any] = {
    "name": "host_reset",
    "description": "Drop the cached host connection; the next call resolves and reconnects.",
    "inputSchema": _schema({}),
}

HOST_TOOL_DEFINITIONS: list[dict[str, Any]] = [
    HOST_API_CALL_TOOL,
    HOST_API_GET_TOOL,
    HOST_API_SET_TOOL,
    HOST_API_SEARCH_TOOL,
    HOST_API_DESCRIBE_TOOL,
    HOST_HANDLE_CALL_TOOL,
    HOST_HANDLE_GET_TOOL,
    HOST_HANDLE_SET_TOOL,
    HOST_HANDLE_RELEASE_TOOL,
    HOST_HANDLE_LIST_TOOL,
    HOST_EVAL_TOOL,
    HOST_CDP_SEND_TOOL,
    HOST_CDP_DOMAINS_TOOL,
    HOST_CDP_SEARCH_TOOL,
    HOST_STATUS_TOOL,
    HOST_DEVTOOLS_TOOL,
    HOST_EMBED_TOOL,
    HOST_RESET_TOOL,
]
