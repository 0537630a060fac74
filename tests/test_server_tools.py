from __future__ import annotations

import io
import json
from types import SimpleNamespace
from typing import Any

import pytest

from mcp_servers.host_bridge.config import HostBridgeConfig, get_config, set_config
from mcp_servers.host_bridge.connection import connection_cache
from mcp_servers.host_bridge.embedded import start_embedded_server
from mcp_servers.host_bridge.main import McpServer
from mcp_servers.host_bridge.runtime import current_host, register_host
from mcp_servers.host_bridge.server.contract import DEFAULT_PROTOCOL_VERSION, tools_list
from mcp_servers.host_bridge.server.redaction import redact_jsonrpc_for_log, redact_tool_arguments
from mcp_servers.host_bridge.server.registry import ToolRegistry, create_default_registry
from mcp_servers.host_bridge.server.types import ToolResult


def _frames(capsys: pytest.CaptureFixture[str]) -> list[dict[str, Any]]:
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.strip()]


def _kind(result: ToolResult) -> str:
    assert result.is_error
    return result.data["details"]["kind"]


@pytest.fixture()
def server() -> McpServer:
    return McpServer()


@pytest.fixture()
def in_host(demo_host: Any) -> Any:
    register_host(demo_host)
    return demo_host


# ─────────────────────────────────────────────────────────────────────────────
# JSON-RPC surface
# ─────────────────────────────────────────────────────────────────────────────


def test_tool_list_matches_registered_handlers() -> None:
    listed = {tool["name"] for tool in tools_list()}
    assert listed == set(create_default_registry().tool_names)
    assert len(listed) == 18
    for tool in tools_list():
        assert tool["inputSchema"]["type"] == "object"


def test_initialize_negotiates_protocol(server: McpServer, capsys: pytest.CaptureFixture[str]) -> None:
    server.dispatch({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2024-11-05"}})
    server.dispatch({"jsonrpc": "2.0", "id": 2, "method": "initialize", "params": {"protocolVersion": "1999-01-01"}})
    first, second = _frames(capsys)
    assert first["result"]["protocolVersion"] == "2024-11-05"
    assert first["result"]["serverInfo"]["name"] == "host-bridge"
    assert second["result"]["protocolVersion"] == DEFAULT_PROTOCOL_VERSION


def test_ping_notifications_and_unknown_methods(server: McpServer, capsys: pytest.CaptureFixture[str]) -> None:
    server.dispatch({"jsonrpc": "2.0", "method": "notifications/initialized"})
    server.dispatch({"jsonrpc": "2.0", "id": 3, "method": "ping"})
    server.dispatch({"jsonrpc": "2.0", "id": 4, "method": "resources/list"})
    ping, unknown = _frames(capsys)
    assert ping == {"jsonrpc": "2.0", "id": 3, "result": {}}
    assert unknown["error"]["code"] == -32601


def test_tools_call_frame_carries_json_text(
    server: McpServer, in_host: Any, capsys: pytest.CaptureFixture[str]
) -> None:
    server.dispatch(
        {
            "jsonrpc": "2.0",
            "id": 7,
            "method": "tools/call",
            "params": {"name": "host_api_call", "arguments": {"path": "App.getVersion"}},
        }
    )
    [frame] = _frames(capsys)
    assert frame["id"] == 7
    assert frame["result"]["isError"] is False
    assert json.loads(frame["result"]["content"][0]["text"]) == {"value": "1.2.3"}


def test_serve_reads_stdin_until_eof(
    server: McpServer, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    raw = b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n\nnot json\n{"jsonrpc":"2.0","id":2,"method":"tools/list"}\n'
    monkeypatch.setattr("sys.stdin", SimpleNamespace(buffer=io.BytesIO(raw)))
    server.serve()
    ping, parse_error, listing = _frames(capsys)
    assert ping["result"] == {}
    assert parse_error["error"]["code"] == -32700
    assert len(listing["result"]["tools"]) == 18


# ─────────────────────────────────────────────────────────────────────────────
# Error mapping
# ─────────────────────────────────────────────────────────────────────────────


def test_unknown_tool_is_an_error_result(server: McpServer) -> None:
    result = server.call_tool("host_nope", {})
    assert result.is_error
    assert "Unknown tool" in result.data["error"]


def test_host_only_tools_are_refused_outside_the_host(server: McpServer) -> None:
    for name in ("host_api_call", "host_api_get", "host_api_set", "host_eval", "host_handle_call", "host_devtools"):
        assert _kind(server.call_tool(name, {"path": "App.getVersion"})) == "upstream_unavailable"


def test_catalog_tools_work_outside_the_host(server: McpServer) -> None:
    found = server.call_tool("host_api_search", {"query": "window", "limit": 5})
    assert not found.is_error
    assert any(r["name"] == "Window" for r in found.data["results"])
    assert server.call_tool("host_api_describe", {"name": "App"}).data["type"] == "Module"
    assert "Runtime" in server.call_tool("host_cdp_domains", {}).data["domains"]
    assert server.call_tool("host_cdp_search", {"query": "getTargets"}).data["results"][0]["domain"] == "Target"
    assert server.call_tool("host_handle_list", {}).data == {"handles": []}


def test_gateway_errors_carry_their_kind(server: McpServer, in_host: Any) -> None:
    assert _kind(server.call_tool("host_api_get", {"path": "Secret.token"})) == "policy_violation"
    assert _kind(server.call_tool("host_api_call", {"path": "App.nothing"})) == "not_found"
    assert _kind(server.call_tool("host_api_call", {"path": "App.name", "args": [1]})) == "not_callable"
    assert _kind(server.call_tool("host_api_call", {"path": "App.relaunch"})) == "internal"
    assert _kind(server.call_tool("host_api_call", {})) == "invalid_argument"
    assert _kind(server.call_tool("host_eval", {"code": "1"})) == "policy_violation"


def test_malformed_arguments_are_not_reported_as_missing_host_members(server: McpServer, in_host: Any) -> None:
    cases = [
        ("host_api_get", {"path": "   "}),
        ("host_api_describe", {}),
        ("host_handle_get", {"handle_id": "abc"}),
        ("host_handle_set", {"handle_id": "abc", "property": "title"}),
        ("host_eval", {"code": ""}),
        ("host_cdp_send", {"params": {}}),
    ]
    for name, args in cases:
        result = server.call_tool(name, args)
        assert _kind(result) == "invalid_argument", name
        assert result.data["suggestion"]


def test_unexpected_exceptions_become_internal_errors() -> None:
    def boom(config: HostBridgeConfig, args: dict[str, Any]) -> ToolResult:
        raise ValueError("kaboom")

    registry = ToolRegistry()
    registry.register("host_boom", boom)
    result = McpServer(registry=registry).call_tool("host_boom", {})
    assert _kind(result) == "internal"
    assert result.data["error"] == "kaboom"


def test_cdp_send_blocks_destructive_commands_before_connecting(server: McpServer) -> None:
    result = server.call_tool("host_cdp_send", {"method": "Storage.clearDataForOrigin", "params": {}})
    assert _kind(result) == "policy_violation"
    assert connection_cache.current is None


def test_cdp_send_without_a_locatable_host_is_upstream_unavailable(server: McpServer) -> None:
    assert _kind(server.call_tool("host_cdp_send", {"method": "Runtime.evaluate"})) == "upstream_unavailable"
    assert _kind(server.call_tool("host_cdp_send", {"method": "Page.reload", "params": [1]})) == "invalid_argument"


def test_cdp_send_passes_through(server: McpServer, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, dict[str, Any]]] = []

    def fake_send(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        calls.append((method, params or {}))
        return {"frameTree": {}}

    monkeypatch.setattr(connection_cache, "send_to_target", fake_send)
    result = server.call_tool("host_cdp_send", {"method": "Page.getFrameTree"})
    assert result.data == {"result": {"frameTree": {}}}
    assert calls == [("Page.getFrameTree", {})]


# ─────────────────────────────────────────────────────────────────────────────
# Host API and handles through tools
# ─────────────────────────────────────────────────────────────────────────────


def test_handle_lifecycle_through_tools(server: McpServer, in_host: Any) -> None:
    [boxed] = server.call_tool("host_api_call", {"path": "Window.getAllWindows"}).data["value"]
    hid = boxed["handleId"]

    assert server.call_tool("host_handle_call", {"handle_id": hid, "method": "getTitle"}).data == {"value": "Main"}
    server.call_tool("host_handle_set", {"handle_id": hid, "property": "title", "value": "Renamed"})
    assert server.call_tool("host_handle_get", {"handle_id": hid, "property": "title"}).data == {"value": "Renamed"}
    assert server.call_tool("host_handle_list", {}).data["handles"] == [{"id": hid, "typeTag": "FakeWindow"}]
    assert server.call_tool("host_handle_release", {"handle_id": hid}).data == {"released": hid}
    assert _kind(server.call_tool("host_handle_release", {"handle_id": hid})) == "not_found"


def test_api_set_and_eval_through_tools(server: McpServer, in_host: Any) -> None:
    assert server.call_tool("host_api_set", {"path": "Clipboard.text", "value": "copied"}).data["ok"] is True
    assert server.call_tool("host_api_call", {"path": "Clipboard.readText"}).data == {"value": "copied"}
    assert _kind(server.call_tool("host_api_set", {"path": "Clipboard.text"})) == "invalid_argument"

    set_config(HostBridgeConfig(allow_unsafe_eval=True))
    out = server.call_tool("host_eval", {"code": 'host["Clipboard"].readText().upper()', "timeout_ms": 1000})
    assert out.data == {"value": "COPIED"}


# ─────────────────────────────────────────────────────────────────────────────
# Status, devtools, embed, reset
# ─────────────────────────────────────────────────────────────────────────────


def test_status_outside_the_host(server: McpServer) -> None:
    set_config(HostBridgeConfig(mode="host_process", debug_endpoint="http://127.0.0.1:9222", target_id="T1"))
    data = server.call_tool("host_status", {}).data
    assert data["runningInHost"] is False
    assert data["debugEndpoint"] == "http://127.0.0.1:9222"
    assert data["targetId"] == "T1"
    assert data["connected"] is False
    assert data["allowUnsafeEval"] is False


def test_status_inside_the_host_reports_focus(server: McpServer, in_host: Any) -> None:
    data = server.call_tool("host_status", {}).data
    assert data["runningInHost"] is True
    assert data["debugEndpoint"] == "http://127.0.0.1:9222"
    assert data["targetId"] == "T-FOCUS"
    assert data["focusedSurfaceId"] == 11
    assert data["focusedWindowId"] == 1


def test_devtools_actions(server: McpServer, in_host: Any) -> None:
    surface = in_host.focused
    out = server.call_tool("host_devtools", {"action": "open", "options": {"mode": "detach"}})
    assert out.data == {"action": "open", "surfaceId": 11}
    server.call_tool("host_devtools", {"action": "toggle"})
    inspect = server.call_tool("host_devtools", {"action": "inspect", "x": 10, "y": 20})
    assert inspect.data == {"action": "inspect", "surfaceId": 11, "x": 10, "y": 20}
    server.call_tool("host_devtools", {"action": "close"})
    assert surface.devtools == [("open", {"mode": "detach"}), ("toggle", None), ("inspect", (10, 20)), ("close", None)]

    assert _kind(server.call_tool("host_devtools", {"action": "explode"})) == "invalid_argument"
    assert _kind(server.call_tool("host_devtools", {"action": "inspect", "x": 1})) == "invalid_argument"


def test_devtools_without_focus_is_not_found(server: McpServer, in_host: Any) -> None:
    in_host.focused = None
    assert _kind(server.call_tool("host_devtools", {"action": "open"})) == "not_found"


def test_embed_requires_configuration(server: McpServer) -> None:
    result = server.call_tool("host_embed", {"url": "https://example.com"})
    assert _kind(result) == "not_found"
    assert "MCP_HOST_EMBED_SELECTOR" in result.data["suggestion"]


def test_embed_sets_src_on_configured_element(server: McpServer, monkeypatch: pytest.MonkeyPatch) -> None:
    set_config(HostBridgeConfig(embed_selector="#embed", embed_type="webview"))
    sent: list[dict[str, Any]] = []

    def fake_send(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        assert method == "Runtime.evaluate"
        sent.append(params or {})
        return {"result": {"type": "boolean", "value": True}}

    monkeypatch.setattr(connection_cache, "send_to_target", fake_send)
    out = server.call_tool("host_embed", {"url": "https://example.com/a\"b"})
    assert out.data == {"embedType": "webview", "selector": "#embed", "url": 'https://example.com/a"b'}
    expression = sent[0]["expression"]
    assert '"#embed"' in expression
    assert json.dumps('https://example.com/a"b') in expression
    assert sent[0]["returnByValue"] is True


def test_embed_missing_element_is_not_found(server: McpServer, monkeypatch: pytest.MonkeyPatch) -> None:
    set_config(HostBridgeConfig(embed_selector="#gone", embed_type="iframe"))
    monkeypatch.setattr(
        connection_cache,
        "send_to_target",
        lambda method, params=None: {
            "result": {},
            "exceptionDetails": {"text": "Uncaught", "exception": {"description": "Embed element not found: #gone"}},
        },
    )
    result = server.call_tool("host_embed", {"url": "https://example.com"})
    assert _kind(result) == "not_found"
    assert "#gone" in result.data["error"]


def test_embed_native_view(server: McpServer, in_host: Any) -> None:
    set_config(HostBridgeConfig(embed_type="native_view"))
    bounds = {"x": 0, "y": 0, "width": 640, "height": 480}
    out = server.call_tool("host_embed", {"url": "https://example.com", "bounds": bounds})
    assert out.data == {"embedType": "native_view", "url": "https://example.com", "viewId": 1}
    assert in_host.native_views == [("https://example.com", bounds)]
    assert _kind(server.call_tool("host_embed", {"url": "https://example.com"})) == "invalid_argument"


def test_reset_drops_the_connection(server: McpServer) -> None:
    assert server.call_tool("host_reset", {}).data == {"reset": True}
    assert connection_cache.current is None


# ─────────────────────────────────────────────────────────────────────────────
# Logging hygiene and embedded startup
# ─────────────────────────────────────────────────────────────────────────────


def test_redaction_keeps_shape_not_content() -> None:
    out = redact_tool_arguments("host_eval", {"code": "secret()", "timeout_ms": 10})
    assert out == {"code": "<redacted str len=8>", "timeout_ms": 10}
    out = redact_tool_arguments("host_api_call", {"path": "App.getVersion", "args": [1, 2], "token": "abc"})
    assert out == {"path": "App.getVersion", "args": "<redacted list len=2>", "token": "<redacted str len=3>"}

    frame = {"method": "tools/call", "params": {"name": "host_cdp_send", "args": {"method": "X.y", "params": {"a": 1}}}}
    redacted = redact_jsonrpc_for_log(frame)
    assert redacted["params"]["arguments"] == {"method": "X.y", "params": "<redacted dict keys=1>"}
    assert "args" not in redacted["params"]
    assert frame["params"]["args"]["params"] == {"a": 1}


def test_start_embedded_server_binds_to_focused_surface(fakes: Any) -> None:
    host = fakes.Host(focused=fakes.Surface(5, "T-FOCUS", window_id=2), port=None, ready=False)
    server = start_embedded_server(host, debug_port=9333, embed_selector="#embed")

    assert isinstance(server, McpServer)
    assert current_host() is host
    assert host.switches["remote-debugging-port"] == "9333"
    assert host.when_ready_calls == 1

    cfg = get_config()
    assert cfg.mode == "host_process"
    assert cfg.debug_endpoint == "http://127.0.0.1:9333"
    assert cfg.target_id == "T-FOCUS"
    assert cfg.embed_type == "iframe"


def test_start_embedded_server_headless_uses_hidden_surface(fakes: Any) -> None:
    host = fakes.Host(focused=fakes.Surface(5, "T-FOCUS"))
    start_embedded_server(host, mode="headless", headless_engine="host")
    cfg = get_config()
    assert cfg.target_id == "HIDDEN-1"
    assert cfg.debug_endpoint == "http://127.0.0.1:9222"
    assert cfg.headless_engine == "host"
