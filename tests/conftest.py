from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from mcp_servers.host_bridge.config import HostBridgeConfig, set_config
from mcp_servers.host_bridge.connection import connection_cache
from mcp_servers.host_bridge.handles import handle_store
from mcp_servers.host_bridge.runtime import unregister_host
from mcp_servers.host_bridge.surfaces import forget_hidden_surface

_HOST_ENV = (
    "MCP_HOST_MODE",
    "MCP_HOST_DEBUG_ENDPOINT",
    "MCP_HOST_TARGET_ID",
    "MCP_HOST_BRIDGE_URL",
    "MCP_HOST_EMBED_SELECTOR",
    "MCP_HOST_EMBED_TYPE",
    "MCP_HOST_HEADLESS_ENGINE",
    "MCP_HOST_ALLOW_UNSAFE_EVAL",
    "MCP_HOST_ALLOW_ALL_APIS",
    "MCP_HOST_ALLOW_DESTRUCTIVE_PROTOCOL",
    "MCP_HOST_CDP_TIMEOUT",
    "MCP_HOST_HTTP_TIMEOUT",
)


def _reset_state() -> None:
    set_config(HostBridgeConfig())
    unregister_host()
    connection_cache.reset()
    handle_store.clear()
    forget_hidden_surface()


@pytest.fixture(autouse=True)
def _isolated_host_bridge(monkeypatch: pytest.MonkeyPatch):
    for name in _HOST_ENV:
        monkeypatch.delenv(name, raising=False)
    _reset_state()
    yield
    _reset_state()


class FakeDebugger:
    def __init__(self, target_id: str | None, *, fail: bool = False, attached: bool = False) -> None:
        self.target_id = target_id
        self.fail = fail
        self.attached = attached
        self.attach_calls = 0
        self.detach_calls = 0

    def is_attached(self) -> bool:
        return self.attached

    def attach(self) -> None:
        self.attach_calls += 1
        self.attached = True

    def detach(self) -> None:
        self.detach_calls += 1
        self.attached = False

    def send_command(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:  # noqa: ARG002
        if self.fail:
            raise RuntimeError("debugger unavailable")
        assert method == "Target.getTargetInfo"
        return {"targetInfo": {"targetId": self.target_id, "type": "page"}}


class FakeSurface:
    def __init__(self, surface_id: Any, target_id: str | None, *, window_id: Any = None, **debugger_kw: Any) -> None:
        self.id = surface_id
        self.window_id = window_id
        self.debugger = FakeDebugger(target_id, **debugger_kw)
        self.destroyed = False
        self.devtools: list[tuple[str, Any]] = []

    def is_destroyed(self) -> bool:
        return self.destroyed

    def open_devtools(self, **options: Any) -> None:
        self.devtools.append(("open", options))

    def close_devtools(self) -> None:
        self.devtools.append(("close", None))

    def toggle_devtools(self) -> None:
        self.devtools.append(("toggle", None))

    def inspect_element(self, x: int, y: int) -> None:
        self.devtools.append(("inspect", (x, y)))


class FakeWindow:
    def __init__(self, window_id: int, title: str) -> None:
        self.id = window_id
        self.title = title

    def getTitle(self) -> str:  # noqa: N802
        return self.title

    def setTitle(self, title: str) -> None:  # noqa: N802
        self.title = title


class FakeApp:
    def __init__(self) -> None:
        self.name = "Demo"
        self.isPackaged = False

    def getVersion(self) -> str:  # noqa: N802
        return "1.2.3"

    def getName(self) -> str:  # noqa: N802
        return self.name

    def getGPUInfo(self) -> dict[str, Any]:  # noqa: N802
        return {"vendor": "acme", "features": {"webgl": True, "vulkan": False}}

    async def whenReady(self) -> bool:  # noqa: N802
        return True

    def relaunch(self) -> None:
        raise RuntimeError("relaunch is not permitted in tests")


def make_window_class(windows: list[FakeWindow], focused: FakeWindow | None = None) -> type:
    class Window:
        @staticmethod
        def getAllWindows() -> list[FakeWindow]:  # noqa: N802
            return list(windows)

        @staticmethod
        def getFocused() -> FakeWindow | None:  # noqa: N802
            return focused

    return Window


class FakeHost:
    def __init__(
        self,
        namespace: Any = None,
        *,
        focused: FakeSurface | None = None,
        port: str | None = "9222",
        ready: bool = True,
    ) -> None:
        self.namespace = namespace if namespace is not None else {}
        self.focused = focused
        self.ready = ready
        self.switches: dict[str, str] = {"remote-debugging-port": port} if port else {}
        self.when_ready_calls = 0
        self.hidden: list[FakeSurface] = []
        self.native_views: list[tuple[str, dict[str, Any]]] = []

    def is_ready(self) -> bool:
        return self.ready

    def when_ready(self, timeout: float | None = None) -> None:  # noqa: ARG002
        self.when_ready_calls += 1
        self.ready = True

    def get_switch_value(self, name: str) -> str | None:
        return self.switches.get(name)

    def append_switch(self, name: str, value: str) -> None:
        self.switches[name] = value

    def focused_surface(self) -> FakeSurface | None:
        return self.focused

    def create_hidden_surface(self) -> FakeSurface:
        n = len(self.hidden) + 1
        surface = FakeSurface(f"hidden-{n}", f"HIDDEN-{n}")
        self.hidden.append(surface)
        return surface

    def create_native_view(self, url: str, bounds: dict[str, Any]) -> Any:
        self.native_views.append((url, bounds))
        return SimpleNamespace(id=len(self.native_views))


@pytest.fixture()
def fakes() -> SimpleNamespace:
    return SimpleNamespace(
        Host=FakeHost,
        Surface=FakeSurface,
        Window=FakeWindow,
        App=FakeApp,
        window_class=make_window_class,
    )


@pytest.fixture()
def demo_host() -> FakeHost:
    """A host with App/Window/Clipboard roots, a non-catalog root and a focused surface."""
    main = FakeWindow(1, "Main")
    clipboard = SimpleNamespace(text="", readText=lambda: clipboard.text)
    namespace = {
        "App": FakeApp(),
        "Window": make_window_class([main]),
        "Clipboard": clipboard,
        "Secret": SimpleNamespace(token="s3cr3t"),
    }
    return FakeHost(namespace, focused=FakeSurface(11, "T-FOCUS", window_id=1))
