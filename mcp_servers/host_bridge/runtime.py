"""In-process host runtime seam.

When the gateway is embedded in the host application, the host registers an
object implementing `HostRuntime`. Its `namespace` is the root every
reflective dot-path is walked against; surfaces are the host's inspectable
windows/views and are duck-typed (see `surfaces.py`). Hosts that can embed
native views additionally expose `create_native_view(url, bounds)`; hosts
that run an asyncio loop expose it through `event_loop()` so pending results
bound to that loop are awaited on it.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from concurrent.futures import Future
from typing import Any, Protocol, runtime_checkable

from .errors import UpstreamUnavailableError


def _host_loop() -> asyncio.AbstractEventLoop | None:
    accessor = getattr(current_host(), "event_loop", None)
    loop = accessor() if callable(accessor) else None
    if loop is None or loop.is_closed() or not loop.is_running():
        return None
    return loop


def resolve_pending(value: Any, timeout: float | None = None) -> Any:
    """Wait for a pending host result (coroutine, asyncio future or thread future).

    Awaitables go to the host's own event loop when it exposes a running one,
    so futures bound to that loop resolve where they were created. Otherwise
    they run on a fresh loop, on a helper thread if this thread already has
    one running.
    """
    if isinstance(value, Future):
        return value.result(timeout=timeout)
    if not inspect.isawaitable(value):
        return value

    async def _await() -> Any:
        return await value

    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    loop = _host_loop()
    if loop is not None and loop is not running:
        return asyncio.run_coroutine_threadsafe(_await(), loop).result(timeout=timeout)
    if running is None:
        return asyncio.run(_await())

    outcome: Future[Any] = Future()

    def _target() -> None:
        try:
            outcome.set_result(asyncio.run(_await()))
        except BaseException as exc:  # noqa: BLE001
            outcome.set_exception(exc)

    threading.Thread(target=_target, name="host-await", daemon=True).start()
    return outcome.result(timeout=timeout)


@runtime_checkable
class HostRuntime(Protocol):
    namespace: Any

    def is_ready(self) -> bool: ...

    def when_ready(self, timeout: float | None = None) -> None: ...

    def get_switch_value(self, name: str) -> str | None: ...

    def append_switch(self, name: str, value: str) -> None: ...

    def focused_surface(self) -> Any | None: ...

    def create_hidden_surface(self) -> Any: ...


_lock = threading.Lock()
_host: HostRuntime | None = None


def register_host(host: HostRuntime) -> None:
    global _host
    with _lock:
        _host = host


def unregister_host() -> None:
    global _host
    with _lock:
        _host = None


def current_host() -> HostRuntime | None:
    with _lock:
        return _host


def is_host_process() -> bool:
    """True when this process is the host (a runtime has been registered)."""
    return current_host() is not None


def require_host() -> HostRuntime:
    host = current_host()
    if host is None:
        raise UpstreamUnavailableError(
            "Host APIs require the gateway to run inside the host process",
            suggestion="Start the gateway with start_embedded_server(host) from the host application",
        )
    return host


__all__ = [
    "HostRuntime",
    "current_host",
    "is_host_process",
    "register_host",
    "require_host",
    "resolve_pending",
    "unregister_host",
]
