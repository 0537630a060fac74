"""Reflective, allowlisted access to the live host object graph.

Paths are dot-separated (`App.getVersion`, `Window.getFocused`). The root
segment must name a catalog module or class unless unrestricted access is
enabled. Results that are not plain data are boxed into handles.
"""

from __future__ import annotations

import builtins
import logging
import math
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from .catalog import find_api_entry, get_api_index, search_api
from .config import HostBridgeConfig, get_config
from .errors import (
    GatewayError,
    InternalError,
    NotCallableError,
    NotFoundError,
    PolicyViolationError,
    TimeoutExceededError,
)
from .handles import HandleStore, handle_store
from .runtime import require_host, resolve_pending

logger = logging.getLogger("mcp.host_bridge.api")

DEFAULT_EVAL_TIMEOUT_MS = 5000

_MISSING = object()


def serialize_value(value: Any, handles: HandleStore) -> Any:
    """Turn a host value into plain data, boxing anything else into a handle."""
    if value is None or value is _MISSING:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        # NaN and the infinities have no JSON encoding.
        return None
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return [serialize_value(item, handles) for item in value]
    if type(value) is dict:
        return {str(key): serialize_value(item, handles) for key, item in value.items()}
    type_tag = type(value).__name__ or "object"
    return {"handleId": handles.store(value, type_tag), "typeTag": type_tag}


def _start_daemon(func: Callable[[], Any]) -> Future[Any]:
    """Run `func` on a daemon thread; the returned future carries its outcome."""
    future: Future[Any] = Future()

    def _target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(func())
        except BaseException as exc:  # noqa: BLE001
            future.set_exception(exc)

    threading.Thread(target=_target, name="host-eval", daemon=True).start()
    return future


def _member(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    return getattr(obj, name, _MISSING)


def _assign(obj: Any, name: str, value: Any) -> None:
    if isinstance(obj, Mapping):
        obj[name] = value  # type: ignore[index]
    else:
        setattr(obj, name, value)


def split_path(path: str) -> list[str]:
    segments = [seg for seg in str(path or "").split(".") if seg]
    if not segments:
        raise NotFoundError("API path is empty", suggestion="Use a dotted path such as App.getVersion")
    return segments


def resolve_path(root: Any, path: str) -> tuple[Any, str, Any]:
    """Walk all but the last segment; returns (parent, key, value) with `_MISSING` for gaps."""
    segments = split_path(path)
    current = root
    for seg in segments[:-1]:
        current = _member(current, seg)
        if current is _MISSING or current is None:
            return _MISSING, segments[-1], _MISSING
    key = segments[-1]
    return current, key, _member(current, key)


class ApiGateway:
    def __init__(self, handles: HandleStore | None = None) -> None:
        self.handles = handles if handles is not None else handle_store

    # ─────────────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────────────

    def validate_path(self, path: str, config: HostBridgeConfig | None = None) -> None:
        cfg = config or get_config()
        segments = split_path(path)
        if cfg.allow_all_apis:
            return
        root = segments[0]
        if not get_api_index().has_root(root):
            raise PolicyViolationError(
                f"Host API root not recognized: {root}",
                suggestion="Use host_api_search to find allowed roots, or set MCP_HOST_ALLOW_ALL_APIS=true",
            )
        for seg in segments[1:]:
            self._check_member_name(seg, cfg)

    def _check_member_name(self, name: str, config: HostBridgeConfig) -> None:
        if name.startswith("__") and not config.allow_all_apis:
            raise PolicyViolationError(
                f"Dunder member access is not allowed: {name}",
                suggestion="Set MCP_HOST_ALLOW_ALL_APIS=true to lift the restriction",
            )

    def _resolve(self, path: str) -> tuple[Any, str, Any]:
        host = require_host()
        parent, key, value = resolve_path(host.namespace, path)
        if parent is _MISSING:
            raise NotFoundError(f"Unable to resolve host API path: {path}")
        return parent, key, value

    def _invoke(self, label: str, func: Any, args: list[Any]) -> Any:
        try:
            return resolve_pending(func(*args))
        except GatewayError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.info("host call failed path=%s error=%s", label, exc)
            raise InternalError(f"{label} raised {type(exc).__name__}: {exc}") from exc

    # ─────────────────────────────────────────────────────────────────────────
    # Path operations
    # ─────────────────────────────────────────────────────────────────────────

    def call(self, path: str, args: list[Any] | None = None) -> dict[str, Any]:
        self.validate_path(path)
        _parent, _key, value = self._resolve(path)
        call_args = list(args or [])
        if value is _MISSING:
            raise NotFoundError(f"Host API member not found: {path}")
        if not callable(value):
            if call_args:
                raise NotCallableError(f"Host API path is not callable: {path}")
            return {"value": serialize_value(value, self.handles)}
        result = self._invoke(path, value, call_args)
        return {"value": serialize_value(result, self.handles)}

    def get(self, path: str) -> dict[str, Any]:
        self.validate_path(path)
        _parent, _key, value = self._resolve(path)
        if value is _MISSING:
            raise NotFoundError(f"Host API member not found: {path}")
        return {"value": serialize_value(value, self.handles)}

    def set(self, path: str, value: Any) -> dict[str, Any]:
        self.validate_path(path)
        parent, key, _current = self._resolve(path)
        try:
            _assign(parent, key, value)
        except Exception as exc:  # noqa: BLE001
            raise InternalError(f"Unable to set {path}: {type(exc).__name__}: {exc}") from exc
        return {"ok": True, "path": path}

    def search(self, query: str, limit: int = 10) -> dict[str, Any]:
        return {"results": search_api(query, limit)}

    def describe(self, name: str) -> dict[str, Any]:
        entry = find_api_entry(name)
        if entry is None:
            raise NotFoundError(f"Host API entry not found: {name}", suggestion="Use host_api_search to list entries")
        return entry

    # ─────────────────────────────────────────────────────────────────────────
    # Handle operations
    # ─────────────────────────────────────────────────────────────────────────

    def _entry(self, handle_id: str) -> Any:
        entry = self.handles.get(handle_id)
        if entry is None:
            raise NotFoundError(f"Unknown handleId: {handle_id}", suggestion="List live handles with host_handle_list")
        return entry

    def handle_call(self, handle_id: str, method: str, args: list[Any] | None = None) -> dict[str, Any]:
        entry = self._entry(handle_id)
        self._check_member_name(method, get_config())
        func = _member(entry.value, method)
        if func is _MISSING or not callable(func):
            raise NotFoundError(f"Method not found on handle {handle_id}: {method}")
        result = self._invoke(f"{entry.type_tag}.{method}", func, list(args or []))
        return {"value": serialize_value(result, self.handles)}

    def handle_get(self, handle_id: str, prop: str) -> dict[str, Any]:
        entry = self._entry(handle_id)
        self._check_member_name(prop, get_config())
        return {"value": serialize_value(_member(entry.value, prop), self.handles)}

    def handle_set(self, handle_id: str, prop: str, value: Any) -> dict[str, Any]:
        entry = self._entry(handle_id)
        self._check_member_name(prop, get_config())
        try:
            _assign(entry.value, prop, value)
        except Exception as exc:  # noqa: BLE001
            raise InternalError(f"Unable to set {prop} on handle {handle_id}: {exc}") from exc
        return {"ok": True, "handleId": handle_id, "property": prop}

    def handle_release(self, handle_id: str) -> dict[str, Any]:
        if not self.handles.release(handle_id):
            raise NotFoundError(f"Unknown handleId: {handle_id}")
        return {"released": handle_id}

    def handle_list(self) -> dict[str, Any]:
        return {"handles": self.handles.list()}

    # ─────────────────────────────────────────────────────────────────────────
    # Sandboxed evaluation
    # ─────────────────────────────────────────────────────────────────────────

    def evaluate(self, code: str, timeout_ms: int | None = None) -> dict[str, Any]:
        """Run Python source in the host with `host` and `runtime` in scope.

        An expression yields its value; a statement block yields its `result`
        variable. The worker is a daemon thread that cannot be interrupted: a
        timed-out evaluation keeps running in the background but never holds
        the process open at exit.
        """
        if not get_config().allow_unsafe_eval:
            raise PolicyViolationError(
                "Host evaluation is disabled",
                suggestion="Enable MCP_HOST_ALLOW_UNSAFE_EVAL to proceed",
            )
        host = require_host()
        timeout_s = max(1, int(timeout_ms or DEFAULT_EVAL_TIMEOUT_MS)) / 1000.0
        source = str(code or "")
        try:
            compiled = compile(source, "<host-eval>", "eval")
            is_expression = True
        except SyntaxError:
            try:
                compiled = compile(source, "<host-eval>", "exec")
            except SyntaxError as exc:
                raise InternalError(f"SyntaxError: {exc}") from exc
            is_expression = False

        sandbox: dict[str, Any] = {
            "__builtins__": builtins,
            "host": host.namespace,
            "runtime": host,
            "logger": logger,
        }

        def _run() -> Any:
            if is_expression:
                return resolve_pending(eval(compiled, sandbox))  # noqa: S307
            exec(compiled, sandbox)  # noqa: S102
            return resolve_pending(sandbox.get("result"))

        future = _start_daemon(_run)
        try:
            result = future.result(timeout=timeout_s)
        except FutureTimeoutError as exc:
            raise TimeoutExceededError(
                f"Host evaluation exceeded {int(timeout_s * 1000)}ms",
                suggestion="Raise timeout_ms or simplify the code",
            ) from exc
        except Exception as exc:  # noqa: BLE001
            raise InternalError(f"{type(exc).__name__}: {exc}") from exc
        return {"value": serialize_value(result, self.handles)}


api_gateway = ApiGateway()


__all__ = ["ApiGateway", "api_gateway", "resolve_path", "serialize_value", "split_path"]
