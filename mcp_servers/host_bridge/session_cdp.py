"""Low-level CDP transport.

One `CdpConnection` is a websocket to the host's browser-level debug endpoint.
Per-target work happens on flat sessions (`Target.attachToTarget` with
`flatten=true`) multiplexed over that socket via `sessionId`.
"""

from __future__ import annotations

import json
import socket
import time
import urllib.parse
from collections.abc import Generator
from contextlib import contextmanager, suppress
from typing import Any

import websocket

from .http_client import HttpClientError, http_get_json, join_url


class CdpTransportError(HttpClientError):
    """The websocket itself failed; the connection is no longer usable."""


class CdpCommandError(HttpClientError):
    """The endpoint answered a command with a protocol error."""

    def __init__(self, method: str, error: Any) -> None:
        message = error.get("message") if isinstance(error, dict) else None
        super().__init__(f"{method}: {message or error}")
        self.method = method
        self.error = error


def browser_ws_url(debug_endpoint: str, timeout: float = 2.0) -> str:
    """Map a debug endpoint to its browser-level websocket URL."""
    parsed = urllib.parse.urlparse(debug_endpoint)
    if parsed.scheme in ("ws", "wss"):
        return debug_endpoint
    if parsed.scheme not in ("http", "https"):
        raise HttpClientError(f"Unsupported debug endpoint scheme: {debug_endpoint}")
    version = http_get_json(join_url(debug_endpoint, "json/version"), timeout=timeout)
    ws_url = version.get("webSocketDebuggerUrl") if isinstance(version, dict) else None
    if not isinstance(ws_url, str) or not ws_url:
        raise HttpClientError("CDP browser WebSocket URL not found")
    return ws_url


class CdpConnection:
    """Low-level CDP WebSocket connection."""

    def __init__(self, ws_url: str, timeout: float = 5.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except Exception as exc:  # noqa: BLE001
            raise CdpTransportError(f"Unable to connect to {ws_url}: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        self._closed = False
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = 500

    @property
    def connected(self) -> bool:
        if self._closed:
            return False
        return bool(getattr(self.ws, "connected", False))

    def _push_event(self, event: dict[str, Any]) -> None:
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            del self._event_queue[: len(self._event_queue) - self._max_event_queue]

    def pop_event(self, event_name: str, session_id: str | None = None) -> dict[str, Any] | None:
        """Pop the oldest queued event params for the given event name (and session)."""
        for i, ev in enumerate(self._event_queue):
            if ev.get("method") != event_name:
                continue
            if session_id is not None and ev.get("sessionId") != session_id:
                continue
            self._event_queue.pop(i)
            params = ev.get("params")
            return params if isinstance(params, dict) else {}
        return None

    def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Send CDP command and wait for response."""
        if self._closed:
            raise CdpTransportError("CDP connection is closed")
        msg_id = self._next_id
        self._next_id += 1

        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params
        if session_id:
            msg["sessionId"] = session_id

        try:
            with suppress(Exception):
                self.ws.settimeout(min(2.0, max(0.5, float(self.timeout))))
            self.ws.send(json.dumps(msg))
        except Exception as exc:  # noqa: BLE001
            self._closed = True
            raise CdpTransportError(str(exc)) from exc

        return self._recv_until(msg_id, method)

    def _recv_until(self, expected_id: int, method: str) -> dict[str, Any]:
        """Wait for response with specific ID."""
        deadline = time.time() + self.timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                raise HttpClientError(f"CDP response timed out: {method}")

            try:
                self.ws.settimeout(min(0.5, remaining))
                raw = self.ws.recv()
            except Exception as exc:  # noqa: BLE001
                msg = str(exc).lower()
                if isinstance(exc, (TimeoutError, websocket.WebSocketTimeoutException)) or "timed out" in msg:
                    continue
                self._closed = True
                raise CdpTransportError(str(exc)) from exc

            try:
                data = json.loads(raw)
            except (TypeError, json.JSONDecodeError):
                continue
            if not isinstance(data, dict):
                continue

            if isinstance(data.get("method"), str) and "id" not in data:
                self._push_event(data)
                continue

            if data.get("id") == expected_id:
                if "error" in data:
                    raise CdpCommandError(method, data["error"])
                result = data.get("result")
                return result if isinstance(result, dict) else {}

    def attach(self, target_id: str) -> str:
        """Open a flat session on a target and return its session id."""
        result = self.send("Target.attachToTarget", {"targetId": target_id, "flatten": True})
        session_id = result.get("sessionId")
        if not isinstance(session_id, str) or not session_id:
            raise HttpClientError(f"Target.attachToTarget returned no sessionId for {target_id}")
        return session_id

    def detach(self, session_id: str) -> None:
        """Release a flat session; never raises."""
        with suppress(Exception):
            self.send("Target.detachFromTarget", {"sessionId": session_id})

    @contextmanager
    def session(self, target_id: str) -> Generator[str, None, None]:
        """Attach to a target for the duration of the block, always detaching afterwards."""
        session_id = self.attach(target_id)
        try:
            yield session_id
        finally:
            self.detach(session_id)

    def abort(self) -> None:
        """Best-effort hard break of the underlying socket."""
        try:
            sock = getattr(self.ws, "sock", None)
        except Exception:
            sock = None

        if sock is not None:
            with suppress(Exception):
                sock.shutdown(socket.SHUT_RDWR)
            with suppress(Exception):
                sock.close()

    def close(self) -> None:
        """Close the WebSocket connection."""
        self._closed = True
        with suppress(Exception):
            self.abort()


__all__ = ["CdpCommandError", "CdpConnection", "CdpTransportError", "browser_ws_url"]
