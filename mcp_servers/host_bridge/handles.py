from __future__ import annotations

import os
import threading
import uuid
from dataclasses import dataclass
from typing import Any

from .errors import PolicyViolationError


@dataclass(slots=True)
class HandleEntry:
    value: Any
    type_tag: str


def _max_handles_from_env() -> int | None:
    raw = (os.environ.get("MCP_HOST_MAX_HANDLES") or "").strip()
    if not raw:
        return None
    try:
        val = int(raw)
    except ValueError:
        return None
    return val if val > 0 else None


class HandleStore:
    """Opaque references to host values that cannot be sent as plain data.

    Entries live until released. `max_handles` is an opt-in cap: when reached,
    new stores are refused instead of evicting anything.
    """

    def __init__(self, max_handles: int | None = None) -> None:
        self.max_handles = max_handles
        self._entries: dict[str, HandleEntry] = {}
        self._lock = threading.Lock()

    def store(self, value: Any, type_hint: str | None = None) -> str:
        type_tag = type_hint or type(value).__name__ or "object"
        with self._lock:
            if self.max_handles is not None and len(self._entries) >= self.max_handles:
                raise PolicyViolationError(
                    f"Handle limit reached ({self.max_handles})",
                    suggestion="Release unused handles with host_handle_release or raise MCP_HOST_MAX_HANDLES",
                )
            handle_id = uuid.uuid4().hex
            while handle_id in self._entries:
                handle_id = uuid.uuid4().hex
            self._entries[handle_id] = HandleEntry(value=value, type_tag=type_tag)
        return handle_id

    def get(self, handle_id: str) -> HandleEntry | None:
        with self._lock:
            return self._entries.get(handle_id)

    def release(self, handle_id: str) -> bool:
        with self._lock:
            return self._entries.pop(handle_id, None) is not None

    def list(self) -> list[dict[str, str]]:
        with self._lock:
            return [{"id": hid, "typeTag": entry.type_tag} for hid, entry in self._entries.items()]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


handle_store = HandleStore(max_handles=_max_handles_from_env())


__all__ = ["HandleEntry", "HandleStore", "handle_store"]
