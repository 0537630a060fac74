"""Static reference catalogs (host API and debug protocol), loaded once.

The API catalog only feeds allowlist validation, search and describe;
dispatch always goes through live reflection on the host.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

DATA_DIR = Path(__file__).resolve().parent / "data"

HOST_API_FILE = "host_api.json"
PROTOCOL_FILES = ("protocol_browser.json", "protocol_js.json")


@lru_cache(maxsize=None)
def _load_json(name: str) -> Any:
    with (DATA_DIR / name).open("r", encoding="utf-8") as fp:
        return json.load(fp)


def _names(items: Any) -> frozenset[str]:
    if not isinstance(items, list):
        return frozenset()
    return frozenset(str(item.get("name")) for item in items if isinstance(item, dict) and item.get("name"))


@dataclass(frozen=True)
class ModuleMembers:
    methods: frozenset[str] = frozenset()
    properties: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ClassMembers:
    static_methods: frozenset[str] = frozenset()
    static_properties: frozenset[str] = frozenset()
    instance_methods: frozenset[str] = frozenset()
    instance_properties: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ApiIndex:
    modules: dict[str, ModuleMembers] = field(default_factory=dict)
    classes: dict[str, ClassMembers] = field(default_factory=dict)

    def has_root(self, name: str) -> bool:
        return name in self.modules or name in self.classes

    @property
    def roots(self) -> list[str]:
        return sorted({*self.modules, *self.classes})

    @classmethod
    def from_entries(cls, entries: list[dict[str, Any]]) -> ApiIndex:
        modules: dict[str, ModuleMembers] = {}
        classes: dict[str, ClassMembers] = {}
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            name = str(entry["name"])
            kind = str(entry.get("type") or "")
            if kind == "Module":
                modules[name] = ModuleMembers(
                    methods=_names(entry.get("methods")),
                    properties=_names(entry.get("properties")),
                )
            elif kind == "Class":
                classes[name] = ClassMembers(
                    static_methods=_names(entry.get("staticMethods")),
                    static_properties=_names(entry.get("staticProperties")),
                    instance_methods=_names(entry.get("instanceMethods")),
                    instance_properties=_names(entry.get("instanceProperties")),
                )
        return cls(modules=modules, classes=classes)


def api_entries() -> list[dict[str, Any]]:
    data = _load_json(HOST_API_FILE)
    return data if isinstance(data, list) else []


@lru_cache(maxsize=1)
def get_api_index() -> ApiIndex:
    return ApiIndex.from_entries(api_entries())


def search_api(query: str, limit: int = 10) -> list[dict[str, Any]]:
    q = (query or "").lower()
    out: list[dict[str, Any]] = []
    for entry in api_entries():
        name = str(entry.get("name") or "")
        description = str(entry.get("description") or "")
        if q in name.lower() or q in description.lower():
            out.append({"name": name, "type": entry.get("type"), "description": entry.get("description")})
    return out[: max(0, int(limit))]


def find_api_entry(name: str) -> dict[str, Any] | None:
    for entry in api_entries():
        if entry.get("name") == name:
            return entry
    return None


def protocol_domains() -> list[dict[str, Any]]:
    """All protocol domains across catalogs, in catalog order (duplicates kept)."""
    out: list[dict[str, Any]] = []
    for name in PROTOCOL_FILES:
        data = _load_json(name)
        domains = data.get("domains") if isinstance(data, dict) else None
        out.extend(d for d in domains or [] if isinstance(d, dict) and d.get("domain"))
    return out


def list_protocol_domains() -> list[str]:
    return sorted({str(d["domain"]) for d in protocol_domains()})


def search_protocol(query: str, limit: int = 10) -> list[dict[str, Any]]:
    """Case-insensitive substring match over `Domain.member` names and descriptions."""
    q = (query or "").lower()
    results: list[dict[str, Any]] = []
    for domain in protocol_domains():
        domain_name = str(domain["domain"])
        for kind, key in (("command", "commands"), ("event", "events")):
            for member in domain.get(key) or []:
                if not isinstance(member, dict) or not member.get("name"):
                    continue
                ident = f"{domain_name}.{member['name']}".lower()
                description = member.get("description")
                if q in ident or (isinstance(description, str) and q in description.lower()):
                    results.append(
                        {"domain": domain_name, "name": member["name"], "kind": kind, "description": description}
                    )
    return results[: max(0, int(limit))]


__all__ = [
    "ApiIndex",
    "ClassMembers",
    "ModuleMembers",
    "find_api_entry",
    "get_api_index",
    "list_protocol_domains",
    "protocol_domains",
    "search_api",
    "search_protocol",
]
