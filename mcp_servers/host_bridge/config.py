from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

MODE_DIRECT = "direct"
MODE_HOST_PROCESS = "host_process"
MODE_HEADLESS = "headless"

EMBED_TYPES = ("iframe", "webview", "native_view")
HEADLESS_ENGINES = ("host", "driver")

ENV_MODE = "MCP_HOST_MODE"
ENV_DEBUG_ENDPOINT = "MCP_HOST_DEBUG_ENDPOINT"
ENV_TARGET_ID = "MCP_HOST_TARGET_ID"
ENV_BRIDGE_URL = "MCP_HOST_BRIDGE_URL"
ENV_EMBED_SELECTOR = "MCP_HOST_EMBED_SELECTOR"
ENV_EMBED_TYPE = "MCP_HOST_EMBED_TYPE"
ENV_HEADLESS_ENGINE = "MCP_HOST_HEADLESS_ENGINE"
ENV_ALLOW_UNSAFE_EVAL = "MCP_HOST_ALLOW_UNSAFE_EVAL"
ENV_ALLOW_ALL_APIS = "MCP_HOST_ALLOW_ALL_APIS"
ENV_ALLOW_DESTRUCTIVE_PROTOCOL = "MCP_HOST_ALLOW_DESTRUCTIVE_PROTOCOL"


def _clean(raw: Any) -> str | None:
    if raw is None:
        return None
    val = str(raw).strip()
    return val or None


def parse_bool(raw: Any) -> bool | None:
    """Parse "true"/"1" and "false"/"0" (case-insensitive); anything else is None."""
    if isinstance(raw, bool):
        return raw
    val = (_clean(raw) or "").lower()
    if val in {"true", "1"}:
        return True
    if val in {"false", "0"}:
        return False
    return None


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name) or default)
    except Exception:
        return default


@dataclass(frozen=True)
class HostBridgeConfig:
    mode: str = MODE_DIRECT
    debug_endpoint: str | None = None
    target_id: str | None = None
    bridge_url: str | None = None
    embed_selector: str | None = None
    embed_type: str | None = None
    headless_engine: str | None = None
    allow_unsafe_eval: bool = False
    allow_all_apis: bool = False
    allow_destructive_protocol: bool = False

    @staticmethod
    def normalize_mode(raw: Any) -> str | None:
        mode = (_clean(raw) or "").lower().replace("-", "_")
        if mode == MODE_DIRECT:
            return MODE_DIRECT
        if mode in {"host_process", "hostprocess", "host", "electron"}:
            return MODE_HOST_PROCESS
        if mode == MODE_HEADLESS:
            return MODE_HEADLESS
        return None

    @staticmethod
    def normalize_embed_type(raw: Any) -> str | None:
        val = (_clean(raw) or "").lower().replace("-", "_")
        if val in {"nativeview", "webcontentsview"}:
            val = "native_view"
        return val if val in EMBED_TYPES else None

    @staticmethod
    def normalize_headless_engine(raw: Any) -> str | None:
        val = (_clean(raw) or "").lower()
        return val if val in HEADLESS_ENGINES else None

    @property
    def cdp_timeout(self) -> float:
        return max(0.5, _float_env("MCP_HOST_CDP_TIMEOUT", 5.0))

    @property
    def http_timeout(self) -> float:
        return max(0.1, _float_env("MCP_HOST_HTTP_TIMEOUT", 2.0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "debugEndpoint": self.debug_endpoint,
            "targetId": self.target_id,
            "bridgeUrl": self.bridge_url,
            "embedSelector": self.embed_selector,
            "embedType": self.embed_type,
            "headlessEngine": self.headless_engine,
            "allowUnsafeEval": self.allow_unsafe_eval,
            "allowAllApis": self.allow_all_apis,
            "allowDestructiveProtocol": self.allow_destructive_protocol,
        }


def load_config(
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> HostBridgeConfig:
    """Build a fresh snapshot: explicit override > environment > inferred default."""
    ov = dict(overrides or {})
    env = os.environ if environ is None else environ

    def pick(key: str, env_name: str) -> str | None:
        return _clean(ov.get(key)) or _clean(env.get(env_name))

    def flag(key: str, env_name: str) -> bool:
        explicit = parse_bool(ov.get(key))
        if explicit is not None:
            return explicit
        from_env = parse_bool(env.get(env_name))
        return bool(from_env)

    debug_endpoint = pick("debug_endpoint", ENV_DEBUG_ENDPOINT)
    target_id = pick("target_id", ENV_TARGET_ID)
    bridge_url = pick("bridge_url", ENV_BRIDGE_URL)

    mode = HostBridgeConfig.normalize_mode(ov.get("mode")) or HostBridgeConfig.normalize_mode(env.get(ENV_MODE))
    if mode is None:
        mode = MODE_HOST_PROCESS if (debug_endpoint or target_id or bridge_url) else MODE_DIRECT

    embed_selector = pick("embed_selector", ENV_EMBED_SELECTOR)
    embed_type = (
        HostBridgeConfig.normalize_embed_type(ov.get("embed_type"))
        or HostBridgeConfig.normalize_embed_type(env.get(ENV_EMBED_TYPE))
        or ("iframe" if embed_selector else None)
    )

    headless_engine = HostBridgeConfig.normalize_headless_engine(
        ov.get("headless_engine")
    ) or HostBridgeConfig.normalize_headless_engine(env.get(ENV_HEADLESS_ENGINE))
    if headless_engine is None:
        headless_engine = "host" if (mode == MODE_HEADLESS and (debug_endpoint or bridge_url)) else "driver"

    return HostBridgeConfig(
        mode=mode,
        debug_endpoint=debug_endpoint,
        target_id=target_id,
        bridge_url=bridge_url,
        embed_selector=embed_selector,
        embed_type=embed_type,
        headless_engine=headless_engine,
        allow_unsafe_eval=flag("allow_unsafe_eval", ENV_ALLOW_UNSAFE_EVAL),
        allow_all_apis=flag("allow_all_apis", ENV_ALLOW_ALL_APIS),
        allow_destructive_protocol=flag("allow_destructive_protocol", ENV_ALLOW_DESTRUCTIVE_PROTOCOL),
    )


_config_lock = threading.Lock()
_current_config = HostBridgeConfig()


def set_config(config: HostBridgeConfig) -> None:
    """Replace the process-wide snapshot (last writer wins)."""
    global _current_config
    with _config_lock:
        _current_config = config


def get_config() -> HostBridgeConfig:
    with _config_lock:
        return _current_config


__all__ = [
    "EMBED_TYPES",
    "HEADLESS_ENGINES",
    "HostBridgeConfig",
    "MODE_DIRECT",
    "MODE_HEADLESS",
    "MODE_HOST_PROCESS",
    "get_config",
    "load_config",
    "parse_bool",
    "set_config",
]
