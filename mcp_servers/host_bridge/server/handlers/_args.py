from __future__ import annotations

from typing import Any

from ...errors import InvalidArgumentError


def require_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"Missing '{key}'", suggestion=f"Provide {key} as a non-empty string")
    return value.strip()


def require_present(args: dict[str, Any], key: str) -> Any:
    if key not in args:
        raise InvalidArgumentError(f"Missing '{key}'", suggestion=f"Provide {key} (null is allowed)")
    return args[key]


def arg_list(args: dict[str, Any], key: str = "args") -> list[Any]:
    value = args.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def arg_limit(args: dict[str, Any], default: int = 10) -> int:
    try:
        return max(0, int(args.get("limit", default)))
    except (TypeError, ValueError):
        return default
