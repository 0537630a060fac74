from __future__ import annotations

import json
import urllib.parse
from typing import Any
from urllib.error import URLError
from urllib.request import Request, urlopen


class HttpClientError(Exception):
    pass


def join_url(base: str, path: str) -> str:
    """Append `path` to `base` with exactly one slash between them."""
    return base.rstrip("/") + "/" + path.lstrip("/")


def http_get_json(url: str, timeout: float = 2.0) -> Any:
    """Fetch and decode a JSON document over plain http/https."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise HttpClientError(f"Only http/https are supported: {url}")
    req = Request(url, method="GET", headers={"User-Agent": "mcp-host-bridge/1.0", "Cache-Control": "no-store"})
    try:
        with urlopen(req, timeout=timeout) as resp:  # noqa: S310
            raw = resp.read()
    except (TimeoutError, URLError, OSError) as exc:
        raise HttpClientError(str(exc)) from exc
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HttpClientError(f"Malformed JSON from {url}: {exc}") from exc


__all__ = ["HttpClientError", "http_get_json", "join_url"]
