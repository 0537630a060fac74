#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] mode={os.environ.get('MCP_HOST_MODE', 'auto')} | "
    f"endpoint={os.environ.get('MCP_HOST_DEBUG_ENDPOINT', '-')} | "
    f"target={os.environ.get('MCP_HOST_TARGET_ID', '-')} | "
    f"bridge={os.environ.get('MCP_HOST_BRIDGE_URL', '-')}",
    file=sys.stderr,
)

from mcp_servers.host_bridge.main import main  # noqa: E402

if __name__ == "__main__":
    main()
