from __future__ import annotations

import os
import time


def quiet() -> bool:
    return os.environ.get("SLACK_MCP_QUIET", "").strip().lower() in {"1", "true", "yes"}


def log(message: str) -> None:
    if quiet():
        return
    ts = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime())
    print(f"[{ts}] {message}", flush=True)
