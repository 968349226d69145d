from __future__ import annotations

import json
from typing import Any

from .errors import ConfigError
from .models import CanonicalRequest
from .models import DispatchOutcome
from .models import RequestKind
from .tools import tool_definitions


PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "slack-mcp-remote"
SERVER_VERSION = "1.0.0"


def dumps(obj: object) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def _text_content(obj: object) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": dumps(obj)}]}


def _response_id(request: CanonicalRequest) -> Any:
    return request.request_id if request.has_id else 0


def initialize_result() -> dict[str, Any]:
    return {
        "protocolVersion": PROTOCOL_VERSION,
        "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        "capabilities": {"tools": {}},
    }


def encode_response(request: CanonicalRequest, outcome: DispatchOutcome | None = None) -> tuple[int, dict[str, Any]]:
    kind = request.kind
    if kind is RequestKind.CALL_TOOL:
        if outcome is None:
            raise ValueError("call_tool responses need a dispatch outcome")
        if not outcome.ok:
            # Tool failures travel in a 200 body; callers inspect the text.
            return 200, _text_content({"error": outcome.error or ""})
        return 200, {"jsonrpc": "2.0", "id": _response_id(request), "result": _text_content(outcome.payload)}

    if kind is RequestKind.LIST_TOOLS:
        # Any falsy id, null included, is answered as 0.
        return 200, {"jsonrpc": "2.0", "id": request.request_id or 0, "result": {"tools": tool_definitions()}}

    if kind is RequestKind.INITIALIZE:
        body: dict[str, Any] = {"jsonrpc": "2.0"}
        if request.has_id:
            body["id"] = request.request_id
        body["result"] = initialize_result()
        return 200, body

    if kind is RequestKind.NOTIFICATION:
        return 200, {"jsonrpc": "2.0", "result": None}

    return 400, {"error": "Unsupported request type or missing handler", "received": request.raw}


def decode_error_response() -> tuple[int, dict[str, Any]]:
    return 400, {"error": "Invalid JSON in request"}


def internal_error_response() -> tuple[int, dict[str, Any]]:
    return 400, {"error": "Invalid request format"}


def config_error_response(exc: ConfigError, *, has_channel_ids: bool = False) -> tuple[int, dict[str, Any]]:
    return 500, {
        "error": str(exc),
        "debug": {
            "hasToken": "SLACK_BOT_TOKEN" not in exc.missing,
            "hasTeamId": "SLACK_TEAM_ID" not in exc.missing,
            "hasChannelIds": bool(has_channel_ids),
        },
    }
