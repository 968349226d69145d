"""Turn decoded MCP request bodies into :class:`CanonicalRequest` values.

Two client generations are accepted. The JSON-RPC shape::

    {"jsonrpc": "2.0", "id": 1, "method": "tools/call",
     "params": {"name": "slack_post_message", "arguments": {...}}}

and the legacy shape::

    {"type": "call_tool", "params": {"tool": "slack_post_message", "parameters": {...}}}

Both collapse into the same canonical form; the JSON-RPC field wins whenever it
is present and non-empty.
"""

from __future__ import annotations

import json
from typing import Any

from .errors import DecodeError
from .models import CanonicalRequest
from .models import RequestKind


_CALL_METHODS = {"tools/call"}
_LIST_METHODS = {"tools/list", "list"}
_NOTIFICATION_PREFIX = "notifications/"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def decode_body(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise DecodeError() from exc


def classify(body: Any) -> RequestKind:
    if not isinstance(body, dict):
        return RequestKind.UNSUPPORTED
    method = body.get("method")
    if not isinstance(method, str):
        method = ""
    kind = body.get("type")
    if method in _CALL_METHODS or kind == "call_tool":
        return RequestKind.CALL_TOOL
    if method in _LIST_METHODS or kind == "list_tools":
        return RequestKind.LIST_TOOLS
    if method == "initialize":
        return RequestKind.INITIALIZE
    if method.startswith(_NOTIFICATION_PREFIX):
        return RequestKind.NOTIFICATION
    return RequestKind.UNSUPPORTED


def normalize_request(body: Any) -> CanonicalRequest:
    kind = classify(body)
    if not isinstance(body, dict):
        return CanonicalRequest(kind=kind, raw=body)

    has_id = "id" in body
    request_id = body.get("id")
    if kind is not RequestKind.CALL_TOOL:
        return CanonicalRequest(kind=kind, request_id=request_id, has_id=has_id, raw=body)

    params = body.get("params")
    if not isinstance(params, dict):
        params = {}
    name = params.get("name") or params.get("tool") or ""
    arguments = params.get("arguments") or params.get("parameters") or {}
    return CanonicalRequest(
        kind=kind,
        request_id=request_id,
        has_id=has_id,
        tool_name=str(name),
        arguments=arguments,
        raw=body,
    )
