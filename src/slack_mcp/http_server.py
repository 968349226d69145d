from __future__ import annotations

import argparse
import os
from http.server import BaseHTTPRequestHandler
from http.server import ThreadingHTTPServer
from pathlib import Path
from typing import Any

from .config import load_config
from .config import load_dotenv
from .config import parse_channel_ids
from .envelope import config_error_response
from .envelope import decode_error_response
from .envelope import dumps
from .envelope import encode_response
from .envelope import internal_error_response
from .errors import ConfigError
from .errors import DecodeError
from .log import log
from .log import quiet
from .models import RequestKind
from .protocol import decode_body
from .protocol import normalize_request
from .tools import ToolDispatcher


_DISPATCHER: ToolDispatcher | None = None
_CONFIG_ERROR: tuple[int, dict[str, Any]] | None = None
_ALLOW_ALL_ORIGINS = True
_ALLOWED_ORIGINS: set[str] = set()


def _init_cors() -> None:
    raw = os.environ.get("SLACK_MCP_CORS_ORIGINS", "*")
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    global _ALLOW_ALL_ORIGINS, _ALLOWED_ORIGINS
    if not parts or "*" in parts:
        _ALLOW_ALL_ORIGINS = True
        _ALLOWED_ORIGINS = set()
    else:
        _ALLOW_ALL_ORIGINS = False
        _ALLOWED_ORIGINS = set(parts)


def configure(dispatcher: ToolDispatcher | None, *, config_error: ConfigError | None = None) -> None:
    global _DISPATCHER, _CONFIG_ERROR
    _DISPATCHER = dispatcher
    _CONFIG_ERROR = None
    if config_error is not None:
        has_channel_ids = bool(parse_channel_ids(os.environ.get("SLACK_CHANNEL_IDS")))
        _CONFIG_ERROR = config_error_response(config_error, has_channel_ids=has_channel_ids)
    _init_cors()


def handle_body(dispatcher: ToolDispatcher, raw: bytes) -> tuple[int, dict[str, Any]]:
    """Run one POST body through decode, normalize, dispatch and encode."""
    try:
        body = decode_body(raw)
    except DecodeError:
        log(f"invalid JSON in request: {raw[:200]!r}")
        return decode_error_response()

    request = normalize_request(body)
    if request.kind is RequestKind.CALL_TOOL:
        log(f"tools/call {request.tool_name or '<none>'}")
        return encode_response(request, dispatcher.dispatch(request))
    if request.kind is RequestKind.UNSUPPORTED:
        log(f"unsupported request: {dumps(body)[:500]}")
    else:
        log(f"{request.kind.value} request")
    return encode_response(request)


class Handler(BaseHTTPRequestHandler):
    _MAX_BODY_BYTES = 10 * 1024 * 1024
    _MAX_CHUNK_LINE_BYTES = 1024

    @property
    def dispatcher(self) -> ToolDispatcher:
        if _DISPATCHER is None:
            raise RuntimeError("Server not initialized")
        return _DISPATCHER

    def _set_cors_headers(self) -> None:
        origin = self.headers.get("Origin")
        if _ALLOW_ALL_ORIGINS:
            self.send_header("Access-Control-Allow-Origin", "*")
        elif origin and origin in _ALLOWED_ORIGINS:
            self.send_header("Access-Control-Allow-Origin", origin)
            self.send_header("Vary", "Origin")
        self.send_header("Access-Control-Allow-Methods", "POST, GET, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")

    def _json(self, code: int, payload: dict[str, Any]) -> None:
        data = dumps(payload).encode("utf-8")
        self.send_response(code)
        self._set_cors_headers()
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _read_chunked(self) -> bytes:
        body = bytearray()
        while True:
            line = self.rfile.readline(self._MAX_CHUNK_LINE_BYTES + 2)
            if not line:
                raise ValueError("Unexpected EOF while reading chunked request body")
            if len(line) > self._MAX_CHUNK_LINE_BYTES + 1 and not line.endswith(b"\n"):
                raise ValueError("Chunk size line too long")

            size_token = line.strip().split(b";", 1)[0].strip()
            try:
                chunk_size = int(size_token, 16)
            except ValueError as exc:
                raise ValueError("Invalid chunk size") from exc

            if chunk_size == 0:
                while True:
                    trailer = self.rfile.readline(self._MAX_CHUNK_LINE_BYTES + 2)
                    if not trailer or trailer in (b"\r\n", b"\n"):
                        break
                break

            if len(body) + chunk_size > self._MAX_BODY_BYTES:
                raise ValueError("Request body too large")

            chunk = self.rfile.read(chunk_size)
            if len(chunk) != chunk_size:
                raise ValueError("Unexpected EOF while reading chunk data")
            body.extend(chunk)

            terminator = self.rfile.readline(2)
            if terminator not in (b"\r\n", b"\n"):
                raise ValueError("Invalid chunk terminator")

        return bytes(body)

    def _read_body(self) -> bytes:
        transfer_encoding = str(self.headers.get("Transfer-Encoding") or "").lower()
        if "chunked" in transfer_encoding:
            return self._read_chunked()

        length_raw = self.headers.get("Content-Length")
        if not length_raw:
            return b""
        try:
            length = int(length_raw)
        except ValueError as exc:
            raise ValueError("Invalid Content-Length header") from exc
        if length < 0:
            raise ValueError("Invalid Content-Length header")
        if length > self._MAX_BODY_BYTES:
            raise ValueError("Request body too large")
        return self.rfile.read(length) if length else b""

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        if quiet():
            return
        super().log_message(format, *args)

    def do_OPTIONS(self) -> None:  # noqa: N802
        self.send_response(204)
        self._set_cors_headers()
        self.send_header("Access-Control-Max-Age", "86400")
        self.end_headers()

    def do_GET(self) -> None:  # noqa: N802
        if _CONFIG_ERROR is not None:
            self._json(*_CONFIG_ERROR)
            return
        if self.path.rstrip("/") == "/healthz":
            self._json(200, {"ok": True})
            return
        self._json(404, {"error": "not found"})

    def do_POST(self) -> None:  # noqa: N802
        if _CONFIG_ERROR is not None:
            self._json(*_CONFIG_ERROR)
            return
        try:
            raw = self._read_body()
            status, payload = handle_body(self.dispatcher, raw)
        except Exception as exc:
            self.log_error("error handling %s: %s", self.path, exc)
            status, payload = internal_error_response()
        self._json(status, payload)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Slack MCP server over HTTP")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--env-file", default=".env", help="KEY=value file loaded before reading the environment")
    args = parser.parse_args(argv)

    load_dotenv(Path(args.env_file))

    from .app import build_dispatcher

    try:
        configure(build_dispatcher(load_config()))
    except ConfigError as exc:
        log(f"configuration error: {exc}")
        configure(None, config_error=exc)

    httpd = ThreadingHTTPServer((args.host, args.port), Handler)
    log(f"listening: http://{args.host}:{args.port}")
    httpd.serve_forever()


if __name__ == "__main__":
    main()
