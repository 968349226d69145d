from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from collections.abc import Callable, Mapping

from .errors import MissingArgumentsError
from .errors import MissingRequiredArgumentError
from .errors import UnknownToolError
from .log import log
from .models import CanonicalRequest
from .models import DispatchOutcome
from .models import ToolDescriptor


LIST_LIMIT_DEFAULT = 100
LIST_LIMIT_MAX = 200
HISTORY_LIMIT_DEFAULT = 10


TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="slack_list_channels",
        description="List public or pre-defined channels in the workspace with pagination",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Maximum number of channels to return (default 100, max 200)",
                    "default": LIST_LIMIT_DEFAULT,
                },
                "cursor": {"type": "string", "description": "Pagination cursor for next page of results"},
            },
        },
    ),
    ToolDescriptor(
        name="slack_post_message",
        description="Post a new message to a Slack channel",
        input_schema={
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel to post to"},
                "text": {"type": "string", "description": "The message text to post"},
            },
            "required": ["channel_id", "text"],
        },
    ),
    ToolDescriptor(
        name="slack_reply_to_thread",
        description="Reply to a specific message thread in Slack",
        input_schema={
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel containing the thread"},
                "thread_ts": {
                    "type": "string",
                    "description": (
                        "The timestamp of the parent message in the format '1234567890.123456'. "
                        "Timestamps in the format without the period can be converted by adding "
                        "the period such that 6 numbers come after it."
                    ),
                },
                "text": {"type": "string", "description": "The reply text"},
            },
            "required": ["channel_id", "thread_ts", "text"],
        },
    ),
    ToolDescriptor(
        name="slack_add_reaction",
        description="Add a reaction emoji to a message",
        input_schema={
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel containing the message"},
                "timestamp": {"type": "string", "description": "The timestamp of the message to react to"},
                "reaction": {"type": "string", "description": "The name of the emoji reaction (without ::)"},
            },
            "required": ["channel_id", "timestamp", "reaction"],
        },
    ),
    ToolDescriptor(
        name="slack_get_channel_history",
        description="Get recent messages from a channel",
        input_schema={
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel"},
                "limit": {
                    "type": "number",
                    "description": "Number of messages to retrieve (default 10)",
                    "default": HISTORY_LIMIT_DEFAULT,
                },
            },
            "required": ["channel_id"],
        },
    ),
    ToolDescriptor(
        name="slack_get_thread_replies",
        description="Get all replies in a message thread",
        input_schema={
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel containing the thread"},
                "thread_ts": {"type": "string", "description": "The timestamp of the parent message"},
            },
            "required": ["channel_id", "thread_ts"],
        },
    ),
    ToolDescriptor(
        name="slack_get_users",
        description="Get a list of all users in the workspace with their basic profile information",
        input_schema={
            "type": "object",
            "properties": {
                "cursor": {"type": "string", "description": "Pagination cursor for next page of results"},
                "limit": {
                    "type": "number",
                    "description": "Maximum number of users to return (default 100, max 200)",
                    "default": LIST_LIMIT_DEFAULT,
                },
            },
        },
    ),
    ToolDescriptor(
        name="slack_get_user_profile",
        description="Get detailed profile information for a specific user",
        input_schema={
            "type": "object",
            "properties": {"user_id": {"type": "string", "description": "The ID of the user"}},
            "required": ["user_id"],
        },
    ),
)

_DESCRIPTORS: dict[str, ToolDescriptor] = {t.name: t for t in TOOLS}


def tool_definitions() -> list[dict[str, Any]]:
    return [t.to_dict() for t in TOOLS]


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict, bool, int, float)):
        return not value
    return False


def _as_text(value: object | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _limit_arg(value: object | None, *, default: int, maximum: int | None = None) -> int:
    """Resolve a ``limit`` argument.

    Empty or non-positive values fall back to ``default``; the result is capped
    at ``maximum`` when the tool has one.
    """
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        return default
    if not isinstance(value, (int, float, str)):
        raise ValueError("limit must be a number")
    try:
        limit = int(float(value)) if isinstance(value, str) else int(value)
    except (ValueError, OverflowError) as exc:
        raise ValueError("limit must be a number") from exc

    if limit <= 0:
        limit = default
    if maximum is not None:
        limit = min(limit, maximum)
    return limit


def _list_channels(client: Any, args: dict[str, Any]) -> Any:
    limit = _limit_arg(args.get("limit"), default=LIST_LIMIT_DEFAULT, maximum=LIST_LIMIT_MAX)
    return client.get_channels(limit=limit, cursor=_as_text(args.get("cursor")) or None)


def _post_message(client: Any, args: dict[str, Any]) -> Any:
    return client.post_message(_as_text(args["channel_id"]), _as_text(args["text"]))


def _reply_to_thread(client: Any, args: dict[str, Any]) -> Any:
    return client.post_reply(_as_text(args["channel_id"]), _as_text(args["thread_ts"]), _as_text(args["text"]))


def _add_reaction(client: Any, args: dict[str, Any]) -> Any:
    return client.add_reaction(_as_text(args["channel_id"]), _as_text(args["timestamp"]), _as_text(args["reaction"]))


def _get_channel_history(client: Any, args: dict[str, Any]) -> Any:
    limit = _limit_arg(args.get("limit"), default=HISTORY_LIMIT_DEFAULT)
    return client.get_channel_history(_as_text(args["channel_id"]), limit=limit)


def _get_thread_replies(client: Any, args: dict[str, Any]) -> Any:
    return client.get_thread_replies(_as_text(args["channel_id"]), _as_text(args["thread_ts"]))


def _get_users(client: Any, args: dict[str, Any]) -> Any:
    limit = _limit_arg(args.get("limit"), default=LIST_LIMIT_DEFAULT, maximum=LIST_LIMIT_MAX)
    return client.get_users(limit=limit, cursor=_as_text(args.get("cursor")) or None)


def _get_user_profile(client: Any, args: dict[str, Any]) -> Any:
    return client.get_user_profile(_as_text(args["user_id"]))


_HANDLERS: dict[str, Callable[[Any, dict[str, Any]], Any]] = {
    "slack_list_channels": _list_channels,
    "slack_post_message": _post_message,
    "slack_reply_to_thread": _reply_to_thread,
    "slack_add_reaction": _add_reaction,
    "slack_get_channel_history": _get_channel_history,
    "slack_get_thread_replies": _get_thread_replies,
    "slack_get_users": _get_users,
    "slack_get_user_profile": _get_user_profile,
}


@dataclass(frozen=True)
class ToolDispatcher:
    client: Any

    def list_tools(self) -> dict[str, Any]:
        return {"tools": tool_definitions()}

    def call_tool(self, name: str, arguments: Any) -> Any:
        handler = _HANDLERS.get(name)
        descriptor = _DESCRIPTORS.get(name)
        if handler is None or descriptor is None:
            raise UnknownToolError(name)
        if not isinstance(arguments, Mapping):
            raise MissingArgumentsError()

        args = dict(arguments)
        missing = [p for p in descriptor.required_params if _is_missing(args.get(p))]
        if missing:
            raise MissingRequiredArgumentError(missing)
        return handler(self.client, args)

    def dispatch(self, request: CanonicalRequest) -> DispatchOutcome:
        name = request.tool_name or ""
        try:
            return DispatchOutcome.success(self.call_tool(name, request.arguments))
        except Exception as exc:
            log(f"tool {name or '<none>'} failed: {exc}")
            return DispatchOutcome.failure(str(exc))
