import unittest

from slack_mcp.errors import MissingArgumentsError
from slack_mcp.errors import MissingRequiredArgumentError
from slack_mcp.errors import SlackAPIError
from slack_mcp.errors import UnknownToolError
from slack_mcp.protocol import normalize_request
from slack_mcp.tools import TOOLS
from slack_mcp.tools import ToolDispatcher
from slack_mcp.tools import _HANDLERS
from slack_mcp.tools import tool_definitions


class FakeSlackClient:
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.calls: list[tuple[str, tuple, dict]] = []
        self.fail_with = fail_with

    def _record(self, name: str, *args, **kwargs) -> dict:
        self.calls.append((name, args, kwargs))
        if self.fail_with is not None:
            raise self.fail_with
        return {"ok": True, "method": name}

    def get_channels(self, limit=100, cursor=None):
        return self._record("get_channels", limit=limit, cursor=cursor)

    def post_message(self, channel_id, text):
        return self._record("post_message", channel_id, text)

    def post_reply(self, channel_id, thread_ts, text):
        return self._record("post_reply", channel_id, thread_ts, text)

    def add_reaction(self, channel_id, timestamp, reaction):
        return self._record("add_reaction", channel_id, timestamp, reaction)

    def get_channel_history(self, channel_id, limit=10):
        return self._record("get_channel_history", channel_id, limit=limit)

    def get_thread_replies(self, channel_id, thread_ts):
        return self._record("get_thread_replies", channel_id, thread_ts)

    def get_users(self, limit=100, cursor=None):
        return self._record("get_users", limit=limit, cursor=cursor)

    def get_user_profile(self, user_id):
        return self._record("get_user_profile", user_id)


class TestRegistry(unittest.TestCase):
    def test_registry_matches_handler_table(self) -> None:
        names = [t.name for t in TOOLS]
        self.assertEqual(len(names), 8)
        self.assertEqual(len(set(names)), 8)
        self.assertEqual(names, list(_HANDLERS))

    def test_tool_definitions_shape(self) -> None:
        defs = tool_definitions()
        self.assertEqual(defs[0]["name"], "slack_list_channels")
        self.assertEqual(defs[-1]["name"], "slack_get_user_profile")
        for d in defs:
            self.assertEqual(set(d), {"name", "description", "inputSchema"})
            self.assertEqual(d["inputSchema"]["type"], "object")

    def test_list_tools_is_stable_and_not_mutable_from_outside(self) -> None:
        dispatcher = ToolDispatcher(FakeSlackClient())
        first = dispatcher.list_tools()
        first["tools"][1]["inputSchema"]["required"].append("bogus")
        first["tools"].pop()
        second = dispatcher.list_tools()
        third = dispatcher.list_tools()
        self.assertEqual(second, third)
        self.assertEqual(len(second["tools"]), 8)
        self.assertEqual(second["tools"][1]["inputSchema"]["required"], ["channel_id", "text"])


class TestCallTool(unittest.TestCase):
    def test_post_message(self) -> None:
        client = FakeSlackClient()
        out = ToolDispatcher(client).call_tool("slack_post_message", {"channel_id": "C1", "text": "hello"})
        self.assertEqual(out, {"ok": True, "method": "post_message"})
        self.assertEqual(client.calls, [("post_message", ("C1", "hello"), {})])

    def test_each_tool_reaches_its_operation(self) -> None:
        cases = {
            "slack_list_channels": ({}, "get_channels"),
            "slack_post_message": ({"channel_id": "C", "text": "t"}, "post_message"),
            "slack_reply_to_thread": ({"channel_id": "C", "thread_ts": "1.2", "text": "t"}, "post_reply"),
            "slack_add_reaction": ({"channel_id": "C", "timestamp": "1.2", "reaction": "tada"}, "add_reaction"),
            "slack_get_channel_history": ({"channel_id": "C"}, "get_channel_history"),
            "slack_get_thread_replies": ({"channel_id": "C", "thread_ts": "1.2"}, "get_thread_replies"),
            "slack_get_users": ({}, "get_users"),
            "slack_get_user_profile": ({"user_id": "U1"}, "get_user_profile"),
        }
        for name, (args, method) in cases.items():
            client = FakeSlackClient()
            ToolDispatcher(client).call_tool(name, args)
            self.assertEqual([c[0] for c in client.calls], [method], name)

    def test_unknown_tool(self) -> None:
        client = FakeSlackClient()
        with self.assertRaises(UnknownToolError) as ctx:
            ToolDispatcher(client).call_tool("slack_bogus_tool", {"channel_id": "C"})
        self.assertEqual(str(ctx.exception), "Unknown tool: slack_bogus_tool")
        self.assertEqual(client.calls, [])

    def test_non_mapping_arguments(self) -> None:
        for arguments in (None, ["C1"], "C1"):
            with self.assertRaises(MissingArgumentsError) as ctx:
                ToolDispatcher(FakeSlackClient()).call_tool("slack_post_message", arguments)
            self.assertEqual(str(ctx.exception), "No arguments provided")

    def test_missing_required_arguments_messages(self) -> None:
        dispatcher = ToolDispatcher(FakeSlackClient())
        cases = [
            ("slack_post_message", {}, "Missing required arguments: channel_id and text"),
            ("slack_post_message", {"channel_id": "C1"}, "Missing required argument: text"),
            ("slack_reply_to_thread", {}, "Missing required arguments: channel_id, thread_ts, and text"),
            ("slack_add_reaction", {"channel_id": "C"}, "Missing required arguments: timestamp and reaction"),
            ("slack_get_channel_history", {"limit": 5}, "Missing required argument: channel_id"),
            ("slack_get_user_profile", {"user_id": ""}, "Missing required argument: user_id"),
            ("slack_get_thread_replies", {"channel_id": None, "thread_ts": "1.2"}, "Missing required argument: channel_id"),
        ]
        for name, args, message in cases:
            with self.assertRaises(MissingRequiredArgumentError) as ctx:
                dispatcher.call_tool(name, args)
            self.assertEqual(str(ctx.exception), message)

    def test_falsy_scalars_count_as_missing(self) -> None:
        client = FakeSlackClient()
        dispatcher = ToolDispatcher(client)
        cases = [
            ("slack_post_message", {"channel_id": 0, "text": "hi"}, "Missing required argument: channel_id"),
            ("slack_post_message", {"channel_id": "C1", "text": False}, "Missing required argument: text"),
            ("slack_get_user_profile", {"user_id": 0.0}, "Missing required argument: user_id"),
        ]
        for name, args, message in cases:
            with self.assertRaises(MissingRequiredArgumentError) as ctx:
                dispatcher.call_tool(name, args)
            self.assertEqual(str(ctx.exception), message)
        self.assertEqual(client.calls, [])

        dispatcher.call_tool("slack_get_user_profile", {"user_id": 42})
        self.assertEqual(client.calls, [("get_user_profile", ("42",), {})])

    def test_required_check_runs_before_handler(self) -> None:
        client = FakeSlackClient()
        with self.assertRaises(MissingRequiredArgumentError):
            ToolDispatcher(client).call_tool("slack_post_message", {"text": "hi"})
        self.assertEqual(client.calls, [])

    def test_empty_arguments_allowed_without_required_params(self) -> None:
        client = FakeSlackClient()
        ToolDispatcher(client).call_tool("slack_get_users", {})
        self.assertEqual(client.calls, [("get_users", (), {"limit": 100, "cursor": None})])


class TestLimits(unittest.TestCase):
    def _limit(self, name: str, args: dict) -> int:
        client = FakeSlackClient()
        ToolDispatcher(client).call_tool(name, args)
        return client.calls[0][2]["limit"]

    def test_list_limits_are_clamped(self) -> None:
        self.assertEqual(self._limit("slack_list_channels", {"limit": 500}), 200)
        self.assertEqual(self._limit("slack_get_users", {"limit": 201}), 200)
        self.assertEqual(self._limit("slack_get_users", {"limit": 200}), 200)
        self.assertEqual(self._limit("slack_list_channels", {"limit": 50}), 50)

    def test_defaults_for_empty_values(self) -> None:
        for value in (None, "", 0, -3, False):
            self.assertEqual(self._limit("slack_list_channels", {"limit": value}), 100, value)
            self.assertEqual(self._limit("slack_get_users", {"limit": value}), 100, value)
        self.assertEqual(self._limit("slack_get_channel_history", {"channel_id": "C"}), 10)
        self.assertEqual(self._limit("slack_get_channel_history", {"channel_id": "C", "limit": 0}), 10)

    def test_numeric_strings_and_floats(self) -> None:
        self.assertEqual(self._limit("slack_get_users", {"limit": "25"}), 25)
        self.assertEqual(self._limit("slack_get_users", {"limit": 12.7}), 12)
        self.assertEqual(self._limit("slack_get_channel_history", {"channel_id": "C", "limit": "300"}), 300)

    def test_bad_limit_is_a_failure(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            ToolDispatcher(FakeSlackClient()).call_tool("slack_get_users", {"limit": "lots"})
        self.assertEqual(str(ctx.exception), "limit must be a number")

    def test_cursor_forwarded_only_when_set(self) -> None:
        client = FakeSlackClient()
        dispatcher = ToolDispatcher(client)
        dispatcher.call_tool("slack_list_channels", {"cursor": "dGVhbTpD"})
        dispatcher.call_tool("slack_list_channels", {"cursor": ""})
        self.assertEqual(client.calls[0][2]["cursor"], "dGVhbTpD")
        self.assertIsNone(client.calls[1][2]["cursor"])


class TestDispatch(unittest.TestCase):
    def test_success_outcome(self) -> None:
        req = normalize_request(
            {"method": "tools/call", "id": 1, "params": {"name": "slack_get_user_profile", "arguments": {"user_id": "U1"}}}
        )
        outcome = ToolDispatcher(FakeSlackClient()).dispatch(req)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.payload, {"ok": True, "method": "get_user_profile"})
        self.assertIsNone(outcome.error)

    def test_backend_failure_becomes_outcome(self) -> None:
        client = FakeSlackClient(fail_with=SlackAPIError("channel_not_found"))
        req = normalize_request(
            {"method": "tools/call", "params": {"name": "slack_post_message", "arguments": {"channel_id": "C", "text": "t"}}}
        )
        outcome = ToolDispatcher(client).dispatch(req)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "channel_not_found")
        self.assertEqual(len(client.calls), 1)

    def test_unexpected_exception_becomes_outcome(self) -> None:
        client = FakeSlackClient(fail_with=ConnectionError("connection reset"))
        req = normalize_request({"type": "call_tool", "params": {"tool": "slack_get_users"}})
        outcome = ToolDispatcher(client).dispatch(req)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "connection reset")

    def test_legacy_and_modern_shapes_give_identical_outcomes(self) -> None:
        modern = normalize_request(
            {
                "jsonrpc": "2.0",
                "id": 4,
                "method": "tools/call",
                "params": {"name": "slack_reply_to_thread", "arguments": {"channel_id": "C", "thread_ts": "1.2", "text": "t"}},
            }
        )
        legacy = normalize_request(
            {
                "type": "call_tool",
                "id": 4,
                "params": {"tool": "slack_reply_to_thread", "parameters": {"channel_id": "C", "thread_ts": "1.2", "text": "t"}},
            }
        )
        self.assertEqual(ToolDispatcher(FakeSlackClient()).dispatch(modern), ToolDispatcher(FakeSlackClient()).dispatch(legacy))

        bad_modern = normalize_request({"method": "tools/call", "params": {"name": "slack_post_message", "arguments": {}}})
        bad_legacy = normalize_request({"type": "call_tool", "params": {"tool": "slack_post_message", "parameters": {}}})
        self.assertEqual(
            ToolDispatcher(FakeSlackClient()).dispatch(bad_modern),
            ToolDispatcher(FakeSlackClient()).dispatch(bad_legacy),
        )

    def test_empty_tool_name(self) -> None:
        outcome = ToolDispatcher(FakeSlackClient()).dispatch(normalize_request({"method": "tools/call"}))
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "Unknown tool: ")


if __name__ == "__main__":
    unittest.main()
