from __future__ import annotations

from collections.abc import Sequence


def join_names(names: Sequence[str]) -> str:
    items = [str(n) for n in names]
    if len(items) <= 1:
        return "".join(items)
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + f", and {items[-1]}"


class SlackMCPError(Exception):
    pass


class DecodeError(SlackMCPError, ValueError):
    def __init__(self, message: str = "Invalid JSON in request") -> None:
        super().__init__(message)


class UnsupportedRequestError(SlackMCPError, ValueError):
    def __init__(self, received: object) -> None:
        self.received = received
        super().__init__("Unsupported request type or missing handler")


class UnknownToolError(SlackMCPError, ValueError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class MissingArgumentsError(SlackMCPError, ValueError):
    def __init__(self, message: str = "No arguments provided") -> None:
        super().__init__(message)


class MissingRequiredArgumentError(SlackMCPError, ValueError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        noun = "argument" if len(self.missing) == 1 else "arguments"
        super().__init__(f"Missing required {noun}: {join_names(self.missing)}")


class SlackAPIError(SlackMCPError, RuntimeError):
    """Slack answered with a transport error or ``{"ok": false}``.

    The message is the Slack error code (``channel_not_found``, ``invalid_auth``
    ...) or the HTTP failure text, unchanged.
    """

    def __init__(self, message: str, *, method: str | None = None) -> None:
        self.method = method
        super().__init__(message)


class ConfigError(SlackMCPError, RuntimeError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required environment variables: {join_names(self.missing)}")
