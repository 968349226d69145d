from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RequestKind(str, Enum):
    CALL_TOOL = "call_tool"
    LIST_TOOLS = "list_tools"
    INITIALIZE = "initialize"
    NOTIFICATION = "notification"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    @property
    def required_params(self) -> tuple[str, ...]:
        return tuple(str(p) for p in self.input_schema.get("required") or ())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": copy.deepcopy(self.input_schema),
        }


@dataclass(frozen=True)
class CanonicalRequest:
    kind: RequestKind
    request_id: Any = None
    has_id: bool = False
    tool_name: str | None = None
    arguments: Any = None
    raw: Any = None  # decoded body, echoed back for unsupported messages


@dataclass(frozen=True)
class DispatchOutcome:
    ok: bool
    payload: Any = None
    error: str | None = None

    @classmethod
    def success(cls, payload: Any) -> DispatchOutcome:
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, message: str) -> DispatchOutcome:
        return cls(ok=False, error=message)
