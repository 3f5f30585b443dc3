"""Conversation history types threaded through every agent call."""

from __future__ import annotations

import base64
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["human", "agent", "tool_result"]


class Snapshot(BaseModel):
    """A captured viewport image, base64-encoded."""

    data: str
    media_type: str = "image/png"

    @classmethod
    def from_bytes(cls, raw: bytes, media_type: str = "image/png") -> "Snapshot":
        return cls(data=base64.b64encode(raw).decode("ascii"), media_type=media_type)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


class ToolInvocation(BaseModel):
    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    invocation_id: str
    payload: Snapshot | str

    @property
    def is_snapshot(self) -> bool:
        return isinstance(self.payload, Snapshot)


class Message(BaseModel):
    role: Role
    content: str = ""
    tool_calls: list[ToolInvocation] = Field(default_factory=list)
    result: ToolResult | None = None

    @classmethod
    def human(cls, text: str) -> "Message":
        return cls(role="human", content=text)

    @classmethod
    def agent(cls, text: str | None, tool_calls: list[ToolInvocation] | None = None) -> "Message":
        return cls(role="agent", content=text or "", tool_calls=list(tool_calls or []))

    @classmethod
    def tool_result(cls, result: ToolResult) -> "Message":
        return cls(role="tool_result", result=result)


def last_agent_message(messages: list[Message]) -> Message | None:
    """Return the most recent agent-role message, if any."""
    for message in reversed(messages):
        if message.role == "agent":
            return message
    return None


def tool_results(messages: list[Message]) -> list[ToolResult]:
    return [message.result for message in messages if message.result is not None]
