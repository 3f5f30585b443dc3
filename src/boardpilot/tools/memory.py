"""Memory tool exposing the durable memory store to the agent."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from boardpilot.memory import MemoryStore
from boardpilot.messages import ToolInvocation, ToolResult
from boardpilot.tools.base import Tool, ToolContext


class MemoryInput(BaseModel):
    command: Literal["view", "create", "str_replace", "insert", "rename", "delete"]
    path: str | None = Field(default=None, description="Path under the memory root, e.g. /strategy.md")
    file_text: str | None = Field(default=None, description="Full file content for create")
    old_str: str | None = Field(default=None, description="Text to replace (first occurrence)")
    new_str: str | None = Field(default=None, description="Replacement text")
    insert_line: int | None = Field(
        default=None, description="Line index for insert; 0 prepends, line count appends"
    )
    insert_text: str | None = None
    old_path: str | None = None
    new_path: str | None = None


class MemoryTool(Tool):
    name = "memory"
    description = (
        "Persistent memory shared across games. Commands: view, create, "
        "str_replace, insert, rename, delete. Paths are relative to the memory root."
    )
    input_schema = MemoryInput

    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    async def run(self, call: ToolInvocation, context: ToolContext) -> ToolResult:
        payload = {key: value for key, value in call.arguments.items() if value is not None}
        return ToolResult(invocation_id=call.id, payload=self.store.run(payload))
