"""Base tool definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from boardpilot.messages import Message, ToolInvocation, ToolResult
from boardpilot.state import RunState


@dataclass
class ToolContext:
    """What a tool may see of the run: the history so far and the run state."""

    messages: list[Message]
    run_state: RunState = field(default_factory=RunState)


class Tool(ABC):
    """Abstract tool."""

    name: str
    description: str
    input_schema: type[BaseModel]

    @abstractmethod
    async def run(self, call: ToolInvocation, context: ToolContext) -> ToolResult:
        """Execute the tool and return exactly one result for the call."""
        raise NotImplementedError

    def spec(self) -> dict[str, Any]:
        """Return a provider-neutral tool declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_schema.model_json_schema(),
        }
