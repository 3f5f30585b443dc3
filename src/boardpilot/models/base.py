"""Base model interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from boardpilot.messages import Message


class ModelError(RuntimeError):
    """Raised when a model backend fails; fatal for the run."""


class ToolCall(BaseModel):
    id: str | None = None
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ModelResponse(BaseModel):
    final_text: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)


class BaseChatModel(ABC):
    """Abstract chat model interface."""

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        system: str | None = None,
    ) -> ModelResponse:
        """Send the history and tool declarations; return text or tool calls."""
        raise NotImplementedError
