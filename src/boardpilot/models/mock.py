"""Mock chat model for offline testing."""

from __future__ import annotations

from typing import Any

from boardpilot.messages import Message
from boardpilot.models.base import BaseChatModel, ModelResponse, ToolCall
from boardpilot.prompts import CONTINUE_PROMPT

GAME_END_TOOL = "game_ended"


class MockChatModel(BaseChatModel):
    """Deterministic model that replays scripted responses.

    Once the script runs out it answers with plain text, except when asked
    to continue a game it has not ended yet: then it declares a draw, so an
    unscripted offline run always finishes.
    """

    def __init__(self, scripted: list[ModelResponse] | None = None) -> None:
        self._scripted = list(scripted or [])
        self.requests: list[list[Message]] = []

    async def chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        system: str | None = None,
    ) -> ModelResponse:
        self.requests.append(list(messages))
        if self._scripted:
            return self._scripted.pop(0)
        if self._should_end(messages, tools):
            return ModelResponse(
                final_text="Ending the game as a draw.",
                tool_calls=[ToolCall(name=GAME_END_TOOL, arguments={"result": "draw"})],
            )
        last = messages[-1].content if messages else ""
        return ModelResponse(final_text=f"Mock response to: {last}")

    def _should_end(self, messages: list[Message], tools: list[dict[str, Any]] | None) -> bool:
        if not messages or messages[-1].content != CONTINUE_PROMPT:
            return False
        if not any(tool.get("name") == GAME_END_TOOL for tool in tools or []):
            return False
        return not any(
            call.name == GAME_END_TOOL for message in messages for call in message.tool_calls
        )
