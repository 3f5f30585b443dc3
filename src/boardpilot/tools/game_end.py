"""Tool the agent calls once it sees the end-of-game message on screen."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from boardpilot.messages import ToolInvocation, ToolResult
from boardpilot.tools.base import Tool, ToolContext
from boardpilot.util.logging import get_logger

logger = get_logger(__name__)


class GameEndInput(BaseModel):
    result: Literal["win", "loss", "draw"] = Field(
        description="Outcome from your perspective as X: win, loss or draw"
    )
    winner: Literal["X", "O"] | None = Field(
        default=None, description="Winning mark; omit for a draw"
    )


class GameEndTool(Tool):
    name = "game_ended"
    description = (
        "Call ONLY after the game shows its end message on screen "
        "('Player X wins!', 'Player O wins!' or 'It's a draw!')."
    )
    input_schema = GameEndInput

    async def run(self, call: ToolInvocation, context: ToolContext) -> ToolResult:
        try:
            payload = GameEndInput.model_validate(call.arguments)
        except ValidationError as exc:
            return ToolResult(
                invocation_id=call.id,
                payload=f"Error: Invalid game_ended arguments: {exc.errors()[0]['msg']}",
            )
        state = context.run_state
        if state.record_game_end(payload.result, payload.winner):
            logger.info("GAME ENDED: %s", state.game_end.describe())
            return ToolResult(
                invocation_id=call.id, payload=f"Game has ended. {state.game_end.describe()}"
            )
        logger.warning(
            "Repeated game_ended call ignored (result=%s, winner=%s); recorded %s",
            payload.result,
            payload.winner,
            state.game_end.describe(),
        )
        return ToolResult(
            invocation_id=call.id,
            payload=f"Game end was already recorded. {state.game_end.describe()}",
        )
