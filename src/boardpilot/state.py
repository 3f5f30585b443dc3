"""Mutable per-run state shared by the controller and tool handlers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

GameResult = Literal["win", "loss", "draw"]
Mark = Literal["X", "O"]


class GameEndState(BaseModel):
    ended: bool = False
    result: GameResult | None = None
    winner: Mark | None = None

    def describe(self) -> str:
        if not self.ended:
            return "Game in progress"
        text = f"Result: {self.result}"
        if self.winner:
            text += f". Winner: {self.winner}"
        return text


class RunState(BaseModel):
    """State owned by one game run; replaces process-wide flags."""

    game_end: GameEndState = Field(default_factory=GameEndState)
    game_end_calls: int = 0

    @property
    def game_ended(self) -> bool:
        return self.game_end.ended

    def record_game_end(self, result: GameResult, winner: Mark | None = None) -> bool:
        """Set the game-end signal once; return False when it was already set."""
        self.game_end_calls += 1
        if self.game_end.ended:
            return False
        self.game_end = GameEndState(ended=True, result=result, winner=winner)
        return True
