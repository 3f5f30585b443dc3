"""Computer-use tool: drives the browser and answers with a screenshot."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from boardpilot.dispatch import ActionDispatcher, resolve_invocation_id
from boardpilot.messages import ToolInvocation, ToolResult
from boardpilot.tools.base import Tool, ToolContext


class ComputerInput(BaseModel):
    action: Literal[
        "screenshot",
        "left_click",
        "right_click",
        "middle_click",
        "double_click",
        "triple_click",
        "left_click_drag",
        "left_mouse_down",
        "left_mouse_up",
        "mouse_move",
        "scroll",
        "type",
        "key",
        "hold_key",
        "wait",
    ]
    coordinate: list[int] | None = Field(
        default=None, description="[x, y] in viewport pixels, for pointer and scroll actions"
    )
    path: list[list[int]] | None = Field(
        default=None, description="Ordered [x, y] points for left_click_drag"
    )
    text: str | None = Field(default=None, description="Text for the type action")
    key: str | None = Field(
        default=None, description="Key or chord such as 'Enter' or 'ctrl+a' for key and hold_key"
    )
    scroll_direction: Literal["up", "down", "left", "right"] | None = None
    scroll_amount: int | None = Field(default=None, description="Scroll distance in pixels")
    duration: float | None = Field(default=None, description="Seconds, for wait and hold_key")


class ComputerTool(Tool):
    name = "computer"
    description = (
        "Control the browser showing the game. Every action returns a fresh "
        "screenshot of the {width}x{height} viewport."
    )
    input_schema = ComputerInput

    def __init__(self, dispatcher: ActionDispatcher) -> None:
        self.dispatcher = dispatcher
        handle = dispatcher.handle
        self.description = ComputerTool.description.format(width=handle.width, height=handle.height)

    async def run(self, call: ToolInvocation, context: ToolContext) -> ToolResult:
        invocation_id = resolve_invocation_id(context.messages, call.id)
        arguments = {key: value for key, value in call.arguments.items() if value is not None}
        if arguments.get("action") in {"key", "hold_key"} and "key" not in arguments:
            if "text" in arguments:
                arguments["key"] = arguments.pop("text")
        return await self.dispatcher.dispatch(arguments, invocation_id)
