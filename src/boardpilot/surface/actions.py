"""Abstract UI actions the agent can request on the visual surface."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

Coordinate = tuple[int, int]

BUTTONS = {"left_click": 0, "middle_click": 1, "right_click": 2}


class ScreenshotAction(BaseModel):
    action: Literal["screenshot"] = "screenshot"


class ClickAction(BaseModel):
    action: Literal["left_click", "right_click", "middle_click"] = "left_click"
    coordinate: Coordinate

    @property
    def button(self) -> int:
        return BUTTONS[self.action]


class DoubleClickAction(BaseModel):
    action: Literal["double_click"] = "double_click"
    coordinate: Coordinate


class TripleClickAction(BaseModel):
    action: Literal["triple_click"] = "triple_click"
    coordinate: Coordinate


class DragAction(BaseModel):
    action: Literal["left_click_drag"] = "left_click_drag"
    path: list[Coordinate] = Field(default_factory=list)


class MouseDownAction(BaseModel):
    action: Literal["left_mouse_down"] = "left_mouse_down"
    coordinate: Coordinate


class MouseUpAction(BaseModel):
    action: Literal["left_mouse_up"] = "left_mouse_up"
    coordinate: Coordinate


class MouseMoveAction(BaseModel):
    action: Literal["mouse_move"] = "mouse_move"
    coordinate: Coordinate


class ScrollAction(BaseModel):
    action: Literal["scroll"] = "scroll"
    coordinate: Coordinate
    scroll_direction: Literal["up", "down", "left", "right"] | None = None
    scroll_amount: int = 100
    delta_x: int | None = None
    delta_y: int | None = None

    def deltas(self) -> tuple[int, int]:
        """Resolve direction and amount into a signed (dx, dy) wheel delta."""
        amount = abs(self.scroll_amount)
        if self.scroll_direction == "up":
            return 0, -amount
        if self.scroll_direction == "down":
            return 0, amount
        if self.scroll_direction == "left":
            return -amount, 0
        if self.scroll_direction == "right":
            return amount, 0
        return self.delta_x or 0, self.delta_y or 0


class TypeAction(BaseModel):
    action: Literal["type"] = "type"
    text: str


class KeyAction(BaseModel):
    action: Literal["key"] = "key"
    key: str


class HoldKeyAction(BaseModel):
    action: Literal["hold_key"] = "hold_key"
    key: str
    duration: float = Field(default=0.0, ge=0)


class WaitAction(BaseModel):
    action: Literal["wait"] = "wait"
    duration: float = Field(default=1.0, ge=0)


Action = Annotated[
    Union[
        ScreenshotAction,
        ClickAction,
        DoubleClickAction,
        TripleClickAction,
        DragAction,
        MouseDownAction,
        MouseUpAction,
        MouseMoveAction,
        ScrollAction,
        TypeAction,
        KeyAction,
        HoldKeyAction,
        WaitAction,
    ],
    Field(discriminator="action"),
]

ACTION_NAMES = (
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
)

_ACTION_ADAPTER: TypeAdapter[Action] = TypeAdapter(Action)


def parse_action(payload: dict[str, Any]) -> Action | None:
    """Validate a raw action payload; None for an unrecognized action name.

    Raises pydantic.ValidationError when a known action has bad arguments.
    """
    if payload.get("action") not in ACTION_NAMES:
        return None
    return _ACTION_ADAPTER.validate_python(payload)
