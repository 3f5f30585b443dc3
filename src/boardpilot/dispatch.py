"""Translate abstract UI actions into primitive input on the visual surface."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from boardpilot.failures import ToolCallCorrelationError
from boardpilot.messages import Message, Snapshot, ToolResult, last_agent_message
from boardpilot.surface.actions import (
    Action,
    ClickAction,
    DoubleClickAction,
    DragAction,
    HoldKeyAction,
    KeyAction,
    MouseDownAction,
    MouseMoveAction,
    MouseUpAction,
    ScreenshotAction,
    ScrollAction,
    TripleClickAction,
    TypeAction,
    WaitAction,
    parse_action,
)
from boardpilot.surface.base import SurfaceHandle
from boardpilot.surface.keys import map_key, split_chord
from boardpilot.util.logging import get_logger

logger = get_logger(__name__)

MOVE_MS = 100
SETTLE_MS = 50
DOUBLE_CLICK_PAUSE_MS = 50
TRIPLE_CLICK_PAUSE_MS = 30
SCROLL_MS = 100

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class InputPlan:
    """Primitive input sources for one action, and whether to release afterwards."""

    sources: list[dict[str, Any]] = field(default_factory=list)
    release: bool = False


def _pointer(actions: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "type": "pointer",
        "id": "mouse",
        "parameters": {"pointerType": "mouse"},
        "actions": actions,
    }


def _move(point: tuple[int, int], duration: int = MOVE_MS) -> dict[str, Any]:
    return {
        "type": "pointerMove",
        "origin": "viewport",
        "x": point[0],
        "y": point[1],
        "duration": duration,
    }


def _down(button: int = 0) -> dict[str, Any]:
    return {"type": "pointerDown", "button": button}


def _up(button: int = 0) -> dict[str, Any]:
    return {"type": "pointerUp", "button": button}


def _pause(duration: int) -> dict[str, Any]:
    return {"type": "pause", "duration": duration}


def _keyboard(actions: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "key", "id": "keyboard", "actions": actions}


def _key_press(value: str) -> list[dict[str, Any]]:
    return [{"type": "keyDown", "value": value}, {"type": "keyUp", "value": value}]


def _repeated_click(point: tuple[int, int], clicks: int, pause_ms: int) -> list[dict[str, Any]]:
    actions = [_move(point), _down(), _up()]
    for _ in range(clicks - 1):
        actions.extend([_pause(pause_ms), _down(), _up()])
    return actions


def _chord(tokens: list[str], hold_ms: int | None = None) -> list[dict[str, Any]]:
    """Press single keys down in order and release them in reverse.

    A keyDown value must be one character, so a token with no named key is
    typed out character by character while the others stay held.
    """
    held: list[str] = []
    steps: list[dict[str, Any]] = []
    for token in tokens:
        value = map_key(token)
        if len(value) == 1:
            steps.append({"type": "keyDown", "value": value})
            held.append(value)
        else:
            for char in value:
                steps.extend(_key_press(char))
    if not steps:
        return steps
    if hold_ms is not None:
        steps.append(_pause(hold_ms))
    steps.extend({"type": "keyUp", "value": value} for value in reversed(held))
    return steps


def plan_inputs(action: Action) -> InputPlan:
    """Build the deterministic primitive sequence for an action.

    Screenshot and wait need no input; both yield an empty plan.
    """
    if isinstance(action, ClickAction):
        button = action.button
        return InputPlan(
            [
                _pointer(
                    [
                        _move(action.coordinate),
                        _down(button),
                        _move(action.coordinate, SETTLE_MS),
                        _up(button),
                    ]
                )
            ],
            release=True,
        )
    if isinstance(action, DoubleClickAction):
        return InputPlan(
            [_pointer(_repeated_click(action.coordinate, 2, DOUBLE_CLICK_PAUSE_MS))], release=True
        )
    if isinstance(action, TripleClickAction):
        return InputPlan(
            [_pointer(_repeated_click(action.coordinate, 3, TRIPLE_CLICK_PAUSE_MS))], release=True
        )
    if isinstance(action, DragAction):
        if len(action.path) < 2:
            return InputPlan()
        steps = [_move(action.path[0]), _down()]
        steps.extend(_move(point) for point in action.path[1:])
        steps.append(_up())
        return InputPlan([_pointer(steps)], release=True)
    if isinstance(action, MouseDownAction):
        return InputPlan([_pointer([_move(action.coordinate), _down()])])
    if isinstance(action, MouseUpAction):
        return InputPlan([_pointer([_move(action.coordinate), _up()])], release=True)
    if isinstance(action, MouseMoveAction):
        return InputPlan([_pointer([_move(action.coordinate)])], release=True)
    if isinstance(action, ScrollAction):
        delta_x, delta_y = action.deltas()
        x, y = action.coordinate
        wheel = {
            "type": "wheel",
            "id": "wheel",
            "actions": [
                {
                    "type": "scroll",
                    "origin": "viewport",
                    "x": x,
                    "y": y,
                    "deltaX": delta_x,
                    "deltaY": delta_y,
                    "duration": SCROLL_MS,
                }
            ],
        }
        return InputPlan([wheel], release=True)
    if isinstance(action, TypeAction):
        steps: list[dict[str, Any]] = []
        for char in action.text:
            steps.extend(_key_press(char))
        return InputPlan([_keyboard(steps)] if steps else [])
    if isinstance(action, KeyAction):
        steps = _chord(split_chord(action.key))
        return InputPlan([_keyboard(steps)] if steps else [])
    if isinstance(action, HoldKeyAction):
        steps = _chord(split_chord(action.key), hold_ms=int(action.duration * 1000))
        return InputPlan([_keyboard(steps)] if steps else [])
    return InputPlan()


def resolve_invocation_id(messages: list[Message], requested_id: str | None = None) -> str:
    """Match an action to a tool call on the most recent agent message.

    Raises ToolCallCorrelationError when the history carries no such call,
    which means the controller and dispatcher have desynchronized.
    """
    message = last_agent_message(messages)
    if message is None or not message.tool_calls:
        raise ToolCallCorrelationError("No tool call found on the most recent agent message")
    if requested_id is None:
        return message.tool_calls[-1].id
    if any(call.id == requested_id for call in message.tool_calls):
        return requested_id
    raise ToolCallCorrelationError(
        f"Tool call {requested_id} is not on the most recent agent message"
    )


class ActionDispatcher:
    """Runs one action at a time against the surface; every action ends in a capture."""

    def __init__(
        self,
        handle: SurfaceHandle,
        screenshot_dir: str | Path | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.handle = handle
        self.screenshot_dir = Path(screenshot_dir) if screenshot_dir else None
        self.sleep = sleep
        self.captures = 0
        self._lock = asyncio.Lock()

    async def dispatch(self, arguments: dict[str, Any], invocation_id: str) -> ToolResult:
        """Parse raw tool arguments, then execute; bad arguments are reported as text."""
        try:
            action = parse_action(arguments)
        except ValidationError as exc:
            name = arguments.get("action")
            logger.warning("Invalid arguments for action %s: %s", name, exc.errors()[0]["msg"])
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            return ToolResult(
                invocation_id=invocation_id,
                payload=f"Error: Invalid arguments for {name}: {details}. Fix arguments and retry.",
            )
        if action is None:
            logger.warning("Unknown action type: %s", arguments.get("action"))
        return await self.execute(action, invocation_id)

    async def execute(self, action: Action | None, invocation_id: str) -> ToolResult:
        async with self._lock:
            surface = await self.handle.acquire()
            if action is not None:
                self._log(action)
                if isinstance(action, WaitAction):
                    await self.sleep(action.duration)
                elif not isinstance(action, ScreenshotAction):
                    plan = plan_inputs(action)
                    if plan.sources:
                        await surface.perform_actions(plan.sources)
                    if plan.release:
                        await surface.release_actions()
            raw = await surface.capture()
            self._save(raw)
            return ToolResult(invocation_id=invocation_id, payload=Snapshot.from_bytes(raw))

    def _log(self, action: Action) -> None:
        details = action.model_dump(exclude={"action"})
        logger.info("Action %s %s", action.action, details or "")

    def _save(self, raw: bytes) -> None:
        index = self.captures
        self.captures += 1
        if self.screenshot_dir is None:
            return
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        (self.screenshot_dir / f"screenshot-{index}.png").write_bytes(raw)
