from __future__ import annotations

import asyncio
import json

import pytest
from pydantic import BaseModel

from boardpilot.config import Settings
from boardpilot.controller import Phase, TurnController
from boardpilot.dispatch import ActionDispatcher
from boardpilot.factory import play_game
from boardpilot.failures import StepLimitExceeded, ToolCallCorrelationError
from boardpilot.memory import MemoryStore
from boardpilot.messages import Snapshot, ToolInvocation, ToolResult, tool_results
from boardpilot.models.base import BaseChatModel, ModelError, ModelResponse, ToolCall
from boardpilot.models.mock import MockChatModel
from boardpilot.prompts import CONTINUE_PROMPT, GAME_END_PROMPT, MEMORY_REVIEW_PROMPT, OPENING_PROMPT
from boardpilot.tools.base import Tool, ToolContext
from boardpilot.tools.computer import ComputerTool
from boardpilot.tools.game_end import GameEndTool
from boardpilot.tools.memory import MemoryTool
from boardpilot.tools.registry import ToolRegistry
from boardpilot.trace import TraceRecorder
from boardpilot.util.context_trim import CLEARED_SNAPSHOT


def _registry(handle, memory: MemoryStore | None = None) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(ComputerTool(ActionDispatcher(handle)))
    registry.register(GameEndTool())
    if memory is not None:
        registry.register(MemoryTool(memory))
    return registry


def _calls(*calls: ToolCall) -> ModelResponse:
    return ModelResponse(tool_calls=list(calls))


def _click(call_id: str, x: int = 600, y: int = 450) -> ToolCall:
    return ToolCall(id=call_id, name="computer", arguments={"action": "left_click", "coordinate": [x, y]})


def _game_end(call_id: str, result: str = "win", winner: str | None = "X") -> ToolCall:
    arguments = {"result": result}
    if winner:
        arguments["winner"] = winner
    return ToolCall(id=call_id, name="game_ended", arguments=arguments)


class LoopingModel(BaseChatModel):
    """Asks for a screenshot forever."""

    def __init__(self) -> None:
        self.calls = 0

    async def chat(self, messages, tools, system=None):
        self.calls += 1
        return _calls(ToolCall(id=f"loop_{self.calls}", name="computer", arguments={"action": "screenshot"}))


class FailingModel(BaseChatModel):
    async def chat(self, messages, tools, system=None):
        raise ModelError("backend unavailable")


def test_click_then_game_end_in_one_round(handle, surface):
    model = MockChatModel([_calls(_click("c1"), _game_end("c2")), ModelResponse(final_text="X won")])
    controller = TurnController(model, _registry(handle), review_memory=False)
    result = asyncio.run(controller.play())

    results = tool_results(result.messages)
    assert [item.invocation_id for item in results] == ["c1", "c2"]
    assert isinstance(results[0].payload, Snapshot)
    assert results[1].payload == "Game has ended. Result: win. Winner: X"
    assert result.tool_calls == 2
    assert result.model_calls == 2
    assert result.game_end.ended and result.game_end.winner == "X"
    assert controller.phase is Phase.DONE
    assert surface.kinds() == ["open", "resize", "perform", "release", "capture"]


def test_tools_are_declared_with_system_prompt(handle):
    seen = []

    class RecordingModel(BaseChatModel):
        async def chat(self, messages, tools, system=None):
            seen.append(([tool["name"] for tool in tools], system))
            if len(seen) == 1:
                return _calls(_game_end("only", "draw", None))
            return ModelResponse(final_text="ok")

    controller = TurnController(
        RecordingModel(), _registry(handle), review_memory=False, system_prompt="be X"
    )
    result = asyncio.run(controller.play())
    assert seen == [(["computer", "game_ended"], "be X")] * 2
    assert result.game_end.describe() == "Result: draw"


def test_continue_prompt_repeats_with_full_history(handle):
    model = MockChatModel(
        [
            ModelResponse(final_text="ready"),
            ModelResponse(final_text="waiting for O"),
            _calls(_game_end("end", "loss", "O")),
        ]
    )
    controller = TurnController(model, _registry(handle), review_memory=False)
    result = asyncio.run(controller.play())

    assert len(model.requests) == 4
    assert [m.content for m in model.requests[0]] == [OPENING_PROMPT]
    human_turns = [m.content for m in model.requests[2] if m.role == "human"]
    assert human_turns == [OPENING_PROMPT, CONTINUE_PROMPT, CONTINUE_PROMPT]
    assert [m.role for m in model.requests[2]] == ["human", "agent", "human", "agent", "human"]
    assert result.game_end.result == "loss"
    assert result.tool_calls == 1


def test_memory_review_and_save_phases(handle, tmp_path):
    store = MemoryStore(tmp_path / "memory")
    trace = TraceRecorder(trace_id="game-test", workspace_dir=str(tmp_path / "workspace"))
    model = MockChatModel(
        [
            _calls(ToolCall(id="m1", name="memory", arguments={"command": "view", "path": "/"})),
            ModelResponse(final_text="No memories yet."),
            ModelResponse(final_text="I am X."),
            _calls(_click("c1", 400, 300), _game_end("c2")),
            ModelResponse(final_text="Won."),
            _calls(
                ToolCall(
                    id="m2",
                    name="memory",
                    arguments={"command": "create", "path": "/strategy.md", "file_text": "Center first."},
                )
            ),
            ModelResponse(final_text="Saved."),
        ]
    )
    controller = TurnController(model, _registry(handle, store), trace=trace)
    result = asyncio.run(controller.play())

    assert [m.content for m in model.requests[0]] == [MEMORY_REVIEW_PROMPT]
    assert model.requests[-1][-3].content == GAME_END_PROMPT
    assert (tmp_path / "memory" / "strategy.md").read_text(encoding="utf-8") == "Center first."
    payloads = [item.payload for item in tool_results(result.messages)]
    assert payloads[0].startswith("Memory directory is empty")
    assert payloads[-1] == "Successfully created file: /strategy.md"
    assert result.tool_calls == 4

    with open(result.trace_path, encoding="utf-8") as handle_file:
        saved = json.load(handle_file)
    phases = [event["payload"]["phase"] for event in saved["events"] if event["type"] == "phase"]
    assert phases == ["review_memory", "opening", "playing", "ended", "saving_memory", "done"]
    assert saved["stats"]["game_end"]["result"] == "win"


def test_unknown_tool_gets_error_result(handle):
    model = MockChatModel(
        [
            _calls(ToolCall(id="u1", name="teleport", arguments={})),
            ModelResponse(final_text="oops"),
            _calls(_game_end("end")),
        ]
    )
    controller = TurnController(model, _registry(handle), review_memory=False)
    result = asyncio.run(controller.play())
    results = tool_results(result.messages)
    assert results[0].invocation_id == "u1"
    assert results[0].payload == "Error: Unknown tool: teleport"


def test_missing_call_ids_are_assigned(handle):
    model = MockChatModel(
        [
            _calls(ToolCall(name="computer", arguments={"action": "screenshot"})),
            ModelResponse(final_text="looked"),
            _calls(_game_end("end")),
        ]
    )
    controller = TurnController(model, _registry(handle), review_memory=False)
    result = asyncio.run(controller.play())
    agent_call = result.messages[1].tool_calls[0]
    assert agent_call.id.startswith("call_")
    assert tool_results(result.messages)[0].invocation_id == agent_call.id


def test_old_snapshots_cleared_in_requests_only(handle):
    model = MockChatModel(
        [
            _calls(ToolCall(id="s1", name="computer", arguments={"action": "screenshot"})),
            _calls(ToolCall(id="s2", name="computer", arguments={"action": "screenshot"})),
            _calls(_game_end("end")),
        ]
    )
    controller = TurnController(model, _registry(handle), review_memory=False)
    result = asyncio.run(controller.play())

    sent = tool_results(model.requests[2])
    assert [item.invocation_id for item in sent] == ["s1", "s2"]
    assert sent[0].payload == CLEARED_SNAPSHOT
    assert isinstance(sent[1].payload, Snapshot)
    kept = tool_results(result.messages)
    assert isinstance(kept[0].payload, Snapshot)


def test_mismatched_result_id_aborts_run(handle):
    class EmptyInput(BaseModel):
        pass

    class WrongIdTool(Tool):
        name = "wrong"
        description = "answers with the wrong id"
        input_schema = EmptyInput

        async def run(self, call: ToolInvocation, context: ToolContext) -> ToolResult:
            return ToolResult(invocation_id="someone-else", payload="hi")

    registry = _registry(handle)
    registry.register(WrongIdTool())
    model = MockChatModel([_calls(ToolCall(id="w1", name="wrong", arguments={}))])
    controller = TurnController(model, registry, review_memory=False)
    with pytest.raises(ToolCallCorrelationError):
        asyncio.run(controller.play())


def test_step_limit_aborts_and_closes_surface(surface, tmp_path):
    settings = Settings(
        model_provider="mock",
        max_steps=3,
        review_memory=False,
        workspace_dir=str(tmp_path / "workspace"),
        memory_dir=str(tmp_path / "memory"),
    )
    model = LoopingModel()
    with pytest.raises(StepLimitExceeded) as excinfo:
        asyncio.run(play_game(settings, model=model, surface=surface))
    assert excinfo.value.max_steps == 3
    assert model.calls == 3
    assert surface.closed is True
    assert surface.kinds().count("capture") == 3
    assert list((tmp_path / "workspace" / "traces").glob("game-*.json"))


def test_model_error_propagates(surface, tmp_path):
    settings = Settings(
        model_provider="mock",
        review_memory=False,
        workspace_dir=str(tmp_path / "workspace"),
        memory_dir=str(tmp_path / "memory"),
    )
    with pytest.raises(ModelError):
        asyncio.run(play_game(settings, model=FailingModel(), surface=surface))
    assert surface.events == []


def test_unscripted_mock_run_finishes_with_draw(surface, tmp_path):
    settings = Settings(
        model_provider="mock",
        workspace_dir=str(tmp_path / "workspace"),
        memory_dir=str(tmp_path / "memory"),
    )
    result = asyncio.run(asyncio.wait_for(play_game(settings, surface=surface), timeout=10))
    assert result.game_end.describe() == "Result: draw"
    assert result.tool_calls == 1
    assert result.model_calls == 5
    assert surface.events == []


def test_click_and_game_end_in_separate_rounds(handle, surface):
    model = MockChatModel(
        [
            _calls(_click("c1")),
            _calls(_game_end("c2", "win", "X")),
            ModelResponse(final_text="I won."),
        ]
    )
    controller = TurnController(model, _registry(handle), review_memory=False)
    result = asyncio.run(controller.play())

    assert result.model_calls == 3
    assert result.tool_calls == 2
    assert [m.role for m in result.messages] == [
        "human",
        "agent",
        "tool_result",
        "agent",
        "tool_result",
        "agent",
    ]
    results = tool_results(result.messages)
    assert [item.invocation_id for item in results] == ["c1", "c2"]
    assert isinstance(results[0].payload, Snapshot)
    assert results[1].payload == "Game has ended. Result: win. Winner: X"
    assert tool_results(model.requests[1])[0].invocation_id == "c1"
    assert surface.kinds().count("capture") == 1
