"""Turn-loop controller: drives the agent through one game."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from boardpilot.failures import StepLimitExceeded, ToolCallCorrelationError
from boardpilot.messages import Message, ToolInvocation, ToolResult
from boardpilot.models.base import BaseChatModel, ModelResponse
from boardpilot.prompts import (
    CONTINUE_PROMPT,
    GAME_END_PROMPT,
    MEMORY_REVIEW_PROMPT,
    OPENING_PROMPT,
    SYSTEM_PROMPT,
)
from boardpilot.state import GameEndState, RunState
from boardpilot.tools.base import ToolContext
from boardpilot.tools.registry import ToolRegistry
from boardpilot.trace import TraceRecorder
from boardpilot.util.context_trim import clear_old_snapshots
from boardpilot.util.logging import get_logger, redact

logger = get_logger(__name__)


class Phase(str, Enum):
    REVIEW_MEMORY = "review_memory"
    OPENING = "opening"
    PLAYING = "playing"
    ENDED = "ended"
    SAVING_MEMORY = "saving_memory"
    DONE = "done"


@dataclass
class RunResult:
    game_end: GameEndState
    messages: list[Message] = field(default_factory=list)
    model_calls: int = 0
    tool_calls: int = 0
    trace_path: str | None = None


class TurnController:
    """Runs review -> opening -> play-until-ended -> save, one awaited step at a time.

    The controller never looks at screenshots itself. The game is over only
    when the agent calls the game-end tool, which sets ``run_state``.
    """

    def __init__(
        self,
        model: BaseChatModel,
        registry: ToolRegistry,
        run_state: RunState | None = None,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        max_steps: int = 100,
        review_memory: bool = True,
        keep_screenshots: int = 1,
        trace: TraceRecorder | None = None,
    ) -> None:
        self.model = model
        self.registry = registry
        self.run_state = run_state or RunState()
        self.system_prompt = system_prompt
        self.max_steps = max(1, max_steps)
        self.review_memory = review_memory
        self.keep_screenshots = keep_screenshots
        self.trace = trace
        self.phase = Phase.OPENING
        self._model_calls = 0
        self._tool_calls = 0

    def _enter(self, phase: Phase) -> None:
        self.phase = phase
        logger.info("Phase: %s", phase.value)
        if self.trace:
            self.trace.record_phase(phase.value)

    async def play(self) -> RunResult:
        messages: list[Message] = []
        try:
            if self.review_memory:
                self._enter(Phase.REVIEW_MEMORY)
                messages = await self.invoke([Message.human(MEMORY_REVIEW_PROMPT)])

            self._enter(Phase.OPENING)
            messages = await self.invoke([*messages, Message.human(OPENING_PROMPT)])

            self._enter(Phase.PLAYING)
            while not self.run_state.game_ended:
                messages = await self.invoke([*messages, Message.human(CONTINUE_PROMPT)])

            self._enter(Phase.ENDED)
            logger.info("Game finished: %s", self.run_state.game_end.describe())
            if self.trace:
                self.trace.record_game_end(self.run_state.game_end)

            if self.review_memory:
                self._enter(Phase.SAVING_MEMORY)
                messages = await self.invoke([*messages, Message.human(GAME_END_PROMPT)])
            self._enter(Phase.DONE)
        finally:
            trace_path = self._finalize_trace()
        return RunResult(
            game_end=self.run_state.game_end,
            messages=messages,
            model_calls=self._model_calls,
            tool_calls=self._tool_calls,
            trace_path=trace_path,
        )

    async def invoke(self, messages: list[Message]) -> list[Message]:
        """One agent call: model rounds until a round requests no tools.

        Returns the extended history. Raises StepLimitExceeded when every one
        of ``max_steps`` rounds asked for tools.
        """
        history = list(messages)
        tools = self.registry.specs()
        for _ in range(self.max_steps):
            request = clear_old_snapshots(history, self.keep_screenshots)
            response = await self.model.chat(request, tools=tools, system=self.system_prompt)
            self._model_calls += 1
            invocations = self._invocations(response)
            history.append(Message.agent(response.final_text, invocations))
            if self.trace:
                self.trace.record_model_response(response.final_text, invocations)
            if response.final_text:
                logger.info("AI: %s", redact(response.final_text))
            if not invocations:
                return history
            for call in invocations:
                result = await self._execute(call, history)
                history.append(Message.tool_result(result))
        raise StepLimitExceeded(self.max_steps)

    def _invocations(self, response: ModelResponse) -> list[ToolInvocation]:
        return [
            ToolInvocation(
                id=call.id or f"call_{uuid4().hex[:12]}",
                name=call.name,
                arguments=call.arguments,
            )
            for call in response.tool_calls
        ]

    async def _execute(self, call: ToolInvocation, history: list[Message]) -> ToolResult:
        if self.trace:
            self.trace.record_tool_call(call)
        tool = self.registry.get(call.name)
        if tool is None:
            logger.warning("Unknown tool requested: %s", call.name)
            result = ToolResult(invocation_id=call.id, payload=f"Error: Unknown tool: {call.name}")
        else:
            result = await tool.run(call, ToolContext(messages=history, run_state=self.run_state))
            if result.invocation_id != call.id:
                raise ToolCallCorrelationError(
                    f"Tool {call.name} answered {result.invocation_id} for call {call.id}"
                )
        self._tool_calls += 1
        if self.trace:
            self.trace.record_tool_result(call.name, result)
        return result

    def _finalize_trace(self) -> str | None:
        if not self.trace:
            return None
        stats = {
            "phase": self.phase.value,
            "model_calls": self._model_calls,
            "tool_calls": self._tool_calls,
            "game_end": self.run_state.game_end.model_dump(),
        }
        return self.trace.finalize(stats)
