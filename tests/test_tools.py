import asyncio

import pytest

from boardpilot.dispatch import ActionDispatcher
from boardpilot.failures import ToolCallCorrelationError
from boardpilot.memory import MemoryStore
from boardpilot.messages import Message, Snapshot, ToolInvocation
from boardpilot.surface.keys import KEYS
from boardpilot.tools.base import ToolContext
from boardpilot.tools.computer import ComputerTool
from boardpilot.tools.memory import MemoryTool


def _context(*calls: ToolInvocation) -> ToolContext:
    return ToolContext(messages=[Message.human("play"), Message.agent(None, list(calls))])


def test_computer_tool_describes_viewport(handle):
    tool = ComputerTool(ActionDispatcher(handle))
    assert "1200x900" in tool.description
    assert tool.spec()["name"] == "computer"
    assert "coordinate" in tool.spec()["parameters"]["properties"]


def test_computer_tool_drops_null_arguments(handle, surface):
    tool = ComputerTool(ActionDispatcher(handle))
    call = ToolInvocation(
        id="c1",
        name="computer",
        arguments={"action": "left_click", "coordinate": [5, 6], "text": None, "path": None},
    )
    result = asyncio.run(tool.run(call, _context(call)))
    assert result.invocation_id == "c1"
    assert isinstance(result.payload, Snapshot)
    assert "perform" in surface.kinds()


def test_computer_tool_accepts_text_for_key(handle, surface):
    tool = ComputerTool(ActionDispatcher(handle))
    call = ToolInvocation(id="k1", name="computer", arguments={"action": "key", "text": "Return"})
    asyncio.run(tool.run(call, _context(call)))
    steps = surface.performed()[0][0]["actions"]
    assert steps[0] == {"type": "keyDown", "value": KEYS["Return"]}


def test_computer_tool_rejects_unknown_call(handle):
    tool = ComputerTool(ActionDispatcher(handle))
    other = ToolInvocation(id="other", name="computer", arguments={"action": "screenshot"})
    call = ToolInvocation(id="stale", name="computer", arguments={"action": "screenshot"})
    with pytest.raises(ToolCallCorrelationError):
        asyncio.run(tool.run(call, _context(other)))


def test_memory_tool_runs_commands(tmp_path):
    tool = MemoryTool(MemoryStore(tmp_path))
    create = ToolInvocation(
        id="m1",
        name="memory",
        arguments={"command": "create", "path": "/notes.md", "file_text": "corners", "old_str": None},
    )
    result = asyncio.run(tool.run(create, _context(create)))
    assert result.invocation_id == "m1"
    assert result.payload == "Successfully created file: /notes.md"
    view = ToolInvocation(id="m2", name="memory", arguments={"command": "view", "path": "/notes.md"})
    assert asyncio.run(tool.run(view, _context(view))).payload == "corners"
