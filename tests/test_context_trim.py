from boardpilot.messages import Message, Snapshot, ToolInvocation, ToolResult
from boardpilot.util.context_trim import CLEARED_SNAPSHOT, clear_old_snapshots


def _history(count: int) -> list[Message]:
    messages = [Message.human("play")]
    for index in range(count):
        call_id = f"s{index}"
        messages.append(
            Message.agent(None, [ToolInvocation(id=call_id, name="computer", arguments={})])
        )
        payload = Snapshot.from_bytes(f"png-{index}".encode())
        messages.append(Message.tool_result(ToolResult(invocation_id=call_id, payload=payload)))
    messages.append(
        Message.tool_result(ToolResult(invocation_id="text", payload="Successfully created file: /a.md"))
    )
    return messages


def test_clear_old_snapshots_keeps_newest():
    messages = _history(3)
    trimmed = clear_old_snapshots(messages, keep=1)
    payloads = [m.result.payload for m in trimmed if m.result is not None]
    assert payloads[0] == CLEARED_SNAPSHOT
    assert payloads[1] == CLEARED_SNAPSHOT
    assert isinstance(payloads[2], Snapshot)
    assert payloads[3] == "Successfully created file: /a.md"
    assert [m.result.invocation_id for m in trimmed if m.result] == ["s0", "s1", "s2", "text"]


def test_clear_old_snapshots_does_not_mutate_input():
    messages = _history(2)
    clear_old_snapshots(messages, keep=0)
    assert all(
        isinstance(m.result.payload, Snapshot)
        for m in messages
        if m.result is not None and m.result.invocation_id != "text"
    )


def test_clear_old_snapshots_keep_larger_than_history():
    messages = _history(2)
    assert clear_old_snapshots(messages, keep=5) == messages
    cleared = clear_old_snapshots(messages, keep=0)
    assert not any(m.result is not None and m.result.is_snapshot for m in cleared)
