"""Context trimming for screenshot-heavy message histories."""

from __future__ import annotations

from boardpilot.messages import Message, Snapshot, ToolResult

CLEARED_SNAPSHOT = "[screenshot cleared to save context; take a new screenshot if needed]"


def clear_old_snapshots(messages: list[Message], keep: int = 1) -> list[Message]:
    """Return a copy of the history keeping only the newest ``keep`` screenshots.

    Older screenshot results are replaced by a placeholder string with the
    same invocation id, so every tool call still has exactly one result.
    The input list is not modified.
    """
    keep = max(0, keep)
    snapshot_indices = [
        idx
        for idx, message in enumerate(messages)
        if message.result is not None and isinstance(message.result.payload, Snapshot)
    ]
    cleared = set(snapshot_indices[: max(0, len(snapshot_indices) - keep)])
    trimmed: list[Message] = []
    for idx, message in enumerate(messages):
        if idx in cleared and message.result is not None:
            placeholder = ToolResult(
                invocation_id=message.result.invocation_id, payload=CLEARED_SNAPSHOT
            )
            trimmed.append(message.model_copy(update={"result": placeholder}))
        else:
            trimmed.append(message)
    return trimmed
