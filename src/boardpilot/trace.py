"""Trace recorder for game runs."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from hashlib import sha256
from pathlib import Path
from typing import Any

from boardpilot.messages import Snapshot, ToolInvocation, ToolResult
from boardpilot.state import GameEndState
from boardpilot.util.logging import redact


@dataclass
class TraceRecorder:
    trace_id: str
    workspace_dir: str
    started_at: float = field(default_factory=time.time)
    events: list[dict[str, Any]] = field(default_factory=list)

    def record(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append(
            {
                "type": event_type,
                "timestamp": time.time(),
                "payload": payload,
            }
        )

    def record_phase(self, phase: str) -> None:
        self.record("phase", {"phase": phase})

    def record_model_response(self, content: str | None, tool_calls: list[ToolInvocation]) -> None:
        self.record(
            "model_response",
            {
                "content": redact(content or ""),
                "tool_calls": [call.model_dump() for call in tool_calls],
            },
        )

    def record_tool_call(self, call: ToolInvocation) -> None:
        self.record(
            "tool_call",
            {"tool_name": call.name, "invocation_id": call.id, "arguments": call.arguments},
        )

    def record_tool_result(self, tool_name: str, result: ToolResult) -> None:
        if isinstance(result.payload, Snapshot):
            raw = result.payload.to_bytes()
            summary: dict[str, Any] = {
                "snapshot_sha256": sha256(raw).hexdigest()[:16],
                "bytes": len(raw),
            }
        else:
            summary = {"text": redact(result.payload)}
        self.record(
            "tool_result",
            {"tool_name": tool_name, "invocation_id": result.invocation_id, **summary},
        )

    def record_game_end(self, state: GameEndState) -> None:
        self.record("game_end", state.model_dump())

    def finalize(self, stats: dict[str, Any]) -> str:
        trace_dir = Path(self.workspace_dir) / "traces"
        trace_dir.mkdir(parents=True, exist_ok=True)
        trace_path = trace_dir / f"{self.trace_id}.json"
        payload = {
            "trace_id": self.trace_id,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "stats": stats,
            "events": self.events,
        }
        trace_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return str(trace_path)
