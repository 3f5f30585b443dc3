"""Failure taxonomy for fatal run errors."""

from __future__ import annotations

from enum import Enum


class FailureTag(str, Enum):
    """Categories of errors that end a run."""

    CORRELATION_LOST = "CORRELATION_LOST"
    STEP_LIMIT = "STEP_LIMIT"
    MODEL_ERROR = "MODEL_ERROR"


class RunAborted(RuntimeError):
    """Base class for errors that terminate a game run."""

    tag: FailureTag = FailureTag.MODEL_ERROR


class ToolCallCorrelationError(RunAborted):
    """Raised when a dispatched action cannot be matched to a tool call."""

    tag = FailureTag.CORRELATION_LOST


class StepLimitExceeded(RunAborted):
    """Raised when one agent call exceeds its model-round ceiling."""

    tag = FailureTag.STEP_LIMIT

    def __init__(self, max_steps: int) -> None:
        super().__init__(f"Agent exceeded the step ceiling of {max_steps} rounds")
        self.max_steps = max_steps
