"""Shared construction helpers for models, the surface, tools and the controller."""

from __future__ import annotations

import json
from pathlib import Path
from uuid import uuid4

from boardpilot.config import Settings
from boardpilot.controller import RunResult, TurnController
from boardpilot.dispatch import ActionDispatcher
from boardpilot.memory import MemoryStore
from boardpilot.models.anthropic import AnthropicChatModel
from boardpilot.models.base import BaseChatModel
from boardpilot.models.mock import MockChatModel
from boardpilot.models.openai_compat import OpenAICompatChatModel
from boardpilot.state import RunState
from boardpilot.surface.base import SurfaceHandle, VisualSurface
from boardpilot.surface.webdriver import WebDriverSession
from boardpilot.tools.computer import ComputerTool
from boardpilot.tools.game_end import GameEndTool
from boardpilot.tools.memory import MemoryTool
from boardpilot.tools.registry import ToolRegistry
from boardpilot.trace import TraceRecorder


def build_model(settings: Settings) -> BaseChatModel:
    provider = settings.model_provider.lower()
    if provider == "anthropic":
        if not settings.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY is required for the anthropic provider")
        return AnthropicChatModel(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            base_url=settings.anthropic_base_url,
            timeout_seconds=settings.model_timeout_seconds,
        )
    if provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")
        extra_headers = None
        if settings.openai_extra_headers:
            extra_headers = json.loads(settings.openai_extra_headers)
        return OpenAICompatChatModel(
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout_seconds=settings.model_timeout_seconds,
            extra_headers=extra_headers,
        )
    if provider == "mock":
        return MockChatModel()
    raise ValueError(f"Unknown model provider: {settings.model_provider}")


def build_surface(settings: Settings, surface: VisualSurface | None = None) -> SurfaceHandle:
    session = surface or WebDriverSession(
        base_url=settings.webdriver_url,
        browser_name=settings.browser_name,
    )
    return SurfaceHandle(
        session,
        url=settings.game_url,
        width=settings.viewport_width,
        height=settings.viewport_height,
    )


def build_memory(settings: Settings) -> MemoryStore:
    return MemoryStore(settings.memory_dir)


def build_registry(
    settings: Settings, handle: SurfaceHandle, memory: MemoryStore | None = None
) -> ToolRegistry:
    screenshot_dir = None
    if settings.save_screenshots:
        screenshot_dir = Path(settings.workspace_dir) / "screenshots"
    registry = ToolRegistry()
    registry.register(ComputerTool(ActionDispatcher(handle, screenshot_dir=screenshot_dir)))
    registry.register(GameEndTool())
    if settings.review_memory:
        registry.register(MemoryTool(memory or build_memory(settings)))
    return registry


def build_controller(
    settings: Settings,
    model: BaseChatModel,
    registry: ToolRegistry,
    *,
    run_state: RunState | None = None,
    trace: TraceRecorder | None = None,
) -> TurnController:
    return TurnController(
        model=model,
        registry=registry,
        run_state=run_state,
        max_steps=settings.max_steps,
        review_memory=settings.review_memory,
        keep_screenshots=settings.keep_screenshots,
        trace=trace,
    )


async def play_game(
    settings: Settings,
    model: BaseChatModel | None = None,
    surface: VisualSurface | None = None,
) -> RunResult:
    """Play one game end to end; the surface is closed even when the run fails."""
    model = model or build_model(settings)
    trace = TraceRecorder(trace_id=f"game-{uuid4().hex[:8]}", workspace_dir=settings.workspace_dir)
    async with build_surface(settings, surface) as handle:
        registry = build_registry(settings, handle)
        controller = build_controller(settings, model, registry, trace=trace)
        return await controller.play()
