from __future__ import annotations

from typing import Any

import pytest

from boardpilot.surface.base import SurfaceHandle, VisualSurface

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


class RecordingSurface(VisualSurface):
    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []
        self.closed = False

    async def open(self, url: str) -> None:
        self.events.append(("open", url))

    async def resize(self, width: int, height: int) -> None:
        self.events.append(("resize", width, height))

    async def perform_actions(self, sources: list[dict[str, Any]]) -> None:
        self.events.append(("perform", sources))

    async def release_actions(self) -> None:
        self.events.append(("release",))

    async def capture(self) -> bytes:
        self.events.append(("capture",))
        return PNG_BYTES

    async def close(self) -> None:
        self.closed = True
        self.events.append(("close",))

    def kinds(self) -> list[str]:
        return [event[0] for event in self.events]

    def performed(self) -> list[list[dict[str, Any]]]:
        return [event[1] for event in self.events if event[0] == "perform"]


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def handle(surface: RecordingSurface) -> SurfaceHandle:
    return SurfaceHandle(surface, url="http://game.test/", width=1200, height=900)
