"""Visual surface interface and the lazily-opened per-run handle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from boardpilot.util.logging import get_logger

logger = get_logger(__name__)


class VisualSurface(ABC):
    """A remote rendering target that accepts synthetic input."""

    @abstractmethod
    async def open(self, url: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def resize(self, width: int, height: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def perform_actions(self, sources: list[dict[str, Any]]) -> None:
        """Dispatch W3C input sources (pointer, key, wheel) in one batch."""
        raise NotImplementedError

    @abstractmethod
    async def release_actions(self) -> None:
        """Release every pressed key and button."""
        raise NotImplementedError

    @abstractmethod
    async def capture(self) -> bytes:
        """Return a PNG of the current viewport."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError


class SurfaceHandle:
    """Owns one surface for a run: opened on first use, closed exactly once."""

    def __init__(self, surface: VisualSurface, url: str, width: int = 1200, height: int = 900) -> None:
        self.surface = surface
        self.url = url
        self.width = width
        self.height = height
        self._opened = False
        self._closed = False

    @property
    def opened(self) -> bool:
        return self._opened

    async def acquire(self) -> VisualSurface:
        if self._closed:
            raise RuntimeError("Surface handle already closed")
        if not self._opened:
            logger.info("Opening surface at %s (%sx%s)", self.url, self.width, self.height)
            await self.surface.open(self.url)
            self._opened = True
            await self.surface.resize(self.width, self.height)
        return self.surface

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._opened:
            logger.info("Closing surface")
            await self.surface.close()

    async def __aenter__(self) -> "SurfaceHandle":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
