"""W3C WebDriver session driven over HTTP."""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx

from boardpilot.surface.base import VisualSurface
from boardpilot.util.logging import get_logger

logger = get_logger(__name__)

_VIEWPORT_SCRIPT = "return [window.innerWidth, window.innerHeight];"


class WebDriverError(RuntimeError):
    """Raised when the WebDriver endpoint rejects a command."""

    def __init__(self, error: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{error}: {message}")
        self.error = error
        self.status_code = status_code


class WebDriverSession(VisualSurface):
    """Browser session on a WebDriver endpoint (geckodriver, chromedriver, grid)."""

    def __init__(
        self,
        base_url: str,
        browser_name: str = "firefox",
        timeout_seconds: int = 30,
        capabilities: dict[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        normalized = base_url.strip()
        if not normalized.startswith(("http://", "https://")):
            normalized = f"http://{normalized}"
        self.base_url = normalized.rstrip("/")
        self.browser_name = browser_name
        self.timeout_seconds = timeout_seconds
        self.capabilities = capabilities or {}
        self.transport = transport
        self.session_id: str | None = None
        self._client: httpx.AsyncClient | None = None

    def _session_path(self, suffix: str = "") -> str:
        if self.session_id is None:
            raise WebDriverError("invalid session id", "No WebDriver session has been started")
        return f"/session/{self.session_id}{suffix}"

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self.transport,
            )
        response = await self._client.request(method, path, json=payload)
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise WebDriverError(
                "unknown error", f"Malformed response: {response.text[:200]}", response.status_code
            ) from exc
        value = data.get("value") if isinstance(data, dict) else None
        if response.status_code >= 400:
            error = value.get("error", "unknown error") if isinstance(value, dict) else "unknown error"
            message = value.get("message", "") if isinstance(value, dict) else response.text[:200]
            raise WebDriverError(error, message, response.status_code)
        return value

    async def start(self) -> str:
        always_match = {"browserName": self.browser_name, **self.capabilities}
        value = await self._request(
            "POST", "/session", {"capabilities": {"alwaysMatch": always_match}}
        )
        session_id = value.get("sessionId") if isinstance(value, dict) else None
        if not session_id:
            raise WebDriverError("session not created", "Response carried no sessionId")
        self.session_id = session_id
        logger.info("WebDriver session %s started (%s)", session_id, self.browser_name)
        return session_id

    async def open(self, url: str) -> None:
        if self.session_id is None:
            await self.start()
        await self._request("POST", self._session_path("/url"), {"url": url})

    async def resize(self, width: int, height: int) -> None:
        """Size the window so the inner viewport matches width x height."""
        await self._request(
            "POST", self._session_path("/window/rect"), {"width": width, "height": height}
        )
        inner = await self._request(
            "POST", self._session_path("/execute/sync"), {"script": _VIEWPORT_SCRIPT, "args": []}
        )
        if not isinstance(inner, list) or len(inner) != 2:
            return
        inner_width, inner_height = int(inner[0]), int(inner[1])
        if (inner_width, inner_height) == (width, height):
            return
        await self._request(
            "POST",
            self._session_path("/window/rect"),
            {"width": 2 * width - inner_width, "height": 2 * height - inner_height},
        )

    async def perform_actions(self, sources: list[dict[str, Any]]) -> None:
        await self._request("POST", self._session_path("/actions"), {"actions": sources})

    async def release_actions(self) -> None:
        await self._request("DELETE", self._session_path("/actions"))

    async def capture(self) -> bytes:
        value = await self._request("GET", self._session_path("/screenshot"))
        if not isinstance(value, str):
            raise WebDriverError("unknown error", "Screenshot response was not base64 text")
        return base64.b64decode(value)

    async def close(self) -> None:
        try:
            if self.session_id is not None:
                await self._request("DELETE", self._session_path())
                logger.info("WebDriver session %s closed", self.session_id)
        finally:
            self.session_id = None
            if self._client is not None:
                await self._client.aclose()
                self._client = None
