"""OpenAI-compatible chat model client."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib.parse import urlparse, urlunparse

import httpx

from boardpilot.messages import Message, Snapshot
from boardpilot.models.base import BaseChatModel, ModelError, ModelResponse, ToolCall

SCREENSHOT_NOTE = "Screenshot captured; it is attached in the next message."


class OpenAICompatError(ModelError):
    """Raised when the OpenAI-compatible backend returns an error."""


class OpenAICompatChatModel(BaseChatModel):
    """HTTP client for OpenAI-compatible chat/completions."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 60,
        max_response_bytes: int = 2_000_000,
        extra_headers: dict[str, str] | None = None,
        disable_tool_choice: bool = False,
        force_chatcompletions_path: str | None = None,
        retry_backoff_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        normalized = base_url.strip()
        if not normalized.startswith(("http://", "https://")):
            normalized = f"http://{normalized}"
        self.base_url = normalized.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_response_bytes = max_response_bytes
        self.extra_headers = extra_headers or {}
        self.disable_tool_choice = disable_tool_choice
        self.force_chatcompletions_path = force_chatcompletions_path
        self.retry_backoff_seconds = retry_backoff_seconds
        self.transport = transport

    def _request_payload(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        system: str | None,
    ) -> dict[str, Any]:
        wire: list[dict[str, Any]] = []
        if system:
            wire.append({"role": "system", "content": system})
        wire.extend(to_wire_messages(messages))
        payload: dict[str, Any] = {"model": self.model, "messages": wire}
        if tools:
            payload["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool["name"],
                        "description": tool["description"],
                        "parameters": tool["parameters"],
                    },
                }
                for tool in tools
            ]
            if not self.disable_tool_choice:
                payload["tool_choice"] = "auto"
        return payload

    def _build_url(self) -> str:
        parsed = urlparse(self.base_url)
        if self.force_chatcompletions_path:
            forced_path = self.force_chatcompletions_path
            if not forced_path.startswith("/"):
                forced_path = f"/{forced_path}"
            return urlunparse(parsed._replace(path=forced_path, params="", query="", fragment=""))
        path = parsed.path or ""
        if path in {"", "/"}:
            base_path = "/v1"
        else:
            base_path = path.rstrip("/")
            segments = [segment for segment in base_path.split("/") if segment]
            if "v1" not in segments:
                base_path = f"{base_path}/v1"
        if base_path.endswith("/chat/completions"):
            final_path = base_path
        else:
            final_path = f"{base_path}/chat/completions"
        return urlunparse(parsed._replace(path=final_path, params="", query="", fragment=""))

    async def chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        system: str | None = None,
    ) -> ModelResponse:
        url = self._build_url()
        headers = {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}
        payload = self._request_payload(messages, tools, system)
        timeout = httpx.Timeout(self.timeout_seconds)

        last_error: Exception | None = None
        for attempt in range(3):
            try:
                async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                    response = await client.post(url, headers=headers, json=payload)
                if response.status_code in {429} or response.status_code >= 500:
                    raise OpenAICompatError(
                        f"Retryable error {response.status_code}: {response.text[:200]}"
                    )
                response.raise_for_status()
                if len(response.content) > self.max_response_bytes:
                    raise OpenAICompatError("Response too large")
                try:
                    data = response.json()
                except json.JSONDecodeError as exc:
                    raise OpenAICompatError("Malformed JSON response") from exc
                choice = data.get("choices", [{}])[0]
                return parse_message(choice.get("message", {}))
            except (httpx.HTTPError, OpenAICompatError) as exc:
                last_error = exc
                if attempt == 2:
                    break
                await asyncio.sleep(self.retry_backoff_seconds * 2**attempt)
        raise OpenAICompatError(f"OpenAI-compatible request failed: {last_error}")


def to_wire_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert history to chat/completions messages.

    Tool messages cannot carry images, so each screenshot is answered with a
    short tool message and the image follows as a user message once the run
    of tool messages for that assistant turn is complete.
    """
    wire: list[dict[str, Any]] = []
    pending_images: list[Snapshot] = []

    def flush_images() -> None:
        if not pending_images:
            return
        wire.append(
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image.data_url()}}
                    for image in pending_images
                ],
            }
        )
        pending_images.clear()

    for message in messages:
        if message.role == "tool_result" and message.result is not None:
            result = message.result
            if isinstance(result.payload, Snapshot):
                content = SCREENSHOT_NOTE
                pending_images.append(result.payload)
            else:
                content = result.payload
            wire.append({"role": "tool", "tool_call_id": result.invocation_id, "content": content})
            continue
        flush_images()
        if message.role == "agent":
            content = message.content or (None if message.tool_calls else "")
            item: dict[str, Any] = {"role": "assistant", "content": content}
            if message.tool_calls:
                item["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.arguments, ensure_ascii=False),
                        },
                    }
                    for call in message.tool_calls
                ]
            wire.append(item)
        else:
            wire.append({"role": "user", "content": message.content})
    flush_images()
    return wire


def parse_message(message: dict[str, Any]) -> ModelResponse:
    content = message.get("content")
    text = content if isinstance(content, str) else None
    calls: list[ToolCall] = []
    for raw in message.get("tool_calls") or []:
        function = raw.get("function") or {}
        name = function.get("name")
        if not isinstance(name, str):
            continue
        calls.append(
            ToolCall(id=raw.get("id"), name=name, arguments=_decode_arguments(function.get("arguments")))
        )
    if not calls and text:
        fallback = tool_call_from_content(text)
        if fallback is not None:
            return ModelResponse(tool_calls=[fallback])
    return ModelResponse(final_text=text, tool_calls=calls)


def _decode_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def tool_call_from_content(content: str) -> ToolCall | None:
    """Recover a tool call that a model wrote as JSON text instead of a tool_call."""
    try:
        payload = json.loads(content.strip())
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    name = payload.get("name") or payload.get("tool")
    arguments = payload.get("arguments")
    if payload.get("type") not in {None, "tool"}:
        return None
    if isinstance(name, str) and isinstance(arguments, dict):
        return ToolCall(name=name, arguments=arguments)
    return None
