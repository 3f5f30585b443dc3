"""Anthropic Messages API client."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from boardpilot.messages import Message, Snapshot, ToolResult
from boardpilot.models.base import BaseChatModel, ModelError, ModelResponse, ToolCall

API_VERSION = "2023-06-01"


class AnthropicError(ModelError):
    """Raised when the Messages API returns an error."""


class AnthropicChatModel(BaseChatModel):
    """HTTP client for /v1/messages with native image tool results."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com",
        max_tokens: int = 4096,
        timeout_seconds: int = 60,
        retry_backoff_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.strip().rstrip("/")
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.retry_backoff_seconds = retry_backoff_seconds
        self.transport = transport

    def _request_payload(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        system: str | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": to_wire_messages(messages),
        }
        if system:
            payload["system"] = system
        if tools:
            payload["tools"] = [
                {
                    "name": tool["name"],
                    "description": tool["description"],
                    "input_schema": tool["parameters"],
                }
                for tool in tools
            ]
        return payload

    async def chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        system: str | None = None,
    ) -> ModelResponse:
        url = f"{self.base_url}/v1/messages"
        headers = {"x-api-key": self.api_key, "anthropic-version": API_VERSION}
        payload = self._request_payload(messages, tools, system)
        timeout = httpx.Timeout(self.timeout_seconds)

        last_error: Exception | None = None
        for attempt in range(3):
            try:
                async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                    response = await client.post(url, headers=headers, json=payload)
                if response.status_code in {429, 529} or response.status_code >= 500:
                    raise AnthropicError(
                        f"Retryable error {response.status_code}: {response.text[:200]}"
                    )
                response.raise_for_status()
                try:
                    data = response.json()
                except json.JSONDecodeError as exc:
                    raise AnthropicError("Malformed JSON response") from exc
                return parse_content(data.get("content") or [])
            except (httpx.HTTPError, AnthropicError) as exc:
                last_error = exc
                if attempt == 2:
                    break
                await asyncio.sleep(self.retry_backoff_seconds * 2**attempt)
        raise AnthropicError(f"Anthropic request failed: {last_error}")


def _result_block(result: ToolResult) -> dict[str, Any]:
    if isinstance(result.payload, Snapshot):
        content: Any = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": result.payload.media_type,
                    "data": result.payload.data,
                },
            }
        ]
    else:
        content = result.payload
    return {"type": "tool_result", "tool_use_id": result.invocation_id, "content": content}


def to_wire_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert history to Messages API turns, merging consecutive same-role turns."""
    wire: list[dict[str, Any]] = []
    for message in messages:
        if message.role == "agent":
            role = "assistant"
            blocks: list[dict[str, Any]] = []
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            blocks.extend(
                {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
                for call in message.tool_calls
            )
            if not blocks:
                blocks.append({"type": "text", "text": "(no content)"})
        elif message.role == "tool_result" and message.result is not None:
            role = "user"
            blocks = [_result_block(message.result)]
        else:
            role = "user"
            blocks = [{"type": "text", "text": message.content}]
        if wire and wire[-1]["role"] == role:
            wire[-1]["content"].extend(blocks)
        else:
            wire.append({"role": role, "content": blocks})
    return wire


def parse_content(blocks: list[dict[str, Any]]) -> ModelResponse:
    texts: list[str] = []
    calls: list[ToolCall] = []
    for block in blocks:
        block_type = block.get("type")
        if block_type == "text" and isinstance(block.get("text"), str):
            texts.append(block["text"])
        elif block_type == "tool_use" and isinstance(block.get("name"), str):
            arguments = block.get("input")
            calls.append(
                ToolCall(
                    id=block.get("id"),
                    name=block["name"],
                    arguments=arguments if isinstance(arguments, dict) else {},
                )
            )
    text = "\n".join(texts) if texts else None
    return ModelResponse(final_text=text, tool_calls=calls)
