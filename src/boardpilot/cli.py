"""Command-line interface."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

import httpx

from boardpilot.config import Settings
from boardpilot.factory import play_game
from boardpilot.failures import RunAborted
from boardpilot.models.base import ModelError
from boardpilot.surface.webdriver import WebDriverError
from boardpilot.util.logging import get_logger

logger = get_logger("boardpilot")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Let an LLM agent play Tic-Tac-Toe in a browser")
    parser.add_argument("--provider", choices=["openai", "anthropic", "mock"], dest="provider")
    parser.add_argument("--model", dest="model")
    parser.add_argument("--base-url", dest="base_url")
    parser.add_argument("--api-key", dest="api_key")
    parser.add_argument("--webdriver-url", dest="webdriver_url")
    parser.add_argument("--browser", dest="browser")
    parser.add_argument("--game-url", dest="game_url")
    parser.add_argument("--memory-dir", dest="memory_dir")
    parser.add_argument("--workspace", dest="workspace")
    parser.add_argument("--max-steps", type=int, dest="max_steps")
    parser.add_argument("--keep-screenshots", type=int, dest="keep_screenshots")
    parser.add_argument("--save-screenshots", action="store_true", dest="save_screenshots")
    parser.add_argument("--no-memory", action="store_true", dest="no_memory")
    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    data: dict[str, Any] = settings.model_dump()
    if args.provider:
        data["model_provider"] = args.provider
    provider = data["model_provider"]
    if args.model:
        data[f"{provider}_model"] = args.model
    if args.base_url:
        data[f"{provider}_base_url"] = args.base_url
    if args.api_key:
        data[f"{provider}_api_key"] = args.api_key
    if args.webdriver_url:
        data["webdriver_url"] = args.webdriver_url
    if args.browser:
        data["browser_name"] = args.browser
    if args.game_url:
        data["game_url"] = args.game_url
    if args.memory_dir:
        data["memory_dir"] = args.memory_dir
    if args.workspace:
        data["workspace_dir"] = args.workspace
    if args.max_steps:
        data["max_steps"] = args.max_steps
    if args.keep_screenshots is not None:
        data["keep_screenshots"] = args.keep_screenshots
    if args.save_screenshots:
        data["save_screenshots"] = True
    if args.no_memory:
        data["review_memory"] = False
    return Settings(**data)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = apply_overrides(Settings(), args)
    logger.info("Starting Tic-Tac-Toe game (provider=%s)", settings.model_provider)
    try:
        result = asyncio.run(play_game(settings))
    except RunAborted as exc:
        logger.error("Run aborted [%s]: %s", exc.tag.value, exc)
        return 1
    except (ModelError, WebDriverError, httpx.HTTPError, ValueError) as exc:
        logger.error("Run aborted: %s", exc)
        return 1
    print(result.game_end.describe())
    print("Model calls:", result.model_calls)
    print("Tool calls:", result.tool_calls)
    if result.trace_path:
        print("Trace:", result.trace_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
