import pytest

from boardpilot.config import Settings
from boardpilot.factory import build_model, build_registry, build_surface
from boardpilot.models.anthropic import AnthropicChatModel
from boardpilot.models.mock import MockChatModel
from boardpilot.models.openai_compat import OpenAICompatChatModel
from boardpilot.surface.webdriver import WebDriverSession


def test_build_model_per_provider():
    assert isinstance(build_model(Settings(model_provider="mock")), MockChatModel)
    openai = build_model(
        Settings(
            model_provider="openai",
            openai_api_key="sk-test",
            openai_extra_headers='{"X-Org": "boardpilot"}',
        )
    )
    assert isinstance(openai, OpenAICompatChatModel)
    assert openai.extra_headers == {"X-Org": "boardpilot"}
    anthropic = build_model(Settings(model_provider="Anthropic", anthropic_api_key="key"))
    assert isinstance(anthropic, AnthropicChatModel)


def test_build_model_requires_keys():
    with pytest.raises(ValueError):
        build_model(Settings(model_provider="openai", openai_api_key=None))
    with pytest.raises(ValueError):
        build_model(Settings(model_provider="anthropic", anthropic_api_key=None))
    with pytest.raises(ValueError):
        build_model(Settings(model_provider="llama"))


def test_build_surface_uses_webdriver_settings():
    settings = Settings(webdriver_url="grid:4444", browser_name="chrome", viewport_width=800)
    handle = build_surface(settings)
    assert isinstance(handle.surface, WebDriverSession)
    assert handle.surface.base_url == "http://grid:4444"
    assert handle.surface.browser_name == "chrome"
    assert (handle.width, handle.height) == (800, 900)
    assert handle.opened is False


def test_build_registry_skips_memory_when_disabled(surface, tmp_path):
    settings = Settings(review_memory=False, memory_dir=str(tmp_path / "memory"))
    handle = build_surface(settings, surface)
    registry = build_registry(settings, handle)
    assert [spec["name"] for spec in registry.specs()] == ["computer", "game_ended"]

    enabled = Settings(memory_dir=str(tmp_path / "memory"))
    names = [spec["name"] for spec in build_registry(enabled, handle).specs()]
    assert names == ["computer", "game_ended", "memory"]
    assert not (tmp_path / "memory").exists()
