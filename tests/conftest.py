"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, PromptsConfig, ProviderConfig
from wallbounce.models import SessionParameters, TurnRequest
from wallbounce.providers.base import AIProvider


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(
        self,
        provider_name: str = "mock",
        response_content: str = "Mock response",
        available: bool = True,
    ) -> None:
        self._name = provider_name
        self._available = available
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because complete_turn is defined in the class body below.
        self.complete_turn = AsyncMock(return_value=response_content)  # type: ignore[method-assign]

    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available

    async def complete_turn(self, request: TurnRequest) -> str:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return "Mock response"

    async def list_models(self) -> list[str]:
        return [f"{self._name}-model"] if self._available else []


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        opening="Open the discussion on: {topic}",
        response='Respond to: "{previous}"',
        continuation='The other expert said: "{response}". Continue.',
    )


@pytest.fixture
def sample_params() -> SessionParameters:
    return SessionParameters(
        topic="Database performance",
        first_model="gpt-4o",
        second_model="gemini-2.5-pro",
        rounds=2,
        temperature=0.8,
    )


@pytest.fixture
def first_provider() -> MockProvider:
    return MockProvider("openai", "Response from A")


@pytest.fixture
def second_provider() -> MockProvider:
    return MockProvider("gemini", "Response from B")


@pytest.fixture
def sample_app_config(tmp_path: Path, sample_prompts_config: PromptsConfig) -> AppConfig:
    return AppConfig(
        defaults=DefaultsConfig(rounds=2, temperature=0.8, output_dir=tmp_path / "output"),
        providers={
            "openai": ProviderConfig("openai", "gpt-4o", "OPENAI_API_KEY", "sk-test"),
            "gemini": ProviderConfig("gemini", "gemini-2.5-pro", "GOOGLE_API_KEY", "g-test"),
        },
        prompts=sample_prompts_config,
        available_providers={"openai", "gemini"},
    )
