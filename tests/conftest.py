"""Shared pytest fixtures for Deckflow tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Generator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from deckflow.api.main import create_app
from deckflow.core.config import DeckflowConfig
from deckflow.core.model_invoker import ModelInvoker


@pytest.fixture
def clean_env(monkeypatch) -> None:
    """Remove every DECKFLOW_ variable that could leak into a test."""
    for name in DeckflowConfig.model_fields:
        monkeypatch.delenv(f"DECKFLOW_{name.upper()}", raising=False)


@pytest.fixture
def test_config(clean_env) -> DeckflowConfig:
    """Create a test configuration that ignores the developer's environment.

    Returns:
        DeckflowConfig instance with a dummy key and a short timeout
    """
    return DeckflowConfig(
        api_key="test-key",
        request_timeout=5,
        app_url="http://testserver",
        _env_file=None,
    )


@pytest.fixture
def make_completion() -> Callable[..., SimpleNamespace]:
    """Factory for objects shaped like an OpenAI chat completion.

    Returns:
        Callable taking the answer text (and optionally the model name)
    """

    def _make(text: str | None, model: str = "test-model") -> SimpleNamespace:
        message = SimpleNamespace(content=text)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], model=model)

    return _make


@pytest.fixture
def sample_slides() -> list[dict]:
    """Four well-formed slides about solar energy."""
    return [
        {
            "title": "Why Solar Energy?",
            "content": ["Abundant", "Renewable", "Getting cheaper"],
            "layout": "title",
            "notes": "Open with the big picture.",
        },
        {
            "title": "Lower Bills",
            "content": ["Cut electricity costs", "Net metering credits", "Tax incentives"],
            "layout": "content",
            "notes": "Focus on household savings.",
        },
        {
            "title": "Cleaner Air",
            "content": ["No emissions in operation", "Less coal demand", "Healthier cities"],
            "layout": "comparison",
            "notes": "Contrast with fossil fuels.",
        },
        {
            "title": "Next Steps",
            "content": ["Get a site survey", "Compare installers", "Apply for rebates"],
            "layout": "content",
            "notes": "Close with a call to action.",
        },
    ]


@pytest.fixture
def sample_slides_json(sample_slides: list[dict]) -> str:
    """The sample slides encoded as a JSON array."""
    return json.dumps(sample_slides)


@pytest.fixture
def mock_client() -> MagicMock:
    """An AsyncOpenAI stand-in whose ``chat.completions.create`` is awaitable.

    Tests set ``mock_client.chat.completions.create.return_value`` or
    ``side_effect`` to control the answer.
    """
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def invoker(mock_client: MagicMock) -> ModelInvoker:
    """ModelInvoker bound to the mock client."""
    return ModelInvoker(mock_client, timeout=5, extra_headers={"HTTP-Referer": "http://testserver"})


@pytest.fixture
def test_client(test_config: DeckflowConfig, mock_client: MagicMock) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with the mock completion client injected.

    The client is entered as a context manager so the lifespan runs.
    """
    app = create_app(test_config, client=mock_client)
    with TestClient(app) as client:
        yield client
