"""Shared fixtures and test doubles for the modelgate test suite."""

from typing import Any, Dict, List, Optional

import pytest

from modelgate.adapters import register_adapter, unregister_adapter
from modelgate.adapters.base import BaseAdapter, NoSuchModelError
from modelgate.catalog import StaticCatalog
from modelgate.config import RegistryConfig
from modelgate.credentials import MemoryCredentialStore
from modelgate.provider.registry import ProviderRegistry

CATALOG_MODULES = (
    "@ai-sdk/anthropic",
    "@ai-sdk/openai",
    "@ai-sdk/openai-compatible",
    "@openrouter/ai-sdk-provider",
)


def catalog_data() -> Dict[str, Any]:
    """Return a small catalog in the models.dev layout."""
    return {
        "anthropic": {
            "name": "Anthropic",
            "env": ["ANTHROPIC_API_KEY"],
            "npm": "@ai-sdk/anthropic",
            "models": {
                "claude-sonnet-4.5": {
                    "name": "Claude Sonnet 4.5",
                    "tool_call": True,
                    "reasoning": True,
                    "cost": {"input": 3, "output": 15, "cache_read": 0.3},
                    "limit": {"context": 200000, "output": 64000},
                    "modalities": {"input": ["text", "image"], "output": ["text"]},
                },
                "claude-3.5-haiku": {"name": "Claude Haiku 3.5", "tool_call": True},
            },
        },
        "openai": {
            "name": "OpenAI",
            "env": ["OPENAI_API_KEY"],
            "npm": "@ai-sdk/openai",
            "models": {
                "gpt-5": {"name": "GPT-5", "tool_call": True},
                "gpt-4o-mini": {"name": "GPT-4o mini", "tool_call": True},
                "o9-preview": {"name": "o9 preview", "status": "alpha"},
            },
        },
        "groq": {
            "name": "Groq",
            "env": ["GROQ_API_KEY", "GROQ_TOKEN"],
            "api": "https://api.groq.com/openai/v1",
            "npm": "@ai-sdk/openai-compatible",
            "models": {"llama-3.3-70b": {"name": "Llama 3.3 70B"}},
        },
        "openrouter": {
            "name": "OpenRouter",
            "env": ["OPENROUTER_API_KEY"],
            "api": "https://openrouter.ai/api/v1",
            "npm": "@openrouter/ai-sdk-provider",
            "models": {
                "google/gemini-2.5-flash": {"name": "Gemini 2.5 Flash"},
                "x-ai/grok-code-fast-1": {"name": "Grok Code Fast 1"},
            },
        },
    }


class FakeAdapter(BaseAdapter):
    """Adapter double that records the handles it hands out."""

    instances: List["FakeAdapter"] = []

    def __init__(self, *, known_models: Optional[List[str]] = None, **options: Any) -> None:
        super().__init__(**options)
        self.known_models = known_models
        self.requested: List[str] = []
        self.closed = False
        FakeAdapter.instances.append(self)

    def language_model(self, model_id: str) -> Dict[str, Any]:
        self.requested.append(model_id)
        if self.known_models is not None and model_id not in self.known_models:
            raise NoSuchModelError(model_id)
        return {"adapter": self, "model_id": model_id}

    async def aclose(self) -> None:
        self.closed = True


def create_fake(**options: Any) -> FakeAdapter:
    return FakeAdapter(**options)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from the real home directory and provider keys."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("MODELGATE_CONFIG", str(tmp_path / "config.yaml"))
    monkeypatch.setenv("MODELGATE_AUTH_PATH", str(tmp_path / "auth.yaml"))
    monkeypatch.setenv("MODELGATE_MODELS_PATH", str(tmp_path / "models.json"))
    monkeypatch.setenv("MODELGATE_DISABLE_ADAPTER_INSTALL", "1")
    monkeypatch.delenv("MODELGATE_ENABLE_EXPERIMENTAL_MODELS", raising=False)
    FakeAdapter.instances = []
    yield


@pytest.fixture
def catalog() -> StaticCatalog:
    return StaticCatalog(catalog_data())


@pytest.fixture
def make_registry(catalog):
    """Build a registry over the test catalog with no plugins."""

    def _make(
        config: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, str]] = None,
        credentials: Optional[MemoryCredentialStore] = None,
        **kwargs: Any,
    ) -> ProviderRegistry:
        kwargs.setdefault("plugins", [])
        return ProviderRegistry(
            catalog=kwargs.pop("catalog", catalog),
            config=RegistryConfig.model_validate(config or {}),
            env=env or {},
            credentials=credentials or MemoryCredentialStore(),
            **kwargs,
        )

    return _make


@pytest.fixture
def raw_catalog() -> Dict[str, Any]:
    return catalog_data()


@pytest.fixture
def fake_adapter():
    """Route every module referenced by the test catalog to :class:`FakeAdapter`."""
    for module_ref in CATALOG_MODULES:
        register_adapter(module_ref, create_fake)
    yield FakeAdapter
    for module_ref in CATALOG_MODULES:
        unregister_adapter(module_ref)
