"""Tests for the adapter constructor registry."""

import pytest

from modelgate.adapters import (
    BUILTIN_ADAPTERS,
    get_builtin_adapter,
    is_openai_compatible,
    list_adapters,
    register_adapter,
    unregister_adapter,
)
from modelgate.adapters.openai_compatible import OpenAICompatibleAdapter, create_openai_compatible
from modelgate.adapters.openrouter import OpenRouterAdapter


def test_builtin_references_resolve_lazily():
    constructor = get_builtin_adapter("@ai-sdk/openai-compatible")
    assert constructor is create_openai_compatible
    assert BUILTIN_ADAPTERS["@ai-sdk/openai-compatible"] is create_openai_compatible


def test_unknown_reference_returns_none():
    assert get_builtin_adapter("@vendor/unknown") is None


def test_openrouter_builtin_defaults_base_url():
    adapter = get_builtin_adapter("@openrouter/ai-sdk-provider")(name="openrouter")
    assert isinstance(adapter, OpenRouterAdapter)
    assert adapter.base_url == "https://openrouter.ai/api/v1"


class TestRegistration:
    def test_custom_constructor_overrides_builtin(self):
        def create(**options):
            return options

        register_adapter("@ai-sdk/openai-compatible", create)
        try:
            assert get_builtin_adapter("@ai-sdk/openai-compatible") is create
        finally:
            assert unregister_adapter("@ai-sdk/openai-compatible") is True

        constructor = get_builtin_adapter("@ai-sdk/openai-compatible")
        assert isinstance(constructor(name="x"), OpenAICompatibleAdapter)

    def test_registered_reference_is_listed(self):
        register_adapter("acme-adapter", lambda **options: options)
        try:
            assert "acme-adapter" in list_adapters()
        finally:
            unregister_adapter("acme-adapter")
        assert "acme-adapter" not in list_adapters()

    def test_builtins_cannot_be_unregistered(self):
        assert unregister_adapter("@openrouter/ai-sdk-provider") is False
        assert get_builtin_adapter("@openrouter/ai-sdk-provider") is not None

    @pytest.mark.parametrize(
        "module_ref, constructor, error",
        [
            pytest.param("", lambda **options: None, ValueError, id="empty-ref"),
            pytest.param("acme", "not-callable", TypeError, id="not-callable"),
        ],
    )
    def test_invalid_registration(self, module_ref, constructor, error):
        with pytest.raises(error):
            register_adapter(module_ref, constructor)


@pytest.mark.parametrize(
    "module_ref, expected",
    [
        ("@ai-sdk/openai-compatible", True),
        ("modelgate.adapters.openai_compatible", True),
        ("@ai-sdk/openai", False),
        ("@ai-sdk/anthropic", False),
    ],
)
def test_is_openai_compatible(module_ref, expected):
    assert is_openai_compatible(module_ref) is expected
