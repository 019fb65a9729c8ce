"""Tests for adapter construction, caching and fetch timeouts."""

import asyncio

import httpx
import pytest

from modelgate._internal.abort import AbortSignal
from modelgate._internal.exceptions import ProviderInitError
from modelgate.adapters import register_adapter, unregister_adapter
from modelgate.provider.factory import AdapterFactory, compose_options, with_timeout
from modelgate.provider.schema import Model, ProviderInfo


def _provider(module="@test/fake", key="sk-test", options=None, url=None, headers=None):
    model = Model(
        id="m1",
        provider_id="acme",
        name="m1",
        api={"module": module, "url": url},
        headers=headers or {},
    )
    other = Model(id="m2", provider_id="acme", name="m2", api={"module": module, "url": url})
    return ProviderInfo(
        id="acme", name="Acme", key=key, options=options or {}, models={"m1": model, "m2": other}
    )


@pytest.fixture
def constructed():
    calls = []

    class Adapter:
        def __init__(self, **options):
            self.options = options

        def language_model(self, model_id):
            return model_id

    def create(**options):
        calls.append(options)
        return Adapter(**options)

    register_adapter("@test/fake", create)
    yield calls
    unregister_adapter("@test/fake")


class TestComposeOptions:
    def test_defaults_from_model_and_provider(self):
        provider = _provider(
            module="@ai-sdk/openai-compatible", url="https://api.acme.dev/v1", headers={"x": "1"}
        )
        options = compose_options(provider, provider.models["m1"])
        assert options == {
            "include_usage": True,
            "base_url": "https://api.acme.dev/v1",
            "api_key": "sk-test",
            "headers": {"x": "1"},
        }

    def test_explicit_options_win(self):
        provider = _provider(
            module="@ai-sdk/openai-compatible",
            url="https://api.acme.dev/v1",
            options={"include_usage": False, "base_url": "https://proxy/v1", "api_key": "sk-opt"},
        )
        options = compose_options(provider, provider.models["m1"])
        assert options["include_usage"] is False
        assert options["base_url"] == "https://proxy/v1"
        assert options["api_key"] == "sk-opt"

    def test_model_headers_merge_into_provider_headers(self):
        provider = _provider(options={"headers": {"a": "1", "b": "1"}}, headers={"b": "2"})
        options = compose_options(provider, provider.models["m1"])
        assert options["headers"] == {"a": "1", "b": "2"}
        assert provider.options["headers"] == {"a": "1", "b": "1"}

    def test_non_openai_module_gets_no_usage_flag(self):
        provider = _provider(key=None)
        assert compose_options(provider, provider.models["m2"]) == {}


class TestResolve:
    @pytest.mark.asyncio
    async def test_same_options_share_one_adapter(self, constructed):
        provider = _provider()
        factory = AdapterFactory({"acme": provider})

        first = await factory.resolve(provider.models["m2"])
        second = await factory.resolve(provider.models["m2"])

        assert first is second
        assert len(constructed) == 1
        assert constructed[0]["name"] == "acme"
        assert constructed[0]["api_key"] == "sk-test"
        assert callable(constructed[0]["fetch"])

    @pytest.mark.asyncio
    async def test_different_headers_build_distinct_adapters(self, constructed):
        provider = _provider(headers={"x": "1"})
        factory = AdapterFactory({"acme": provider})

        first = await factory.resolve(provider.models["m1"])
        second = await factory.resolve(provider.models["m2"])

        assert first is not second
        assert len(factory.adapters()) == 2

    @pytest.mark.asyncio
    async def test_concurrent_resolves_converge(self):
        built = []

        class Adapter:
            closed = False

            async def aclose(self):
                self.closed = True

        async def create(**options):
            await asyncio.sleep(0)
            adapter = Adapter()
            built.append(adapter)
            return adapter

        register_adapter("@test/slow", create)
        try:
            provider = _provider(module="@test/slow")
            factory = AdapterFactory({"acme": provider})
            adapters = await asyncio.gather(
                *(factory.resolve(provider.models["m2"]) for _ in range(5))
            )
        finally:
            unregister_adapter("@test/slow")

        winner = adapters[0]
        assert len(built) > 1
        assert all(adapter is winner for adapter in adapters)
        assert factory.adapters() == [winner]
        assert not winner.closed
        assert all(adapter.closed for adapter in built if adapter is not winner)

    @pytest.mark.asyncio
    async def test_name_option_overrides_provider_id(self, constructed):
        provider = _provider(options={"name": "custom"})
        await AdapterFactory({"acme": provider}).resolve(provider.models["m2"])
        assert constructed[0]["name"] == "custom"

    @pytest.mark.asyncio
    async def test_async_constructor_is_awaited(self):
        async def create(**options):
            return {"built": options["name"]}

        register_adapter("@test/async", create)
        try:
            provider = _provider(module="@test/async")
            adapter = await AdapterFactory({"acme": provider}).resolve(provider.models["m1"])
        finally:
            unregister_adapter("@test/async")
        assert adapter == {"built": "acme"}

    @pytest.mark.asyncio
    async def test_constructor_failure_is_wrapped(self):
        def create(**options):
            raise ValueError("bad options")

        register_adapter("@test/broken", create)
        try:
            provider = _provider(module="@test/broken")
            with pytest.raises(ProviderInitError) as exc_info:
                await AdapterFactory({"acme": provider}).resolve(provider.models["m1"])
        finally:
            unregister_adapter("@test/broken")

        assert exc_info.value.provider_id == "acme"
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_unknown_module_is_wrapped(self):
        provider = _provider(module="@vendor/not-a-python-module")
        with pytest.raises(ProviderInitError) as exc_info:
            await AdapterFactory({"acme": provider}).resolve(provider.models["m1"])
        assert exc_info.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_unknown_provider_is_wrapped(self):
        provider = _provider()
        with pytest.raises(ProviderInitError):
            await AdapterFactory({}).resolve(provider.models["m1"])

    @pytest.mark.asyncio
    async def test_builtin_adapter(self):
        provider = _provider(module="@ai-sdk/openai-compatible", url="https://api.acme.dev/v1/")
        adapter = await AdapterFactory({"acme": provider}).resolve(provider.models["m1"])

        assert adapter.name == "acme"
        assert adapter.base_url == "https://api.acme.dev/v1"
        assert adapter.include_usage is True
        assert adapter.api_key == "sk-test"


def _request():
    return httpx.Request("GET", "https://example.invalid/")


class TestWithTimeout:
    @pytest.mark.asyncio
    async def test_unset_timeout_passes_through(self):
        async def fetch(request, *, signal=None):
            return httpx.Response(200)

        assert with_timeout(fetch, None) is fetch

    @pytest.mark.asyncio
    async def test_timeout_aborts_slow_request(self):
        seen = {}

        async def slow(request, *, signal=None):
            seen["signal"] = signal
            await asyncio.sleep(5)
            return httpx.Response(200)

        with pytest.raises(TimeoutError):
            await with_timeout(slow, 10)(_request())
        assert seen["signal"].aborted

    @pytest.mark.asyncio
    async def test_fast_request_completes(self):
        async def fast(request, *, signal=None):
            return httpx.Response(204)

        response = await with_timeout(fast, 1000)(_request())
        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_false_timeout_keeps_caller_signal_only(self):
        caller = AbortSignal()

        async def fetch(request, *, signal=None):
            return signal

        assert await with_timeout(fetch, False)(_request(), signal=caller) is caller

    @pytest.mark.asyncio
    async def test_caller_abort_wins_and_is_not_mutated(self):
        caller = AbortSignal()

        async def slow(request, *, signal=None):
            await asyncio.sleep(5)

        task = asyncio.ensure_future(with_timeout(slow, 60_000)(_request(), signal=caller))
        await asyncio.sleep(0)
        caller.abort(RuntimeError("user cancelled"))

        with pytest.raises(RuntimeError, match="user cancelled"):
            await task
        assert caller.aborted
        assert isinstance(caller.reason, RuntimeError)
