"""Tests for model ordering, parsing and suggestions."""

import pytest

from modelgate.provider.schema import Model, ProviderInfo
from modelgate.provider.selection import ModelRef, closest, parse_model, sort, suggest


def _models(*ids):
    return [Model(id=model_id, provider_id="p", name=model_id, api={"module": "p"}) for model_id in ids]


class TestSort:
    def test_priority_fragments_then_unmatched(self):
        ordered = sort(_models("foo/x", "claude-sonnet-4.5", "grok-code-fast-1-latest"))
        assert [model.id for model in ordered] == [
            "grok-code-fast-1-latest",
            "claude-sonnet-4.5",
            "foo/x",
        ]

    def test_latest_preferred_within_same_rank(self):
        ordered = sort(_models("gpt-5-mini", "gpt-5-latest", "gpt-5"))
        assert ordered[0].id == "gpt-5-latest"

    def test_reverse_lexicographic_tiebreak(self):
        ordered = sort(_models("alpha", "gamma", "beta"))
        assert [model.id for model in ordered] == ["gamma", "beta", "alpha"]

    def test_deterministic_regardless_of_input_order(self):
        ids = ["foo/x", "gpt-5", "qwen3-235b-a22b", "deepseek-r1", "zeta", "gpt-5-latest"]
        first = [model.id for model in sort(_models(*ids))]
        second = [model.id for model in sort(_models(*reversed(ids)))]
        assert first == second

    def test_custom_priority(self):
        ordered = sort(_models("a-model", "b-model"), priority=("a-",))
        assert ordered[0].id == "a-model"


@pytest.mark.parametrize(
    "value, expected",
    [
        pytest.param("openai/gpt-5", ModelRef("openai", "gpt-5"), id="simple"),
        pytest.param(
            "openrouter/google/gemini-2.5-flash",
            ModelRef("openrouter", "google/gemini-2.5-flash"),
            id="nested-slash",
        ),
        pytest.param("openai", ModelRef("openai", ""), id="no-slash"),
    ],
)
def test_parse_model(value, expected):
    assert parse_model(value) == expected


def test_suggest_is_bounded():
    candidates = ["gpt-5", "gpt-5-mini", "gpt-4o", "gpt-4o-mini", "o3"]
    suggestions = suggest("gpt5", candidates)
    assert len(suggestions) <= 3
    assert suggestions[0] in {"gpt-5", "gpt-5-mini"}
    assert set(suggestions) <= set(candidates)


def test_suggest_empty_candidates():
    assert suggest("anything", []) == []


def test_closest_follows_query_order():
    provider = ProviderInfo(
        id="openai",
        name="OpenAI",
        models={model.id: model for model in _models("gpt-4o-mini", "gpt-5")},
    )
    assert closest(provider, ["gpt-5", "gpt-4o"]) == ModelRef("openai", "gpt-5")
    assert closest(provider, ["claude"]) is None
    assert closest(None, ["gpt-5"]) is None
