"""
Tests for request validation, payload serialization and model resolution.
"""

import pytest

from rainy_sdk.client.models import ModelResolver
from rainy_sdk.core.errors import ValidationError
from rainy_sdk.core.models import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatMessage,
    DeepResearchResponse,
    RequestMetadata,
    ResearchConfig,
    ResearchProvider,
    ThinkingConfig,
    ThinkingLevel,
)
from rainy_sdk.providers.catalog import provider_for_model


def _request(model="gpt-4o", **kwargs):
    return ChatCompletionRequest(model=model, messages=[ChatMessage.user("Hi")], **kwargs)


# =============================================================================
# VALIDATION
# =============================================================================


def test_valid_request_passes():
    _request(temperature=1.0, top_p=0.9, max_tokens=100, stop=["END"]).validate()


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"temperature": 2.5}, "temperature"),
        ({"top_p": 1.5}, "top_p"),
        ({"frequency_penalty": -3.0}, "frequency_penalty"),
        ({"presence_penalty": 2.1}, "presence_penalty"),
        ({"max_tokens": 0}, "max_tokens"),
        ({"top_logprobs": 21}, "top_logprobs"),
        ({"n": 0}, "n"),
        ({"stop": ["a", "b", "c", "d", "e"]}, "stop"),
        ({"stop": [""]}, "stop"),
        ({"stop": ["x" * 65]}, "stop"),
    ],
)
def test_out_of_range_parameters(kwargs, field):
    with pytest.raises(ValidationError) as exc_info:
        _request(**kwargs).validate()
    assert exc_info.value.field == field


def test_empty_messages_rejected():
    with pytest.raises(ValidationError) as exc_info:
        ChatCompletionRequest(model="gpt-4o", messages=[]).validate()
    assert exc_info.value.field == "messages"


def test_with_temperature_clamps():
    assert _request().with_temperature(5.0).temperature == 2.0
    assert _request().with_temperature(-1.0).temperature == 0.0


# =============================================================================
# THINKING CONFIG
# =============================================================================


def test_thinking_level_and_budget_conflict():
    config = ThinkingConfig(thinking_level=ThinkingLevel.HIGH, thinking_budget=1024)
    with pytest.raises(ValidationError, match="Cannot specify both"):
        _request(model="gemini-3-pro-preview", thinking_config=config).validate()


def test_thinking_level_requires_gemini_3():
    config = ThinkingConfig.gemini_3(ThinkingLevel.HIGH)
    with pytest.raises(ValidationError):
        _request(model="gemini-2.5-pro", thinking_config=config).validate()


def test_gemini_3_pro_rejects_medium_level():
    config = ThinkingConfig.gemini_3(ThinkingLevel.MEDIUM)
    with pytest.raises(ValidationError):
        _request(model="gemini-3-pro-preview", thinking_config=config).validate()

    _request(model="gemini-3-flash-preview", thinking_config=config).validate()


@pytest.mark.parametrize(
    "model, budget, valid",
    [
        ("gemini-2.5-pro", -1, True),
        ("gemini-2.5-pro", 64, False),
        ("gemini-2.5-pro", 32768, True),
        ("gemini-2.5-flash", 0, True),
        ("gemini-2.5-flash", 24577, False),
        ("gpt-4o", 1024, False),
    ],
)
def test_thinking_budget_ranges(model, budget, valid):
    request = _request(model=model, thinking_config=ThinkingConfig.gemini_2_5(budget))
    if valid:
        request.validate()
    else:
        with pytest.raises(ValidationError):
            request.validate()


def test_thinking_presets_follow_model_family():
    assert ThinkingConfig.high_reasoning("gemini-2.5-pro").thinking_budget == -1
    assert ThinkingConfig.high_reasoning("gemini-2.5-pro").thinking_level is None
    assert ThinkingConfig.high_reasoning("gemini-3-pro-preview").thinking_level == ThinkingLevel.HIGH

    for model in ("gemini-2.5-flash", "gemini-3-flash-preview"):
        request = _request(model=model, thinking_config=ThinkingConfig.fast_response(model))
        request.validate()


def test_payload_omits_unset_fields():
    request = _request(
        model="gemini-3-pro-preview",
        max_tokens=64,
        thinking_config=ThinkingConfig.gemini_3(ThinkingLevel.LOW, include_thoughts=True),
    )

    assert request.to_payload() == {
        "model": "gemini-3-pro-preview",
        "messages": [{"role": "user", "content": "Hi"}],
        "max_tokens": 64,
        "thinking_config": {"include_thoughts": True, "thinking_level": "low"},
    }


def test_supports_thinking():
    assert _request(model="gemini-2.5-flash").supports_thinking()
    assert _request(model="gemini-3-pro-preview").requires_thought_signatures()
    assert not _request(model="gpt-4o").supports_thinking()


# =============================================================================
# RESPONSES AND METADATA
# =============================================================================


def test_chunk_with_tool_call_delta():
    chunk = ChatCompletionChunk.from_dict(
        {
            "id": "c1",
            "model": "gpt-4o",
            "choices": [
                {
                    "index": 0,
                    "delta": {
                        "tool_calls": [
                            {"index": 0, "id": "call_1", "function": {"name": "lookup", "arguments": "{\"q\""}}
                        ]
                    },
                }
            ],
        }
    )

    assert chunk.content == ""
    assert chunk.choices[0].delta.tool_calls[0].name == "lookup"


def test_metadata_ignores_unparseable_headers():
    metadata = RequestMetadata.from_headers(
        {"x-tokens-used": "many", "x-credits-used": "1.25", "x-provider": "groq"},
        response_time_ms=42,
        attempts=2,
    )

    assert metadata.tokens_used is None
    assert metadata.credits_used == 1.25
    assert metadata.provider == "groq"
    assert metadata.response_time_ms == 42
    assert metadata.attempts == 2


def test_research_payload():
    config = ResearchConfig(provider=ResearchProvider.TAVILY, max_sources=5, async_mode=True)

    assert config.to_payload("fusion") == {
        "topic": "fusion",
        "provider": "tavily",
        "depth": "basic",
        "maxSources": 5,
        "async": True,
    }


def test_research_response():
    result = DeepResearchResponse.from_dict(
        {"success": True, "mode": "sync", "result": {"summary": "..."}, "generatedAt": "2026-01-01"}
    )

    assert result.result == {"summary": "..."}
    assert result.generated_at == "2026-01-01"
    assert result.task_id is None


# =============================================================================
# MODEL RESOLUTION
# =============================================================================


@pytest.mark.parametrize(
    "model, provider",
    [
        ("gpt-4o", "openai"),
        ("openai/gpt-5", "openai"),
        ("gemini-3-pro-preview", "gemini"),
        ("google/gemini-2.5-flash", "gemini"),
        ("llama-3.3-70b-versatile", "groq"),
        ("moonshotai/kimi-k2-instruct-0905", "groq"),
        ("cerebras/llama3.1-8b", "cerebras"),
        ("astronomer-2-pro", "enosislabs"),
        ("mystery-model", None),
    ],
)
def test_provider_for_model(model, provider):
    assert provider_for_model(model) == provider


def test_resolver_maps_legacy_alias():
    assert ModelResolver().resolve("google/gemini-2.5-pro") == ("gemini-2.5-pro", "gemini")


def test_resolver_explicit_provider_wins():
    assert ModelResolver().resolve("gpt-4o", "enosislabs") == ("gpt-4o", "enosislabs")


def test_whitelist_overrides_blacklist():
    resolver = ModelResolver(
        ignore_models={"openai": ["*"]},
        whitelist_models={"openai": ["gpt-4o"]},
    )

    assert resolver.resolve("gpt-4o") == ("gpt-4o", "openai")
    with pytest.raises(ValidationError):
        resolver.resolve("gpt-5")


def test_global_rules_apply_to_unknown_provider():
    resolver = ModelResolver(ignore_models={"*": ["*-preview"]})

    assert not resolver.is_model_allowed("gemini-3-pro-preview", "gemini")
    assert not resolver.is_model_allowed("custom-preview", None)
    assert resolver.is_model_allowed("gemini-2.5-pro", "gemini")
