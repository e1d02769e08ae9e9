"""
Tests for ConfigLoader and environment-driven settings.
"""

import logging

import pytest

from rainy_sdk.auth import AuthConfig
from rainy_sdk.core.config import ConfigLoader, env_bool, load_client_settings
from rainy_sdk.core.constants import DEFAULT_BASE_URL
from rainy_sdk.core.errors import ConfigurationError
from rainy_sdk.core.types import RetryPolicy


@pytest.fixture
def loader(clean_env):
    return ConfigLoader()


def test_global_policy_uses_system_defaults(loader):
    assert loader.load_retry_policy() == RetryPolicy()


def test_provider_defaults_applied(loader):
    policy = loader.load_retry_policy("groq")

    assert policy.max_attempts == 5
    assert policy.base_delay == 2.0
    assert policy.max_delay == RetryPolicy().max_delay


def test_unknown_provider_gets_system_defaults(loader):
    assert loader.load_retry_policy("anthropic") == RetryPolicy()


def test_env_overrides_provider_defaults(loader, clean_env):
    clean_env.setenv("RAINY_MAX_ATTEMPTS", "7")

    assert loader.load_retry_policy("groq").max_attempts == 7


def test_provider_env_beats_global_env(loader, clean_env):
    clean_env.setenv("RAINY_MAX_ATTEMPTS", "7")
    clean_env.setenv("RAINY_MAX_ATTEMPTS_GEMINI", "2")

    assert loader.load_retry_policy("gemini").max_attempts == 2
    assert loader.load_retry_policy("openai").max_attempts == 7


def test_invalid_env_value_is_ignored(loader, clean_env, caplog):
    clean_env.setenv("RAINY_BASE_DELAY", "fast")

    with caplog.at_level(logging.WARNING, logger="rainy_sdk"):
        policy = loader.load_retry_policy()

    assert policy.base_delay == RetryPolicy().base_delay
    assert "Invalid RAINY_BASE_DELAY='fast'" in caplog.text


def test_inconsistent_values_raise(loader, clean_env):
    clean_env.setenv("RAINY_MAX_DELAY", "0.5")

    with pytest.raises(ConfigurationError):
        loader.load_retry_policy()


def test_policies_are_cached(loader, clean_env):
    first = loader.load_retry_policy("groq")
    clean_env.setenv("RAINY_MAX_ATTEMPTS", "9")

    assert loader.load_retry_policy("groq") is first
    assert loader.load_retry_policy("groq", force_reload=True).max_attempts == 9

    loader.clear_cache()
    assert loader.load_retry_policy().max_attempts == 9


def test_custom_provider_defaults(clean_env):
    loader = ConfigLoader({"openai": {"max_attempts": 2}})

    assert loader.load_retry_policy("OpenAI").max_attempts == 2
    assert loader.load_retry_policy("groq").max_attempts == RetryPolicy().max_attempts


@pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("YES", True), ("no", False)])
def test_env_bool(clean_env, value, expected):
    clean_env.setenv("RAINY_FLAG", value)
    assert env_bool("RAINY_FLAG") is expected


def test_client_settings_from_env(clean_env):
    clean_env.setenv("RAINY_API_KEY", "ra-env-key-0000000000")
    clean_env.setenv("RAINY_TIMEOUT", "12.5")
    clean_env.setenv("RAINY_ENABLE_RETRY", "false")
    clean_env.setenv("RAINY_GLOBAL_TIMEOUT", "60")

    settings = load_client_settings()

    assert settings.api_key == "ra-env-key-0000000000"
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.timeout == 12.5
    assert settings.enable_retry is False
    assert settings.global_timeout == 60.0


def test_non_positive_timeout_ignored(clean_env, caplog):
    clean_env.setenv("RAINY_TIMEOUT", "0")

    settings = load_client_settings()

    assert settings.timeout > 0
    assert "Invalid RAINY_TIMEOUT" in caplog.text


def test_auth_from_env_with_overrides(clean_env):
    clean_env.setenv("RAINY_API_KEY", "ra-env-key-0000000000")

    auth = AuthConfig.from_env(timeout=5.0)
    auth.validate()

    assert auth.timeout == 5.0
    assert auth.build_headers()["Authorization"] == "Bearer ra-env-key-0000000000"


def test_auth_missing_key_rejected(clean_env):
    with pytest.raises(ConfigurationError, match="cannot be empty"):
        AuthConfig.from_env().validate()


def test_api_url_joins_parts():
    auth = AuthConfig(api_key="ra-key", base_url="https://api.example.com/")

    assert auth.api_url("chat/completions", "/api/v1") == "https://api.example.com/api/v1/chat/completions"
    assert auth.api_url("/agents/research") == "https://api.example.com/agents/research"
