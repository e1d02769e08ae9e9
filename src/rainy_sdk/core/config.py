# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Centralized configuration loader for the Rainy SDK.

This module provides a ConfigLoader class that builds retry policies from:
1. System defaults (from core/constants.py)
2. Provider defaults (providers/catalog.py PROVIDER_RETRY_DEFAULTS)
3. Environment variables (ALWAYS override provider defaults)

Client-wide settings (API key, base URL, timeouts) are read from the
environment by load_client_settings().
"""

import os
import logging
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Optional

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_GLOBAL_TIMEOUT,
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_TIMEOUT,
    ENV_ENABLE_RETRY,
    ENV_GLOBAL_TIMEOUT,
    ENV_PREFIX_MAX_ATTEMPTS,
    ENV_PREFIX_BASE_DELAY,
    ENV_PREFIX_MAX_DELAY,
    ENV_PREFIX_JITTER_FACTOR,
)
from .errors import ConfigurationError
from .types import RetryPolicy
from ..providers.catalog import PROVIDER_RETRY_DEFAULTS

lib_logger = logging.getLogger("rainy_sdk")


def env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    return os.getenv(key, str(default).lower()).lower() in ("true", "1", "yes")


def _env_number(key: str, parse: Callable[[str], Any]) -> Optional[Any]:
    """Parse a numeric env var. Invalid values are logged and ignored."""
    env_val = os.getenv(key)
    if env_val is None or env_val.strip() == "":
        return None
    try:
        return parse(env_val.strip())
    except ValueError:
        lib_logger.warning(
            f"Invalid {key}='{env_val}'. Must be {parse.__name__}. Ignoring."
        )
        return None


@dataclass
class ClientSettings:
    """Client-wide settings read from the environment."""

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    enable_retry: bool = True
    global_timeout: Optional[float] = DEFAULT_GLOBAL_TIMEOUT


class ConfigLoader:
    """
    Centralized configuration loader.

    Parses retry configuration from:
    1. System defaults
    2. Provider defaults
    3. Environment variables (ALWAYS override provider defaults)

    Usage:
        loader = ConfigLoader()
        policy = loader.load_retry_policy("groq")
    """

    # RetryPolicy field -> (env prefix, parser)
    _RETRY_ENV_VARS = {
        "max_attempts": (ENV_PREFIX_MAX_ATTEMPTS, int),
        "base_delay": (ENV_PREFIX_BASE_DELAY, float),
        "max_delay": (ENV_PREFIX_MAX_DELAY, float),
        "jitter_factor": (ENV_PREFIX_JITTER_FACTOR, float),
    }

    def __init__(
        self, provider_defaults: Optional[Dict[str, Dict[str, Any]]] = None
    ):
        """
        Initialize the ConfigLoader.

        Args:
            provider_defaults: Dict mapping provider names to RetryPolicy
                field overrides. Defaults to the built-in catalog.
        """
        self._provider_defaults = (
            provider_defaults
            if provider_defaults is not None
            else PROVIDER_RETRY_DEFAULTS
        )
        self._cache: Dict[str, RetryPolicy] = {}

    def load_retry_policy(
        self,
        provider: Optional[str] = None,
        force_reload: bool = False,
    ) -> RetryPolicy:
        """
        Load the retry policy for a provider.

        Configuration is loaded in this order (later overrides earlier):
        1. System defaults
        2. Provider defaults
        3. Environment variables (ALWAYS win; provider-suffixed beats global)

        Args:
            provider: Provider name (e.g., "groq"), or None for the global policy
            force_reload: If True, bypass cache and reload

        Returns:
            Validated RetryPolicy

        Raises:
            ConfigurationError: if the combined values do not form a valid policy
        """
        cache_key = (provider or "").lower()
        if not force_reload and cache_key in self._cache:
            return self._cache[cache_key]

        # Start with system defaults
        values = {f.name: f.default for f in fields(RetryPolicy)}

        # Apply provider defaults
        if provider:
            values.update(self._provider_defaults.get(cache_key, {}))

        # Apply environment variable overrides (ALWAYS win)
        values = self._apply_env_overrides(values, provider)

        try:
            policy = RetryPolicy(**values)
        except ConfigurationError as e:
            lib_logger.error(f"Invalid retry configuration for '{provider}': {e}")
            raise

        self._cache[cache_key] = policy
        return policy

    def clear_cache(self, provider: Optional[str] = None) -> None:
        """
        Clear cached policies.

        Args:
            provider: If provided, only clear that provider's cache.
                     If None, clear all cached policies.
        """
        if provider:
            self._cache.pop(provider.lower(), None)
        else:
            self._cache.clear()

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    def _apply_env_overrides(
        self, values: Dict[str, Any], provider: Optional[str]
    ) -> Dict[str, Any]:
        """
        Apply environment variable overrides.

        For each field, RAINY_<FIELD>_<PROVIDER> is checked first, then the
        global RAINY_<FIELD>.
        """
        for field_name, (prefix, parse) in self._RETRY_ENV_VARS.items():
            candidates = []
            if provider:
                candidates.append(f"{prefix}_{provider.upper()}")
            candidates.append(prefix)

            for env_key in candidates:
                parsed = _env_number(env_key, parse)
                if parsed is not None:
                    values[field_name] = parsed
                    break

        return values


def load_client_settings() -> ClientSettings:
    """Read client-wide settings from the environment."""
    settings = ClientSettings(
        api_key=os.getenv(ENV_API_KEY) or None,
        base_url=os.getenv(ENV_BASE_URL) or DEFAULT_BASE_URL,
        enable_retry=env_bool(ENV_ENABLE_RETRY, True),
    )

    timeout = _env_number(ENV_TIMEOUT, float)
    if timeout is not None:
        if timeout > 0:
            settings.timeout = timeout
        else:
            lib_logger.warning(f"Invalid {ENV_TIMEOUT}='{timeout}'. Must be > 0.")

    global_timeout = _env_number(ENV_GLOBAL_TIMEOUT, float)
    if global_timeout is not None:
        settings.global_timeout = global_timeout if global_timeout > 0 else None

    return settings


# =============================================================================
# MODULE-LEVEL CONVENIENCE
# =============================================================================

_default_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get the shared ConfigLoader, creating it on first use."""
    global _default_loader
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_retry_policy(provider: Optional[str] = None) -> RetryPolicy:
    """Load a retry policy using the shared loader."""
    return get_config_loader().load_retry_policy(provider)


__all__ = [
    "ClientSettings",
    "ConfigLoader",
    "env_bool",
    "load_client_settings",
    "get_config_loader",
    "load_retry_policy",
]
