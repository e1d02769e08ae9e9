# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Authentication and connection settings for the Rainy API.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from .core.config import load_client_settings
from .core.constants import (
    API_KEY_PREFIX,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)
from .core.errors import ConfigurationError, mask_credential


@dataclass
class AuthConfig:
    """
    API key and connection settings.

    Attributes:
        api_key: Rainy API key ("ra-...")
        base_url: API root, without the /api/v1 prefix
        timeout: Per-request HTTP timeout in seconds
        enable_retry: When False every call makes exactly one attempt
        user_agent: Sent as the User-Agent header
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    enable_retry: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, **overrides) -> "AuthConfig":
        """
        Build from RAINY_API_KEY / RAINY_BASE_URL / RAINY_TIMEOUT /
        RAINY_ENABLE_RETRY. Keyword arguments win over the environment.
        """
        settings = load_client_settings()
        values = {
            "api_key": settings.api_key or "",
            "base_url": settings.base_url,
            "timeout": settings.timeout,
            "enable_retry": settings.enable_retry,
        }
        values.update(overrides)
        return cls(**values)

    def validate(self) -> None:
        """
        Check the key format and base URL.

        Raises:
            ConfigurationError: on an empty or malformed key, or a bad URL
        """
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key cannot be empty")
        if not self.api_key.startswith(API_KEY_PREFIX):
            raise ConfigurationError(
                f"Invalid API key format: expected a key starting with "
                f"'{API_KEY_PREFIX}', got {mask_credential(self.api_key)}"
            )

        try:
            url = httpx.URL(self.base_url)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConfigurationError(f"Invalid base URL '{self.base_url}': {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(
                f"Invalid base URL '{self.base_url}': must be an absolute http(s) URL"
            )

        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")

    def build_headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        return {
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def api_url(self, endpoint: str, prefix: Optional[str] = None) -> str:
        """Join base URL, optional API prefix and endpoint path."""
        base = self.base_url.rstrip("/")
        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        return f"{base}{prefix or ''}{path}"

    def __repr__(self) -> str:
        return (
            f"AuthConfig(api_key={mask_credential(self.api_key)!r}, "
            f"base_url={self.base_url!r}, timeout={self.timeout}, "
            f"enable_retry={self.enable_retry})"
        )


__all__ = ["AuthConfig"]
