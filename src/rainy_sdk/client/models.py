# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Model name resolution and filtering.

Maps legacy provider-prefixed model ids to current ids, infers the
upstream provider (used to pick the error envelope format) and applies
optional whitelist/blacklist rules before a request is sent.
"""

import fnmatch
import logging
from typing import Dict, List, Optional, Tuple

from ..core.errors import ValidationError
from ..providers.catalog import LEGACY_MODEL_ALIASES, provider_for_model

lib_logger = logging.getLogger("rainy_sdk")


class ModelResolver:
    """
    Resolve model names and apply filtering rules.

    Handles:
    - Legacy alias resolution ("openai/gpt-4o" -> "gpt-4o")
    - Provider inference
    - Whitelist/blacklist filtering (glob patterns, whitelist wins)
    """

    def __init__(
        self,
        ignore_models: Optional[Dict[str, List[str]]] = None,
        whitelist_models: Optional[Dict[str, List[str]]] = None,
    ):
        """
        Initialize the ModelResolver.

        Args:
            ignore_models: Glob patterns of models to block, per provider
            whitelist_models: Glob patterns of models to always allow, per provider
        """
        self._ignore = ignore_models or {}
        self._whitelist = whitelist_models or {}

    def resolve(self, model: str, provider_hint: Optional[str] = None) -> Tuple[str, Optional[str]]:
        """
        Resolve a model id and its provider.

        Args:
            model: Model id as given by the caller
            provider_hint: Explicit provider from the request, if any

        Returns:
            (model_id, provider) where provider may be None if unknown

        Raises:
            ValidationError: if the model is blocked by the filter rules
        """
        resolved = LEGACY_MODEL_ALIASES.get(model, model)
        if resolved != model:
            lib_logger.debug(f"Resolved legacy model id '{model}' -> '{resolved}'")

        provider = provider_hint or provider_for_model(resolved)

        if not self.is_model_allowed(resolved, provider):
            raise ValidationError(
                f"Model '{resolved}' is blocked by the client's model filters",
                field="model",
            )
        return resolved, provider

    def is_model_allowed(self, model: str, provider: Optional[str]) -> bool:
        """
        Check if model passes whitelist/blacklist filters.

        Whitelist takes precedence over blacklist.

        Args:
            model: Model id
            provider: Provider name (None matches only "*" rules)

        Returns:
            True if model is allowed, False if blocked
        """
        if self._matches(self._whitelist, model, provider):
            return True
        if self._matches(self._ignore, model, provider):
            return False
        return True

    @staticmethod
    def _matches(
        rules: Dict[str, List[str]], model: str, provider: Optional[str]
    ) -> bool:
        """
        Check model against the patterns for its provider and for "*".

        Supports glob patterns:
        - "gpt-4o" - exact match
        - "gpt-5*" - prefix wildcard
        - "*-preview" - suffix wildcard
        - "*" - match all
        """
        patterns = list(rules.get("*", []))
        if provider:
            patterns.extend(rules.get(provider, []))

        model_name = model.split("/", 1)[1] if "/" in model else model
        for pattern in patterns:
            if fnmatch.fnmatch(model, pattern) or fnmatch.fnmatch(model_name, pattern):
                return True
        return False
