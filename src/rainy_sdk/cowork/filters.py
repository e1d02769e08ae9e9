# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Model filtering by Cowork tier, and offline capability fallback.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..providers.catalog import provider_for_model
from .types import CoworkCapabilities, CoworkTier, ModelFilterResult

lib_logger = logging.getLogger("rainy_sdk")


def filter_models_by_tier(
    models: Iterable[str],
    capabilities: CoworkCapabilities,
) -> ModelFilterResult:
    """
    Split models into those the plan allows and those it does not.

    Args:
        models: Candidate model ids
        capabilities: Capabilities of the current plan

    Returns:
        ModelFilterResult with categorized models, input order preserved
    """
    allowed: List[str] = []
    denied: List[str] = []

    for model in models:
        if capabilities.can_use_model(model):
            allowed.append(model)
        else:
            denied.append(model)

    if denied and not allowed:
        lib_logger.warning(
            f"Tier '{capabilities.tier_name}' allows none of the "
            f"{len(denied)} requested model(s)"
        )

    return ModelFilterResult(allowed=allowed, denied=denied)


def group_by_provider(models: Iterable[str]) -> Dict[str, List[str]]:
    """
    Group model ids by inferred provider, sorted by provider name.

    Models whose provider cannot be inferred go under "unknown".
    """
    groups: Dict[str, List[str]] = {}
    for model in models:
        groups.setdefault(provider_for_model(model) or "unknown", []).append(model)
    return dict(sorted(groups.items()))


def get_offline_capabilities(
    cached_tier: Optional[CoworkTier] = None,
) -> CoworkCapabilities:
    """
    Capabilities to assume when the API cannot be reached.

    A cached premium tier keeps its models but loses every feature until
    the plan can be confirmed online. Anything else falls back to free.
    """
    if cached_tier is None or not CoworkTier(cached_tier).is_premium:
        return CoworkCapabilities.free()

    caps = CoworkCapabilities.for_tier(cached_tier)
    caps = CoworkCapabilities(
        tier=caps.tier,
        tier_name=caps.tier_name,
        models=caps.models,
        limits=caps.limits,
        is_valid=True,
    )
    lib_logger.debug(f"Using offline capabilities for cached tier '{caps.tier_name}'")
    return caps
