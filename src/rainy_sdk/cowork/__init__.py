# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Cowork tier gating.

- types: Tiers, features, limits and capability presets
- filters: Model filtering by tier and offline fallback
"""

from .types import (
    CoworkTier,
    CoworkFeatures,
    CoworkLimits,
    CoworkCapabilities,
    ModelFilterResult,
)
from .filters import (
    filter_models_by_tier,
    group_by_provider,
    get_offline_capabilities,
)

__all__ = [
    # Types
    "CoworkTier",
    "CoworkFeatures",
    "CoworkLimits",
    "CoworkCapabilities",
    "ModelFilterResult",
    # Filters
    "filter_models_by_tier",
    "group_by_provider",
    "get_offline_capabilities",
]
