# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Type definitions for Cowork subscription tiers.

Tier capabilities are static configuration data: which models and
features a tier unlocks and which daily/request limits apply.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from ..providers import catalog


# =============================================================================
# ENUMS
# =============================================================================


class CoworkTier(str, Enum):
    """Subscription tier."""

    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @property
    def is_premium(self) -> bool:
        return self != CoworkTier.FREE

    @property
    def has_full_model_access(self) -> bool:
        return self in (CoworkTier.PRO, CoworkTier.ENTERPRISE)


# =============================================================================
# FEATURES & LIMITS
# =============================================================================


@dataclass
class CoworkFeatures:
    web_research: bool = False
    document_export: bool = False
    image_analysis: bool = False
    automation: bool = False
    priority_queue: bool = False
    beta_features: bool = False

    @classmethod
    def free(cls) -> "CoworkFeatures":
        return cls()

    @classmethod
    def basic(cls) -> "CoworkFeatures":
        return cls()

    @classmethod
    def pro(cls) -> "CoworkFeatures":
        return cls(
            web_research=True,
            document_export=True,
            image_analysis=True,
            automation=True,
            priority_queue=True,
        )

    @classmethod
    def enterprise(cls) -> "CoworkFeatures":
        features = cls.pro()
        features.beta_features = True
        return features

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def is_enabled(self, feature: str) -> bool:
        """Unknown feature names are never enabled."""
        if feature not in self.names():
            return False
        return bool(getattr(self, feature))

    @classmethod
    def from_dict(cls, data: Any) -> "CoworkFeatures":
        if not isinstance(data, dict):
            raise TypeError("features must be a JSON object")
        return cls(**{name: bool(data.get(name, False)) for name in cls.names()})


@dataclass
class CoworkLimits:
    """Usage limits. None means unlimited."""

    max_tasks_per_day: Optional[int] = None
    tasks_used_today: int = 0
    max_tokens_per_request: Optional[int] = None
    max_file_size_bytes: Optional[int] = None

    def is_task_limit_reached(self) -> bool:
        if self.max_tasks_per_day is None:
            return False
        return self.tasks_used_today >= self.max_tasks_per_day

    def remaining_tasks(self) -> Optional[int]:
        if self.max_tasks_per_day is None:
            return None
        return max(self.max_tasks_per_day - self.tasks_used_today, 0)

    @classmethod
    def from_dict(cls, data: Any) -> "CoworkLimits":
        if not isinstance(data, dict):
            raise TypeError("limits must be a JSON object")
        return cls(
            max_tasks_per_day=data.get("max_tasks_per_day"),
            tasks_used_today=int(data.get("tasks_used_today") or 0),
            max_tokens_per_request=data.get("max_tokens_per_request"),
            max_file_size_bytes=data.get("max_file_size_bytes"),
        )


# =============================================================================
# CAPABILITIES
# =============================================================================

_MB = 1024 * 1024

BASIC_MODELS = [
    catalog.GPT_4O,
    catalog.GEMINI_2_5_FLASH,
    catalog.GEMINI_2_5_FLASH_LITE,
    catalog.LLAMA_3_1_8B_INSTANT,
]

PRO_MODELS = [
    catalog.GPT_4O,
    catalog.GPT_5,
    catalog.GPT_5_PRO,
    catalog.O3,
    catalog.O4_MINI,
    catalog.GEMINI_2_5_PRO,
    catalog.GEMINI_2_5_FLASH,
    catalog.GEMINI_2_5_FLASH_LITE,
    catalog.LLAMA_3_1_8B_INSTANT,
    catalog.LLAMA_3_3_70B_VERSATILE,
    catalog.CEREBRAS_LLAMA3_1_8B,
    catalog.ASTRONOMER_2,
    catalog.ASTRONOMER_2_PRO,
]


@dataclass
class CoworkCapabilities:
    """What the current API key's plan can do."""

    tier: CoworkTier = CoworkTier.FREE
    tier_name: str = "Free"
    models: List[str] = field(default_factory=list)
    features: CoworkFeatures = field(default_factory=CoworkFeatures)
    limits: CoworkLimits = field(default_factory=CoworkLimits)
    is_valid: bool = False
    expires_at: Optional[str] = None

    @classmethod
    def free(cls) -> "CoworkCapabilities":
        return cls(
            tier=CoworkTier.FREE,
            tier_name="Free",
            models=[],
            features=CoworkFeatures.free(),
            limits=CoworkLimits(
                max_tasks_per_day=5,
                max_tokens_per_request=4096,
                max_file_size_bytes=1 * _MB,
            ),
            is_valid=False,
        )

    @classmethod
    def basic(cls) -> "CoworkCapabilities":
        return cls(
            tier=CoworkTier.BASIC,
            tier_name="Basic",
            models=list(BASIC_MODELS),
            features=CoworkFeatures.basic(),
            limits=CoworkLimits(
                max_tasks_per_day=50,
                max_tokens_per_request=16384,
                max_file_size_bytes=10 * _MB,
            ),
            is_valid=True,
        )

    @classmethod
    def pro(cls) -> "CoworkCapabilities":
        return cls(
            tier=CoworkTier.PRO,
            tier_name="Pro",
            models=list(PRO_MODELS),
            features=CoworkFeatures.pro(),
            limits=CoworkLimits(max_file_size_bytes=100 * _MB),
            is_valid=True,
        )

    @classmethod
    def enterprise(cls) -> "CoworkCapabilities":
        caps = cls.pro()
        caps.tier = CoworkTier.ENTERPRISE
        caps.tier_name = "Enterprise"
        caps.features = CoworkFeatures.enterprise()
        caps.limits.max_file_size_bytes = None
        return caps

    @classmethod
    def for_tier(cls, tier: CoworkTier) -> "CoworkCapabilities":
        """Preset capabilities for a tier."""
        presets = {
            CoworkTier.FREE: cls.free,
            CoworkTier.BASIC: cls.basic,
            CoworkTier.PRO: cls.pro,
            CoworkTier.ENTERPRISE: cls.enterprise,
        }
        return presets[CoworkTier(tier)]()

    def can_use_model(self, model: str) -> bool:
        return model in self.models

    def can_use_feature(self, feature: str) -> bool:
        return self.features.is_enabled(feature)

    def can_make_request(self) -> bool:
        return self.is_valid and not self.limits.is_task_limit_reached()

    @classmethod
    def from_dict(cls, data: Any) -> "CoworkCapabilities":
        if not isinstance(data, dict):
            raise TypeError("capabilities must be a JSON object")
        tier = CoworkTier(str(data["tier"]).lower())
        return cls(
            tier=tier,
            tier_name=str(data.get("tier_name") or tier.value.title()),
            models=[str(m) for m in data.get("models") or []],
            features=CoworkFeatures.from_dict(data.get("features") or {}),
            limits=CoworkLimits.from_dict(data.get("limits") or {}),
            is_valid=bool(data.get("is_valid", True)),
            expires_at=data.get("expires_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier.value,
            "tier_name": self.tier_name,
            "models": list(self.models),
            "features": {n: getattr(self.features, n) for n in CoworkFeatures.names()},
            "limits": {
                "max_tasks_per_day": self.limits.max_tasks_per_day,
                "tasks_used_today": self.limits.tasks_used_today,
                "max_tokens_per_request": self.limits.max_tokens_per_request,
                "max_file_size_bytes": self.limits.max_file_size_bytes,
            },
            "is_valid": self.is_valid,
            "expires_at": self.expires_at,
        }


@dataclass
class ModelFilterResult:
    """Result of filtering models by tier."""

    allowed: List[str] = field(default_factory=list)
    denied: List[str] = field(default_factory=list)

    @property
    def all_denied(self) -> bool:
        return not self.allowed and bool(self.denied)
