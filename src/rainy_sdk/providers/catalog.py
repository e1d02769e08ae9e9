# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Static provider and model catalog.

Provider identities, model identifiers, legacy aliases and per-provider
retry defaults. Nothing here performs I/O.
"""

from typing import Any, Dict, List, Optional

# =============================================================================
# PROVIDERS
# =============================================================================

OPENAI = "openai"
ANTHROPIC = "anthropic"
GROQ = "groq"
CEREBRAS = "cerebras"
GEMINI = "gemini"
ENOSISLABS = "enosislabs"

ALL_PROVIDERS = [OPENAI, ANTHROPIC, GROQ, CEREBRAS, GEMINI, ENOSISLABS]

# =============================================================================
# MODELS
# =============================================================================

# OpenAI
GPT_4O = "gpt-4o"
GPT_5 = "gpt-5"
GPT_5_PRO = "gpt-5-pro"
O3 = "o3"
O4_MINI = "o4-mini"

# Google Gemini
GEMINI_2_5_PRO = "gemini-2.5-pro"
GEMINI_2_5_FLASH = "gemini-2.5-flash"
GEMINI_2_5_FLASH_LITE = "gemini-2.5-flash-lite"
GEMINI_3_PRO = "gemini-3-pro-preview"
GEMINI_3_FLASH = "gemini-3-flash-preview"
GEMINI_3_PRO_IMAGE = "gemini-3-pro-image-preview"

# Groq
LLAMA_3_1_8B_INSTANT = "llama-3.1-8b-instant"
LLAMA_3_3_70B_VERSATILE = "llama-3.3-70b-versatile"
KIMI_K2_0925 = "moonshotai/kimi-k2-instruct-0905"

# Cerebras
CEREBRAS_LLAMA3_1_8B = "cerebras/llama3.1-8b"

# Enosis Labs
ASTRONOMER_1 = "astronomer-1"
ASTRONOMER_1_MAX = "astronomer-1-max"
ASTRONOMER_1_5 = "astronomer-1.5"
ASTRONOMER_2 = "astronomer-2"
ASTRONOMER_2_PRO = "astronomer-2-pro"

MODELS_BY_PROVIDER: Dict[str, List[str]] = {
    OPENAI: [GPT_4O, GPT_5, GPT_5_PRO, O3, O4_MINI],
    GEMINI: [
        GEMINI_2_5_PRO,
        GEMINI_2_5_FLASH,
        GEMINI_2_5_FLASH_LITE,
        GEMINI_3_PRO,
        GEMINI_3_FLASH,
        GEMINI_3_PRO_IMAGE,
    ],
    GROQ: [LLAMA_3_1_8B_INSTANT, LLAMA_3_3_70B_VERSATILE, KIMI_K2_0925],
    CEREBRAS: [CEREBRAS_LLAMA3_1_8B],
    ENOSISLABS: [
        ASTRONOMER_1,
        ASTRONOMER_1_MAX,
        ASTRONOMER_1_5,
        ASTRONOMER_2,
        ASTRONOMER_2_PRO,
    ],
}

# Provider-prefixed ids accepted by older API versions
LEGACY_MODEL_ALIASES: Dict[str, str] = {
    "openai/gpt-4o": GPT_4O,
    "openai/gpt-5": GPT_5,
    "openai/gpt-5-pro": GPT_5_PRO,
    "openai/o3": O3,
    "openai/o4-mini": O4_MINI,
    "google/gemini-2.5-pro": GEMINI_2_5_PRO,
    "google/gemini-2.5-flash": GEMINI_2_5_FLASH,
    "google/gemini-2.5-flash-lite": GEMINI_2_5_FLASH_LITE,
    "groq/llama-3.1-8b-instant": LLAMA_3_1_8B_INSTANT,
    "groq/llama-3.3-70b-versatile": LLAMA_3_3_70B_VERSATILE,
    "enosislabs/astronomer-1": ASTRONOMER_1,
    "enosislabs/astronomer-2": ASTRONOMER_2,
}


def provider_for_model(model: str) -> Optional[str]:
    """
    Infer the upstream provider of a model id.

    Args:
        model: Model id, optionally provider-prefixed ("openai/gpt-4o")

    Returns:
        Provider identity, or None if it cannot be inferred
    """
    model = LEGACY_MODEL_ALIASES.get(model, model)
    for provider, models in MODELS_BY_PROVIDER.items():
        if model in models:
            return provider

    if "/" in model:
        prefix = model.split("/", 1)[0].lower()
        if prefix == "google":
            return GEMINI
        if prefix in ALL_PROVIDERS:
            return prefix
        if prefix == "moonshotai":
            return GROQ

    lowered = model.lower()
    if lowered.startswith(("gpt-", "o1", "o3", "o4")):
        return OPENAI
    if lowered.startswith("gemini-"):
        return GEMINI
    if lowered.startswith("claude-"):
        return ANTHROPIC
    if lowered.startswith("llama-"):
        return GROQ
    if lowered.startswith("astronomer-"):
        return ENOSISLABS
    return None


def is_gemini_3(model: str) -> bool:
    return model.startswith("gemini-3")


def is_gemini_2_5(model: str) -> bool:
    return model.startswith("gemini-2.5")


# =============================================================================
# PER-PROVIDER RETRY DEFAULTS
# =============================================================================

# Applied between system defaults and environment overrides by ConfigLoader.
# Keys mirror RetryPolicy field names.
PROVIDER_RETRY_DEFAULTS: Dict[str, Dict[str, Any]] = {
    # Groq enforces tight per-minute windows and always sends Retry-After
    GROQ: {"max_attempts": 5, "base_delay": 2.0},
    # Gemini 429s commonly ask for 30s+ waits
    GEMINI: {"max_delay": 60.0},
}


__all__ = [
    "OPENAI",
    "ANTHROPIC",
    "GROQ",
    "CEREBRAS",
    "GEMINI",
    "ENOSISLABS",
    "ALL_PROVIDERS",
    "GPT_4O",
    "GPT_5",
    "GPT_5_PRO",
    "O3",
    "O4_MINI",
    "GEMINI_2_5_PRO",
    "GEMINI_2_5_FLASH",
    "GEMINI_2_5_FLASH_LITE",
    "GEMINI_3_PRO",
    "GEMINI_3_FLASH",
    "GEMINI_3_PRO_IMAGE",
    "LLAMA_3_1_8B_INSTANT",
    "LLAMA_3_3_70B_VERSATILE",
    "KIMI_K2_0925",
    "CEREBRAS_LLAMA3_1_8B",
    "ASTRONOMER_1",
    "ASTRONOMER_1_MAX",
    "ASTRONOMER_1_5",
    "ASTRONOMER_2",
    "ASTRONOMER_2_PRO",
    "MODELS_BY_PROVIDER",
    "LEGACY_MODEL_ALIASES",
    "PROVIDER_RETRY_DEFAULTS",
    "provider_for_model",
    "is_gemini_3",
    "is_gemini_2_5",
]
