# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Request and response data model for the Rainy API.

Plain dataclasses with ``to_payload()`` for outgoing JSON and ``from_dict()``
for incoming JSON. ``from_dict`` raises KeyError/TypeError/ValueError on a
body that does not have the expected shape; callers turn that into a
MALFORMED classified error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import (
    HEADER_CREDITS_REMAINING,
    HEADER_CREDITS_USED,
    HEADER_PROVIDER,
    HEADER_REQUEST_ID,
    HEADER_TOKENS_USED,
)
from .errors import ValidationError, mask_credential
from ..providers.catalog import is_gemini_2_5


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _require_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected JSON object for {what}, got {type(data).__name__}")
    return data


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


# =============================================================================
# MESSAGES
# =============================================================================


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class ChatMessage:
    """A single conversation message."""

    role: MessageRole
    content: Optional[str]
    tool_calls: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(MessageRole.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(MessageRole.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(MessageRole.ASSISTANT, content)

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "role": MessageRole(self.role).value,
                "content": self.content,
                "tool_calls": self.tool_calls,
            }
        )

    @classmethod
    def from_dict(cls, data: Any) -> "ChatMessage":
        data = _require_dict(data, "message")
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise TypeError("message content must be a string")
        return cls(
            role=MessageRole(data["role"]),
            content=content,
            tool_calls=data.get("tool_calls"),
        )


# =============================================================================
# THINKING CONFIG (Gemini 3 / 2.5)
# =============================================================================


class ThinkingLevel(str, Enum):
    """Gemini 3 thinking levels. MINIMAL and MEDIUM are Flash only."""

    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ThinkingConfig:
    """
    Thinking controls for Gemini models.

    Gemini 3 takes a ``thinking_level``; Gemini 2.5 takes a
    ``thinking_budget`` in tokens (-1 for dynamic, 0 to disable). The two are
    mutually exclusive.
    """

    include_thoughts: Optional[bool] = None
    thinking_level: Optional[ThinkingLevel] = None
    thinking_budget: Optional[int] = None

    @classmethod
    def gemini_3(
        cls, level: ThinkingLevel, include_thoughts: bool = False
    ) -> "ThinkingConfig":
        return cls(include_thoughts=include_thoughts, thinking_level=level)

    @classmethod
    def gemini_2_5(cls, budget: int, include_thoughts: bool = False) -> "ThinkingConfig":
        return cls(include_thoughts=include_thoughts, thinking_budget=budget)

    @classmethod
    def high_reasoning(cls, model: str) -> "ThinkingConfig":
        """Deep reasoning preset for the given model family."""
        if is_gemini_2_5(model):
            return cls.gemini_2_5(-1, include_thoughts=True)
        return cls.gemini_3(ThinkingLevel.HIGH, include_thoughts=True)

    @classmethod
    def fast_response(cls, model: str) -> "ThinkingConfig":
        """Low-latency preset for the given model family."""
        if is_gemini_2_5(model):
            return cls.gemini_2_5(512, include_thoughts=False)
        return cls.gemini_3(ThinkingLevel.LOW, include_thoughts=False)

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "include_thoughts": self.include_thoughts,
                "thinking_level": (
                    ThinkingLevel(self.thinking_level).value
                    if self.thinking_level is not None
                    else None
                ),
                "thinking_budget": self.thinking_budget,
            }
        )


# =============================================================================
# CHAT COMPLETION REQUEST
# =============================================================================


@dataclass
class ChatCompletionRequest:
    """
    OpenAI-compatible chat completion request.

    Only fields that are set are serialized.
    """

    model: str
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Optional[List[str]] = None
    user: Optional[str] = None
    provider: Optional[str] = None
    stream: Optional[bool] = None
    logit_bias: Optional[Dict[str, float]] = None
    logprobs: Optional[bool] = None
    top_logprobs: Optional[int] = None
    n: Optional[int] = None
    response_format: Optional[Dict[str, Any]] = None
    tools: Optional[List[Dict[str, Any]]] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None
    thinking_config: Optional[ThinkingConfig] = None

    def with_temperature(self, temperature: float) -> "ChatCompletionRequest":
        """Set temperature, clamped to [0, 2]."""
        self.temperature = min(max(temperature, 0.0), 2.0)
        return self

    def supports_thinking(self) -> bool:
        return "gemini-3" in self.model or "gemini-2.5" in self.model

    def requires_thought_signatures(self) -> bool:
        return "gemini-3" in self.model

    def validate(self) -> None:
        """
        Check parameter ranges before sending.

        Raises:
            ValidationError: naming the first offending field
        """
        if not self.model:
            raise ValidationError("model is required", field="model")
        if not self.messages:
            raise ValidationError("at least one message is required", field="messages")

        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValidationError(
                f"Temperature must be between 0.0 and 2.0, got {self.temperature}",
                field="temperature",
            )
        if self.top_p is not None and not 0.0 <= self.top_p <= 1.0:
            raise ValidationError(
                f"Top-p must be between 0.0 and 1.0, got {self.top_p}", field="top_p"
            )
        for name in ("frequency_penalty", "presence_penalty"):
            value = getattr(self, name)
            if value is not None and not -2.0 <= value <= 2.0:
                raise ValidationError(
                    f"{name} must be between -2.0 and 2.0, got {value}", field=name
                )
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValidationError(
                "Max tokens must be greater than 0", field="max_tokens"
            )
        if self.top_logprobs is not None and not 0 <= self.top_logprobs <= 20:
            raise ValidationError(
                f"Top logprobs must be between 0 and 20, got {self.top_logprobs}",
                field="top_logprobs",
            )
        if self.n is not None and self.n <= 0:
            raise ValidationError("n must be greater than 0", field="n")

        if self.stop is not None:
            if len(self.stop) > 4:
                raise ValidationError(
                    "Cannot have more than 4 stop sequences", field="stop"
                )
            for sequence in self.stop:
                if not sequence:
                    raise ValidationError(
                        "Stop sequences cannot be empty", field="stop"
                    )
                if len(sequence) > 64:
                    raise ValidationError(
                        "Stop sequences cannot be longer than 64 characters",
                        field="stop",
                    )

        if self.thinking_config is not None:
            self._validate_thinking_config(self.thinking_config)

    def _validate_thinking_config(self, config: ThinkingConfig) -> None:
        level = config.thinking_level
        budget = config.thinking_budget

        if level is not None and budget is not None:
            raise ValidationError(
                "Cannot specify both thinking_level (Gemini 3) and "
                "thinking_budget (Gemini 2.5) in the same request",
                field="thinking_config",
            )

        if level is not None:
            if "gemini-3" not in self.model:
                raise ValidationError(
                    "thinking_level is only supported for Gemini 3 models",
                    field="thinking_config",
                )
            if "gemini-3-pro" in self.model and ThinkingLevel(level) in (
                ThinkingLevel.MINIMAL,
                ThinkingLevel.MEDIUM,
            ):
                raise ValidationError(
                    "Gemini 3 Pro only supports 'low' and 'high' thinking levels",
                    field="thinking_config",
                )

        if budget is not None:
            if "gemini-2.5" not in self.model:
                raise ValidationError(
                    "thinking_budget is only supported for Gemini 2.5 models",
                    field="thinking_config",
                )
            if "2.5-pro" in self.model:
                if budget != -1 and not 128 <= budget <= 32768:
                    raise ValidationError(
                        "Gemini 2.5 Pro thinking budget must be -1 (dynamic) "
                        "or between 128-32768",
                        field="thinking_config",
                    )
            elif "2.5-flash" in self.model:
                if budget != -1 and not 0 <= budget <= 24576:
                    raise ValidationError(
                        "Gemini 2.5 Flash thinking budget must be -1 (dynamic) "
                        "or between 0-24576",
                        field="thinking_config",
                    )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON body sent to /chat/completions."""
        payload = _drop_none(
            {
                "model": self.model,
                "messages": [m.to_payload() for m in self.messages],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
                "top_p": self.top_p,
                "frequency_penalty": self.frequency_penalty,
                "presence_penalty": self.presence_penalty,
                "stop": self.stop,
                "user": self.user,
                "provider": self.provider,
                "stream": self.stream,
                "logit_bias": self.logit_bias,
                "logprobs": self.logprobs,
                "top_logprobs": self.top_logprobs,
                "n": self.n,
                "response_format": self.response_format,
                "tools": self.tools,
                "tool_choice": self.tool_choice,
            }
        )
        if self.thinking_config is not None:
            thinking = self.thinking_config.to_payload()
            if thinking:
                payload["thinking_config"] = thinking
        return payload


# =============================================================================
# CHAT COMPLETION RESPONSE
# =============================================================================


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "Usage":
        data = _require_dict(data, "usage")
        return cls(
            prompt_tokens=int(data.get("prompt_tokens") or 0),
            completion_tokens=int(data.get("completion_tokens") or 0),
            total_tokens=int(data.get("total_tokens") or 0),
        )


@dataclass
class ChatChoice:
    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ChatChoice":
        data = _require_dict(data, "choice")
        return cls(
            index=int(data.get("index", 0)),
            message=ChatMessage.from_dict(data["message"]),
            finish_reason=data.get("finish_reason"),
        )


@dataclass
class ChatCompletionResponse:
    """A complete (non-streaming) chat completion."""

    id: str
    model: str
    choices: List[ChatChoice]
    object: str = "chat.completion"
    created: int = 0
    usage: Optional[Usage] = None

    @property
    def content(self) -> str:
        """Text of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""

    @classmethod
    def from_dict(cls, data: Any) -> "ChatCompletionResponse":
        data = _require_dict(data, "chat completion")
        choices = data["choices"]
        if not isinstance(choices, list):
            raise TypeError("choices must be a list")
        usage = data.get("usage")
        return cls(
            id=str(data.get("id", "")),
            object=str(data.get("object", "chat.completion")),
            created=int(data.get("created") or 0),
            model=str(data.get("model", "")),
            choices=[ChatChoice.from_dict(c) for c in choices],
            usage=Usage.from_dict(usage) if usage else None,
        )


# =============================================================================
# STREAMING CHUNKS
# =============================================================================


@dataclass
class ToolCallDelta:
    """Incremental tool call. Arguments arrive split across chunks."""

    index: int
    id: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ToolCallDelta":
        data = _require_dict(data, "tool call")
        function = data.get("function") or {}
        _require_dict(function, "tool call function")
        return cls(
            index=int(data.get("index", 0)),
            id=data.get("id"),
            type=data.get("type"),
            name=function.get("name"),
            arguments=function.get("arguments"),
        )


@dataclass
class ChunkDelta:
    role: Optional[str] = None
    content: Optional[str] = None
    tool_calls: List[ToolCallDelta] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ChunkDelta":
        data = _require_dict(data, "delta")
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise TypeError("delta content must be a string")
        return cls(
            role=data.get("role"),
            content=content,
            tool_calls=[ToolCallDelta.from_dict(t) for t in data.get("tool_calls") or []],
        )


@dataclass
class ChunkChoice:
    index: int
    delta: ChunkDelta
    finish_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ChunkChoice":
        data = _require_dict(data, "chunk choice")
        return cls(
            index=int(data.get("index", 0)),
            delta=ChunkDelta.from_dict(data.get("delta") or {}),
            finish_reason=data.get("finish_reason"),
        )


@dataclass
class ChatCompletionChunk:
    """One decoded streaming fragment of a chat completion."""

    id: str
    model: str
    choices: List[ChunkChoice]
    object: str = "chat.completion.chunk"
    created: int = 0
    usage: Optional[Usage] = None

    @property
    def content(self) -> str:
        """Text delta of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].delta.content or ""

    @property
    def finish_reason(self) -> Optional[str]:
        for choice in self.choices:
            if choice.finish_reason:
                return choice.finish_reason
        return None

    @classmethod
    def from_dict(cls, data: Any) -> "ChatCompletionChunk":
        data = _require_dict(data, "chat completion chunk")
        choices = data["choices"]
        if not isinstance(choices, list):
            raise TypeError("choices must be a list")
        usage = data.get("usage")
        return cls(
            id=str(data.get("id", "")),
            object=str(data.get("object", "chat.completion.chunk")),
            created=int(data.get("created") or 0),
            model=str(data.get("model", "")),
            choices=[ChunkChoice.from_dict(c) for c in choices],
            usage=Usage.from_dict(usage) if usage else None,
        )


# =============================================================================
# REQUEST METADATA
# =============================================================================


@dataclass
class RequestMetadata:
    """Per-call metadata collected from response headers and timing."""

    response_time_ms: Optional[int] = None
    provider: Optional[str] = None
    tokens_used: Optional[int] = None
    credits_used: Optional[float] = None
    credits_remaining: Optional[float] = None
    request_id: Optional[str] = None
    attempts: int = 1

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        response_time_ms: Optional[int] = None,
        attempts: int = 1,
    ) -> "RequestMetadata":
        """Read metadata headers. Unparseable numeric headers become None."""

        def _safe(parse, key):
            try:
                return parse(headers.get(key))
            except ValueError:
                return None

        return cls(
            response_time_ms=response_time_ms,
            provider=headers.get(HEADER_PROVIDER),
            tokens_used=_safe(_optional_int, HEADER_TOKENS_USED),
            credits_used=_safe(_optional_float, HEADER_CREDITS_USED),
            credits_remaining=_safe(_optional_float, HEADER_CREDITS_REMAINING),
            request_id=headers.get(HEADER_REQUEST_ID),
            attempts=attempts,
        )


# =============================================================================
# HEALTH / MODELS / KEYS
# =============================================================================


@dataclass
class HealthStatus:
    status: str
    timestamp: Optional[str] = None
    uptime: Optional[float] = None
    services: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status.lower() in ("ok", "healthy")

    @classmethod
    def from_dict(cls, data: Any) -> "HealthStatus":
        data = _require_dict(data, "health status")
        return cls(
            status=str(data["status"]),
            timestamp=data.get("timestamp"),
            uptime=_optional_float(data.get("uptime")),
            services=dict(data.get("services") or {}),
        )


@dataclass
class AvailableModels:
    providers: Dict[str, List[str]]
    total_models: int
    active_providers: List[str]

    def all_models(self) -> List[str]:
        return [m for models in self.providers.values() for m in models]

    @classmethod
    def from_dict(cls, data: Any) -> "AvailableModels":
        data = _require_dict(data, "available models")
        providers = _require_dict(data["providers"], "providers")
        return cls(
            providers={k: list(v) for k, v in providers.items()},
            total_models=int(
                data.get("total_models", sum(len(v) for v in providers.values()))
            ),
            active_providers=list(data.get("active_providers") or providers.keys()),
        )


@dataclass
class ApiKey:
    id: str
    key: str
    is_active: bool = True
    owner_id: Optional[str] = None
    created_at: Optional[str] = None
    expires_at: Optional[str] = None
    description: Optional[str] = None
    last_used_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ApiKey":
        data = _require_dict(data, "api key")
        return cls(
            id=str(data["id"]),
            key=str(data["key"]),
            is_active=bool(data.get("is_active", True)),
            owner_id=data.get("owner_id"),
            created_at=data.get("created_at"),
            expires_at=data.get("expires_at"),
            description=data.get("description"),
            last_used_at=data.get("last_used_at"),
        )

    def __repr__(self) -> str:
        return (
            f"ApiKey(id={self.id!r}, key={mask_credential(self.key)!r}, "
            f"is_active={self.is_active})"
        )


# =============================================================================
# RESEARCH
# =============================================================================


class ResearchProvider(str, Enum):
    EXA = "exa"
    TAVILY = "tavily"


class ResearchDepth(str, Enum):
    BASIC = "basic"
    ADVANCED = "advanced"


@dataclass
class ResearchConfig:
    provider: ResearchProvider = ResearchProvider.EXA
    depth: ResearchDepth = ResearchDepth.BASIC
    max_sources: int = 10
    async_mode: bool = False

    def to_payload(self, topic: str) -> Dict[str, Any]:
        return {
            "topic": topic,
            "provider": ResearchProvider(self.provider).value,
            "depth": ResearchDepth(self.depth).value,
            "maxSources": self.max_sources,
            "async": self.async_mode,
        }


@dataclass
class DeepResearchResponse:
    """
    Research result. Synchronous runs fill ``result``; asynchronous runs
    return a ``task_id`` to poll.
    """

    success: bool
    mode: str
    result: Optional[Any] = None
    task_id: Optional[str] = None
    generated_at: Optional[str] = None
    provider: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "DeepResearchResponse":
        data = _require_dict(data, "research response")
        return cls(
            success=bool(data["success"]),
            mode=str(data.get("mode", "sync")),
            result=data.get("result"),
            task_id=data.get("taskId"),
            generated_at=data.get("generatedAt"),
            provider=data.get("provider"),
            message=data.get("message"),
        )


__all__ = [
    "MessageRole",
    "ChatMessage",
    "ThinkingLevel",
    "ThinkingConfig",
    "ChatCompletionRequest",
    "Usage",
    "ChatChoice",
    "ChatCompletionResponse",
    "ToolCallDelta",
    "ChunkDelta",
    "ChunkChoice",
    "ChatCompletionChunk",
    "RequestMetadata",
    "HealthStatus",
    "AvailableModels",
    "ApiKey",
    "ResearchProvider",
    "ResearchDepth",
    "ResearchConfig",
    "DeepResearchResponse",
]
