# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Async client for the Rainy API.

Every call goes through the RetryExecutor: one attempt performs one HTTP
request, classifies the outcome and returns an AttemptOutcome; the executor
decides whether and when to try again.
"""

import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx

from ..auth import AuthConfig
from ..core.config import ConfigLoader, get_config_loader
from ..core.constants import (
    API_PREFIX,
    DEFAULT_GLOBAL_TIMEOUT,
    EVENT_STREAM_CONTENT_TYPE,
    HEADER_REQUEST_ID,
)
from ..core.errors import (
    APIError,
    classify_exception,
    classify_malformed,
    classify_response,
    mask_credential,
)
from ..core.models import (
    ApiKey,
    AvailableModels,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    DeepResearchResponse,
    HealthStatus,
    RequestMetadata,
    ResearchConfig,
)
from ..core.types import AttemptOutcome, ClassifiedError, ErrorKind, RetryPolicy
from ..cowork.filters import get_offline_capabilities
from ..cowork.types import CoworkCapabilities, CoworkTier
from .backoff import BackoffScheduler
from .executor import RetryExecutor, unwrap_result
from .models import ModelResolver
from .streaming import StreamingSession

lib_logger = logging.getLogger("rainy_sdk")

# Maps a classified error to the one reported for a specific endpoint
ErrorRemap = Callable[[ClassifiedError], ClassifiedError]


class RainyClient:
    """
    Client for chat completions and the supporting Rainy API endpoints.

    Usage:
        async with RainyClient("ra-...") as client:
            text = await client.simple_chat("gemini-2.5-flash", "Hello")
    """

    def __init__(
        self,
        auth: Union[AuthConfig, str, None] = None,
        retry_policy: Optional[RetryPolicy] = None,
        global_timeout: Optional[float] = DEFAULT_GLOBAL_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        config_loader: Optional[ConfigLoader] = None,
        ignore_models: Optional[Dict[str, List[str]]] = None,
        whitelist_models: Optional[Dict[str, List[str]]] = None,
        configure_logging: bool = True,
    ):
        """
        Initialize the RainyClient.

        Args:
            auth: AuthConfig, a bare API key, or None to read RAINY_* env vars
            retry_policy: Policy for every call. When omitted the policy is
                loaded per provider by the ConfigLoader.
            global_timeout: Seconds bounding a whole call including retries
            transport: httpx transport (e.g. httpx.MockTransport in tests)
            rng: Random source for backoff jitter
            sleep: Awaitable sleep used between retries
            config_loader: ConfigLoader for per-provider retry policies
            ignore_models: Models to block, per provider (glob patterns)
            whitelist_models: Models to always allow, per provider
            configure_logging: Whether to configure library logging

        Raises:
            ConfigurationError: if the auth settings are invalid
        """
        if configure_logging:
            # Let the parent application's logging configuration handle
            # records from this library.
            lib_logger.propagate = True
            if lib_logger.hasHandlers():
                lib_logger.handlers.clear()
                lib_logger.addHandler(logging.NullHandler())
        else:
            lib_logger.propagate = False

        if auth is None:
            auth = AuthConfig.from_env()
        elif isinstance(auth, str):
            auth = AuthConfig(api_key=auth)
        auth.validate()
        self.auth = auth

        self.global_timeout = global_timeout
        self._retry_policy = retry_policy
        self._config_loader = config_loader or get_config_loader()
        self._executor = RetryExecutor(BackoffScheduler(rng), sleep=sleep)
        self._model_resolver = ModelResolver(ignore_models, whitelist_models)
        self._cached_tier: Optional[CoworkTier] = None

        self.http_client = httpx.AsyncClient(
            headers=auth.build_headers(),
            timeout=httpx.Timeout(auth.timeout),
            transport=transport or httpx.AsyncHTTPTransport(retries=0),
        )

        lib_logger.debug(
            f"RainyClient initialized for {auth.base_url} "
            f"with key {mask_credential(auth.api_key)}"
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP client to prevent resource leaks."""
        if self.http_client is not None and not self.http_client.is_closed:
            await self.http_client.aclose()

    # =========================================================================
    # REQUEST PLUMBING
    # =========================================================================

    def _policy_for(
        self, provider: Optional[str], policy: Optional[RetryPolicy]
    ) -> RetryPolicy:
        if not self.auth.enable_retry:
            return RetryPolicy.no_retry()
        if policy is not None:
            return policy
        if self._retry_policy is not None:
            return self._retry_policy
        return self._config_loader.load_retry_policy(provider)

    def _deadline(self) -> Optional[float]:
        if self.global_timeout is None:
            return None
        return self._executor.clock() + self.global_timeout

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        parse: Optional[Callable[[Any], Any]] = None,
        provider: Optional[str] = None,
        policy: Optional[RetryPolicy] = None,
        prefix: Optional[str] = API_PREFIX,
        remap: Optional[ErrorRemap] = None,
    ) -> Tuple[Any, httpx.Response, int]:
        """
        Perform a JSON request under the retry policy.

        Args:
            method: HTTP method
            endpoint: Path below the API prefix
            json_body: JSON request body
            params: Query parameters
            parse: Converts the decoded JSON body into the return value
            provider: Provider identity for error envelope dispatch
            policy: Per-call retry policy override
            prefix: Path prefix (None for endpoints outside /api/v1)
            remap: Adjusts classified errors for this endpoint

        Returns:
            (parsed payload, final HTTP response, attempts used)

        Raises:
            APIError: non-retryable failure
            RetriesExhaustedError: retryable failures used up every attempt
        """
        url = self.auth.api_url(endpoint, prefix)

        async def attempt() -> AttemptOutcome:
            try:
                response = await self.http_client.request(
                    method, url, json=json_body, params=params
                )
            except httpx.TransportError as e:
                error = classify_exception(e, provider)
            else:
                error = classify_response(response, provider)
                if error is None:
                    try:
                        body = response.json() if response.content else None
                        payload = parse(body) if parse is not None else body
                    except (KeyError, TypeError, ValueError) as e:
                        error = classify_malformed(
                            f"Unexpected response shape from {endpoint}: {e!r}",
                            response.status_code,
                            provider,
                            response.headers.get(HEADER_REQUEST_ID),
                        )
                    else:
                        return AttemptOutcome.success((payload, response))

            if remap is not None:
                error = remap(error)
            return AttemptOutcome.failure(error)

        result = await self._executor.execute(
            attempt,
            self._policy_for(provider, policy),
            self._deadline(),
            description=f"{method} {endpoint}",
        )
        payload, response = unwrap_result(result)
        return payload, response, result.attempts

    async def _connect_stream(
        self, url: str, payload: Dict[str, Any], provider: Optional[str]
    ) -> AttemptOutcome:
        """
        One attempt at opening an event stream.

        Succeeds with the unread response for a 2xx event stream. Any other
        response is read, closed and classified.
        """
        request = self.http_client.build_request(
            "POST", url, json=payload, headers={"Accept": EVENT_STREAM_CONTENT_TYPE}
        )
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.TransportError as e:
            return AttemptOutcome.failure(classify_exception(e, provider))

        content_type = response.headers.get("content-type", "")
        if response.is_success and "application/json" not in content_type:
            return AttemptOutcome.success(response)

        try:
            await response.aread()
        except httpx.TransportError as e:
            return AttemptOutcome.failure(classify_exception(e, provider))
        finally:
            await response.aclose()

        error = classify_response(response, provider)
        if error is None:
            error = classify_malformed(
                "Expected an event stream but received a JSON body",
                response.status_code,
                provider,
                response.headers.get(HEADER_REQUEST_ID),
            )
        return AttemptOutcome.failure(error)

    # =========================================================================
    # CHAT COMPLETIONS
    # =========================================================================

    def _prepare_chat(
        self, request: ChatCompletionRequest, stream: bool
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        request.validate()
        model, provider = self._model_resolver.resolve(request.model, request.provider)
        payload = request.to_payload()
        payload["model"] = model
        if stream:
            payload["stream"] = True
        else:
            payload.pop("stream", None)
        return payload, provider

    async def chat_completion(
        self,
        request: ChatCompletionRequest,
        policy: Optional[RetryPolicy] = None,
    ) -> Tuple[ChatCompletionResponse, RequestMetadata]:
        """
        Create a chat completion and return it with request metadata.

        Args:
            request: The completion request
            policy: Per-call retry policy override

        Returns:
            (ChatCompletionResponse, RequestMetadata)

        Raises:
            ValidationError: if the request fails local validation
            APIError / RetriesExhaustedError: if the call fails
        """
        payload, provider = self._prepare_chat(request, stream=False)

        started = time.monotonic()
        completion, response, attempts = await self._request(
            "POST",
            "/chat/completions",
            json_body=payload,
            parse=ChatCompletionResponse.from_dict,
            provider=provider,
            policy=policy,
        )
        elapsed_ms = int((time.monotonic() - started) * 1000)

        metadata = RequestMetadata.from_headers(response.headers, elapsed_ms, attempts)
        if metadata.provider is None:
            metadata.provider = provider
        if metadata.tokens_used is None and completion.usage is not None:
            metadata.tokens_used = completion.usage.total_tokens
        return completion, metadata

    async def create_chat_completion(
        self,
        request: ChatCompletionRequest,
        policy: Optional[RetryPolicy] = None,
    ) -> ChatCompletionResponse:
        """Create a chat completion."""
        completion, _ = await self.chat_completion(request, policy)
        return completion

    async def simple_chat(self, model: str, prompt: str) -> str:
        """Send one user message and return the reply text."""
        request = ChatCompletionRequest(model=model, messages=[ChatMessage.user(prompt)])
        completion = await self.create_chat_completion(request)
        return completion.content

    def stream_chat_completion(
        self,
        request: ChatCompletionRequest,
        policy: Optional[RetryPolicy] = None,
    ) -> StreamingSession:
        """
        Build a streaming session for a chat completion without opening it.

        Use as ``async with client.stream_chat_completion(req) as session``.
        Frames carry ChatCompletionChunk fragments.

        Raises:
            ValidationError: if the request fails local validation
        """
        payload, provider = self._prepare_chat(request, stream=True)
        url = self.auth.api_url("/chat/completions", API_PREFIX)

        async def connect() -> AttemptOutcome:
            return await self._connect_stream(url, payload, provider)

        return StreamingSession(
            connect,
            self._policy_for(provider, policy),
            executor=self._executor,
            parse_fragment=ChatCompletionChunk.from_dict,
            provider=provider,
            global_timeout=self.global_timeout,
            description="POST /chat/completions (stream)",
        )

    async def create_chat_completion_stream(
        self,
        request: ChatCompletionRequest,
        policy: Optional[RetryPolicy] = None,
    ) -> StreamingSession:
        """
        Open a streaming chat completion.

        The caller owns the returned session and must aclose() it (or use
        it as an async context manager).
        """
        session = self.stream_chat_completion(request, policy)
        return await session.open()

    # =========================================================================
    # HEALTH & MODELS
    # =========================================================================

    async def health_check(self) -> HealthStatus:
        status, _, _ = await self._request(
            "GET", "/health", parse=HealthStatus.from_dict
        )
        return status

    async def detailed_health_check(self) -> HealthStatus:
        status, _, _ = await self._request(
            "GET", "/health", params={"detailed": "true"}, parse=HealthStatus.from_dict
        )
        return status

    async def list_available_models(self) -> AvailableModels:
        models, _, _ = await self._request(
            "GET", "/models", parse=AvailableModels.from_dict
        )
        return models

    # =========================================================================
    # API KEYS
    # =========================================================================

    async def create_api_key(
        self,
        description: str,
        expires_in_days: Optional[int] = None,
    ) -> ApiKey:
        body: Dict[str, Any] = {"description": description}
        if expires_in_days is not None:
            body["expiresInDays"] = expires_in_days
        key, _, _ = await self._request(
            "POST", "/keys", json_body=body, parse=ApiKey.from_dict
        )
        lib_logger.info(f"Created API key {mask_credential(key.key)}")
        return key

    async def list_api_keys(self) -> List[ApiKey]:
        def parse(body: Any) -> List[ApiKey]:
            if not isinstance(body, dict):
                raise TypeError("Expected a JSON object with 'api_keys'")
            return [ApiKey.from_dict(item) for item in body["api_keys"]]

        keys, _, _ = await self._request("GET", "/keys", parse=parse)
        return keys

    async def update_api_key(self, key_id: str, updates: Dict[str, Any]) -> ApiKey:
        key, _, _ = await self._request(
            "PATCH", f"/keys/{key_id}", json_body=updates, parse=ApiKey.from_dict
        )
        return key

    async def delete_api_key(self, key_id: str) -> None:
        await self._request("DELETE", f"/keys/{key_id}")
        lib_logger.info(f"Deleted API key {key_id}")

    # =========================================================================
    # COWORK TIER GATING
    # =========================================================================

    async def get_cowork_capabilities(self) -> CoworkCapabilities:
        """
        Fetch the plan capabilities for the current API key.

        When the call fails the last known tier (or the free tier) is
        assumed and a warning is logged.
        """
        try:
            caps, _, _ = await self._request(
                "GET", "/cowork/models", parse=CoworkCapabilities.from_dict
            )
        except APIError as e:
            lib_logger.warning(
                f"Could not fetch Cowork capabilities ({e}). "
                f"Falling back to offline capabilities."
            )
            return get_offline_capabilities(self._cached_tier)

        self._cached_tier = caps.tier
        return caps

    async def can_use_model(self, model: str) -> bool:
        return (await self.get_cowork_capabilities()).can_use_model(model)

    async def can_use_feature(self, feature: str) -> bool:
        return (await self.get_cowork_capabilities()).can_use_feature(feature)

    async def can_make_request(self) -> bool:
        return (await self.get_cowork_capabilities()).can_make_request()

    async def has_paid_plan(self) -> bool:
        return (await self.get_cowork_capabilities()).tier.is_premium

    # =========================================================================
    # RESEARCH
    # =========================================================================

    async def research(
        self,
        topic: str,
        config: Optional[ResearchConfig] = None,
    ) -> DeepResearchResponse:
        """
        Run deep web research on a topic.

        Requires a plan with the web_research feature; a 403 is reported as
        a non-retryable error with code FEATURE_NOT_AVAILABLE.
        """
        config = config or ResearchConfig()

        def remap(error: ClassifiedError) -> ClassifiedError:
            if error.raw_status != 403:
                return error
            return ClassifiedError(
                kind=ErrorKind.CLIENT_ERROR,
                retryable=False,
                message="Research feature requires a valid subscription",
                raw_status=403,
                code="FEATURE_NOT_AVAILABLE",
                request_id=error.request_id,
            )

        result, _, _ = await self._request(
            "POST",
            "/agents/research",
            json_body=config.to_payload(topic),
            parse=DeepResearchResponse.from_dict,
            prefix=None,
            remap=remap,
        )
        return result
