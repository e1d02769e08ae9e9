# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Error handling for the Rainy SDK.

Two halves:
- Exception classes raised to callers (all derive from RainyError)
- The error classifier, which turns an httpx exception or a response into
  a ClassifiedError the retry loop can act on

The classifier is pure: it never raises and never performs I/O. A response
must already have its body read before it is classified.
"""

import json
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional, Union

import httpx

from .constants import (
    HEADER_REQUEST_ID,
    HEADER_RETRY_AFTER,
    RETRYABLE_PROVIDER_CODES,
)
from .types import ClassifiedError, ErrorKind
from ..providers.error_shapes import (
    ProviderErrorInfo,
    extract_provider_error,
    parse_duration,
)

lib_logger = logging.getLogger("rainy_sdk")


# =============================================================================
# EXCEPTIONS
# =============================================================================


class RainyError(Exception):
    """Base class for every exception raised by the SDK."""


class ConfigurationError(RainyError, ValueError):
    """Invalid client, auth or retry configuration."""


class ValidationError(RainyError, ValueError):
    """
    A request failed local validation before being sent.

    Attributes:
        field: Name of the offending request field, if known
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class APIError(RainyError):
    """
    A request failed. Carries the ClassifiedError describing why.

    Attributes:
        classified: The ClassifiedError for the (last) failed attempt
    """

    def __init__(self, classified: ClassifiedError, message: Optional[str] = None):
        super().__init__(message or str(classified))
        self.classified = classified

    @property
    def kind(self) -> ErrorKind:
        return self.classified.kind

    @property
    def retryable(self) -> bool:
        return self.classified.retryable

    @property
    def status_code(self) -> Optional[int]:
        return self.classified.raw_status

    @property
    def code(self) -> Optional[str]:
        return self.classified.code

    @property
    def retry_after(self) -> Optional[float]:
        return self.classified.suggested_delay

    @property
    def request_id(self) -> Optional[str]:
        return self.classified.request_id


class RetriesExhaustedError(APIError):
    """
    Every permitted attempt failed with a retryable error, or the deadline
    expired before the next one could start.

    Attributes:
        attempts: Number of attempts that were made
    """

    def __init__(self, last_error: ClassifiedError, attempts: int):
        super().__init__(
            last_error,
            f"Retries exhausted after {attempts} attempt(s): {last_error}",
        )
        self.attempts = attempts

    @property
    def last_error(self) -> ClassifiedError:
        return self.classified


class StreamedAPIError(APIError):
    """
    An API error received in-band over a stream.

    The stream is terminated when this is raised.

    Attributes:
        data: The decoded error payload
    """

    def __init__(self, classified: ClassifiedError, data: Any = None):
        super().__init__(classified)
        self.data = data


class StreamInterruptedError(APIError):
    """The connection failed after streaming began. Never retried."""


# =============================================================================
# UTILITIES
# =============================================================================


def mask_credential(credential: Optional[str]) -> str:
    """
    Mask an API key for logging.

    Args:
        credential: The secret to mask

    Returns:
        Masked form keeping only a short prefix and the last 4 characters
    """
    if not credential:
        return "<none>"
    if len(credential) <= 10:
        return "****"
    return f"{credential[:3]}...{credential[-4:]}"


def get_retry_after(response: httpx.Response) -> Optional[float]:
    """
    Read the Retry-After header.

    Supports both delay-seconds ("120") and HTTP-date forms.

    Args:
        response: HTTP response

    Returns:
        Seconds to wait, or None if the header is missing or unusable
    """
    value = response.headers.get(HEADER_RETRY_AFTER)
    if not value:
        return None
    value = value.strip()

    seconds = parse_duration(value)
    if seconds is not None:
        return seconds

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        lib_logger.debug(f"Ignoring unparseable Retry-After header: {value!r}")
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def extract_retry_after_from_body(
    body: Any, provider: Optional[str] = None
) -> Optional[float]:
    """
    Read a retry hint from a decoded error body.

    Args:
        body: Decoded JSON body
        provider: Provider identity used to pick the envelope format

    Returns:
        Seconds to wait, or None
    """
    if isinstance(body, dict):
        direct = parse_duration(body.get("retry_after"))
        if direct is not None:
            return direct
    info = extract_provider_error(body, provider)
    return info.retry_after if info else None


def is_rate_limit_error(error: Union[BaseException, ClassifiedError]) -> bool:
    classified = error.classified if isinstance(error, APIError) else error
    return (
        isinstance(classified, ClassifiedError)
        and classified.kind == ErrorKind.RATE_LIMITED
    )


def is_server_error(error: Union[BaseException, ClassifiedError]) -> bool:
    classified = error.classified if isinstance(error, APIError) else error
    return (
        isinstance(classified, ClassifiedError)
        and classified.kind == ErrorKind.SERVER_ERROR
    )


# =============================================================================
# CLASSIFIER
# =============================================================================

# Fallback codes when the body carries none
_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    408: "REQUEST_TIMEOUT",
    429: "RATE_LIMIT_EXCEEDED",
}

_STATUS_MESSAGES = {
    401: "Invalid API key",
    403: "Access forbidden",
    429: "Rate limit exceeded",
}

# Sentinel for a body that is present but not JSON
_UNDECODABLE = object()


def _decode_body(response: httpx.Response) -> Any:
    """Decode a read response body. Empty -> None, not JSON -> _UNDECODABLE."""
    content = response.content
    if not content or not content.strip():
        return None
    try:
        return json.loads(content)
    except ValueError:
        return _UNDECODABLE


def _body_snippet(response: httpx.Response, limit: int = 200) -> str:
    text = response.content.decode("utf-8", errors="replace").strip()
    return text[:limit] + ("..." if len(text) > limit else "")


def is_retryable_provider_code(code: Optional[str]) -> bool:
    """Check an in-band provider error code against the retry allow-list."""
    return bool(code) and code.strip().lower() in RETRYABLE_PROVIDER_CODES


def classify_provider_error(
    info: ProviderErrorInfo,
    raw_status: Optional[int] = None,
    provider: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ClassifiedError:
    """
    Classify an error embedded in a successful response or a stream frame.

    Only codes on the allow-list are retryable; everything else fails
    closed.
    """
    retryable = is_retryable_provider_code(info.code)
    return ClassifiedError(
        kind=ErrorKind.PROVIDER_ERROR,
        retryable=retryable,
        message=info.message,
        suggested_delay=info.retry_after if retryable else None,
        raw_status=raw_status,
        code=info.code,
        provider=provider,
        request_id=request_id,
    )


def classify_malformed(
    message: str,
    raw_status: Optional[int] = None,
    provider: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ClassifiedError:
    """Classify a 2xx body that could not be decoded into the expected shape."""
    return ClassifiedError(
        kind=ErrorKind.MALFORMED,
        retryable=False,
        message=message,
        raw_status=raw_status,
        provider=provider,
        request_id=request_id,
    )


def classify_exception(
    exc: BaseException, provider: Optional[str] = None
) -> ClassifiedError:
    """
    Classify an exception raised while performing an attempt.

    Args:
        exc: The exception (normally an httpx.TransportError)
        provider: Provider identity, carried into the result

    Returns:
        ClassifiedError. Unknown exceptions are non-retryable client errors.
    """
    if isinstance(exc, APIError):
        return exc.classified

    detail = str(exc) or type(exc).__name__

    if isinstance(exc, httpx.TimeoutException):
        return ClassifiedError(
            kind=ErrorKind.TIMEOUT,
            retryable=True,
            message=f"Request timed out: {detail}",
            provider=provider,
        )

    if isinstance(exc, (httpx.NetworkError, httpx.ProtocolError, httpx.ProxyError)):
        return ClassifiedError(
            kind=ErrorKind.NETWORK,
            retryable=True,
            message=f"Network error: {detail}",
            provider=provider,
        )

    return ClassifiedError(
        kind=ErrorKind.CLIENT_ERROR,
        retryable=False,
        message=f"{type(exc).__name__}: {detail}",
        provider=provider,
    )


def classify_response(
    response: httpx.Response, provider: Optional[str] = None
) -> Optional[ClassifiedError]:
    """
    Classify a received HTTP response.

    Rules, in order:
    - 429 -> RATE_LIMITED, retryable, delay from Retry-After or the body
    - 5xx -> SERVER_ERROR, retryable
    - 408 -> TIMEOUT, retryable
    - other 4xx -> CLIENT_ERROR, not retryable
    - 2xx with an undecodable body -> MALFORMED, not retryable
    - 2xx carrying an in-band error -> PROVIDER_ERROR, retryable only for
      allow-listed codes
    - anything else non-2xx -> CLIENT_ERROR, not retryable

    The body must already be read.

    Args:
        response: HTTP response with its body loaded
        provider: Provider identity used to pick the error envelope format

    Returns:
        ClassifiedError, or None for a healthy 2xx response
    """
    status = response.status_code
    request_id = response.headers.get(HEADER_REQUEST_ID)
    body = _decode_body(response)

    if status == 204:
        return None

    if 200 <= status < 300:
        if body is None:
            return classify_malformed(
                "Empty response body", status, provider, request_id
            )
        if body is _UNDECODABLE:
            return classify_malformed(
                f"Response body is not valid JSON: {_body_snippet(response)}",
                status,
                provider,
                request_id,
            )
        info = extract_provider_error(body, provider)
        if info is None:
            return None
        return classify_provider_error(info, status, provider, request_id)

    info = (
        extract_provider_error(body, provider)
        if body is not None and body is not _UNDECODABLE
        else None
    )
    if info is not None:
        message = info.message
    elif body is _UNDECODABLE:
        message = _body_snippet(response)
    else:
        message = _STATUS_MESSAGES.get(status) or response.reason_phrase or "Error"
    code = (info.code if info else None) or _STATUS_CODES.get(status)

    def _hinted_delay() -> Optional[float]:
        delay = get_retry_after(response)
        if delay is None and info is not None:
            delay = extract_retry_after_from_body(body, provider)
        return delay

    if status == 429:
        kind, retryable, delay = ErrorKind.RATE_LIMITED, True, _hinted_delay()
    elif 500 <= status < 600:
        kind, retryable, delay = ErrorKind.SERVER_ERROR, True, _hinted_delay()
    elif status == 408:
        kind, retryable, delay = ErrorKind.TIMEOUT, True, None
    else:
        kind, retryable, delay = ErrorKind.CLIENT_ERROR, False, None

    return ClassifiedError(
        kind=kind,
        retryable=retryable,
        message=message,
        suggested_delay=delay,
        raw_status=status,
        code=code,
        provider=provider,
        request_id=request_id,
    )


def classify_error(
    source: Union[BaseException, httpx.Response], provider: Optional[str] = None
) -> Optional[ClassifiedError]:
    """
    Classify either an exception or a response.

    Returns None only for a healthy 2xx response.
    """
    if isinstance(source, httpx.Response):
        return classify_response(source, provider)
    return classify_exception(source, provider)


__all__ = [
    # Exceptions
    "RainyError",
    "ConfigurationError",
    "ValidationError",
    "APIError",
    "RetriesExhaustedError",
    "StreamedAPIError",
    "StreamInterruptedError",
    # Classification
    "classify_error",
    "classify_exception",
    "classify_response",
    "classify_provider_error",
    "classify_malformed",
    "is_retryable_provider_code",
    # Utilities
    "mask_credential",
    "get_retry_after",
    "extract_retry_after_from_body",
    "is_rate_limit_error",
    "is_server_error",
]
