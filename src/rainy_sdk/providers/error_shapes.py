# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Provider-specific error body extraction.

Each upstream provider wraps errors in its own JSON envelope. The functions
here reduce every known envelope to a common ProviderErrorInfo so the error
classifier never has to know which provider produced the body.

Dispatch is keyed by provider identity (see ERROR_EXTRACTORS). Unknown or
missing providers fall back to trying every known shape in turn.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .catalog import CEREBRAS, ENOSISLABS, GEMINI, GROQ, OPENAI


@dataclass(frozen=True)
class ProviderErrorInfo:
    """Provider-independent view of an error body."""

    message: str
    code: Optional[str] = None
    status: Optional[int] = None
    retry_after: Optional[float] = None
    details: Any = None


# Gemini encodes durations as "30s" / "1.5s"
_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)s\s*$")


def parse_duration(value: Any) -> Optional[float]:
    """
    Parse a retry duration into seconds.

    Accepts numbers (seconds) and Google-style duration strings ("30s").

    Returns:
        Seconds as float, or None if the value is not a usable duration
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if isinstance(value, str):
        match = _DURATION_PATTERN.match(value)
        if match:
            return float(match.group(1))
        try:
            seconds = float(value)
        except ValueError:
            return None
        return seconds if seconds >= 0 else None
    return None


def _error_object(body: Any) -> Optional[Dict[str, Any]]:
    """Return the nested `error` object of a body, if it has one."""
    if isinstance(body, list) and len(body) == 1:
        body = body[0]
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error
    if isinstance(error, str) and error:
        # Some gateways send {"error": "message"}
        return {"message": error}
    return None


def _as_code(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    return str(value)


def extract_flat_error(body: Any) -> Optional[ProviderErrorInfo]:
    """
    Top-level envelope without an `error` wrapper.

    {"code": "...", "message": "...", "retry_after": 12}
    """
    if not isinstance(body, dict) or "error" in body:
        return None
    code = _as_code(body.get("code"))
    message = body.get("message")
    if code is None or not message:
        return None
    details = body.get("details")
    retry_after = parse_duration(body.get("retry_after"))
    if retry_after is None and isinstance(details, dict):
        retry_after = parse_duration(details.get("retry_after"))
    return ProviderErrorInfo(
        message=str(message),
        code=code,
        retry_after=retry_after,
        details=details,
    )


# =============================================================================
# PER-PROVIDER EXTRACTORS
# =============================================================================


def extract_openai_error(body: Any) -> Optional[ProviderErrorInfo]:
    """
    OpenAI-compatible envelope (OpenAI, Groq, Cerebras).

    {"error": {"message": "...", "type": "...", "code": "...", "param": null}}
    """
    error = _error_object(body)
    if error is None:
        return None
    code = _as_code(error.get("code")) or _as_code(error.get("type"))
    return ProviderErrorInfo(
        message=str(error.get("message") or code or "Unknown provider error"),
        code=code,
        retry_after=parse_duration(error.get("retry_after")),
        details=error.get("param"),
    )


def extract_gemini_error(body: Any) -> Optional[ProviderErrorInfo]:
    """
    Google envelope, optionally wrapped in a one-element list.

    {"error": {"code": 429, "message": "...", "status": "RESOURCE_EXHAUSTED",
               "details": [{"@type": "...RetryInfo", "retryDelay": "30s"}]}}
    """
    error = _error_object(body)
    if error is None:
        return None

    numeric_code = error.get("code")
    status = (
        numeric_code
        if isinstance(numeric_code, int) and not isinstance(numeric_code, bool)
        else None
    )

    retry_after = None
    details = error.get("details")
    if isinstance(details, list):
        for detail in details:
            if not isinstance(detail, dict):
                continue
            if str(detail.get("@type", "")).endswith("RetryInfo"):
                retry_after = parse_duration(detail.get("retryDelay"))
                if retry_after is not None:
                    break

    code = _as_code(error.get("status")) or _as_code(numeric_code)
    return ProviderErrorInfo(
        message=str(error.get("message") or code or "Unknown provider error"),
        code=code,
        status=status,
        retry_after=retry_after,
        details=details,
    )


def extract_enosislabs_error(body: Any) -> Optional[ProviderErrorInfo]:
    """
    Rainy API envelope.

    {"success": false, "error": {"code": "...", "message": "...",
                                 "details": {...}, "retry_after": 12}}

    The same fields may also appear at the top level.
    """
    error = _error_object(body)
    if error is None:
        flat = extract_flat_error(body)
        if flat is not None:
            return flat
        if isinstance(body, dict) and body.get("success") is False:
            message = body.get("message") or "Request failed"
            return ProviderErrorInfo(message=str(message))
        return None

    retry_after = parse_duration(error.get("retry_after"))
    details = error.get("details")
    if retry_after is None and isinstance(details, dict):
        retry_after = parse_duration(details.get("retry_after"))

    code = _as_code(error.get("code"))
    return ProviderErrorInfo(
        message=str(error.get("message") or code or "Unknown provider error"),
        code=code,
        retry_after=retry_after,
        details=details,
    )


def extract_generic_error(body: Any) -> Optional[ProviderErrorInfo]:
    """Try every known envelope, most specific first."""
    error = _error_object(body)
    if error is None:
        return extract_enosislabs_error(body)
    if "status" in error or isinstance(error.get("details"), list):
        return extract_gemini_error(body)
    if "retry_after" in error or (isinstance(body, dict) and "success" in body):
        return extract_enosislabs_error(body)
    return extract_openai_error(body)


ERROR_EXTRACTORS: Dict[str, Callable[[Any], Optional[ProviderErrorInfo]]] = {
    OPENAI: extract_openai_error,
    GROQ: extract_openai_error,
    CEREBRAS: extract_openai_error,
    GEMINI: extract_gemini_error,
    ENOSISLABS: extract_enosislabs_error,
}


def extract_provider_error(
    body: Any, provider: Optional[str] = None
) -> Optional[ProviderErrorInfo]:
    """
    Extract a provider error from a decoded JSON body.

    Args:
        body: Decoded JSON (dict or list)
        provider: Provider identity used to pick the envelope format

    Returns:
        ProviderErrorInfo, or None if the body carries no error
    """
    extractor = ERROR_EXTRACTORS.get((provider or "").lower(), extract_generic_error)
    info = extractor(body)
    if info is None:
        info = extract_flat_error(body)
    return info


__all__ = [
    "ProviderErrorInfo",
    "ERROR_EXTRACTORS",
    "parse_duration",
    "extract_openai_error",
    "extract_gemini_error",
    "extract_enosislabs_error",
    "extract_flat_error",
    "extract_generic_error",
    "extract_provider_error",
]
