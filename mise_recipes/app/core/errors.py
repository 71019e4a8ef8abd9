"""Error taxonomy shared by the AI and parsing services.

Public service boundaries never raise these; they return an ``AIFailure`` or a
failed ``ParseRecipeResult`` carrying an ``AIErrorKind``. The exceptions below
are raised internally and mapped by :func:`classify_provider_error`.
"""

import json
from enum import Enum
from typing import Optional

import httpx
from pydantic import ValidationError


class AIErrorKind(str, Enum):
    AI_DISABLED = "AI_DISABLED"
    INVALID_INPUT = "INVALID_INPUT"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES: dict[AIErrorKind, str] = {
    AIErrorKind.AI_DISABLED: "AI features are disabled",
    AIErrorKind.INVALID_INPUT: "Invalid input provided",
    AIErrorKind.EMPTY_RESPONSE: "AI returned empty response",
    AIErrorKind.VALIDATION_ERROR: "Recipe extraction failed - missing required fields",
    AIErrorKind.CONFIGURATION_ERROR: "AI provider is not configured correctly",
    AIErrorKind.AUTH_ERROR: "AI provider rejected the credentials",
    AIErrorKind.RATE_LIMIT: "AI provider rate limit exceeded, try again later",
    AIErrorKind.TIMEOUT: "AI provider request timed out",
    AIErrorKind.NETWORK_ERROR: "Could not reach the AI provider",
    AIErrorKind.INVALID_RESPONSE: "AI provider returned a malformed response",
    AIErrorKind.PROVIDER_ERROR: "AI provider returned an error",
    AIErrorKind.UNKNOWN_ERROR: "Unexpected error during AI extraction",
}


class ConfigurationError(ValueError):
    """Selected provider is missing a required credential or endpoint."""


class UnknownProviderError(KeyError):
    """No factory is registered for a provider kind (a configuration bug)."""


class ProviderResponseError(RuntimeError):
    """Provider answered 2xx but with an error body."""

    def __init__(self, message: str, error_type: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type


class InvalidResponseError(ValueError):
    """Provider content could not be decoded into a JSON object."""


def classify_provider_error(exc: BaseException) -> AIErrorKind:
    if isinstance(exc, ConfigurationError):
        return AIErrorKind.CONFIGURATION_ERROR
    if isinstance(exc, httpx.TimeoutException):
        return AIErrorKind.TIMEOUT
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return AIErrorKind.AUTH_ERROR
        if status == 429:
            return AIErrorKind.RATE_LIMIT
        if status in (408, 504):
            return AIErrorKind.TIMEOUT
        return AIErrorKind.PROVIDER_ERROR
    if isinstance(exc, httpx.TransportError):
        return AIErrorKind.NETWORK_ERROR
    if isinstance(exc, ProviderResponseError):
        error_type = (exc.error_type or "").lower()
        if "rate" in error_type or "quota" in error_type:
            return AIErrorKind.RATE_LIMIT
        if "auth" in error_type or "key" in error_type:
            return AIErrorKind.AUTH_ERROR
        return AIErrorKind.PROVIDER_ERROR
    if isinstance(exc, (InvalidResponseError, json.JSONDecodeError, ValidationError)):
        return AIErrorKind.INVALID_RESPONSE
    return AIErrorKind.UNKNOWN_ERROR


def error_message(kind: AIErrorKind, detail: Optional[str] = None) -> str:
    base = ERROR_MESSAGES.get(kind, ERROR_MESSAGES[AIErrorKind.UNKNOWN_ERROR])
    if detail and kind in (
        AIErrorKind.CONFIGURATION_ERROR,
        AIErrorKind.PROVIDER_ERROR,
        AIErrorKind.UNKNOWN_ERROR,
    ):
        return f"{base}: {detail}"
    return base
