"""Generation error type and the rule table used to classify remote failures."""

import logging
import re
from typing import Callable

import httpx
import openai

logger = logging.getLogger(__name__)

# Error categories
DECODE = "decode"
NETWORK = "network"
AUTH = "auth"
QUOTA = "quota"
POLICY = "policy"
SCHEMA = "schema"
CONTRACT = "contract"
UNKNOWN = "unknown"

# Categories raised locally; these are never reclassified.
LOCAL_CATEGORIES = {DECODE, SCHEMA, CONTRACT}


class GenerationError(Exception):
    """Failure raised by the preprocessor, compositor or generation client."""

    def __init__(self, message: str, category: str = UNKNOWN, retryable: bool = False):
        super().__init__(message)
        self.category = category
        self.retryable = retryable


Predicate = Callable[[Exception], bool]


def _status_of(exc: Exception) -> int | None:
    """Return the HTTP status carried by an SDK or httpx error, if any."""
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    if status is None and isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
    return status if isinstance(status, int) else None


def status_is(code: int) -> Predicate:
    return lambda exc: _status_of(exc) == code


def message_matches(pattern: str) -> Predicate:
    regex = re.compile(pattern, re.IGNORECASE)
    return lambda exc: bool(regex.search(str(exc) or ""))


def is_connection_error(exc: Exception) -> bool:
    return isinstance(exc, (httpx.TransportError, openai.APIConnectionError, ConnectionError))


# Evaluated top to bottom, first match wins. Status codes take priority over
# message patterns.
CLASSIFICATION_RULES: list[tuple[Predicate, str]] = [
    (status_is(401), AUTH),
    (status_is(429), QUOTA),
    (status_is(400), POLICY),
    (is_connection_error, NETWORK),
    (message_matches(r"401|invalid\s*api\s*key"), AUTH),
    (message_matches(r"quota|rate limit"), QUOTA),
    (message_matches(r"content policy|safety"), POLICY),
    (message_matches(r"failed to fetch|cors|networkerror|connection"), NETWORK),
]

USER_MESSAGES = {
    AUTH: "Invalid OpenAI API key. Please re-enter it in Settings.",
    QUOTA: "OpenAI rate limit or quota exceeded. Please try again later.",
    POLICY: "Content policy violation. Please try with a different image.",
    NETWORK: "Network error contacting OpenAI. Please check your internet connection.",
}


def classify(
    exc: Exception,
    rules: list[tuple[Predicate, str]] | None = None,
    allow_policy: bool = False,
) -> str:
    """Return the category of the first rule matching ``exc``."""
    for predicate, category in rules if rules is not None else CLASSIFICATION_RULES:
        if category == POLICY and not allow_policy:
            continue
        if predicate(exc):
            return category
    return UNKNOWN


def to_generation_error(exc: Exception, operation: str, allow_policy: bool = False) -> GenerationError:
    """Wrap a raw remote failure into a classified GenerationError."""
    if isinstance(exc, GenerationError) and exc.category in LOCAL_CATEGORIES:
        return exc

    category = classify(exc, allow_policy=allow_policy)
    if category == UNKNOWN:
        message = f"{operation} failed: {exc or 'Unknown error'}"
    else:
        message = USER_MESSAGES[category]

    logger.error("%s failed (%s): %s", operation, category, exc)
    return GenerationError(message, category=category, retryable=category in (QUOTA, NETWORK))
