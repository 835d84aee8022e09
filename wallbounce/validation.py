"""Input sanitization and numeric clamping shared by the engine and providers."""

import math
import re
from collections.abc import Sequence
from typing import Any

DEFAULT_MAX_LENGTH = 10000

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


class ValidationError(ValueError):
    """Base class for caller-payload validation failures."""


class InvalidInputError(ValidationError):
    pass


class EmptyAfterSanitizationError(ValidationError):
    pass


class InputTooLongError(ValidationError):
    def __init__(self, length: int, max_length: int) -> None:
        self.length = length
        self.max_length = max_length
        super().__init__(f"Input too long ({length} chars). Maximum {max_length} characters allowed")


class InvalidMessagesError(ValidationError):
    pass


class InvalidMessageContentError(ValidationError):
    pass


def sanitize_text(value: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Strip control characters and surrounding whitespace.

    Raises:
        InvalidInputError: value is not a non-empty string.
        EmptyAfterSanitizationError: nothing is left after stripping.
        InputTooLongError: the stripped text exceeds max_length.
    """
    if not isinstance(value, str) or not value:
        raise InvalidInputError("Input must be a non-empty string")

    sanitized = _CONTROL_CHARS.sub("", value).strip()
    if not sanitized:
        raise EmptyAfterSanitizationError("Input cannot be empty after sanitization")
    if len(sanitized) > max_length:
        raise InputTooLongError(len(sanitized), max_length)
    return sanitized


def clamp_number(value: Any, minimum: float, maximum: float, default: float) -> float:
    """Clamp value into [minimum, maximum]; fall back to default when it is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        value = default
    return min(max(value, minimum), maximum)


def normalize_messages(messages: Any) -> list[dict]:
    """Return a copy of messages with every content field sanitized.

    All other keys on each entry are passed through untouched.
    """
    if isinstance(messages, (str, bytes)) or not isinstance(messages, Sequence):
        raise InvalidMessagesError("Messages must be an array")

    normalized: list[dict] = []
    for index, message in enumerate(messages):
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content:
            raise InvalidMessageContentError(
                f"Message {index}: content must be a non-empty string"
            )
        normalized.append({**message, "content": sanitize_text(content)})
    return normalized
