"""Input guard: type and size checks that run before any rule."""

import logging

from logshield.errors import InputTooLarge

logger = logging.getLogger(__name__)

MAX_INPUT_BYTES = 200 * 1024


def input_size(text: str) -> int:
    """Return the UTF-8 encoded size of text in bytes."""
    return len(text.encode("utf-8"))


def guard_input(text: object) -> str:
    """
    Check that input is a string within the size ceiling.

    Args:
        text: Raw input

    Returns:
        The same text, unchanged

    Raises:
        TypeError: If input is not a string
        InputTooLarge: If input exceeds MAX_INPUT_BYTES
    """
    if not isinstance(text, str):
        raise TypeError("Log input must be a string")

    size = input_size(text)
    if size > MAX_INPUT_BYTES:
        logger.warning(f"Rejected input of {size} bytes (limit {MAX_INPUT_BYTES})")
        raise InputTooLarge("Log size exceeds 200KB limit")

    return text
