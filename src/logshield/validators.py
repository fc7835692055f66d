"""Checksum and entropy validators used by the rule engine."""

import math
from collections import Counter
from typing import Callable, Optional

from logshield.models import Confidence, EntropyScore

ENTROPY_THRESHOLD = 4.5
HIGH_CONFIDENCE_THRESHOLD = 5.0
ENTROPY_MIN_LENGTH = 16
ENTROPY_MAX_LENGTH = 200
ALNUM_RATIO = 0.7


def luhn_valid(candidate: str) -> bool:
    """
    Check a digit run against the Luhn checksum.

    Non-digit characters (spaces, dashes) are ignored.

    Args:
        candidate: Text containing the digits to check

    Returns:
        True if the digits pass the checksum
    """
    digits = [int(c) for c in candidate if c.isdigit()]
    if not digits:
        return False

    total = 0
    for i, digit in enumerate(reversed(digits)):
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    return total % 10 == 0


def shannon_entropy(s: str) -> float:
    """
    Calculate Shannon entropy of a string in bits per character.

    Args:
        s: String to analyze

    Returns:
        Entropy between 0 and log2(number of distinct characters)
    """
    if not s:
        return 0.0

    length = len(s)
    entropy = 0.0
    for count in Counter(s).values():
        p = count / length
        entropy -= p * math.log2(p)

    return entropy


def alnum_ratio(s: str) -> float:
    """Return the share of alphanumeric characters in s."""
    if not s:
        return 0.0
    return sum(1 for c in s if c.isalnum()) / len(s)


def score_token(token: str) -> Optional[EntropyScore]:
    """
    Score a token as a probable unknown secret.

    Args:
        token: Candidate token

    Returns:
        EntropyScore if the token qualifies and crosses the threshold,
        otherwise None
    """
    if not ENTROPY_MIN_LENGTH <= len(token) <= ENTROPY_MAX_LENGTH:
        return None

    if alnum_ratio(token) <= ALNUM_RATIO:
        return None

    entropy = shannon_entropy(token)
    if entropy < ENTROPY_THRESHOLD:
        return None

    if entropy >= HIGH_CONFIDENCE_THRESHOLD:
        confidence = Confidence.HIGH
    else:
        confidence = Confidence.MEDIUM

    return EntropyScore(entropy=entropy, confidence=confidence)


# Validators a catalog entry can reference by name
VALIDATORS: dict[str, Callable[[str], bool]] = {
    "luhn": luhn_valid,
}
