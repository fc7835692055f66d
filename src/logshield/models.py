"""Data models for logshield."""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from enum import Enum


class Tier(str, Enum):
    """License tier. Each level sees a superset of the rules below it."""

    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    TEAM = "team"
    LIFETIME = "lifetime"


class RuleGroup(str, Enum):
    """Rule groups that tiers are granted."""

    TOKENS = "tokens"
    CREDENTIALS = "credentials"
    PII = "pii"
    URLS = "urls"
    CLOUD = "cloud"
    STRUCTURED = "structured"
    FINANCIAL = "financial"
    GENERIC = "generic"
    EXTENDED = "extended"
    ENTROPY = "entropy"


class RuleMode(str, Enum):
    """When a rule is allowed to redact."""

    DEFAULT = "default"
    STRICT_ONLY = "strict_only"


class Confidence(str, Enum):
    """Confidence of an entropy finding."""

    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Examples:
    """Rule validation examples."""

    match: tuple[str, ...] = ()
    nomatch: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleContext:
    """Per-call options handed to every rule."""

    strict: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class Rule:
    """Compiled rule definition."""

    name: str
    group: RuleGroup
    mode: RuleMode
    pattern: str
    compiled: Any  # re.Pattern
    replacement: Optional[str] = None
    handler: Optional[Callable[[str], str]] = None
    validator: Optional[Callable[[str], bool]] = None
    description: str = ""
    flags: tuple[str, ...] = ()
    examples: Optional[Examples] = None

    @property
    def strict_only(self) -> bool:
        """Return True if the rule only redacts in strict mode."""
        return self.mode is RuleMode.STRICT_ONLY

    def apply(self, match: "re.Match[str]", context: RuleContext) -> Optional[str]:
        """
        Compute the replacement for one regex match.

        Args:
            match: Match of this rule's pattern against the current text
            context: Options of the current call

        Returns:
            Replacement text, or None when the rule declines the match
        """
        if self.strict_only and not context.strict:
            return None

        candidate = match.group(0)
        if self.validator is not None and not self.validator(candidate):
            return None

        if self.handler is not None:
            return self.handler(candidate)

        return match.expand(self.replacement)


@dataclass(frozen=True)
class MatchRecord:
    """
    A single redaction event.

    Only the rule name is kept: the matched text and its offset never enter
    a record, so results are always safe to serialize.
    """

    rule: str

    def to_dict(self) -> dict[str, str]:
        """Return the serializable form."""
        return {"rule": self.rule}


@dataclass
class SanitizeResult:
    """Result from sanitize operation."""

    output: str
    matches: list[MatchRecord] = field(default_factory=list)

    @property
    def has_matches(self) -> bool:
        """Return True if anything was (or would be) redacted."""
        return len(self.matches) > 0

    @property
    def match_count(self) -> int:
        """Return number of redactions."""
        return len(self.matches)

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable form."""
        return {
            "output": self.output,
            "matches": [m.to_dict() for m in self.matches],
        }


@dataclass
class ScanResult:
    """Result from scan operation. Never carries text."""

    matches: list[MatchRecord] = field(default_factory=list)

    @property
    def has_matches(self) -> bool:
        """Return True if anything would be redacted."""
        return len(self.matches) > 0

    @property
    def match_count(self) -> int:
        """Return number of detections."""
        return len(self.matches)

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable form."""
        return {"matches": [m.to_dict() for m in self.matches]}


@dataclass(frozen=True)
class EntropyScore:
    """Measured entropy of a token flagged as a probable secret."""

    entropy: float
    confidence: Confidence

    @property
    def placeholder(self) -> str:
        """Return the reserved placeholder embedding the score."""
        return f"<REDACTED_ENTROPY:{self.confidence.value}:{self.entropy:.2f}>"
