"""Core sanitization engine."""

import re
import logging
from typing import Optional, Union

from logshield.catalog import RuleCatalog, default_catalog
from logshield.formatter import build_sanitize_result, build_scan_result
from logshield.guard import guard_input
from logshield.models import (
    MatchRecord,
    Rule,
    RuleContext,
    SanitizeResult,
    ScanResult,
    Tier,
)
from logshield.modes import resolve_mode
from logshield.validators import score_token

logger = logging.getLogger(__name__)

ENTROPY_RULE = "HIGH_ENTROPY_SECRET"

# Existing placeholders are kept whole; everything else splits on
# whitespace, quotes, brackets and key/value punctuation.
ENTROPY_TOKEN_RE = re.compile(r"<REDACTED_[^>]*>|[^\s\"'{}\[\](),:;=<>|&?]+")


class Engine:
    """
    Sanitization engine.

    The engine runs the rules of a RuleCatalog in catalog order, each rule
    seeing the output of the previous one. It holds no per-call state, so a
    single instance can be shared freely.
    """

    def __init__(self, catalog: Optional[RuleCatalog] = None) -> None:
        """
        Initialize engine with a rule catalog.

        Args:
            catalog: RuleCatalog to use. If None, uses the bundled catalog.
        """
        self.catalog = catalog if catalog is not None else default_catalog()

    def sanitize(
        self,
        text: str,
        strict: bool = False,
        dry_run: bool = False,
        tier: Union[Tier, str, None] = None,
    ) -> SanitizeResult:
        """
        Redact secrets and personal data from text.

        Args:
            text: Log text to sanitize
            strict: Also run strict-only rules
            dry_run: Detect only; output is the unmodified input
            tier: License tier selecting the rule groups. None means free.

        Returns:
            SanitizeResult with sanitized output and rule-only match records

        Raises:
            TypeError: If text is not a string
            InputTooLarge: If text exceeds the size ceiling
        """
        guard_input(text)
        if text == "":
            return SanitizeResult(output="", matches=[])

        mode = resolve_mode(strict=strict, dry_run=dry_run, tier=tier, catalog=self.catalog)

        output = text
        matches: list[MatchRecord] = []
        for rule in mode.rules:
            output = self._apply_rule(rule, output, mode.context, matches)

        if mode.entropy:
            output = self._apply_entropy(output, matches)

        logger.debug(
            f"Sanitized {len(text)} chars with {len(mode.rules)} rules "
            f"(tier={mode.tier.value}, strict={mode.context.strict}): "
            f"{len(matches)} redactions"
        )

        return build_sanitize_result(text, output, matches, dry_run)

    def scan(
        self,
        text: str,
        strict: bool = False,
        tier: Union[Tier, str, None] = None,
    ) -> ScanResult:
        """
        Detect what sanitize would redact, without returning any text.

        Args:
            text: Log text to scan
            strict: Also run strict-only rules
            tier: License tier selecting the rule groups. None means free.

        Returns:
            ScanResult with rule-only match records
        """
        result = self.sanitize(text, strict=strict, dry_run=True, tier=tier)
        return build_scan_result(result.matches)

    @staticmethod
    def _apply_rule(
        rule: Rule, text: str, context: RuleContext, matches: list[MatchRecord]
    ) -> str:
        """Run one rule over text and record every effective replacement."""

        def _replace(m: "re.Match[str]") -> str:
            original = m.group(0)
            replacement = rule.apply(m, context)
            if replacement is None or replacement == original:
                return original
            matches.append(MatchRecord(rule=rule.name))
            return replacement

        return rule.compiled.sub(_replace, text)

    @staticmethod
    def _apply_entropy(text: str, matches: list[MatchRecord]) -> str:
        """Replace remaining high-entropy tokens with scored placeholders."""

        def _replace(m: "re.Match[str]") -> str:
            token = m.group(0)
            if token.startswith("<REDACTED_"):
                return token
            score = score_token(token)
            if score is None:
                return token
            matches.append(MatchRecord(rule=ENTROPY_RULE))
            return score.placeholder

        return ENTROPY_TOKEN_RE.sub(_replace, text)


_default_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Return the shared engine over the bundled catalog."""
    global _default_engine
    if _default_engine is None:
        _default_engine = Engine()
    return _default_engine


def sanitize(
    text: str,
    strict: bool = False,
    dry_run: bool = False,
    tier: Union[Tier, str, None] = None,
) -> SanitizeResult:
    """Sanitize text with the bundled catalog. See Engine.sanitize."""
    return get_engine().sanitize(text, strict=strict, dry_run=dry_run, tier=tier)


def scan(
    text: str,
    strict: bool = False,
    tier: Union[Tier, str, None] = None,
) -> ScanResult:
    """Scan text with the bundled catalog. See Engine.scan."""
    return get_engine().scan(text, strict=strict, tier=tier)
