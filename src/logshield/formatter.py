"""Output formatter: result shapes and per-rule counts."""

from collections import Counter
from typing import Iterable

from logshield.models import MatchRecord, SanitizeResult, ScanResult


def build_sanitize_result(
    original: str, redacted: str, matches: list[MatchRecord], dry_run: bool
) -> SanitizeResult:
    """Build the sanitize result. A dry run always returns the input untouched."""
    output = original if dry_run else redacted
    return SanitizeResult(output=output, matches=list(matches))


def build_scan_result(matches: list[MatchRecord]) -> ScanResult:
    """Build the scan result, which never carries text."""
    return ScanResult(matches=list(matches))


def count_by_rule(matches: Iterable[MatchRecord]) -> dict[str, int]:
    """Count matches per rule name, ordered by rule name."""
    counts = Counter(m.rule for m in matches)
    return {rule: counts[rule] for rule in sorted(counts)}
