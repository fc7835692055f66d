"""Mode controller: maps tier and strict flag to the active rule set."""

from dataclasses import dataclass
from typing import Optional, Union

from logshield.catalog import RuleCatalog, default_catalog
from logshield.models import Rule, RuleContext, RuleGroup, Tier

BASE_GROUPS = frozenset(
    {
        RuleGroup.TOKENS,
        RuleGroup.CREDENTIALS,
        RuleGroup.PII,
        RuleGroup.URLS,
        RuleGroup.CLOUD,
        RuleGroup.STRUCTURED,
        RuleGroup.FINANCIAL,
        RuleGroup.GENERIC,
    }
)

_PAID_GROUPS = BASE_GROUPS | {RuleGroup.EXTENDED}
_ENTROPY_GROUPS = _PAID_GROUPS | {RuleGroup.ENTROPY}

TIER_GROUPS: dict[Tier, frozenset[RuleGroup]] = {
    Tier.FREE: BASE_GROUPS,
    Tier.STARTER: _PAID_GROUPS,
    Tier.PRO: _PAID_GROUPS,
    Tier.TEAM: _ENTROPY_GROUPS,
    Tier.LIFETIME: _ENTROPY_GROUPS,
}

# Tiers that always run strict-only rules
STRICT_TIERS = frozenset({Tier.TEAM, Tier.LIFETIME})


@dataclass(frozen=True)
class ActiveMode:
    """Resolved rule set and options for one call."""

    tier: Tier
    rules: tuple[Rule, ...]
    context: RuleContext
    entropy: bool


def parse_tier(tier: Union[Tier, str, None]) -> Tier:
    """
    Normalize a tier argument.

    Raises:
        ValueError: If tier is not a known tier name
    """
    if tier is None:
        return Tier.FREE
    if isinstance(tier, Tier):
        return tier
    try:
        return Tier(str(tier).lower())
    except ValueError:
        raise ValueError(f"Unknown tier: {tier}") from None


def resolve_mode(
    strict: bool = False,
    dry_run: bool = False,
    tier: Union[Tier, str, None] = None,
    catalog: Optional[RuleCatalog] = None,
) -> ActiveMode:
    """
    Resolve which rules run and with which context.

    Args:
        strict: Enable strict-only rules
        dry_run: Report matches without modifying output
        tier: License tier; None means free
        catalog: Catalog to draw rules from. Defaults to the bundled one.

    Returns:
        ActiveMode for the call
    """
    resolved = parse_tier(tier)
    groups = TIER_GROUPS[resolved]
    catalog = catalog if catalog is not None else default_catalog()

    return ActiveMode(
        tier=resolved,
        rules=catalog.for_groups(groups),
        context=RuleContext(strict=strict or resolved in STRICT_TIERS, dry_run=dry_run),
        entropy=RuleGroup.ENTROPY in groups,
    )
