"""Tests for tier resolution and result formatting."""

import pytest

from logshield import default_catalog
from logshield.formatter import build_sanitize_result, count_by_rule
from logshield.models import MatchRecord, RuleGroup, Tier
from logshield.modes import STRICT_TIERS, TIER_GROUPS, parse_tier, resolve_mode

TIER_ORDER = [Tier.FREE, Tier.STARTER, Tier.PRO, Tier.TEAM, Tier.LIFETIME]


class TestTierGroups:
    """Tests for tier to rule group mapping."""

    def test_every_tier_mapped(self):
        """Test that every tier has a group set."""
        assert set(TIER_GROUPS) == set(Tier)

    @pytest.mark.parametrize("lower,higher", list(zip(TIER_ORDER, TIER_ORDER[1:])))
    def test_tiers_are_supersets(self, lower, higher):
        """Test each tier sees at least the rules of the tier below."""
        assert TIER_GROUPS[lower] <= TIER_GROUPS[higher]

        lower_rules = set(resolve_mode(tier=lower).rules)
        higher_rules = set(resolve_mode(tier=higher).rules)
        assert lower_rules <= higher_rules

    def test_entropy_only_for_top_tiers(self):
        """Test entropy analysis is granted to team and lifetime."""
        granted = {tier for tier, groups in TIER_GROUPS.items() if RuleGroup.ENTROPY in groups}

        assert granted == {Tier.TEAM, Tier.LIFETIME}
        assert granted == set(STRICT_TIERS)


class TestResolveMode:
    """Tests for mode resolution."""

    def test_default_is_free(self):
        """Test no tier means free."""
        mode = resolve_mode()

        assert mode.tier is Tier.FREE
        assert mode.context.strict is False
        assert mode.entropy is False
        assert all(rule.group is not RuleGroup.EXTENDED for rule in mode.rules)

    def test_rules_keep_catalog_order(self):
        """Test active rules follow catalog order."""
        names = [rule.name for rule in resolve_mode(tier="pro").rules]
        catalog_names = [n for n in default_catalog().names if n in names]

        assert names == catalog_names

    def test_strict_flag(self):
        """Test the strict flag reaches the rule context."""
        mode = resolve_mode(strict=True, dry_run=True)

        assert mode.context.strict is True
        assert mode.context.dry_run is True

    def test_strict_tier(self):
        """Test team tier is strict without the flag."""
        assert resolve_mode(tier=Tier.TEAM).context.strict is True

    @pytest.mark.parametrize("value", ["pro", "PRO", Tier.PRO])
    def test_parse_tier(self, value):
        """Test tier names are case-insensitive."""
        assert parse_tier(value) is Tier.PRO

    def test_parse_unknown_tier(self):
        """Test an unknown tier name."""
        with pytest.raises(ValueError):
            parse_tier("gold")


class TestFormatter:
    """Tests for result shaping."""

    def test_count_by_rule_sorted(self):
        """Test counts are keyed and ordered by rule name."""
        matches = [MatchRecord("PASSWORD"), MatchRecord("EMAIL"), MatchRecord("PASSWORD")]

        counts = count_by_rule(matches)
        assert counts == {"EMAIL": 1, "PASSWORD": 2}
        assert list(counts) == ["EMAIL", "PASSWORD"]

    def test_dry_run_keeps_original(self):
        """Test dry-run results carry the original text."""
        result = build_sanitize_result("raw", "<REDACTED_X>", [MatchRecord("X")], dry_run=True)

        assert result.output == "raw"
        assert result.match_count == 1

    def test_applied_result(self):
        """Test applied results carry the redacted text."""
        result = build_sanitize_result("raw", "<REDACTED_X>", [MatchRecord("X")], dry_run=False)

        assert result.to_dict() == {"output": "<REDACTED_X>", "matches": [{"rule": "X"}]}
