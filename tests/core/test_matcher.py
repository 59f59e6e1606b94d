"""Unit tests for the policy matcher."""

from __future__ import annotations

import pytest

from spawnguard.core.matcher import matches_any, should_reject
from spawnguard.core.rules import ObjectIdentity, PolicyMode, RuleSet


def ident(short_name, type_name="BaseEntity") -> ObjectIdentity:
    return ObjectIdentity(short_name, type_name)


# -------------------------------------------------------------------------
# Empty policy
# -------------------------------------------------------------------------


@pytest.mark.parametrize("mode", list(PolicyMode))
def test_empty_policy_blocks_nothing(mode: PolicyMode):
    """An empty rule set never rejects, whatever the shape."""
    rules = RuleSet(mode=mode)

    assert should_reject(ident("chicken", "Chicken"), rules) is False
    assert should_reject(ident(None, "AutoTurret"), rules) is False


def test_blank_keywords_block_nothing():
    rules = RuleSet.deny_only(["", "   "])
    assert should_reject(ident("anything", "Anything"), rules) is False


def test_exception_list_alone_blocks_nothing():
    rules = RuleSet.deny_exception([], ["wolf"])
    assert should_reject(ident("chicken"), rules) is False


# -------------------------------------------------------------------------
# Deny-only
# -------------------------------------------------------------------------


def test_deny_only_matches_short_name_substring():
    rules = RuleSet.deny_only(["chicken"])
    assert should_reject(ident("chicken.small"), rules) is True


def test_deny_only_matches_type_name_case_insensitively():
    rules = RuleSet.deny_only(["CHICKEN"])
    assert should_reject(ident(None, "Chicken"), rules) is True


def test_deny_only_keeps_non_matching():
    rules = RuleSet.deny_only(["chicken"])
    assert should_reject(ident("wolf", "Wolf"), rules) is False


def test_deny_only_any_keyword_matches():
    rules = RuleSet.deny_only(["boar", "barrel"])
    assert should_reject(ident("loot-barrel-1", "LootContainer"), rules) is True


def test_missing_short_name_uses_type_name_only():
    """No short name is treated as an empty string, not an error."""
    rules = RuleSet.deny_only(["minicopter"])

    assert should_reject(ident(None, "Minicopter"), rules) is True
    assert should_reject(ident(None, "RowBoat"), rules) is False


# -------------------------------------------------------------------------
# Allow + deny
# -------------------------------------------------------------------------


def test_allow_deny_rejects_objects_not_on_allow_list():
    rules = RuleSet.allow_deny(allow=["helicopter"], deny=[])
    assert should_reject(ident("boat", "RowBoat"), rules) is True


def test_allow_deny_keeps_allowed_objects():
    rules = RuleSet.allow_deny(allow=["helicopter"], deny=[])
    assert should_reject(ident("helicopter.entity", "Helicopter"), rules) is False


def test_allow_deny_omission_wins_over_deny_contents():
    rules = RuleSet.allow_deny(allow=["helicopter"], deny=["nothing-matches-this"])
    assert should_reject(ident("boat"), rules) is True


def test_allow_deny_deny_applies_to_allowed_objects():
    rules = RuleSet.allow_deny(allow=["heli"], deny=["scrap"])
    assert should_reject(ident("scraptransporthelicopter"), rules) is True
    assert should_reject(ident("minihelicopter"), rules) is False


def test_allow_deny_without_allow_list_behaves_as_deny():
    rules = RuleSet.allow_deny(allow=[], deny=["wolf"])
    assert should_reject(ident("wolf"), rules) is True
    assert should_reject(ident("boar"), rules) is False


# -------------------------------------------------------------------------
# Deny + exception
# -------------------------------------------------------------------------


def test_exception_overrides_deny():
    rules = RuleSet.deny_exception(deny=["turret"], exceptions=["autoturret_friendly"])
    assert should_reject(ident(None, "AutoTurret_Friendly"), rules) is False


def test_deny_applies_without_exception_match():
    rules = RuleSet.deny_exception(deny=["turret"], exceptions=["autoturret_friendly"])
    assert should_reject(ident("autoturret_deployed", "AutoTurret"), rules) is True


def test_exception_only_consulted_for_denied_objects():
    rules = RuleSet.deny_exception(deny=["turret"], exceptions=["wolf"])
    assert should_reject(ident("wolf"), rules) is False


# -------------------------------------------------------------------------
# Purity
# -------------------------------------------------------------------------


def test_should_reject_is_idempotent():
    rules = RuleSet.deny_exception(deny=["chicken"], exceptions=["small"])
    identity = ident("chicken.large", "Chicken")

    first = should_reject(identity, rules)
    second = should_reject(identity, rules)

    assert first is second is True


def test_matches_any():
    identity = ident("crate_normal", "LootContainer")
    assert matches_any(("crate",), identity)
    assert matches_any(("container",), identity)
    assert not matches_any(("barrel",), identity)
    assert not matches_any((), identity)
