"""Filter core: rule sets, policy matcher, sweep scheduler."""

from spawnguard.core.matcher import should_reject
from spawnguard.core.rules import ObjectIdentity, PolicyMode, RuleSet, identity_of
from spawnguard.core.spawn_filter import SpawnFilter
from spawnguard.core.sweep import SweepJob, SweepScheduler, SweepState

__all__ = [
    "ObjectIdentity",
    "PolicyMode",
    "RuleSet",
    "SpawnFilter",
    "SweepJob",
    "SweepScheduler",
    "SweepState",
    "identity_of",
    "should_reject",
]
