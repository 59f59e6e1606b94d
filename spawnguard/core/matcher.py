"""Policy matcher — decides whether an object is rejected by a rule set."""

from __future__ import annotations

from typing import Iterable

from spawnguard.core.rules import ObjectIdentity, PolicyMode, RuleSet


def matches_any(keywords: Iterable[str], identity: ObjectIdentity) -> bool:
    """Check whether any keyword is a substring of the short or type name.

    Args:
        keywords: Lower-cased keywords (as stored on a RuleSet).
        identity: Lower-cased identity of the object.

    Returns:
        True if at least one keyword matches either field.
    """
    return any(k in identity.short_name or k in identity.type_name for k in keywords)


def should_reject(identity: ObjectIdentity, rules: RuleSet) -> bool:
    """Evaluate one object against a rule set.

    Args:
        identity: Identity of the object being admitted or swept.
        rules: The active rule set.

    Returns:
        True if the object must be destroyed, False if it may exist.
    """
    if rules.is_empty:
        return False

    if rules.mode is PolicyMode.ALLOW_DENY:
        if rules.allow and not matches_any(rules.allow, identity):
            return True
        return matches_any(rules.deny, identity)

    if not matches_any(rules.deny, identity):
        return False

    if rules.mode is PolicyMode.DENY_EXCEPTION and matches_any(rules.exceptions, identity):
        return False

    return True
