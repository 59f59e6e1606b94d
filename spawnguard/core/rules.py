"""Rule set and object identity model for the admission filter.

A RuleSet is an immutable bundle of keyword lists plus the policy mode that
decides how those lists combine. Keywords are normalized once on construction:
None lists become empty, blank entries are dropped and the rest are lower-cased.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional


class PolicyMode(str, Enum):
    """Supported policy shapes.

    Each shape is evaluated on its own terms; they are never merged.
    """

    DENY_ONLY = "deny_only"
    ALLOW_DENY = "allow_deny"
    DENY_EXCEPTION = "deny_exception"


def normalize_keywords(keywords: Optional[Iterable[Optional[str]]]) -> tuple[str, ...]:
    """Drop empty or blank keywords and lower-case the rest.

    Args:
        keywords: Raw keyword list from configuration. May be None.

    Returns:
        Tuple of lower-cased keywords in their original order.
    """
    if keywords is None:
        return ()
    return tuple(k.lower() for k in keywords if k and k.strip())


@dataclass(frozen=True)
class RuleSet:
    """Keyword policy applied to every evaluated object.

    Attributes:
        mode: Which policy shape the lists are combined with.
        deny: Keywords that reject an object.
        allow: Keywords an object must match to be kept (allow_deny only).
        exceptions: Keywords that override a deny match (deny_exception only).
    """

    mode: PolicyMode = PolicyMode.DENY_ONLY
    deny: tuple[str, ...] = field(default_factory=tuple)
    allow: tuple[str, ...] = field(default_factory=tuple)
    exceptions: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", PolicyMode(self.mode))
        object.__setattr__(self, "deny", normalize_keywords(self.deny))
        object.__setattr__(self, "allow", normalize_keywords(self.allow))
        object.__setattr__(self, "exceptions", normalize_keywords(self.exceptions))

    @classmethod
    def deny_only(cls, deny: Optional[Iterable[str]] = None) -> RuleSet:
        return cls(mode=PolicyMode.DENY_ONLY, deny=deny)  # type: ignore[arg-type]

    @classmethod
    def allow_deny(
        cls,
        allow: Optional[Iterable[str]] = None,
        deny: Optional[Iterable[str]] = None,
    ) -> RuleSet:
        return cls(mode=PolicyMode.ALLOW_DENY, allow=allow, deny=deny)  # type: ignore[arg-type]

    @classmethod
    def deny_exception(
        cls,
        deny: Optional[Iterable[str]] = None,
        exceptions: Optional[Iterable[str]] = None,
    ) -> RuleSet:
        return cls(mode=PolicyMode.DENY_EXCEPTION, deny=deny, exceptions=exceptions)  # type: ignore[arg-type]

    @property
    def primary(self) -> tuple[str, ...]:
        """The list whose emptiness disables the policy.

        For allow_deny this is the allow list when one is configured,
        otherwise the deny list. Every other mode keys off the deny list.
        """
        if self.mode is PolicyMode.ALLOW_DENY and self.allow:
            return self.allow
        return self.deny

    @property
    def is_empty(self) -> bool:
        """True when the policy would block nothing."""
        return not self.primary


@dataclass(frozen=True)
class ObjectIdentity:
    """Identity strings of one live object, lower-cased for matching."""

    short_name: Optional[str]
    type_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "short_name", (self.short_name or "").lower())
        object.__setattr__(self, "type_name", self.type_name.lower())


def identity_of(obj: Any) -> ObjectIdentity:
    """Derive the identity of a host object at evaluation time.

    The short name is read from ``obj.short_name`` (missing or None becomes
    an empty string). The type name is the object's concrete class name.
    """
    return ObjectIdentity(getattr(obj, "short_name", None), type(obj).__name__)
