"""
Identifier Resolver.

Responsibilities:
- Decide the idOS a record must end up with.
- Keep the owner's Registry in step with every decision.

Non-Responsibilities:
- No store access.
- No logging or error handling.

Invariant:
Given the same records in the same order, the same decisions are made.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .normalize import canonicalize, generated_id, with_suffix
from .registry import Registry
from .schema import Record

ASSIGNED = "assigned"
NORMALIZED = "normalized"
DEDUPLICATED = "deduplicated"
UNCHANGED = "unchanged"


@dataclass(frozen=True)
class Resolution:
    key: str
    old: Optional[Any]
    new: Optional[str]
    action: str

    @property
    def changed(self) -> bool:
        return self.action != UNCHANGED


def resolve(record: Record, registry: Registry, derive_from_key: bool = False) -> Resolution:
    if not record.has_id_os:
        return _assign(record, registry, derive_from_key)
    return _reconcile(record, registry)


def _assign(record: Record, registry: Registry, derive_from_key: bool) -> Resolution:
    if record.id is not None:
        base = canonicalize(record.id)
    elif derive_from_key:
        base = canonicalize(record.key)
    else:
        base = None
    if base is None:
        base = generated_id(record.key)

    # The record holds no claim yet, so any claimant is a conflict
    candidate = base
    n = 1
    while registry.is_claimed(candidate):
        candidate = with_suffix(base, n)
        n += 1

    registry.claim(candidate, record.key)
    return Resolution(record.key, None, candidate, ASSIGNED)


def _reconcile(record: Record, registry: Registry) -> Resolution:
    base = canonicalize(record.id_os)
    if base is None:
        # Keep what cannot be normalized rather than destroy it
        return Resolution(record.key, record.id_os, record.id_os, UNCHANGED)

    if registry.holder(base) == record.key:
        if base == record.id_os:
            return Resolution(record.key, record.id_os, base, UNCHANGED)
        registry.claim(base, record.key)
        return Resolution(record.key, record.id_os, base, NORMALIZED)

    candidate = base
    n = 1
    while not registry.is_free_for(candidate, record.key):
        candidate = with_suffix(base, n)
        n += 1

    registry.claim(candidate, record.key)
    if candidate == record.id_os:
        return Resolution(record.key, record.id_os, candidate, UNCHANGED)
    action = NORMALIZED if candidate == base else DEDUPLICATED
    return Resolution(record.key, record.id_os, candidate, action)
