"""
Per-owner identifier registry.

Built once from an owner's snapshot and discarded after that owner has been
processed. Maps a canonical identifier to the record keys claiming it, in
snapshot order, so duplicates already present in the store stay visible.
"""

from typing import Dict, Iterable, List, Optional, Set

from .normalize import canonicalize
from .schema import Record


class Registry:
    """Canonical identifier -> ordered claimant keys for one owner."""

    def __init__(self):
        self._claims: Dict[str, List[str]] = {}
        # Keys whose stored value for a claimed id is already exactly canonical
        self._exact: Dict[str, Set[str]] = {}
        self._by_key: Dict[str, str] = {}

    @classmethod
    def build(cls, records: Iterable[Record]) -> "Registry":
        """
        Register every record that already carries an idOS.

        Values that do not canonicalize are registered under their raw
        string so the claim is not silently dropped.
        """
        registry = cls()
        for record in records:
            if not record.id_os:
                continue
            raw = str(record.id_os)
            canonical = canonicalize(raw) or raw
            registry._add(canonical, record.key, exact=(canonical == record.id_os))
        return registry

    def _add(self, identifier: str, key: str, exact: bool) -> None:
        claimants = self._claims.setdefault(identifier, [])
        if key not in claimants:
            claimants.append(key)
        if exact:
            self._exact.setdefault(identifier, set()).add(key)
        self._by_key[key] = identifier

    def is_claimed(self, identifier: str) -> bool:
        return bool(self._claims.get(identifier))

    def claimants(self, identifier: str) -> Set[str]:
        return set(self._claims.get(identifier, ()))

    def holder(self, identifier: str) -> Optional[str]:
        """
        Key that keeps `identifier` when several records claim it.

        The first claimant already storing the exact canonical value wins;
        when none does, the first claimant in snapshot order wins.
        """
        claimants = self._claims.get(identifier)
        if not claimants:
            return None
        exact = self._exact.get(identifier, set())
        for key in claimants:
            if key in exact:
                return key
        return claimants[0]

    def is_free_for(self, identifier: str, key: str) -> bool:
        """True when no key other than `key` claims `identifier`."""
        return self.claimants(identifier) <= {key}

    def claimed_by(self, key: str) -> Optional[str]:
        return self._by_key.get(key)

    def claim(self, identifier: str, key: str) -> None:
        """Move `key`'s claim to `identifier`. Idempotent."""
        previous = self._by_key.get(key)
        if previous is not None and previous != identifier:
            self._discard(previous, key)
        self._add(identifier, key, exact=True)

    def release(self, key: str) -> None:
        previous = self._by_key.pop(key, None)
        if previous is not None:
            self._discard(previous, key)

    def _discard(self, identifier: str, key: str) -> None:
        claimants = self._claims.get(identifier, [])
        if key in claimants:
            claimants.remove(key)
        if not claimants:
            self._claims.pop(identifier, None)
        self._exact.get(identifier, set()).discard(key)
        if self._by_key.get(key) == identifier:
            del self._by_key[key]

    def __len__(self) -> int:
        return len(self._claims)

    def __contains__(self, identifier: str) -> bool:
        return self.is_claimed(identifier)
