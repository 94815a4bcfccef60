"""
Read-only check of the idOS invariant.

Every task must carry an idOS that is already canonical, and no two tasks
of the same owner may share one. Nothing is written.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import OwnerReadError, TopLevelReadError
from .normalize import canonicalize
from .schema import Record, validate_record
from .storage import Store, join_path

MISSING = "missing"
NON_CANONICAL = "non-canonical"
DUPLICATE = "duplicate"
MALFORMED = "malformed"


@dataclass(frozen=True)
class Violation:
    owner: str
    key: str
    kind: str
    value: Any = None
    detail: str = ""


@dataclass
class AuditReport:
    owners_checked: int = 0
    records_checked: int = 0
    violations: List[Violation] = field(default_factory=list)
    owner_failures: List[OwnerReadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations and not self.owner_failures

    def by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = defaultdict(int)
        for v in self.violations:
            counts[v.kind] += 1
        return dict(counts)


def find_violations(owner: str, children: Dict[str, Any]) -> List[Violation]:
    violations: List[Violation] = []
    seen: Dict[str, str] = {}

    for key, value in children.items():
        errors = validate_record(value)
        if errors:
            violations.append(Violation(owner, key, MALFORMED, detail="; ".join(errors)))
            continue

        record = Record.from_store(key, value)
        if not record.has_id_os:
            violations.append(Violation(owner, key, MISSING))
            continue

        canonical = canonicalize(record.id_os)
        if canonical is not None and canonical != record.id_os:
            violations.append(
                Violation(owner, key, NON_CANONICAL, record.id_os, detail=f"expected {canonical}")
            )

        stored = str(record.id_os)
        if stored in seen:
            detail = f"also held by {seen[stored]}"
            if canonical is None:
                # migrate keeps values it cannot normalize
                detail += "; not repairable by migrate, fix by hand"
            violations.append(Violation(owner, key, DUPLICATE, record.id_os, detail=detail))
        else:
            seen[stored] = key

    return violations


async def audit_store(
    store: Store,
    owners_path: str = "users",
    records_child: str = "tasks",
) -> AuditReport:
    """
    Check every owner in `store`.

    Raises:
        TopLevelReadError: If the owner list cannot be read
    """
    try:
        owners = await store.read_children(owners_path, shallow=True)
    except Exception as e:
        raise TopLevelReadError(owners_path, e) from e

    report = AuditReport()
    for owner in owners:
        try:
            children = await store.read_children(join_path(owners_path, owner, records_child))
        except Exception as e:
            report.owner_failures.append(OwnerReadError(owner, e))
            continue
        report.owners_checked += 1
        report.records_checked += len(children)
        report.violations.extend(find_violations(owner, children))
    return report
