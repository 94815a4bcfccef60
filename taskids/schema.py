from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

ID_FIELD = "id"
ID_OS_FIELD = "idOS"
IDENTIFIER_FIELDS = (ID_FIELD, ID_OS_FIELD)


@dataclass(frozen=True)
class Record:
    """
    A task as read from the store.

    Only `id` and `idOS` are interpreted. Every other field is kept in
    `extra` as an opaque, read-only mapping and is never written back.
    """

    key: str
    id: Optional[Any] = None
    id_os: Optional[Any] = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_store(cls, key: str, value: Any) -> Optional["Record"]:
        """Build a Record from a raw store value; None if it is not a record."""
        if not isinstance(value, Mapping):
            return None
        extra = {k: v for k, v in value.items() if k not in IDENTIFIER_FIELDS}
        return cls(
            key=str(key),
            id=_present(value.get(ID_FIELD)),
            id_os=_present(value.get(ID_OS_FIELD)),
            extra=MappingProxyType(extra),
        )

    @property
    def has_id_os(self) -> bool:
        return self.id_os is not None


def _present(v: Any) -> Optional[Any]:
    # Empty strings and false-y scalars count as missing
    if v is None or isinstance(v, bool) or v == "" or v == 0:
        return None
    return v


def _is_identifier_value(v: Any) -> bool:
    return isinstance(v, (str, int, float)) and not isinstance(v, bool)


def validate_record(value: Any) -> List[str]:
    """
    Returns a list of shape problems for a raw store value. Empty list means
    the value can be processed as a record.
    """
    if not isinstance(value, Mapping):
        return [f"Record must be an object, got {type(value).__name__}"]

    errors: List[str] = []
    for f in IDENTIFIER_FIELDS:
        if f in value and value[f] is not None and not _is_identifier_value(value[f]):
            errors.append(f"Field '{f}' must be a string or number if provided")
    return errors


def load_records(children: Dict[str, Any]) -> List[Record]:
    """Records of an owner in store order, skipping values that are not records."""
    records = []
    for key, value in children.items():
        record = Record.from_store(key, value)
        if record is not None:
            records.append(record)
    return records
