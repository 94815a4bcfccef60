import re
from typing import Any, Optional

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Z0-9_-]")
_DASHES = re.compile(r"-+")

GENERATED_PREFIX = "TASK-"


def canonicalize(raw: Any) -> Optional[str]:
    """Map a raw identifier to its canonical form, or None.

    trim -> uppercase -> whitespace runs to '-' -> drop anything outside
    [A-Z0-9_-] -> collapse '-' runs. Stripping happens before collapsing so
    a second application finds nothing left to strip.
    """
    if raw is None or raw == "":
        return None
    s = str(raw).strip().upper()
    s = _WHITESPACE.sub("-", s)
    s = _DISALLOWED.sub("", s)
    s = _DASHES.sub("-", s)
    return s or None


def generated_id(key: str) -> str:
    candidate = canonicalize(f"{GENERATED_PREFIX}{key[:6].upper()}")
    # canonicalize never drops the ASCII prefix
    return candidate or GENERATED_PREFIX


def with_suffix(base: str, n: int) -> str:
    return f"{base}-{n}"
