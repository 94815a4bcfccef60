"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, Any, Iterable

from taskids.logger import StructuredLogger
from taskids.storage import DocumentStore


class FlakyStore(DocumentStore):
    """DocumentStore that fails chosen reads and writes and records every write."""

    def __init__(
        self,
        document: Dict[str, Any],
        fail_reads: Iterable[str] = (),
        fail_writes: Iterable[str] = (),
    ):
        super().__init__(document)
        self.fail_reads = set(fail_reads)
        self.fail_writes = set(fail_writes)
        self.writes = []
        self.shallow_reads = []

    async def read_children(self, path: str, shallow: bool = False) -> Dict[str, Any]:
        if path in self.fail_reads:
            raise ConnectionError(f"read refused: {path}")
        if shallow:
            self.shallow_reads.append(path)
        return await super().read_children(path, shallow)

    async def update(self, path: str, key: str, fields: Dict[str, Any]) -> None:
        if key in self.fail_writes:
            raise PermissionError(f"write refused: {key}")
        self.writes.append((path, key, dict(fields)))
        await super().update(path, key, fields)


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers attached."""
    return StructuredLogger(name="taskids-test", enable_file=False, enable_console=False)


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """Two users with a mix of missing, messy and duplicate identifiers."""
    return {
        "users": {
            "u1": {
                "email": "ana@example.com",
                "tasks": {
                    "k1": {"idOS": "X Y", "title": "Trocar rolamento"},
                    "k2": {"idOS": "X Y", "title": "Pintar peça"},
                    "abc123xyz": {"title": "Sem identificador"},
                    "k4": {"id": "peça 12", "status": "todo"},
                },
            },
            "u2": {
                "tasks": {
                    "m1": {"idOS": "OS-100", "status": "done"},
                    "m2": {"id": "os 100", "status": "doing"},
                },
            },
        }
    }


@pytest.fixture
def flaky_store_factory():
    def make(document, fail_reads=(), fail_writes=()):
        return FlakyStore(document, fail_reads=fail_reads, fail_writes=fail_writes)
    return make


@pytest.fixture
def json_store_file(tmp_path, sample_document) -> Path:
    """JSON file holding the sample document."""
    store_file = tmp_path / "export.json"
    store_file.write_text(json.dumps(sample_document, indent=2, ensure_ascii=False), encoding="utf-8")
    return store_file
