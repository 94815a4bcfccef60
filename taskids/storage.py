"""
Store contract and document-backed stores.

A store is any hierarchical key/value document store addressed by
slash-separated paths ("users", "users/<uid>/tasks"). Reads return the
children of a node in insertion order; updates patch only the given fields
of one child.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional


def split_path(path: str) -> List[str]:
    return [part for part in path.strip("/").split("/") if part]


def join_path(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p)


def children_of(node: Any) -> Dict[str, Any]:
    """
    Children of a node as key -> value.

    Arrays (what the Realtime Database returns for sequential integer keys)
    are keyed by index; null holes are dropped.
    """
    if isinstance(node, dict):
        return dict(node)
    if isinstance(node, list):
        return {str(i): v for i, v in enumerate(node) if v is not None}
    return {}


def _child(node: Any, key: str) -> Any:
    if isinstance(node, dict):
        return node.get(key)
    if isinstance(node, list) and key.isdigit() and int(key) < len(node):
        return node[int(key)]
    return None


class Store:
    """Interface consumed by the migration pass."""

    async def read_children(self, path: str, shallow: bool = False) -> Dict[str, Any]:
        """
        Mapping of child key -> value under `path`; empty if the node is missing.

        With `shallow`, stores that can avoid loading whole subtrees may return
        placeholder values; only the keys are meaningful.
        """
        raise NotImplementedError

    async def update(self, path: str, key: str, fields: Dict[str, Any]) -> None:
        """Apply `fields` to the child `key` under `path`, leaving other fields untouched."""
        raise NotImplementedError

    async def close(self) -> None:
        return None


class DocumentStore(Store):
    """Store over an in-memory nested document."""

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self.document: Dict[str, Any] = document if document is not None else {}

    def _node(self, path: str) -> Any:
        node: Any = self.document
        for part in split_path(path):
            node = _child(node, part)
            if node is None:
                return None
        return node

    async def read_children(self, path: str, shallow: bool = False) -> Dict[str, Any]:
        return children_of(self._node(path))

    async def update(self, path: str, key: str, fields: Dict[str, Any]) -> None:
        record = _child(self._node(path), key)
        if not isinstance(record, dict):
            raise KeyError(f"No record at {join_path(path, key)}")
        record.update(fields)
        self._persist()

    def _persist(self) -> None:
        pass


def load_store(path: Path) -> Dict[str, Any]:
    """
    Read a JSON document. An empty file is an empty document.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        ValueError: If the top-level value is not an object
    """
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()
    if not content:
        return {}
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at the top of {path}")
    return data


def save_store(path: Path, store: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(store, f, indent=2, ensure_ascii=False)
    tmp.replace(path)


class JsonFileStore(DocumentStore):
    """
    DocumentStore persisted to a JSON file after every update.

    The file is read on first access, so a missing or corrupt file surfaces
    as a read failure of the pass rather than as an empty store.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._loaded = False
        super().__init__({})

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.document = load_store(self.path)
            self._loaded = True

    async def read_children(self, path: str, shallow: bool = False) -> Dict[str, Any]:
        self._ensure_loaded()
        return await super().read_children(path, shallow)

    async def update(self, path: str, key: str, fields: Dict[str, Any]) -> None:
        self._ensure_loaded()
        await super().update(path, key, fields)

    def _persist(self) -> None:
        save_store(self.path, self.document)
