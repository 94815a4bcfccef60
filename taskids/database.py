"""
SQLite store for owners and their tasks.

Uses SQLAlchemy. Each task row keeps its fields as a JSON document, so the
store can hold arbitrary task payloads while exposing the same hierarchical
paths as the document stores ("users", "users/<uid>/tasks").
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .storage import Store, children_of, split_path

Base = declarative_base()

DEFAULT_OWNERS_PATH = "users"
DEFAULT_RECORDS_CHILD = "tasks"


class Owner(Base):
    """Account owning a set of tasks."""

    __tablename__ = "owners"

    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)


class Task(Base):
    """Task row; `fields` holds the full task document."""

    __tablename__ = "tasks"

    owner_id = Column(String, ForeignKey("owners.id"), primary_key=True)
    key = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    fields = Column(JSON, nullable=False, default=dict)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()


class SqlStore(Store):
    """Store backed by the owners/tasks tables."""

    def __init__(
        self,
        db_path: Path,
        owners_path: str = DEFAULT_OWNERS_PATH,
        records_child: str = DEFAULT_RECORDS_CHILD,
    ):
        self.db_path = Path(db_path)
        self.owners_path = owners_path
        self.records_child = records_child
        init_database(self.db_path)
        self.session = get_session(self.db_path)

    def _parse(self, path: str) -> Tuple[str, Optional[str]]:
        """Returns ("owners", None) or ("tasks", owner_id)."""
        parts = split_path(path)
        root = split_path(self.owners_path)
        if parts == root:
            return "owners", None
        if len(parts) == len(root) + 2 and parts[:len(root)] == root and parts[-1] == self.records_child:
            return "tasks", parts[len(root)]
        raise ValueError(f"Unsupported path for SQL store: {path}")

    async def read_children(self, path: str, shallow: bool = False) -> Dict[str, Any]:
        kind, owner_id = self._parse(path)
        if kind == "owners":
            owners = self.session.query(Owner).order_by(Owner.position, Owner.id).all()
            return {owner.id: True for owner in owners}
        tasks = (
            self.session.query(Task)
            .filter_by(owner_id=owner_id)
            .order_by(Task.position, Task.key)
            .all()
        )
        return {task.key: dict(task.fields or {}) for task in tasks}

    async def update(self, path: str, key: str, fields: Dict[str, Any]) -> None:
        kind, owner_id = self._parse(path)
        if kind != "tasks":
            raise ValueError(f"Updates are only supported on task paths, got: {path}")
        task = self.session.query(Task).filter_by(owner_id=owner_id, key=key).first()
        if task is None:
            raise KeyError(f"No record at {path}/{key}")
        # Reassign so SQLAlchemy sees the JSON change
        task.fields = {**(task.fields or {}), **fields}
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def import_document(self, document: Dict[str, Any]) -> Tuple[int, int]:
        """
        Load a nested {owners_path: {uid: {records_child: {...}}}} document.

        Existing owners and tasks are replaced. Returns (owners, tasks) imported.
        """
        node: Any = document
        for part in split_path(self.owners_path):
            node = node.get(part, {}) if isinstance(node, dict) else {}
        owners = children_of(node)

        owner_count = 0
        task_count = 0
        try:
            for o_pos, (uid, owner_value) in enumerate(owners.items()):
                self.session.merge(Owner(id=uid, position=o_pos))
                owner_count += 1
                tasks = children_of(owner_value.get(self.records_child) if isinstance(owner_value, dict) else None)
                for t_pos, (key, value) in enumerate(tasks.items()):
                    if not isinstance(value, dict):
                        continue
                    self.session.merge(Task(owner_id=uid, key=key, position=t_pos, fields=dict(value)))
                    task_count += 1
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return owner_count, task_count

    async def close(self) -> None:
        self.session.close()
