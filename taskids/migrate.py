"""
Migration Pass Orchestrator.

Responsibilities:
- Enumerate owners and load each owner's tasks.
- Build a fresh Registry per owner and consult the Resolver per task.
- Write idOS deltas back, one single-field update per task.
- Isolate owner read failures and task write failures.

Non-Responsibilities:
- No identifier logic (see resolver / normalize).
- No retries. Re-running the pass is the recovery mechanism.

Invariant:
A pass over data that already satisfies the idOS invariant issues no writes.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .errors import OwnerReadError, RecordWriteError, TopLevelReadError
from .logger import StructuredLogger, get_logger
from .registry import Registry
from .resolver import Resolution, resolve
from .schema import ID_OS_FIELD, load_records
from .storage import Store, join_path

DEFAULT_OWNERS_PATH = "users"
DEFAULT_RECORDS_CHILD = "tasks"


@dataclass
class PassSummary:
    dry_run: bool = False
    owners_seen: int = 0
    owners_processed: int = 0
    owners_skipped: int = 0
    owners_failed: int = 0
    records_seen: int = 0
    records_updated: int = 0
    records_unchanged: int = 0
    records_skipped: int = 0
    updates: List[Resolution] = field(default_factory=list)
    owner_failures: List[OwnerReadError] = field(default_factory=list)
    write_failures: List[RecordWriteError] = field(default_factory=list)

    ok = True
    exit_code = 0

    @property
    def failures(self) -> int:
        return len(self.owner_failures) + len(self.write_failures)

    def lines(self) -> List[str]:
        verb = "Would update" if self.dry_run else "Updated"
        return [
            f"Owners: {self.owners_processed} processed, {self.owners_skipped} empty, "
            f"{self.owners_failed} failed (of {self.owners_seen})",
            f"Records: {self.records_seen} seen, {self.records_unchanged} unchanged, "
            f"{self.records_skipped} skipped",
            f"{verb}: {self.records_updated}",
            f"Failures: {self.failures} ({len(self.write_failures)} writes, "
            f"{len(self.owner_failures)} owners)",
        ]


@dataclass
class PassFailure:
    error: TopLevelReadError

    ok = False
    exit_code = 2


PassOutcome = Union[PassSummary, PassFailure]


async def migrate_owner(
    store: Store,
    owner: str,
    summary: PassSummary,
    logger: StructuredLogger,
    owners_path: str = DEFAULT_OWNERS_PATH,
    records_child: str = DEFAULT_RECORDS_CHILD,
    derive_from_key: bool = False,
) -> None:
    """Process one owner, recording outcomes into `summary`."""
    records_path = join_path(owners_path, owner, records_child)
    try:
        children = await store.read_children(records_path)
    except Exception as e:
        error = OwnerReadError(owner, e)
        summary.owners_failed += 1
        summary.owner_failures.append(error)
        logger.record_owner_failure(type(e).__name__)
        logger.error("Failed to read owner records, skipping", owner=owner, error=str(e))
        return

    if not children:
        summary.owners_skipped += 1
        logger.info("No tasks for owner", owner=owner)
        return

    records = load_records(children)
    skipped = len(children) - len(records)
    if skipped:
        summary.records_skipped += skipped
        logger.warning("Ignoring non-record values", owner=owner, count=skipped)

    registry = Registry.build(records)
    for record in records:
        summary.records_seen += 1
        resolution = resolve(record, registry, derive_from_key=derive_from_key)
        if not resolution.changed:
            summary.records_unchanged += 1
            continue

        if summary.dry_run:
            logger.info(
                f"[dry-run] {resolution.action} idOS",
                owner=owner, key=record.key, old=resolution.old, new=resolution.new,
            )
        else:
            try:
                await store.update(records_path, record.key, {ID_OS_FIELD: resolution.new})
            except Exception as e:
                error = RecordWriteError(owner, record.key, resolution.new, e)
                summary.write_failures.append(error)
                logger.record_write_failure(type(e).__name__)
                logger.error(
                    "Failed to update task",
                    owner=owner, key=record.key, idOS=resolution.new, error=str(e),
                )
                continue
            logger.info(
                f"{resolution.action} idOS",
                owner=owner, key=record.key, old=resolution.old, new=resolution.new,
            )

        summary.records_updated += 1
        summary.updates.append(resolution)
        logger.record_update(owner)

    summary.owners_processed += 1
    logger.record_owner_processed()


async def run_pass(
    store: Store,
    *,
    dry_run: bool = False,
    derive_from_key: bool = False,
    owners_path: str = DEFAULT_OWNERS_PATH,
    records_child: str = DEFAULT_RECORDS_CHILD,
    logger: Optional[StructuredLogger] = None,
) -> PassOutcome:
    """
    Run one reconciliation pass over every owner in `store`.

    Args:
        store: Store to read from and write to
        dry_run: Compute decisions without writing
        derive_from_key: Derive missing idOS from the task key when it has no id
        owners_path: Path of the owner list
        records_child: Child node holding an owner's tasks
        logger: Logger to use (default: global logger)

    Returns:
        PassSummary on completion, PassFailure if the owner list could not be read
    """
    logger = logger or get_logger()
    logger.reset_metrics()
    try:
        owners = await store.read_children(owners_path, shallow=True)
    except Exception as e:
        error = TopLevelReadError(owners_path, e)
        logger.critical("Failed to read owner list", path=owners_path, error=str(e))
        return PassFailure(error)

    summary = PassSummary(dry_run=dry_run)
    if not owners:
        logger.info(f"No owners found under /{owners_path}")
        return summary

    for owner in owners:
        summary.owners_seen += 1
        logger.debug("Processing owner", owner=owner)
        await migrate_owner(
            store,
            owner,
            summary,
            logger,
            owners_path=owners_path,
            records_child=records_child,
            derive_from_key=derive_from_key,
        )

    logger.info(
        "Migration finished",
        owners=summary.owners_processed,
        updated=summary.records_updated,
        failures=summary.failures,
        dry_run=dry_run,
    )
    logger.log_metrics_summary()
    return summary


def run_pass_sync(store: Store, **kwargs) -> PassOutcome:
    """Run a pass to completion and close the store."""

    async def _run():
        try:
            return await run_pass(store, **kwargs)
        finally:
            await store.close()

    return asyncio.run(_run())
