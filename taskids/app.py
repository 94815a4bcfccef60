import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from . import __version__
from .audit import audit_store
from .env import Settings, is_remote, load_env
from .errors import ConfigurationError, TopLevelReadError
from .logger import get_logger
from .migrate import run_pass_sync
from .normalize import canonicalize
from .storage import JsonFileStore, Store

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FATAL = 2

USAGE = (
    "Usage: taskids migrate --service-account ./serviceAccountKey.json "
    "--database-url https://<PROJECT>.firebaseio.com"
)


def open_store(settings: Settings) -> Store:
    """Pick a store implementation from the database URL."""
    url = settings.database_url
    if is_remote(url):
        from .firebase import RealtimeDatabaseAuth, RealtimeDatabaseStore, load_credentials

        auth = None
        if settings.service_account is not None:
            auth = RealtimeDatabaseAuth(load_credentials(settings.service_account))
        return RealtimeDatabaseStore(url, auth=auth)

    path = settings.local_path()
    if urlparse(url).scheme == "sqlite":
        from .database import SqlStore

        return SqlStore(path)
    return JsonFileStore(path)


def _settings(args: argparse.Namespace, **kwargs) -> Settings:
    return Settings.resolve(
        database_url=args.database_url,
        service_account=args.service_account,
        log_level=args.log_level,
        log_dir=Path(args.log_dir) if args.log_dir else None,
        **kwargs,
    )


def cmd_migrate(args: argparse.Namespace) -> int:
    settings = _settings(args, dry_run=args.dry_run, derive_from_key=args.derive_from_key)
    try:
        settings.validate()
        store = open_store(settings)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    logger = get_logger(level=settings.log_level, log_dir=settings.log_dir)
    outcome = run_pass_sync(
        store,
        dry_run=settings.dry_run,
        derive_from_key=settings.derive_from_key,
        logger=logger,
    )
    if not outcome.ok:
        print(f"Migration error: {outcome.error}", file=sys.stderr)
        return outcome.exit_code

    print("Dry run complete." if outcome.dry_run else "Migration complete.")
    for line in outcome.lines():
        print(f"  {line}")
    for failure in outcome.owner_failures + outcome.write_failures:
        print(f"  [failed] {failure}")
    return EXIT_OK


def cmd_verify(args: argparse.Namespace) -> int:
    settings = _settings(args)
    try:
        settings.validate(require_credentials=False)
        store = open_store(settings)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    async def _audit():
        try:
            return await audit_store(store)
        finally:
            await store.close()

    try:
        report = asyncio.run(_audit())
    except TopLevelReadError as e:
        print(f"Verify error: {e}", file=sys.stderr)
        return EXIT_FATAL

    print(f"Checked {report.records_checked} tasks across {report.owners_checked} owners")
    for v in report.violations[:20]:
        detail = f" ({v.detail})" if v.detail else ""
        print(f"  [{v.kind}] {v.owner}/{v.key}: {v.value!r}{detail}")
    if len(report.violations) > 20:
        print(f"  ... and {len(report.violations) - 20} more")
    for failure in report.owner_failures:
        print(f"  [unreadable] {failure}")
    if report.ok:
        print("All idOS values are present, canonical and unique per owner.")
        return EXIT_OK
    return EXIT_USAGE


def cmd_canonicalize(args: argparse.Namespace) -> int:
    for value in args.values:
        result = canonicalize(value)
        print(f"{value!r} -> {result if result is not None else '<none>'}")
    return EXIT_OK


def _add_store_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--service-account", "--serviceAccount", dest="service_account",
                   help="Credential JSON file (env: TASKIDS_SERVICE_ACCOUNT)")
    p.add_argument("--database-url", "--databaseURL", dest="database_url",
                   help="https://<PROJECT>.firebaseio.com, sqlite:///path.db or a .json file "
                        "(env: TASKIDS_DATABASE_URL)")
    p.add_argument("--log-level", dest="log_level", default=None,
                   help="DEBUG, INFO, WARNING, ERROR or CRITICAL (env: TASKIDS_LOG_LEVEL)")
    p.add_argument("--log-dir", dest="log_dir", default=None, help="Directory for log files (default: logs/)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskids", description="Assign and reconcile task idOS values per user")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    mig = subparsers.add_parser("migrate", help="Add missing idOS values and make them canonical and unique")
    _add_store_args(mig)
    mig.add_argument("--dry-run", action="store_true", help="Show what would change without writing")
    mig.add_argument("--derive-from-key", action="store_true",
                     help="Derive a missing idOS from the task key when the task has no id")
    mig.set_defaults(func=cmd_migrate)

    ver = subparsers.add_parser("verify", help="Check that every task has a canonical, unique idOS")
    _add_store_args(ver)
    ver.set_defaults(func=cmd_verify)

    can = subparsers.add_parser("canonicalize", help="Print the canonical form of identifiers")
    can.add_argument("values", nargs="+")
    can.set_defaults(func=cmd_canonicalize)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return EXIT_OK
    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_USAGE
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
