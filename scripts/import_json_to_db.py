#!/usr/bin/env python3
"""
Import a Realtime Database JSON export into the SQLite task store.

Usage:
    python scripts/import_json_to_db.py --json data/export.json --db data/tasks.db
"""

import argparse
import json
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskids.database import SqlStore


def import_export(json_path: Path, db_path: Path, dry_run: bool = False) -> bool:
    """
    Copy users and their tasks from a JSON export into the database.

    Args:
        json_path: Path to JSON export file
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database
    """
    print(f"Loading export from {json_path}...")
    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)

    users = data.get("users", {}) if isinstance(data, dict) else {}
    print(f"Found {len(users)} users in export")

    if dry_run:
        print("\n[DRY RUN] Would import the following users:")
        for i, (uid, user) in enumerate(list(users.items())[:5], 1):
            tasks = user.get("tasks", {}) if isinstance(user, dict) else {}
            print(f"  {i}. {uid}: {len(tasks or {})} tasks")
        if len(users) > 5:
            print(f"  ... and {len(users) - 5} more")
        return True

    print(f"\nImporting into {db_path}...")
    store = SqlStore(db_path)
    try:
        owners, tasks = store.import_document(data)
    except Exception as e:
        print(f"❌ Failed to import: {e}")
        return False
    finally:
        store.session.close()

    print("\n✅ Import complete!")
    print(f"   Users: {owners}")
    print(f"   Tasks: {tasks}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Import a JSON export into the SQLite task store")
    parser.add_argument("--json", type=Path, default=Path("data/export.json"),
                       help="Path to JSON export file")
    parser.add_argument("--db", type=Path, default=Path("data/tasks.db"),
                       help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                       help="Show what would be imported without writing")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    success = import_export(args.json, args.db, dry_run=args.dry_run)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
