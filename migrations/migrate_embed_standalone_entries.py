#!/usr/bin/env python3
"""Migration script to consolidate standalone entries into embedded storage.

Transaction groups whose entries live as rows of the ``entries`` table are
rewritten so that the entries are carried inline in the group's
``embedded_entries`` JSON column, and the rows are removed. Groups already
in the embedded shape are left untouched, so the script can be re-run.

After the migration every group is stored embedded and the compatibility
score no longer carries the mixed-storage penalty.

Usage:
    python migrations/migrate_embed_standalone_entries.py [--db-path PATH] [--owner OWNER] [--dry-run]
"""

import sys
from pathlib import Path

# Add src to path so we can import ledgerguard modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import inspect
from ledgerguard.database.factories import create_sqlite_database
from ledgerguard.database.models import Entry, TransactionGroup


def find_standalone_groups(session, owner_id: str | None = None) -> list[str]:
    """Find groups that keep their entries as standalone rows.

    Args:
        session: SQLAlchemy session
        owner_id: Restrict to one owner's groups when given

    Returns:
        IDs of groups with entry rows and no inline entries
    """
    query = (
        session.query(TransactionGroup.id)
        .join(Entry, Entry.transaction_group_id == TransactionGroup.id)
        .filter(TransactionGroup.embedded_entries.is_(None))
        .distinct()
    )
    if owner_id is not None:
        query = query.filter(TransactionGroup.owner_id == owner_id)
    return [row.id for row in query.all()]


def migrate_database(
    database_path: str | None = None, owner_id: str | None = None, dry_run: bool = False
) -> int:
    """Embed the standalone entries of every matching transaction group.

    Args:
        database_path: Path to database file. If None, uses default location.
        owner_id: Restrict the migration to one owner
        dry_run: Only report what would be moved

    Returns:
        Number of groups migrated (or that would be migrated)

    Raises:
        Exception: If migration fails
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise Exception("Could not get database engine from session")

            tables = inspect(engine).get_table_names()
            if "transaction_groups" not in tables or "entries" not in tables:
                raise Exception(
                    "Tables 'transaction_groups' and 'entries' do not exist. "
                    "Please initialize the database schema first."
                )

            group_ids = find_standalone_groups(session, owner_id)
        finally:
            session.close()

        if not group_ids:
            print("Nothing to migrate: no transaction groups use standalone entries")
            return 0

        if dry_run:
            print(f"Would embed entries of {len(group_ids)} transaction group(s)")
            return len(group_ids)

        print(f"Starting migration: embedding entries of {len(group_ids)} transaction group(s)...")
        moved = 0
        for group_id in group_ids:
            moved += db.embed_standalone_entries(group_id)
        print(f"  Moved {moved} entr{'ies' if moved != 1 else 'y'}")

        print("Migration completed successfully!")
        return len(group_ids)

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Consolidate standalone entries into embedded storage"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides LEDGERGUARD_DB_PATH environment variable)",
    )
    parser.add_argument("--owner", type=str, help="Only migrate this owner's transaction groups")
    parser.add_argument("--dry-run", action="store_true", help="Report without changing anything")
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path, owner_id=args.owner, dry_run=args.dry_run)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
