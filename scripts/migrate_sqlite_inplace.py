#!/usr/bin/env python3
"""
In-place SQLite migration for propledger.

- Creates a timestamped backup before applying changes.
- Adds commission_type / total_earned columns to older agent and caretaker tables.
- Adds method / reference_number columns to older payout tables.
- Creates the (subject, payment_period) unique indexes that stop duplicate payouts,
  unless duplicate rows already exist; those are reported and left for review.

Usage:
  ./venv/bin/python scripts/migrate_sqlite_inplace.py --db instance/propledger.db
"""

from __future__ import annotations

import argparse
import shutil
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

PAYOUT_UNIQUE_INDEXES = {
    "uq_agent_commission_period": ("agent_commission_payments", "agent_id"),
    "uq_caretaker_payment_period": ("caretaker_payments", "caretaker_id"),
}


def table_exists(cur: sqlite3.Cursor, table: str) -> bool:
    row = cur.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
        (table,),
    ).fetchone()
    return row is not None


def column_exists(cur: sqlite3.Cursor, table: str, column: str) -> bool:
    rows = cur.execute(f"PRAGMA table_info({table})").fetchall()
    return any(r[1] == column for r in rows)


def index_exists(cur: sqlite3.Cursor, index: str) -> bool:
    row = cur.execute(
        "SELECT 1 FROM sqlite_master WHERE type='index' AND name=?",
        (index,),
    ).fetchone()
    return row is not None


def add_column_if_missing(cur: sqlite3.Cursor, table: str, ddl_suffix: str, column: str) -> None:
    if not table_exists(cur, table):
        return
    if column_exists(cur, table, column):
        return
    cur.execute(f"ALTER TABLE {table} ADD COLUMN {ddl_suffix}")


def find_duplicate_payouts(cur: sqlite3.Cursor, table: str, subject_column: str) -> list[tuple]:
    return cur.execute(
        f"""
        SELECT {subject_column}, payment_period, COUNT(*)
        FROM {table}
        GROUP BY {subject_column}, payment_period
        HAVING COUNT(*) > 1
        ORDER BY {subject_column}, payment_period
        """
    ).fetchall()


def create_payout_unique_indexes(cur: sqlite3.Cursor) -> list[str]:
    skipped = []
    for name, (table, subject_column) in PAYOUT_UNIQUE_INDEXES.items():
        if not table_exists(cur, table) or index_exists(cur, name):
            continue
        duplicates = find_duplicate_payouts(cur, table, subject_column)
        if duplicates:
            for subject_id, period, count in duplicates:
                print(f"{table}: {subject_column}={subject_id} has {count} payouts for {period}")
            print(f"Skipped {name} index due to duplicate payout rows.")
            skipped.append(name)
            continue
        cur.execute(f"CREATE UNIQUE INDEX {name} ON {table}({subject_column}, payment_period)")
    return skipped


def normalize_commission_types(cur: sqlite3.Cursor) -> None:
    for table in ("agents", "caretakers"):
        if not table_exists(cur, table) or not column_exists(cur, table, "commission_type"):
            continue
        cur.execute(f"UPDATE {table} SET commission_type = upper(trim(commission_type))")
        cur.execute(f"UPDATE {table} SET commission_type = 'FLAT_RATE' WHERE commission_type = 'FLAT'")


def run(db_path: Path) -> list[str]:
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    backup = db_path.with_name(f"{db_path.name}.migration-backup-{stamp}")
    shutil.copy2(db_path, backup)
    print(f"Backup created: {backup}")

    con = sqlite3.connect(str(db_path))
    try:
        cur = con.cursor()
        cur.execute("PRAGMA foreign_keys=ON")

        add_column_if_missing(cur, "agents", "commission_type TEXT NOT NULL DEFAULT 'PERCENTAGE'", "commission_type")
        add_column_if_missing(cur, "agents", "total_earned INTEGER NOT NULL DEFAULT 0", "total_earned")
        add_column_if_missing(cur, "caretakers", "total_earned INTEGER NOT NULL DEFAULT 0", "total_earned")

        for table in ("agent_commission_payments", "caretaker_payments"):
            add_column_if_missing(cur, table, "method TEXT NOT NULL DEFAULT 'AUTO'", "method")
            add_column_if_missing(cur, table, "reference_number TEXT", "reference_number")

        normalize_commission_types(cur)
        skipped = create_payout_unique_indexes(cur)

        con.commit()
        print("Migration completed successfully.")
        return skipped
    finally:
        con.close()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", default="instance/propledger.db", help="Path to sqlite db file")
    args = parser.parse_args()
    run(Path(args.db))


if __name__ == "__main__":
    main()
