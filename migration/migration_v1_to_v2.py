"""
Migration V1 -> V2
- Adds the delivery tracking columns to 'orders' if missing
- Rewrites the legacy 'Processing' status to 'In Process'

Usage:
  python -m migration.migration_v1_to_v2 --db path/to/canteen.db
"""
import argparse
import logging
import os
import sqlite3
from contextlib import closing

logger = logging.getLogger(__name__)

DELIVERY_COLUMNS = (
    "delivery_address",
    "delivery_city",
    "delivery_pincode",
    "delivery_instructions",
    "delivery_landmark",
    "delivery_partner",
    "delivery_phone",
    "delivery_email",
    "estimated_time",
)


def has_column(conn: sqlite3.Connection, table: str, column: str) -> bool:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cur.fetchall())


def migrate(db_path: str) -> int:
    """Upgrade the database in place; returns the number of rows whose status was rewritten."""
    if db_path == ":memory:":
        raise ValueError("Use a file-backed DB for migration script")

    if not os.path.exists(db_path):
        raise FileNotFoundError(db_path)

    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row

        # Ensure orders table exists
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        if "orders" not in tables:
            raise RuntimeError("orders table missing; cannot migrate")

        for column in DELIVERY_COLUMNS:
            if not has_column(conn, "orders", column):
                logger.info("Adding orders.%s", column)
                conn.execute(f"ALTER TABLE orders ADD COLUMN {column} TEXT")

        cur = conn.execute("UPDATE orders SET status = 'In Process' WHERE status = 'Processing'")
        conn.commit()
        return cur.rowcount


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", required=True, help="Path to SQLite database file")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    rewritten = migrate(args.db)
    logger.info("Migration finished; %d order status(es) rewritten", rewritten)

if __name__ == "__main__":
    main()
