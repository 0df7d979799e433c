#!/usr/bin/env python3
"""
Create the bond tables in Postgres (bond_records, bond_inquiries,
payment_link_requests) and optionally load bond records from a CSV so the
sql lookup backend has something to match against.

Uses DATABASE_URL environment variable. Does NOT drop existing tables.

    python scripts/init_database.py --csv data/sample_bonds.csv
"""

from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Make sure src is on sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError

from src.database.postgres_real import PostgresDB
from src.integrations.clients.csv_records import CsvFormatError, decode_csv_bytes, parse_bond_csv


def main() -> int:
    parser = argparse.ArgumentParser(description="Create bond tables and load records")
    parser.add_argument("--csv", help="CSV with state, city, bond_limit, name (premium optional)")
    args = parser.parse_args()

    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1

    try:
        db = PostgresDB(connection_string=url)

        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")

        # Only missing tables are created
        db.create_tables()
        print("✅ Bond tables now exist:", sorted(inspect(db.engine).get_table_names()))

        if args.csv:
            records = parse_bond_csv(decode_csv_bytes(Path(args.csv).read_bytes()))
            count = db.add_bond_records(records)
            print(f"✅ Loaded {count} bond record(s) from {args.csv}")
        return 0

    except OperationalError as e:
        print(f"❌ Failed to connect to database: {e}", file=sys.stderr)
        return 2
    except (OSError, CsvFormatError) as e:
        print(f"❌ Could not load CSV: {e}", file=sys.stderr)
        return 3


if __name__ == "__main__":
    sys.exit(main())
