#!/usr/bin/env python3
"""Create the ledger tables on the configured database and list them."""

import sys

from sqlalchemy import inspect, text

from connect_db import Base, DATABASE_URL, engine
from models.models import Expense, User  # noqa: F401

def main() -> int:
    print(f"Database URL: {DATABASE_URL}")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection successful!")

        print("Creating database tables...")
        Base.metadata.create_all(bind=engine)

        tables = inspect(engine).get_table_names()
        print(f"✅ Tables ready: {', '.join(sorted(tables))}")
    except Exception as e:
        print(f"❌ Error: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
