"""Simple database connectivity check."""
from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import inspect, text

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ledger.core.config import get_settings  # noqa: E402  (import after sys.path manipulation)
from ledger.db.engine import create_sync_engine  # noqa: E402


def main() -> None:
    settings = get_settings()
    engine = create_sync_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        tables = set(inspect(conn).get_table_names())
        print(f"✅ Connected via {engine.dialect.name} ({settings.database.masked_url})")
        for table in ("users", "transactions"):
            status = "present" if table in tables else "missing"
            print(f"  table {table}: {status}")


if __name__ == "__main__":
    main()
