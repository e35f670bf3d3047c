"""Create the job board tables that are missing from the configured database.

    python scripts/create_orm_tables.py --check
    python scripts/create_orm_tables.py --i-understand [--db-url URL]

Existing tables are never altered; only tables absent from the target schema
are created, and the script reports which ones.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _bootstrap_import_path() -> None:
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


_bootstrap_import_path()

from sqlalchemy import create_engine, inspect  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from jobboard.config import build_sqlalchemy_db_url, settings  # noqa: E402
from jobboard.database import Base, mask_db_url  # noqa: E402
from jobboard import models  # noqa: F401,E402


def missing_tables(engine: Engine) -> list[str]:
    existing = set(inspect(engine).get_table_names())
    return [table.name for table in Base.metadata.sorted_tables if table.name not in existing]


def _engine_for(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create missing job board tables.")
    parser.add_argument("--db-url", default=None, help="Target DB URL (defaults to the configured ORM URL).")
    parser.add_argument("--check", action="store_true", help="Only list missing tables; exit 1 if any are missing.")
    parser.add_argument("--i-understand", action="store_true", help="Required to run DDL against the target DB.")
    args = parser.parse_args(argv)

    url = args.db_url or build_sqlalchemy_db_url(settings)
    engine = _engine_for(url)
    missing = missing_tables(engine)
    print(f"{mask_db_url(url)}: {len(Base.metadata.tables) - len(missing)}/{len(Base.metadata.tables)} job board tables present")

    if args.check:
        for name in missing:
            print(f"  missing: {name}")
        return 1 if missing else 0

    if not missing:
        print("nothing to create")
        return 0
    if not args.i_understand:
        print("would create: " + ", ".join(missing))
        print("re-run with --i-understand to apply")
        return 2

    Base.metadata.create_all(bind=engine, tables=[Base.metadata.tables[name] for name in missing])
    print("created: " + ", ".join(missing))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
