# File: src/campusbill/scripts/load_data.py
"""Script to bulk-load users and student records via CLI."""

import argparse
import asyncio
import sys
from pathlib import Path

from campusbill.core.db import AsyncSessionLocal, init_models
from campusbill.core.errors import AppError
from campusbill.core.loader import BulkLoader
from campusbill.core.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campusbill-load",
        description="Load users and student records into the campusbill database.",
    )
    parser.add_argument("--users", help="users source name or path (JSON array)")
    parser.add_argument("--records", help="student records source name or path (JSON array)")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="directory to resolve source names in (default: $CAMPUSBILL_DATA_DIR or ./data)",
    )
    return parser


async def load(users: str | None, records: str | None, data_dir: Path | None) -> None:
    """Run the requested loads. Users go first so records can reference them."""
    await init_models()

    async with AsyncSessionLocal() as db:
        loader = BulkLoader(db, data_dir=data_dir)

        if users:
            ids = await loader.load_users(users)
            print(f"✅ Loaded {len(ids)} users from {users}")

        if records:
            ids = await loader.load_records(records)
            print(f"✅ Loaded {len(ids)} student records from {records}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.users and not args.records:
        print("❌ Nothing to load: pass --users and/or --records", file=sys.stderr)
        return 2

    configure_logging("WARNING")
    try:
        asyncio.run(load(args.users, args.records, args.data_dir))
    except AppError as e:
        print(f"❌ {e.code}: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
