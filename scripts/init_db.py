#!/usr/bin/env python
"""Create the outfit catalog and wishlist tables.

Usage:
    python scripts/init_db.py           # create missing tables
    python scripts/init_db.py --reset   # drop and recreate every table
"""
import argparse
import asyncio

from dotenv import load_dotenv

load_dotenv()

from swipeshop.db.connection import create_engine, get_database_type
from swipeshop.db.models import Base
from swipeshop.main import validate_environment


async def init_db(*, reset: bool = False) -> None:
    engine = create_engine()
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    action = "recreated" if reset else "created"
    print(f"✓ {get_database_type()} tables {action}: {', '.join(Base.metadata.tables)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    validate_environment()
    asyncio.run(init_db(reset=args.reset))
