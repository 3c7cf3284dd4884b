"""Create the database schema.

Pass ``--drop`` to drop existing tables first. Run before starting the API.
"""

import asyncio
import sys

from darpan.config import settings
from darpan.db import dispose_engine, engine
from darpan.models import Base


async def init_database(drop: bool = False) -> None:
    print(f"Initializing database: {settings.db.url.split('@')[-1]}")

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("Dropped existing tables")
        await conn.run_sync(Base.metadata.create_all)

    print(f"Tables ready: {', '.join(Base.metadata.tables.keys())}")


async def main() -> None:
    try:
        await init_database(drop="--drop" in sys.argv[1:])
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
