"""One-time database initialization script.

Creates the analyses table defined in the ORM models.
Run from src/backend: python scripts/init_db.py
"""

import asyncio

from sqlalchemy.ext.asyncio import create_async_engine

from applymate.core.config import settings
from applymate.models.orm import Base


async def init() -> None:
    engine = create_async_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database tables created successfully.")


if __name__ == "__main__":
    asyncio.run(init())
