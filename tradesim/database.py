import aiosqlite
import asyncio

from .config import settings

CREATE_CACHE_TABLE = """
    CREATE TABLE IF NOT EXISTS api_cache (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url TEXT UNIQUE NOT NULL,
        data TEXT NOT NULL,
        timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
    )
"""


async def get_db_connection():
    db = await aiosqlite.connect(settings.database_url)
    db.row_factory = aiosqlite.Row
    await db.execute(CREATE_CACHE_TABLE)
    return db


async def create_tables():
    async with aiosqlite.connect(settings.database_url) as db:
        await db.execute(CREATE_CACHE_TABLE)
        await db.commit()


async def clear_api_cache() -> int:
    """Drop every cached response. Returns the number of rows removed."""
    async with aiosqlite.connect(settings.database_url) as db:
        await db.execute(CREATE_CACHE_TABLE)
        cursor = await db.execute("DELETE FROM api_cache")
        await db.commit()
        return cursor.rowcount


if __name__ == "__main__":
    asyncio.run(create_tables())
