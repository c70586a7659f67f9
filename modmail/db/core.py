"""
Core Database Logic
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager, suppress
from pathlib import Path

import aiosqlite

from ..errors import RepositoryError

log = logging.getLogger("red.modmail.database")


class CoreDB:
    """Core database functionality"""

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Establish a persistent database connection.

        Raises:
            sqlite3.Error: If connection fails.
        """
        if self._conn is None:
            self._conn = await aiosqlite.connect(self.db_path)
            await self._conn.execute("PRAGMA journal_mode=WAL")
            await self._conn.execute("PRAGMA synchronous=NORMAL")
            log.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close the persistent database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
            log.info("Closed database connection")

    @asynccontextmanager
    async def _get_connection(self):
        """Yield the persistent database connection.

        Raises:
            RepositoryError: Any sqlite error raised while the connection is in use. The
                pending transaction is rolled back first.
        """
        async with self._lock:
            try:
                if self._conn is None:
                    await self.connect()
                yield self._conn
            except sqlite3.Error as e:
                if self._conn is not None:
                    with suppress(sqlite3.Error):
                        await self._conn.rollback()
                raise RepositoryError(f"Database operation failed: {e}") from e

    async def initialize(self) -> None:
        """Initialize the database with all required tables."""
        async with self._get_connection() as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS Threads (
                    ThreadId INTEGER PRIMARY KEY AUTOINCREMENT,
                    GuildId INTEGER NOT NULL,
                    ChannelId INTEGER NOT NULL,
                    UserId INTEGER NOT NULL,
                    CreatedById INTEGER NOT NULL,
                    ClosedById INTEGER,
                    CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # At most one open thread per member and guild
            await db.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_threads_open_user
                ON Threads(GuildId, UserId) WHERE ClosedById IS NULL
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_threads_channel ON Threads(ChannelId)
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS Snippets (
                    Id INTEGER PRIMARY KEY AUTOINCREMENT,
                    GuildId INTEGER NOT NULL,
                    Name TEXT NOT NULL,
                    Content TEXT NOT NULL,
                    UNIQUE(GuildId, Name)
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS ThreadOpenAlerts (
                    GuildId INTEGER NOT NULL,
                    UserId INTEGER NOT NULL,
                    PRIMARY KEY (GuildId, UserId)
                )
            """)

            await db.commit()
            log.info("Database tables initialized")
