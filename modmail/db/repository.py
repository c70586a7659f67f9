import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..common.models import GuildSettings, Snippet, Thread, ThreadOpenAlert
from ..errors import RepositoryError, ThreadConflictError

log = logging.getLogger("red.modmail.repository")

_THREAD_COLUMNS = "ThreadId, GuildId, ChannelId, UserId, CreatedById, ClosedById, CreatedAt"


def _thread_from_row(row) -> Thread:
    created_at = datetime.fromisoformat(row[6]) if row[6] else None
    return Thread(
        thread_id=row[0],
        guild_id=row[1],
        channel_id=row[2],
        user_id=row[3],
        created_by_id=row[4],
        closed_by_id=row[5],
        created_at=created_at,
    )


class ModmailRepository:
    """Repository for modmail threads, snippets and alert subscriptions.

    Guild settings live in Red's ``Config`` rather than the database, since they are
    edited through the settings commands like any other cog setting.
    """

    def __init__(self, db, config):
        self.db = db
        self.config = config

    # Guild settings

    async def get_guild_settings(self, guild_id: int) -> Optional[GuildSettings]:
        conf = await self.config.guild_from_id(guild_id).all()
        if not conf:
            return None
        return GuildSettings(
            guild_id=guild_id,
            modmail_channel_id=conf.get("modmail_channel_id"),
            alert_role_id=conf.get("alert_role_id"),
        )

    # Threads

    async def find_open_thread(self, guild_id: int, user_id: int) -> Optional[Thread]:
        """Get the open thread for a member, if any"""
        async with self.db._get_connection() as db:
            cursor = await db.execute(f"""
                SELECT {_THREAD_COLUMNS} FROM Threads
                WHERE GuildId = ? AND UserId = ? AND ClosedById IS NULL
            """, (guild_id, user_id))
            row = await cursor.fetchone()
        return _thread_from_row(row) if row else None

    async def get_thread_by_channel(self, channel_id: int) -> Optional[Thread]:
        """Get the most recent thread recorded for a Discord channel"""
        async with self.db._get_connection() as db:
            cursor = await db.execute(f"""
                SELECT {_THREAD_COLUMNS} FROM Threads
                WHERE ChannelId = ? ORDER BY ThreadId DESC LIMIT 1
            """, (channel_id,))
            row = await cursor.fetchone()
        return _thread_from_row(row) if row else None

    async def list_threads(self, guild_id: int, user_id: int) -> List[Thread]:
        """Get every thread, open or closed, a member has had in a guild"""
        async with self.db._get_connection() as db:
            cursor = await db.execute(f"""
                SELECT {_THREAD_COLUMNS} FROM Threads
                WHERE GuildId = ? AND UserId = ? ORDER BY ThreadId
            """, (guild_id, user_id))
            rows = await cursor.fetchall()
        return [_thread_from_row(row) for row in rows]

    async def create_thread(
        self, guild_id: int, channel_id: int, user_id: int, created_by_id: int
    ) -> Thread:
        """Record a new open thread.

        Raises:
            ThreadConflictError: The member already has an open thread in this guild.
            RepositoryError: The insert failed for any other reason.
        """
        async with self.db._get_connection() as db:
            try:
                cursor = await db.execute("""
                    INSERT INTO Threads (GuildId, ChannelId, UserId, CreatedById)
                    VALUES (?, ?, ?, ?)
                """, (guild_id, channel_id, user_id, created_by_id))
                thread_id = cursor.lastrowid
                cursor = await db.execute(
                    f"SELECT {_THREAD_COLUMNS} FROM Threads WHERE ThreadId = ?", (thread_id,)
                )
                row = await cursor.fetchone()
                await db.commit()
            except sqlite3.IntegrityError as e:
                await db.rollback()
                raise ThreadConflictError(guild_id, user_id) from e
            except sqlite3.Error as e:
                await db.rollback()
                raise RepositoryError(f"Failed to record thread for channel {channel_id}") from e
        return _thread_from_row(row)

    async def delete_thread(self, thread_id: int) -> None:
        async with self.db._get_connection() as db:
            await db.execute("DELETE FROM Threads WHERE ThreadId = ?", (thread_id,))
            await db.commit()

    async def close_thread(self, thread_id: int, closed_by_id: int) -> bool:
        """Mark a thread closed. Returns False if it was not open."""
        async with self.db._get_connection() as db:
            cursor = await db.execute("""
                UPDATE Threads SET ClosedById = ?
                WHERE ThreadId = ? AND ClosedById IS NULL
            """, (closed_by_id, thread_id))
            await db.commit()
            return cursor.rowcount > 0

    # Snippets

    async def list_snippets(self, guild_id: int) -> List[Snippet]:
        async with self.db._get_connection() as db:
            cursor = await db.execute("""
                SELECT GuildId, Name, Content FROM Snippets WHERE GuildId = ? ORDER BY Name
            """, (guild_id,))
            rows = await cursor.fetchall()
        return [Snippet(guild_id=row[0], name=row[1], content=row[2]) for row in rows]

    async def add_snippet(self, guild_id: int, name: str, content: str) -> None:
        """Create a snippet, replacing the content of an existing one with the same name"""
        async with self.db._get_connection() as db:
            await db.execute("""
                INSERT INTO Snippets (GuildId, Name, Content) VALUES (?, ?, ?)
                ON CONFLICT(GuildId, Name) DO UPDATE SET Content = excluded.Content
            """, (guild_id, name, content))
            await db.commit()

    async def remove_snippet(self, guild_id: int, name: str) -> bool:
        async with self.db._get_connection() as db:
            cursor = await db.execute(
                "DELETE FROM Snippets WHERE GuildId = ? AND Name = ?", (guild_id, name)
            )
            await db.commit()
            return cursor.rowcount > 0

    # Alert subscriptions

    async def list_alert_subscribers(self, guild_id: int) -> List[ThreadOpenAlert]:
        async with self.db._get_connection() as db:
            cursor = await db.execute("""
                SELECT GuildId, UserId FROM ThreadOpenAlerts WHERE GuildId = ? ORDER BY rowid
            """, (guild_id,))
            rows = await cursor.fetchall()
        return [ThreadOpenAlert(guild_id=row[0], user_id=row[1]) for row in rows]

    async def add_alert_subscriber(self, guild_id: int, user_id: int) -> bool:
        async with self.db._get_connection() as db:
            cursor = await db.execute("""
                INSERT OR IGNORE INTO ThreadOpenAlerts (GuildId, UserId) VALUES (?, ?)
            """, (guild_id, user_id))
            await db.commit()
            return cursor.rowcount > 0

    async def remove_alert_subscriber(self, guild_id: int, user_id: int) -> bool:
        async with self.db._get_connection() as db:
            cursor = await db.execute(
                "DELETE FROM ThreadOpenAlerts WHERE GuildId = ? AND UserId = ?", (guild_id, user_id)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def delete_user_data(self, user_id: int) -> None:
        """Remove every thread and alert subscription belonging to a user"""
        async with self.db._get_connection() as db:
            await db.execute("DELETE FROM Threads WHERE UserId = ?", (user_id,))
            await db.execute("DELETE FROM ThreadOpenAlerts WHERE UserId = ?", (user_id,))
            await db.commit()
        log.info(f"Deleted modmail data for user {user_id}")
