import sqlite3

import pytest

from conftest import FORUM_ID, GUILD_ID, STAFF_ID, USER_ID
from modmail.errors import RepositoryError, ThreadConflictError


@pytest.mark.asyncio
async def test_guild_settings_come_from_config(sql_repository, config):
    config.data["alert_role_id"] = 77

    settings = await sql_repository.get_guild_settings(GUILD_ID)

    assert settings.guild_id == GUILD_ID
    assert settings.modmail_channel_id == FORUM_ID
    assert settings.alert_role_id == 77
    config.guild_from_id.assert_called_with(GUILD_ID)


@pytest.mark.asyncio
async def test_create_and_find_thread(sql_repository):
    thread = await sql_repository.create_thread(GUILD_ID, 1000, USER_ID, STAFF_ID)

    assert thread.is_open
    assert thread.created_by_id == STAFF_ID
    assert thread.created_at is not None
    assert await sql_repository.find_open_thread(GUILD_ID, USER_ID) == thread
    assert await sql_repository.get_thread_by_channel(1000) == thread
    assert await sql_repository.find_open_thread(GUILD_ID + 1, USER_ID) is None


@pytest.mark.asyncio
async def test_second_open_thread_conflicts(sql_repository):
    await sql_repository.create_thread(GUILD_ID, 1000, USER_ID, USER_ID)

    with pytest.raises(ThreadConflictError) as exc_info:
        await sql_repository.create_thread(GUILD_ID, 1001, USER_ID, USER_ID)

    assert exc_info.value.user_id == USER_ID
    assert len(await sql_repository.list_threads(GUILD_ID, USER_ID)) == 1

    # The connection is still usable after the rollback
    other = await sql_repository.create_thread(GUILD_ID, 1002, USER_ID + 1, USER_ID + 1)
    assert other.channel_id == 1002


@pytest.mark.asyncio
async def test_closed_thread_allows_a_new_one(sql_repository):
    first = await sql_repository.create_thread(GUILD_ID, 1000, USER_ID, USER_ID)

    assert await sql_repository.close_thread(first.thread_id, STAFF_ID) is True
    assert await sql_repository.close_thread(first.thread_id, STAFF_ID) is False
    assert await sql_repository.find_open_thread(GUILD_ID, USER_ID) is None

    second = await sql_repository.create_thread(GUILD_ID, 1001, USER_ID, USER_ID)
    threads = await sql_repository.list_threads(GUILD_ID, USER_ID)

    assert [t.thread_id for t in threads] == [first.thread_id, second.thread_id]
    assert threads[0].closed_by_id == STAFF_ID
    assert await sql_repository.find_open_thread(GUILD_ID, USER_ID) == second


@pytest.mark.asyncio
async def test_delete_thread(sql_repository):
    thread = await sql_repository.create_thread(GUILD_ID, 1000, USER_ID, USER_ID)

    await sql_repository.delete_thread(thread.thread_id)

    assert await sql_repository.list_threads(GUILD_ID, USER_ID) == []


@pytest.mark.asyncio
async def test_snippets(sql_repository):
    await sql_repository.add_snippet(GUILD_ID, "billing-issue", "old")
    await sql_repository.add_snippet(GUILD_ID, "appeals", "Appeal here")
    await sql_repository.add_snippet(GUILD_ID, "billing-issue", "new")
    await sql_repository.add_snippet(GUILD_ID + 1, "appeals", "Other guild")

    snippets = await sql_repository.list_snippets(GUILD_ID)

    assert [(s.name, s.content) for s in snippets] == [("appeals", "Appeal here"), ("billing-issue", "new")]
    assert await sql_repository.remove_snippet(GUILD_ID, "appeals") is True
    assert await sql_repository.remove_snippet(GUILD_ID, "appeals") is False
    assert len(await sql_repository.list_snippets(GUILD_ID)) == 1


@pytest.mark.asyncio
async def test_alert_subscribers(sql_repository):
    assert await sql_repository.add_alert_subscriber(GUILD_ID, 2) is True
    assert await sql_repository.add_alert_subscriber(GUILD_ID, 1) is True
    assert await sql_repository.add_alert_subscriber(GUILD_ID, 2) is False

    subscribers = await sql_repository.list_alert_subscribers(GUILD_ID)
    assert [a.user_id for a in subscribers] == [2, 1]

    assert await sql_repository.remove_alert_subscriber(GUILD_ID, 2) is True
    assert await sql_repository.remove_alert_subscriber(GUILD_ID, 2) is False
    assert [a.user_id for a in await sql_repository.list_alert_subscribers(GUILD_ID)] == [1]


@pytest.mark.asyncio
async def test_delete_user_data(sql_repository):
    await sql_repository.create_thread(GUILD_ID, 1000, USER_ID, USER_ID)
    await sql_repository.create_thread(GUILD_ID, 1001, STAFF_ID, STAFF_ID)
    await sql_repository.add_alert_subscriber(GUILD_ID, USER_ID)

    await sql_repository.delete_user_data(USER_ID)

    assert await sql_repository.list_threads(GUILD_ID, USER_ID) == []
    assert await sql_repository.list_alert_subscribers(GUILD_ID) == []
    assert len(await sql_repository.list_threads(GUILD_ID, STAFF_ID)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda repo: repo.find_open_thread(GUILD_ID, USER_ID),
        lambda repo: repo.list_threads(GUILD_ID, USER_ID),
        lambda repo: repo.delete_thread(1),
        lambda repo: repo.list_snippets(GUILD_ID),
        lambda repo: repo.list_alert_subscribers(GUILD_ID),
    ],
    ids=["find_open_thread", "list_threads", "delete_thread", "list_snippets", "list_alert_subscribers"],
)
async def test_sqlite_errors_become_repository_errors(sql_repository, db, monkeypatch, call):
    def locked(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(db._conn, "execute", locked)

    with pytest.raises(RepositoryError) as excinfo:
        await call(sql_repository)

    assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)

    # The lock is released and the connection still works
    monkeypatch.undo()
    assert await sql_repository.find_open_thread(GUILD_ID, USER_ID) is None
