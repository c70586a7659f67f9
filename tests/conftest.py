"""In-memory stand-ins for the repository, the Discord gateway and responders."""

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from modmail.common.messages import MESSAGES
from modmail.common.models import (
    ChannelInfo,
    ChannelKind,
    GuildInfo,
    GuildSettings,
    MemberInfo,
    MessageRef,
    RoutingTag,
    Snippet,
    Thread,
    ThreadOpenAlert,
)
from modmail.db.core import CoreDB
from modmail.db.repository import ModmailRepository
from modmail.errors import GatewayError, ThreadConflictError

GUILD_ID = 100
FORUM_ID = 200
TEXT_ID = 201
LOG_CHANNEL_ID = 300
DM_CHANNEL_ID = 400
USER_ID = 500
STAFF_ID = 600

FRENCH = {
    "common.errors.no_member": "Cet utilisateur n'est pas membre de ce serveur.",
    "tag_prompt.content": "Veuillez choisir une des options ci-dessous.",
    "tag_prompt.timed_out": "Délai dépassé...",
    "tag_prompt.not_yours": "Ce menu ne vous est pas destiné.",
    "thread.start.embed.fields.past_modmails": "Modmails précédents",
    "alerts.users": "Alertes : {users}",
}


class FakeTranslator:
    """English source strings, with per-locale overrides."""

    def __init__(self, catalogs=None):
        self.catalogs = catalogs or {}

    def t(self, key, locale=None, **params):
        text = self.catalogs.get(locale, {}).get(key) or MESSAGES.get(key, key)
        return text.format_map(params) if params else text


class FakeRepository:
    def __init__(self, enforce_unique: bool = True):
        self.settings: Dict[int, GuildSettings] = {}
        self.threads: List[Thread] = []
        self.snippets: List[Snippet] = []
        self.alerts: List[ThreadOpenAlert] = []
        self.enforce_unique = enforce_unique
        self.fail_create: Optional[Exception] = None
        self._ids = itertools.count(100)

    async def get_guild_settings(self, guild_id):
        return self.settings.get(guild_id)

    async def find_open_thread(self, guild_id, user_id):
        await asyncio.sleep(0)
        return next(
            (t for t in self.threads if t.guild_id == guild_id and t.user_id == user_id and t.is_open),
            None,
        )

    async def delete_thread(self, thread_id):
        self.threads = [t for t in self.threads if t.thread_id != thread_id]

    async def list_threads(self, guild_id, user_id):
        return [t for t in self.threads if t.guild_id == guild_id and t.user_id == user_id]

    async def create_thread(self, guild_id, channel_id, user_id, created_by_id):
        await asyncio.sleep(0)
        if self.fail_create:
            raise self.fail_create
        if self.enforce_unique and any(
            t.guild_id == guild_id and t.user_id == user_id and t.is_open for t in self.threads
        ):
            raise ThreadConflictError(guild_id, user_id)
        thread = Thread(
            thread_id=next(self._ids),
            guild_id=guild_id,
            channel_id=channel_id,
            user_id=user_id,
            created_by_id=created_by_id,
            created_at=datetime.now(timezone.utc),
        )
        self.threads.append(thread)
        return thread

    async def list_snippets(self, guild_id):
        return [s for s in self.snippets if s.guild_id == guild_id]

    async def list_alert_subscribers(self, guild_id):
        return [a for a in self.alerts if a.guild_id == guild_id]

    def open_threads(self, guild_id=GUILD_ID, user_id=USER_ID):
        return [t for t in self.threads if t.guild_id == guild_id and t.user_id == user_id and t.is_open]


class FakeGateway:
    """Records every call; the tag prompt answers with ``selection`` after ``selection_delay``."""

    def __init__(self):
        self.channels: Dict[int, ChannelInfo] = {}
        self.members: Dict[int, MemberInfo] = {}
        self.roles: Dict[int, str] = {}
        self.guild = GuildInfo(id=GUILD_ID, name="Unicornia", icon_url="https://cdn/icon.png")

        self.selection: Optional[str] = None
        self.selection_delay: float = 0
        self.fail_prompt = False
        self.fail_create = False
        self.fail_send_to = set()

        self.prompts: List[dict] = []
        self.edited: List[dict] = []
        self.deleted: List[MessageRef] = []
        self.sent: List[dict] = []
        self.created_threads: List[dict] = []
        self._ids = itertools.count(10_000)

    async def fetch_member(self, guild_id, user_id):
        return self.members.get(user_id)

    async def fetch_channel(self, channel_id):
        return self.channels.get(channel_id)

    async def fetch_role_mention(self, guild_id, role_id):
        return self.roles.get(role_id)

    async def fetch_guild(self, guild_id):
        return self.guild

    async def send_message(self, channel_id, content=None, embed=None):
        if channel_id in self.fail_send_to:
            raise GatewayError(f"cannot send to {channel_id}")
        ref = MessageRef(channel_id=channel_id, message_id=next(self._ids))
        self.sent.append({"channel_id": channel_id, "content": content, "embed": embed})
        return ref

    async def _create(self, kind, channel_id, name, content, embed, applied_tag_ids):
        await asyncio.sleep(0)
        if self.fail_create:
            raise GatewayError("create failed")
        thread_id = next(self._ids)
        channel = ChannelInfo(id=thread_id, kind=ChannelKind.THREAD, name=name, guild_id=GUILD_ID)
        self.channels[thread_id] = channel
        self.created_threads.append({
            "kind": kind,
            "parent_id": channel_id,
            "name": name,
            "content": content,
            "embed": embed,
            "applied_tag_ids": list(applied_tag_ids),
        })
        return channel

    async def create_forum_thread(self, channel_id, name, content, embed, applied_tag_ids):
        return await self._create("forum", channel_id, name, content, embed, applied_tag_ids)

    async def create_message_thread(self, channel_id, name, content, embed):
        return await self._create("message", channel_id, name, content, embed, [])

    async def send_select_prompt(
        self, channel_id, content, choices, *, timeout, allowed_user_id=None, denied_text=None
    ):
        if self.fail_prompt:
            return None
        ref = MessageRef(channel_id=channel_id, message_id=next(self._ids))
        self.prompts.append({
            "ref": ref,
            "content": content,
            "choices": list(choices),
            "timeout": timeout,
            "allowed_user_id": allowed_user_id,
            "denied_text": denied_text,
        })
        return ref

    async def wait_for_selection(self, message):
        prompt = next(p for p in self.prompts if p["ref"] == message)
        if self.selection is None or self.selection_delay >= prompt["timeout"]:
            return None
        await asyncio.sleep(self.selection_delay)
        return self.selection

    async def edit_message(self, message, content, *, clear_components=True):
        self.edited.append({"ref": message, "content": content, "clear_components": clear_components})

    async def delete_message(self, message):
        self.deleted.append(message)


class FakeResponder:
    def __init__(self):
        self.replies: List[str] = []
        self.embeds: list = []
        self.deferred = False

    async def reply(self, text):
        self.replies.append(text)

    async def reply_embed(self, embed):
        self.embeds.append(embed)

    async def defer(self):
        self.deferred = True


def make_member(user_id=USER_ID, **overrides) -> MemberInfo:
    defaults = dict(
        id=user_id,
        mention=f"<@{user_id}>",
        handle="sparkle",
        tag="sparkle",
        display_avatar_url="https://cdn/avatar.png",
        created_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        joined_at=datetime(2021, 6, 1, tzinfo=timezone.utc),
        roles="<@&1> <@&2>",
    )
    defaults.update(overrides)
    return MemberInfo(**defaults)


def forum_channel(tags=None) -> ChannelInfo:
    if tags is None:
        tags = [
            RoutingTag(id="1", name="General"),
            RoutingTag(id="2", name="Internal", moderated=True),
        ]
    return ChannelInfo(id=FORUM_ID, kind=ChannelKind.FORUM, name="modmail", guild_id=GUILD_ID, tags=tags)


def text_channel(channel_id=TEXT_ID) -> ChannelInfo:
    return ChannelInfo(id=channel_id, kind=ChannelKind.TEXT, name="modmail", guild_id=GUILD_ID)


@pytest.fixture
def translator():
    return FakeTranslator({"fr": FRENCH})


@pytest.fixture
def repository():
    repo = FakeRepository()
    repo.settings[GUILD_ID] = GuildSettings(guild_id=GUILD_ID, modmail_channel_id=FORUM_ID)
    return repo


@pytest.fixture
def gateway():
    gw = FakeGateway()
    gw.channels[FORUM_ID] = forum_channel()
    gw.channels[TEXT_ID] = text_channel()
    gw.channels[LOG_CHANNEL_ID] = text_channel(LOG_CHANNEL_ID)
    gw.members[USER_ID] = make_member()
    gw.members[STAFF_ID] = make_member(STAFF_ID, handle="mod", tag="mod")
    return gw


@pytest.fixture
def responder():
    return FakeResponder()


@pytest.fixture
def config():
    """Stand-in for Red's Config exposing ``guild_from_id(...).all()``."""
    conf = MagicMock()
    data = {"modmail_channel_id": FORUM_ID, "alert_role_id": None}

    async def _all():
        return dict(data)

    conf.guild_from_id.return_value.all = _all
    conf.data = data
    return conf


@pytest_asyncio.fixture
async def db(tmp_path):
    core = CoreDB(tmp_path / "modmail.db")
    await core.connect()
    await core.initialize()
    yield core
    await core.close()


@pytest_asyncio.fixture
async def sql_repository(db, config):
    return ModmailRepository(db, config)
