"""
Type definitions for the Modmail cog.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol, Union


@dataclass
class GuildSettings:
    """Per-guild modmail configuration.

    Attributes:
        guild_id: Guild the settings belong to.
        modmail_channel_id: Forum or text channel threads are opened in.
        alert_role_id: Role pinged whenever a user opens a thread.
    """
    guild_id: int
    modmail_channel_id: Optional[int] = None
    alert_role_id: Optional[int] = None


@dataclass
class Thread:
    """A persisted modmail conversation.

    Attributes:
        thread_id: Database identity of the record.
        guild_id: Guild the thread belongs to.
        channel_id: Discord thread channel backing the conversation.
        user_id: Member the thread is with.
        created_by_id: Who opened it (the member, or staff opening on their behalf).
        closed_by_id: Who closed it, None while open.
        created_at: When the record was created.
    """
    thread_id: int
    guild_id: int
    channel_id: int
    user_id: int
    created_by_id: int
    closed_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.closed_by_id is None


@dataclass
class Snippet:
    guild_id: int
    name: str
    content: str


@dataclass
class ThreadOpenAlert:
    guild_id: int
    user_id: int


@dataclass
class RoutingTag:
    """A forum tag offered to the user when a thread is opened."""
    id: str
    name: str
    emoji: Optional[str] = None
    moderated: bool = False


class ChannelKind(Enum):
    FORUM = "forum"
    TEXT = "text"
    THREAD = "thread"
    OTHER = "other"


@dataclass
class ChannelInfo:
    id: int
    kind: ChannelKind
    name: str = ""
    guild_id: Optional[int] = None
    tags: List[RoutingTag] = field(default_factory=list)
    mention: str = ""

    @property
    def is_forum(self) -> bool:
        return self.kind is ChannelKind.FORUM

    def eligible_tags(self) -> List[RoutingTag]:
        """Tags a user may pick; moderated tags are staff-only."""
        return [tag for tag in self.tags if not tag.moderated]


@dataclass
class MemberInfo:
    """Snapshot of a guild member taken when a thread is opened.

    Attributes:
        id: User ID.
        mention: ``<@id>`` mention string.
        handle: Username, with the discriminator for legacy accounts.
        tag: ``str(user)``, shown in the summary footer.
        avatar_url: Global avatar URL.
        display_avatar_url: Guild avatar when set, otherwise the global one.
        nickname: Guild nickname, if any.
        created_at: Account creation date.
        joined_at: Guild join date.
        roles: Pre-formatted role summary.
    """
    id: int
    mention: str
    handle: str
    tag: str
    avatar_url: Optional[str] = None
    display_avatar_url: Optional[str] = None
    nickname: Optional[str] = None
    created_at: Optional[datetime] = None
    joined_at: Optional[datetime] = None
    roles: str = "None"


@dataclass
class GuildInfo:
    id: int
    name: str
    icon_url: Optional[str] = None


@dataclass
class MessageRef:
    channel_id: int
    message_id: int


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = True


@dataclass
class EmbedSpec:
    """Platform-neutral embed; the gateway renders it to a ``discord.Embed``."""
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[int] = None
    author_name: Optional[str] = None
    author_icon_url: Optional[str] = None
    footer_text: Optional[str] = None
    footer_icon_url: Optional[str] = None
    fields: List[EmbedField] = field(default_factory=list)

    def add_field(self, name: str, value: str, inline: bool = True) -> "EmbedSpec":
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self


@dataclass
class SelectChoice:
    label: str
    value: str
    emoji: Optional[str] = None


class Responder(Protocol):
    """Replies to whoever asked for the thread."""

    async def reply(self, text: str) -> None: ...

    async def reply_embed(self, embed: EmbedSpec) -> None: ...

    async def defer(self) -> None: ...


@dataclass
class CommandOpenRequest:
    """Staff opened a thread for a member from a slash command or context menu."""
    guild_id: int
    actor_id: int
    target_user_id: int
    channel_id: int
    locale: str
    responder: Responder

    @property
    def user_id(self) -> int:
        return self.target_user_id

    async def reply(self, text: str) -> None:
        await self.responder.reply(text)

    async def reply_embed(self, embed: EmbedSpec) -> None:
        await self.responder.reply_embed(embed)

    async def defer(self) -> None:
        await self.responder.defer()


@dataclass
class MessageOpenRequest:
    """A member sent the bot a direct message."""
    guild_id: int
    author_id: int
    channel_id: int
    content: str
    locale: str
    responder: Responder

    @property
    def actor_id(self) -> int:
        return self.author_id

    @property
    def user_id(self) -> int:
        return self.author_id

    async def reply(self, text: str) -> None:
        await self.responder.reply(text)

    async def reply_embed(self, embed: EmbedSpec) -> None:
        await self.responder.reply_embed(embed)

    async def defer(self) -> None:
        # Direct messages have no interaction to acknowledge
        return


OpenRequest = Union[CommandOpenRequest, MessageOpenRequest]


class OpenStatus(Enum):
    CREATED = "created"
    REUSED = "reused"
    DEFLECTED = "deflected"
    FAILED = "failed"


class FailureReason(Enum):
    NO_DESTINATION = "no-destination"
    NOT_A_MEMBER = "not-a-member"
    NO_TAG_SELECTED = "no-tag-selected"
    CHANNEL_CREATION_FAILED = "channel-creation-failed"
    PERSISTENCE_FAILED = "persistence-failed"


@dataclass
class ThreadContext:
    """Everything a caller needs to relay a message into the thread."""
    thread: Thread
    thread_channel: ChannelInfo
    member: MemberInfo
    settings: GuildSettings
    existing: bool


@dataclass
class CommandOpenResult:
    status: OpenStatus
    message: str
    thread: Optional[Thread] = None
    reason: Optional[FailureReason] = None


@dataclass
class MessageOpenResult:
    status: OpenStatus
    context: Optional[ThreadContext] = None
    reason: Optional[FailureReason] = None
