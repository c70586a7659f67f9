"""
Interfaces the thread opener depends on.

``ModmailRepository`` and ``DiscordGateway`` are the production implementations;
tests substitute in-memory fakes.
"""

from typing import List, Optional, Protocol, Sequence

from .models import (
    ChannelInfo,
    EmbedSpec,
    GuildInfo,
    GuildSettings,
    MemberInfo,
    MessageRef,
    SelectChoice,
    Snippet,
    Thread,
    ThreadOpenAlert,
)


class Repository(Protocol):
    async def find_open_thread(self, guild_id: int, user_id: int) -> Optional[Thread]: ...

    async def delete_thread(self, thread_id: int) -> None: ...

    async def list_threads(self, guild_id: int, user_id: int) -> List[Thread]: ...

    async def create_thread(
        self, guild_id: int, channel_id: int, user_id: int, created_by_id: int
    ) -> Thread: ...

    async def get_guild_settings(self, guild_id: int) -> Optional[GuildSettings]: ...

    async def list_snippets(self, guild_id: int) -> List[Snippet]: ...

    async def list_alert_subscribers(self, guild_id: int) -> List[ThreadOpenAlert]: ...


class MessagingGateway(Protocol):
    async def fetch_member(self, guild_id: int, user_id: int) -> Optional[MemberInfo]: ...

    async def fetch_channel(self, channel_id: int) -> Optional[ChannelInfo]: ...

    async def fetch_role_mention(self, guild_id: int, role_id: int) -> Optional[str]: ...

    async def fetch_guild(self, guild_id: int) -> Optional[GuildInfo]: ...

    async def send_message(
        self,
        channel_id: int,
        content: Optional[str] = None,
        embed: Optional[EmbedSpec] = None,
    ) -> MessageRef: ...

    async def create_forum_thread(
        self,
        channel_id: int,
        name: str,
        content: Optional[str],
        embed: EmbedSpec,
        applied_tag_ids: Sequence[str],
    ) -> ChannelInfo: ...

    async def create_message_thread(
        self,
        channel_id: int,
        name: str,
        content: Optional[str],
        embed: EmbedSpec,
    ) -> ChannelInfo: ...

    async def send_select_prompt(
        self,
        channel_id: int,
        content: str,
        choices: Sequence[SelectChoice],
        *,
        timeout: float,
        allowed_user_id: Optional[int] = None,
        denied_text: Optional[str] = None,
    ) -> Optional[MessageRef]: ...

    async def wait_for_selection(self, message: MessageRef) -> Optional[str]: ...

    async def edit_message(
        self, message: MessageRef, content: str, *, clear_components: bool = True
    ) -> None: ...

    async def delete_message(self, message: MessageRef) -> None: ...


class Translator(Protocol):
    def t(self, key: str, locale: Optional[str] = None, **params) -> str: ...
