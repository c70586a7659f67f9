"""
discord.py implementations of the messaging gateway and requester responders.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple

import discord

from ..errors import GatewayError
from .content import roles_summary, user_handle
from .models import (
    ChannelInfo,
    ChannelKind,
    EmbedSpec,
    GuildInfo,
    MemberInfo,
    MessageRef,
    RoutingTag,
    SelectChoice,
)
from .views import TagSelectView

log = logging.getLogger("red.modmail.gateway")

ALLOWED_MENTIONS = discord.AllowedMentions(everyone=False, users=True, roles=True)


def to_embed(spec: EmbedSpec) -> discord.Embed:
    embed = discord.Embed(title=spec.title, description=spec.description, color=spec.color)
    if spec.author_name:
        embed.set_author(name=spec.author_name, icon_url=spec.author_icon_url)
    if spec.footer_text:
        embed.set_footer(text=spec.footer_text, icon_url=spec.footer_icon_url)
    for field in spec.fields:
        embed.add_field(name=field.name, value=field.value, inline=field.inline)
    return embed


def channel_info(channel) -> ChannelInfo:
    tags = []
    if isinstance(channel, discord.ForumChannel):
        kind = ChannelKind.FORUM
        tags = [
            RoutingTag(
                id=str(tag.id),
                name=tag.name,
                emoji=str(tag.emoji) if tag.emoji else None,
                moderated=tag.moderated,
            )
            for tag in channel.available_tags
        ]
    elif isinstance(channel, discord.Thread):
        kind = ChannelKind.THREAD
    elif isinstance(channel, discord.TextChannel):
        kind = ChannelKind.TEXT
    else:
        kind = ChannelKind.OTHER
    guild = getattr(channel, "guild", None)
    return ChannelInfo(
        id=channel.id,
        kind=kind,
        name=getattr(channel, "name", "") or "",
        guild_id=guild.id if guild else None,
        tags=tags,
        mention=getattr(channel, "mention", f"<#{channel.id}>"),
    )


def member_info(member: discord.Member) -> MemberInfo:
    roles = sorted(
        (role for role in member.roles if not role.is_default()),
        key=lambda role: role.position,
        reverse=True,
    )
    return MemberInfo(
        id=member.id,
        mention=member.mention,
        handle=user_handle(member.name, member.discriminator),
        tag=str(member),
        avatar_url=member.avatar.url if member.avatar else None,
        display_avatar_url=member.display_avatar.url,
        nickname=member.nick,
        created_at=member.created_at,
        joined_at=member.joined_at,
        roles=roles_summary(role.mention for role in roles),
    )


class DiscordGateway:
    """Messaging gateway backed by the bot's discord.py client."""

    def __init__(self, bot: discord.Client):
        self.bot = bot
        # Open tag prompts by message id
        self._prompts: Dict[int, Tuple[TagSelectView, discord.Message]] = {}

    def _messageable(self, channel_id: int):
        return self.bot.get_channel(channel_id) or self.bot.get_partial_messageable(channel_id)

    async def fetch_member(self, guild_id: int, user_id: int) -> Optional[MemberInfo]:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return None
        member = guild.get_member(user_id)
        if member is None:
            try:
                member = await guild.fetch_member(user_id)
            except (discord.NotFound, discord.Forbidden):
                return None
            except discord.HTTPException as e:
                raise GatewayError(f"Failed to fetch member {user_id}") from e
        return member_info(member)

    async def fetch_channel(self, channel_id: int) -> Optional[ChannelInfo]:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden):
                return None
            except discord.HTTPException as e:
                raise GatewayError(f"Failed to fetch channel {channel_id}") from e
        return channel_info(channel)

    async def fetch_role_mention(self, guild_id: int, role_id: int) -> Optional[str]:
        guild = self.bot.get_guild(guild_id)
        role = guild.get_role(role_id) if guild else None
        return role.mention if role else None

    async def fetch_guild(self, guild_id: int) -> Optional[GuildInfo]:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return None
        return GuildInfo(id=guild.id, name=guild.name, icon_url=guild.icon.url if guild.icon else None)

    async def send_message(
        self,
        channel_id: int,
        content: Optional[str] = None,
        embed: Optional[EmbedSpec] = None,
    ) -> MessageRef:
        channel = self._messageable(channel_id)
        try:
            message = await channel.send(
                content=content,
                embed=to_embed(embed) if embed else None,
                allowed_mentions=ALLOWED_MENTIONS,
            )
        except discord.HTTPException as e:
            raise GatewayError(f"Failed to send message to {channel_id}") from e
        return MessageRef(channel_id=channel_id, message_id=message.id)

    async def create_forum_thread(
        self,
        channel_id: int,
        name: str,
        content: Optional[str],
        embed: EmbedSpec,
        applied_tag_ids: Sequence[str],
    ) -> ChannelInfo:
        forum = self.bot.get_channel(channel_id)
        if not isinstance(forum, discord.ForumChannel):
            raise GatewayError(f"Channel {channel_id} is not a forum")
        tags = [tag for tag in (forum.get_tag(int(tag_id)) for tag_id in applied_tag_ids) if tag]
        try:
            created = await forum.create_thread(
                name=name,
                content=content,
                embed=to_embed(embed),
                applied_tags=tags,
                allowed_mentions=ALLOWED_MENTIONS,
            )
        except discord.HTTPException as e:
            raise GatewayError(f"Failed to create a post in forum {channel_id}") from e
        return channel_info(created.thread)

    async def create_message_thread(
        self,
        channel_id: int,
        name: str,
        content: Optional[str],
        embed: EmbedSpec,
    ) -> ChannelInfo:
        channel = self.bot.get_channel(channel_id)
        if not isinstance(channel, discord.TextChannel):
            raise GatewayError(f"Channel {channel_id} is not a text channel")
        try:
            start = await channel.send(content=content, embed=to_embed(embed), allowed_mentions=ALLOWED_MENTIONS)
            thread = await start.create_thread(name=name[:100])
        except discord.HTTPException as e:
            raise GatewayError(f"Failed to start a thread in {channel_id}") from e
        return channel_info(thread)

    async def send_select_prompt(
        self,
        channel_id: int,
        content: str,
        choices: Sequence[SelectChoice],
        *,
        timeout: float,
        allowed_user_id: Optional[int] = None,
        denied_text: Optional[str] = None,
    ) -> Optional[MessageRef]:
        view = TagSelectView(
            choices, timeout=timeout, allowed_user_id=allowed_user_id, denied_text=denied_text
        )
        try:
            message = await self._messageable(channel_id).send(content=content, view=view)
        except discord.HTTPException as e:
            log.warning(f"Could not send tag prompt to {channel_id}", exc_info=e)
            view.stop()
            return None
        self._prompts[message.id] = (view, message)
        return MessageRef(channel_id=channel_id, message_id=message.id)

    async def wait_for_selection(self, message: MessageRef) -> Optional[str]:
        entry = self._prompts.get(message.message_id)
        if entry is None:
            return None
        view, _ = entry
        timed_out = await view.wait()
        return None if timed_out else view.value

    async def edit_message(self, message: MessageRef, content: str, *, clear_components: bool = True) -> None:
        entry = self._prompts.pop(message.message_id, None)
        target = entry[1] if entry else self._messageable(message.channel_id).get_partial_message(message.message_id)
        kwargs = {"content": content, "embeds": []}
        if clear_components:
            kwargs["view"] = None
        try:
            await target.edit(**kwargs)
        except discord.HTTPException as e:
            log.warning(f"Failed to edit message {message.message_id}", exc_info=e)

    async def delete_message(self, message: MessageRef) -> None:
        entry = self._prompts.pop(message.message_id, None)
        target = entry[1] if entry else self._messageable(message.channel_id).get_partial_message(message.message_id)
        try:
            await target.delete()
        except discord.HTTPException as e:
            log.warning(f"Failed to delete message {message.message_id}", exc_info=e)


class InteractionResponder:
    """Replies through an application command interaction."""

    def __init__(self, interaction: discord.Interaction):
        self.interaction = interaction
        self._deferred = False

    async def _send(self, **kwargs) -> None:
        response = self.interaction.response
        if not response.is_done():
            await response.send_message(**kwargs)
        elif self._deferred:
            self._deferred = False
            await self.interaction.edit_original_response(**kwargs)
        else:
            await self.interaction.followup.send(**kwargs)

    async def reply(self, text: str) -> None:
        await self._send(content=text)

    async def reply_embed(self, embed: EmbedSpec) -> None:
        await self._send(embed=to_embed(embed))

    async def defer(self) -> None:
        if not self.interaction.response.is_done():
            await self.interaction.response.defer()
            self._deferred = True


class ChannelResponder:
    """Replies in the channel a message came from, usually the member's DMs."""

    def __init__(self, channel: discord.abc.Messageable):
        self.channel = channel

    async def reply(self, text: str) -> None:
        await self.channel.send(text)

    async def reply_embed(self, embed: EmbedSpec) -> None:
        await self.channel.send(embed=to_embed(embed))

    async def defer(self) -> None:
        return
