import logging
from typing import Optional, Union

import discord
from redbot.core import commands
from redbot.core.utils.chat_formatting import box, pagify

from ..abc import MixinMeta

log = logging.getLogger("red.modmail.admincommands")


def snippet_key(name: str) -> str:
    """Snippets are stored lower-case with dashes, e.g. ``Billing Issue`` -> ``billing-issue``."""
    return "-".join(name.lower().split())


class AdminCommands(MixinMeta):
    @commands.group(aliases=["mmset"])
    @commands.guild_only()
    @commands.admin_or_permissions(administrator=True)
    async def modmailset(self, ctx: commands.Context):
        """Modmail settings"""
        pass

    @modmailset.command(name="channel")
    async def modmailset_channel(
        self, ctx: commands.Context, channel: Union[discord.ForumChannel, discord.TextChannel]
    ):
        """Set the forum or text channel modmail threads are opened in"""
        perms = channel.permissions_for(ctx.me)
        if not perms.view_channel:
            return await ctx.send("I cannot see that channel!")
        if not perms.send_messages or not perms.create_public_threads:
            return await ctx.send("I need `send messages` and `create public threads` in that channel")
        await self.config.guild(ctx.guild).modmail_channel_id.set(channel.id)
        log.info(f"Modmail channel for {ctx.guild.name} set to {channel.id}")
        if isinstance(channel, discord.ForumChannel):
            tags = [tag.name for tag in channel.available_tags if not tag.moderated]
            txt = f"Modmail threads will now be opened as posts in {channel.mention}"
            if tags:
                txt += f"\nUsers will pick one of these tags: {', '.join(tags)}"
            return await ctx.send(txt)
        await ctx.send(f"Modmail threads will now be opened in {channel.mention}")

    @modmailset.command(name="alertrole")
    async def modmailset_alertrole(self, ctx: commands.Context, role: Optional[discord.Role] = None):
        """
        Set a role to ping when a user opens a thread

        Leave blank to ping alert subscribers instead.
        """
        if role is None:
            await self.config.guild(ctx.guild).alert_role_id.set(None)
            return await ctx.send("Alert role removed, alert subscribers will be pinged instead")
        await self.config.guild(ctx.guild).alert_role_id.set(role.id)
        await ctx.send(f"{role.name} will be pinged when a user opens a thread")

    @modmailset.command(name="logchannel")
    @commands.is_owner()
    async def modmailset_logchannel(self, ctx: commands.Context, channel: Optional[discord.TextChannel] = None):
        """Set the channel users redirected by a snippet are reported in"""
        channel_id = channel.id if channel else None
        await self.config.log_channel_id.set(channel_id)
        self.opener.deflection.log_channel_id = channel_id
        if channel is None:
            return await ctx.send("Redirects will no longer be logged")
        await ctx.send(f"Redirects will be logged in {channel.mention}")

    @modmailset.command(name="dmguild")
    @commands.is_owner()
    async def modmailset_dmguild(self, ctx: commands.Context):
        """Route direct messages sent to the bot to this server"""
        await self.config.dm_guild_id.set(ctx.guild.id)
        await ctx.send(f"Direct messages will now open threads in **{ctx.guild.name}**")

    @modmailset.command(name="settings", aliases=["view"])
    async def modmailset_settings(self, ctx: commands.Context):
        """View the modmail settings"""
        conf = await self.config.guild(ctx.guild).all()
        log_channel_id = await self.config.log_channel_id()
        dm_guild_id = await self.config.dm_guild_id()

        channel = ctx.guild.get_channel(conf["modmail_channel_id"]) if conf["modmail_channel_id"] else None
        role = ctx.guild.get_role(conf["alert_role_id"]) if conf["alert_role_id"] else None
        alerts = await self.repository.list_alert_subscribers(ctx.guild.id)
        snippets = await self.repository.list_snippets(ctx.guild.id)

        em = discord.Embed(title="Modmail Settings", color=ctx.author.color)
        em.add_field(name="Channel", value=channel.mention if channel else "Not set")
        em.add_field(name="Alert Role", value=role.mention if role else "None")
        em.add_field(name="Alert Subscribers", value=str(len(alerts)))
        em.add_field(name="Snippets", value=str(len(snippets)))
        em.add_field(name="Log Channel", value=f"<#{log_channel_id}>" if log_channel_id else "None")
        em.add_field(name="Receives DMs", value="Yes" if dm_guild_id == ctx.guild.id else "No")
        await ctx.send(embed=em)

    @modmailset.group(name="snippet", aliases=["snippets"])
    async def modmailset_snippet(self, ctx: commands.Context):
        """
        Manage snippets

        When a user picks a forum tag with the same name as a snippet, they are sent the
        snippet instead of opening a thread.
        """
        pass

    @modmailset_snippet.command(name="add")
    async def snippet_add(self, ctx: commands.Context, name: str, *, content: str):
        """Add or replace a snippet"""
        if len(content) > 4000:
            return await ctx.send("Snippet content must be less than 4000 characters")
        key = snippet_key(name)
        await self.repository.add_snippet(ctx.guild.id, key, content)
        await ctx.send(f"Snippet `{key}` saved")

    @modmailset_snippet.command(name="remove", aliases=["delete", "rem"])
    async def snippet_remove(self, ctx: commands.Context, name: str):
        """Remove a snippet"""
        key = snippet_key(name)
        if not await self.repository.remove_snippet(ctx.guild.id, key):
            return await ctx.send(f"No snippet named `{key}`")
        await ctx.send(f"Snippet `{key}` removed")

    @modmailset_snippet.command(name="list")
    async def snippet_list(self, ctx: commands.Context):
        """List the snippets for this server"""
        snippets = await self.repository.list_snippets(ctx.guild.id)
        if not snippets:
            return await ctx.send("There are no snippets")
        txt = "\n".join(f"{s.name}: {s.content[:60]}" for s in snippets)
        for page in pagify(txt):
            await ctx.send(box(page))
