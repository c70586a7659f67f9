import logging
from contextlib import suppress

import discord
from redbot.core import app_commands, commands

from ..abc import MixinMeta
from ..common.gateway import InteractionResponder
from ..common.models import CommandOpenRequest
from ..errors import ModmailError

log = logging.getLogger("red.modmail.threadcommands")


class ThreadCommands(MixinMeta):
    async def open_for_interaction(self, interaction: discord.Interaction, user: discord.Member) -> None:
        request = CommandOpenRequest(
            guild_id=interaction.guild_id,
            actor_id=interaction.user.id,
            target_user_id=user.id,
            channel_id=interaction.channel_id,
            locale=str(interaction.locale),
            responder=InteractionResponder(interaction),
        )
        try:
            await self.opener.open(request)
        except ModmailError as e:
            log.error(f"Failed to open a thread for {user.id} in guild {interaction.guild_id}", exc_info=e)
            await request.reply(self.translator.t("common.errors.thread_creation", request.locale))

    @app_commands.command(name="openmodmail", description="Open a modmail thread with a member")
    @app_commands.describe(user="The member to open a thread with")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_messages=True)
    async def openmodmail(self, interaction: discord.Interaction, user: discord.Member):
        await self.open_for_interaction(interaction, user)

    async def open_from_context_menu(self, interaction: discord.Interaction, user: discord.Member):
        await self.open_for_interaction(interaction, user)

    @commands.group(name="modmail")
    @commands.guild_only()
    @commands.mod_or_permissions(manage_messages=True)
    async def modmail(self, ctx: commands.Context):
        """Modmail thread commands"""
        pass

    @modmail.command(name="alerts")
    async def modmail_alerts(self, ctx: commands.Context):
        """Toggle being pinged whenever a user opens a thread"""
        if await self.repository.remove_alert_subscriber(ctx.guild.id, ctx.author.id):
            return await ctx.send("You will no longer be pinged for new threads")
        await self.repository.add_alert_subscriber(ctx.guild.id, ctx.author.id)
        txt = "You will now be pinged for new threads"
        if await self.config.guild(ctx.guild).alert_role_id():
            txt += "\nNote: an alert role is set, so it will be pinged instead of subscribers"
        await ctx.send(txt)

    @modmail.command(name="close")
    async def modmail_close(self, ctx: commands.Context):
        """Close the modmail thread this command is used in"""
        thread = await self.repository.get_thread_by_channel(ctx.channel.id)
        if thread is None or thread.guild_id != ctx.guild.id:
            return await ctx.send("This is not a modmail thread!")
        if not await self.repository.close_thread(thread.thread_id, ctx.author.id):
            return await ctx.send("This thread has already been closed!")
        log.info(f"Modmail thread {thread.thread_id} closed by {ctx.author.id}")
        await ctx.send(f"Thread closed by {ctx.author.mention}")
        if isinstance(ctx.channel, discord.Thread):
            with suppress(discord.HTTPException):
                await ctx.channel.edit(archived=True, locked=True)
