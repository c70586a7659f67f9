"""
Modmail - Support threads for direct messages

Members DM the bot and a thread is opened for them in the server's modmail forum or
channel. Staff can also open one for a member with /openmodmail or the "Open Modmail"
user context menu.
"""

import logging
from contextlib import suppress

import discord
from redbot.core import Config, app_commands, commands
from redbot.core.bot import Red
from redbot.core.data_manager import cog_data_path
from redbot.core.i18n import cog_i18n

from .abc import CompositeMetaClass
from .commands import ModmailCommands
from .common.constants import DEFAULT_GLOBAL, DEFAULT_GUILD
from .common.content import relay_embed
from .common.deflection import DeflectionEngine
from .common.gateway import ChannelResponder, DiscordGateway
from .common.i18n import Translator, _
from .common.models import MessageOpenRequest, ThreadContext
from .common.opener import ThreadOpener
from .db.core import CoreDB
from .db.repository import ModmailRepository
from .errors import ModmailError

log = logging.getLogger("red.modmail")


@cog_i18n(_)
class Modmail(ModmailCommands, commands.Cog, metaclass=CompositeMetaClass):
    """
    Modmail threads opened from direct messages or by staff
    """

    __author__ = "Kirin"
    __version__ = "1.0.0"

    def format_help_for_context(self, ctx):
        helpcmd = super().format_help_for_context(ctx)
        info = f"{helpcmd}\nCog Version: {self.__version__}\nAuthor: {self.__author__}\n"
        return info

    async def red_delete_data_for_user(self, *, requester, user_id: int):
        if self.repository:
            await self.repository.delete_user_data(user_id)

    def __init__(self, bot: Red):
        self.bot: Red = bot
        self.config = Config.get_conf(self, identifier=1731862004, force_registration=True)
        self.config.register_global(**DEFAULT_GLOBAL)
        self.config.register_guild(**DEFAULT_GUILD)

        self.translator = Translator()
        self.gateway = DiscordGateway(bot)

        # Initialized in cog_load
        self.db = None
        self.repository = None
        self.opener = None

        self.open_ctx_menu = app_commands.ContextMenu(
            name="Open Modmail",
            callback=self.open_from_context_menu,
        )
        self.open_ctx_menu.guild_only = True
        self.open_ctx_menu.default_permissions = discord.Permissions(manage_messages=True)

    async def cog_load(self) -> None:
        try:
            self.db = CoreDB(cog_data_path(self) / "modmail.db")
            await self.db.connect()
            await self.db.initialize()
            self.repository = ModmailRepository(self.db, self.config)

            deflection = DeflectionEngine(
                self.gateway,
                self.translator,
                log_channel_id=await self.config.log_channel_id(),
            )
            self.opener = ThreadOpener(self.repository, self.gateway, self.translator, deflection=deflection)
        except Exception as e:
            log.error("Modmail: Failed to initialize", exc_info=e)
            raise

        self.bot.tree.add_command(self.open_ctx_menu)
        log.info("Modmail: Loaded")

    async def cog_unload(self) -> None:
        self.bot.tree.remove_command(self.open_ctx_menu.name, type=self.open_ctx_menu.type)
        if self.db:
            await self.db.close()
        log.info("Modmail: Unloaded")

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot or not isinstance(message.channel, discord.DMChannel):
            return
        if self.opener is None:
            return
        if not await self.bot.allowed_by_whitelist_blacklist(message.author):
            return
        ctx = await self.bot.get_context(message)
        if ctx.valid:
            return

        guild_id = await self.config.dm_guild_id()
        guild = self.bot.get_guild(guild_id) if guild_id else None
        if guild is None:
            return

        request = MessageOpenRequest(
            guild_id=guild.id,
            author_id=message.author.id,
            channel_id=message.channel.id,
            content=message.content,
            locale=str(guild.preferred_locale),
            responder=ChannelResponder(message.channel),
        )
        try:
            result = await self.opener.open(request)
        except ModmailError as e:
            log.error(f"Failed to open a thread for {message.author.id} in {guild.name}", exc_info=e)
            await request.reply(self.translator.t("common.errors.thread_creation", request.locale))
            return

        if result.context is None:
            return
        await self.relay_message(message, result.context)

    async def relay_message(self, message: discord.Message, context: ThreadContext) -> None:
        """Copy a member's direct message into their thread"""
        embed = relay_embed(
            author_name=str(message.author),
            author_icon_url=message.author.display_avatar.url,
            author_id=message.author.id,
            content=message.content,
            attachment_urls=[a.url for a in message.attachments],
        )
        try:
            await self.gateway.send_message(context.thread_channel.id, embed=embed)
        except ModmailError as e:
            log.warning(f"Could not relay message into thread {context.thread.thread_id}", exc_info=e)
            with suppress(discord.HTTPException):
                await message.add_reaction("\N{CROSS MARK}")
            return
        with suppress(discord.HTTPException):
            await message.add_reaction("\N{WHITE HEAVY CHECK MARK}")
