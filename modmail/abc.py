from abc import ABC, ABCMeta, abstractmethod

import discord
from discord.ext.commands.cog import CogMeta
from redbot.core import Config
from redbot.core.bot import Red

from .common.gateway import DiscordGateway
from .common.i18n import Translator
from .common.opener import ThreadOpener
from .db.core import CoreDB
from .db.repository import ModmailRepository


class CompositeMetaClass(CogMeta, ABCMeta):
    """Type detection"""


class MixinMeta(ABC):
    """Type hinting"""

    def __init__(self, *_args):
        self.bot: Red
        self.config: Config
        self.db: CoreDB
        self.repository: ModmailRepository
        self.gateway: DiscordGateway
        self.translator: Translator
        self.opener: ThreadOpener

    @abstractmethod
    async def open_for_interaction(self, interaction: discord.Interaction, user: discord.Member) -> None:
        raise NotImplementedError
