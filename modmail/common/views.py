import logging
from typing import Any, Optional, Sequence

import discord
from discord import ui
from discord.ui.item import Item

from .constants import TAG_SELECT_CUSTOM_ID
from .messages import MESSAGES
from .models import SelectChoice

log = logging.getLogger("red.modmail.views")


class TagSelectView(ui.View):
    """Single-choice dropdown of forum tags. Stops after the first selection."""

    def __init__(
        self,
        choices: Sequence[SelectChoice],
        timeout: float,
        allowed_user_id: Optional[int] = None,
        denied_text: Optional[str] = None,
    ):
        super().__init__(timeout=timeout)
        self.allowed_user_id = allowed_user_id
        self.denied_text = denied_text or MESSAGES["tag_prompt.not_yours"]
        self.value: Optional[str] = None

        options = []
        for choice in choices[:25]:
            options.append(discord.SelectOption(
                label=choice.label[:100],
                value=choice.value,
                emoji=choice.emoji or None,
            ))
        self.select = ui.Select(
            custom_id=TAG_SELECT_CUSTOM_ID,
            options=options,
            min_values=1,
            max_values=1,
        )
        self.select.callback = self.select_callback
        self.add_item(self.select)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if self.allowed_user_id and interaction.user.id != self.allowed_user_id:
            await interaction.response.send_message(self.denied_text, ephemeral=True)
            return False
        return True

    async def select_callback(self, interaction: discord.Interaction):
        if self.is_finished():
            return
        self.value = self.select.values[0]
        await interaction.response.defer()
        self.stop()

    async def on_error(self, interaction: discord.Interaction, error: Exception, item: Item[Any]):
        log.warning(f"Tag select failed for user {interaction.user.id}", exc_info=error)
        return await super().on_error(interaction, error, item)
