import logging
from typing import Optional, Sequence

from .constants import TAG_PROMPT_TIMEOUT
from .interfaces import MessagingGateway, Translator
from .models import RoutingTag, SelectChoice

log = logging.getLogger("red.modmail.tags")


class TagSelector:
    """Asks the requester to pick a forum tag from a dropdown.

    Exactly one prompt message is posted per call. Before returning, that message is
    either deleted (a choice was made) or edited to a timed out state with no
    components (nothing was chosen in time), never both.
    """

    def __init__(
        self,
        gateway: MessagingGateway,
        translator: Translator,
        timeout: float = TAG_PROMPT_TIMEOUT,
    ):
        self.gateway = gateway
        self.translator = translator
        self.timeout = timeout

    async def select(
        self,
        channel_id: int,
        tags: Sequence[RoutingTag],
        *,
        locale: Optional[str] = None,
        allowed_user_id: Optional[int] = None,
    ) -> Optional[RoutingTag]:
        choices = [SelectChoice(label=tag.name, value=tag.id, emoji=tag.emoji) for tag in tags]
        prompt = await self.gateway.send_select_prompt(
            channel_id,
            self.translator.t("tag_prompt.content", locale),
            choices,
            timeout=self.timeout,
            allowed_user_id=allowed_user_id,
            denied_text=self.translator.t("tag_prompt.not_yours", locale),
        )
        if prompt is None:
            return None

        value = await self.gateway.wait_for_selection(prompt)
        if value is None:
            log.debug(f"Tag prompt {prompt.message_id} timed out in channel {channel_id}")
            await self.gateway.edit_message(
                prompt,
                self.translator.t("tag_prompt.timed_out", locale),
                clear_components=True,
            )
            return None

        await self.gateway.delete_message(prompt)
        return next((tag for tag in tags if tag.id == value), None)
