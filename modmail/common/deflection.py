import logging
import re
from typing import Optional, Sequence

from .constants import FAREWELL_EMBED_COLOR
from .interfaces import MessagingGateway, Translator
from .models import ChannelKind, EmbedSpec, GuildInfo, RoutingTag, Snippet

log = logging.getLogger("red.modmail.deflection")

_NON_WORD = re.compile(r"[^\w\d]", re.ASCII)


def normalize_snippet_name(name: str) -> str:
    return name.replace("-", " ")


def normalize_tag_name(name: str) -> str:
    return _NON_WORD.sub(" ", name.lower())


def match_snippet(tag: RoutingTag, snippets: Sequence[Snippet]) -> Optional[Snippet]:
    """Return the first snippet whose name matches the tag name, if any.

    ``billing-issue`` matches a tag called ``Billing Issue`` and ``Billing/Issue``.
    """
    wanted = normalize_tag_name(tag.name)
    return next((s for s in snippets if normalize_snippet_name(s.name) == wanted), None)


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


def farewell_embed(guild: Optional[GuildInfo], description: str) -> EmbedSpec:
    return EmbedSpec(
        description=description,
        color=FAREWELL_EMBED_COLOR,
        author_name=guild.name if guild else None,
        author_icon_url=guild.icon_url if guild else None,
    )


class DeflectionEngine:
    """Answers a request with a canned snippet instead of opening a thread.

    ``log_channel_id`` is where redirects are reported. The report is best-effort:
    failing to post it is logged and never reaches the requester.
    """

    def __init__(
        self,
        gateway: MessagingGateway,
        translator: Translator,
        log_channel_id: Optional[int] = None,
    ):
        self.gateway = gateway
        self.translator = translator
        self.log_channel_id = log_channel_id

    async def deflect(
        self,
        request,
        guild_id: int,
        tag: RoutingTag,
        snippets: Sequence[Snippet],
        requester_mention: str,
    ) -> bool:
        """Reply with the matching snippet and return True, or return False when none match."""
        snippet = match_snippet(tag, snippets)
        if snippet is None:
            return False

        log.info(f"Redirecting user {request.user_id} in guild {guild_id} with snippet '{snippet.name}'")
        guild = await self.gateway.fetch_guild(guild_id)
        await self._report(guild, tag, snippet, requester_mention, request.locale)
        await request.reply_embed(farewell_embed(guild, snippet.content))
        return True

    async def _report(
        self,
        guild: Optional[GuildInfo],
        tag: RoutingTag,
        snippet: Snippet,
        requester_mention: str,
        locale: Optional[str],
    ) -> None:
        if not self.log_channel_id:
            return
        try:
            channel = await self.gateway.fetch_channel(self.log_channel_id)
            if channel is None or channel.kind is not ChannelKind.TEXT:
                return
            embed = farewell_embed(guild, snippet.content)
            embed.title = self.translator.t("deflection.log.title", locale)
            embed.add_field(
                self.translator.t("deflection.log.fields.option", locale),
                title_case(tag.name),
                inline=False,
            )
            embed.add_field(
                self.translator.t("deflection.log.fields.user", locale),
                requester_mention,
                inline=False,
            )
            await self.gateway.send_message(channel.id, embed=embed)
        except Exception as e:
            log.warning(f"Error Posting to Log Channel ({self.log_channel_id})", exc_info=e)
