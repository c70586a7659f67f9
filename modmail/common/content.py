"""Builders for the first message of a new modmail thread."""

from datetime import datetime
from typing import Iterable, List, Optional

from .constants import ROLES_FIELD_LIMIT, SUMMARY_EMBED_COLOR, THREAD_TITLE_LIMIT
from .interfaces import Translator
from .models import EmbedSpec, MemberInfo


def long_date(dt: Optional[datetime]) -> str:
    """Discord timestamp markup rendered as a long date, e.g. ``<t:1700000000:D>``."""
    if dt is None:
        return "Unknown"
    return f"<t:{int(dt.timestamp())}:D>"


def user_handle(name: str, discriminator: Optional[str] = None) -> str:
    if not discriminator or discriminator == "0":
        return name
    return f"{name}-{discriminator}"


def roles_summary(mentions: Iterable[str], limit: int = ROLES_FIELD_LIMIT) -> str:
    """Join role mentions (already sorted highest first) so they fit in one embed field."""
    roles: List[str] = []
    for mention in mentions:
        if len(" ".join(roles + [mention])) > limit - 4:
            roles.append("...")
            break
        roles.append(mention)
    return " ".join(roles) if roles else "None"


def thread_title(member: MemberInfo, content: Optional[str] = None) -> str:
    """Forum post title: the opening message when there is one, otherwise the member handle."""
    if not content:
        return member.handle
    title = content[:THREAD_TITLE_LIMIT].strip()
    if len(content) > THREAD_TITLE_LIMIT:
        title += "..."
    return title or member.handle


def summary_embed(
    translator: Translator,
    member: MemberInfo,
    past_threads: int,
    opened_by_mention: Optional[str] = None,
    locale: Optional[str] = None,
) -> EmbedSpec:
    """Member overview posted at the top of every new thread.

    The "opened by" field is only shown when staff opened the thread, since a member
    writing in is always the opener of their own thread.
    """
    embed = EmbedSpec(
        color=SUMMARY_EMBED_COLOR,
        footer_text=f"{member.tag} ({member.id})",
        footer_icon_url=member.display_avatar_url,
    )
    if member.nickname:
        embed.author_name = member.nickname
        embed.author_icon_url = member.display_avatar_url

    def field(key: str) -> str:
        return translator.t(f"thread.start.embed.fields.{key}", locale)

    embed.add_field(field("account_created"), long_date(member.created_at))
    embed.add_field(field("joined_server"), long_date(member.joined_at))
    embed.add_field(field("past_modmails"), str(past_threads))
    if opened_by_mention is not None:
        embed.add_field(field("opened_by"), opened_by_mention)
    embed.add_field(field("roles"), member.roles)
    return embed


def alert_line(
    translator: Translator,
    role_mention: Optional[str] = None,
    subscriber_ids: Iterable[int] = (),
    locale: Optional[str] = None,
) -> Optional[str]:
    if role_mention:
        return translator.t("alerts.role", locale, role=role_mention)
    mentions = " ".join(f"<@{uid}>" for uid in subscriber_ids)
    if not mentions:
        return None
    return translator.t("alerts.users", locale, users=mentions)


def start_content(member: MemberInfo, alert: Optional[str] = None) -> str:
    if alert:
        return f"{member.mention}\n{alert}"
    return member.mention


def relay_embed(
    author_name: str,
    author_icon_url: Optional[str],
    author_id: int,
    content: str,
    attachment_urls: Iterable[str] = (),
) -> EmbedSpec:
    """A member's direct message as it is shown inside their thread."""
    lines = [content] if content else []
    lines.extend(attachment_urls)
    return EmbedSpec(
        description="\n".join(lines) or None,
        color=SUMMARY_EMBED_COLOR,
        author_name=author_name,
        author_icon_url=author_icon_url,
        footer_text=f"User ID: {author_id}",
    )
