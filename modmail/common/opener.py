import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union, overload

from ..errors import GatewayError, RepositoryError, ThreadConflictError
from .content import alert_line, start_content, summary_embed, thread_title
from .deflection import DeflectionEngine
from .interfaces import MessagingGateway, Repository, Translator
from .models import (
    ChannelInfo,
    ChannelKind,
    CommandOpenRequest,
    CommandOpenResult,
    FailureReason,
    GuildSettings,
    MessageOpenRequest,
    MessageOpenResult,
    OpenRequest,
    OpenStatus,
    Thread,
    ThreadContext,
)
from .tag_selector import TagSelector

log = logging.getLogger("red.modmail.opener")


@dataclass
class _Outcome:
    status: OpenStatus
    message: str = ""
    context: Optional[ThreadContext] = None
    reason: Optional[FailureReason] = None


class ThreadOpener:
    """Opens, or finds, the modmail thread for a member.

    One call walks the request through: settings → member → reuse check → tag
    prompt → snippet deflection → thread creation → record. Everything from the
    reuse check to the record is serialized per (guild, user), so concurrent
    requests for the same member end up sharing one thread.

    ``open`` returns a :class:`CommandOpenResult` for staff commands and a
    :class:`MessageOpenResult` for direct messages.
    """

    def __init__(
        self,
        repository: Repository,
        gateway: MessagingGateway,
        translator: Translator,
        tag_selector: Optional[TagSelector] = None,
        deflection: Optional[DeflectionEngine] = None,
    ):
        self.repository = repository
        self.gateway = gateway
        self.translator = translator
        self.tag_selector = tag_selector or TagSelector(gateway, translator)
        self.deflection = deflection or DeflectionEngine(gateway, translator)

        self._locks: Dict[Tuple[int, int], asyncio.Lock] = {}
        self._waiters: Dict[Tuple[int, int], int] = {}

    @overload
    async def open(self, request: CommandOpenRequest) -> CommandOpenResult: ...

    @overload
    async def open(self, request: MessageOpenRequest) -> MessageOpenResult: ...

    async def open(self, request: OpenRequest) -> Union[CommandOpenResult, MessageOpenResult]:
        outcome = await self._open(request)
        if isinstance(request, MessageOpenRequest):
            return MessageOpenResult(status=outcome.status, context=outcome.context, reason=outcome.reason)
        return CommandOpenResult(
            status=outcome.status,
            message=outcome.message,
            thread=outcome.context.thread if outcome.context else None,
            reason=outcome.reason,
        )

    @asynccontextmanager
    async def _user_lock(self, guild_id: int, user_id: int):
        key = (guild_id, user_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                del self._locks[key]

    def _t(self, key: str, locale: Optional[str] = None, **params) -> str:
        return self.translator.t(key, locale, **params)

    async def _fail(self, request: OpenRequest, reason: FailureReason, key: str) -> _Outcome:
        text = self._t(key, request.locale)
        await request.reply(text)
        return _Outcome(OpenStatus.FAILED, message=text, reason=reason)

    async def _open(self, request: OpenRequest) -> _Outcome:
        guild_id = request.guild_id

        settings = await self.repository.get_guild_settings(guild_id)
        destination = None
        if settings and settings.modmail_channel_id:
            destination = await self.gateway.fetch_channel(settings.modmail_channel_id)
        if destination is None or destination.kind not in (ChannelKind.FORUM, ChannelKind.TEXT):
            log.debug(f"No usable modmail channel configured for guild {guild_id}")
            return await self._fail(request, FailureReason.NO_DESTINATION, "common.errors.thread_creation")

        member = await self.gateway.fetch_member(guild_id, request.user_id)
        if member is None:
            return await self._fail(request, FailureReason.NOT_A_MEMBER, "common.errors.no_member")

        async with self._user_lock(guild_id, member.id):
            existing = await self._find_reusable(guild_id, member.id)
            if existing is not None:
                thread, channel = existing
                return await self._reuse(request, ThreadContext(thread, channel, member, settings, existing=True))

            past_threads = await self.repository.list_threads(guild_id, member.id)
            await request.defer()

            tag = None
            if destination.is_forum:
                tags = destination.eligible_tags()
                if tags:
                    tag = await self.tag_selector.select(
                        request.channel_id,
                        tags,
                        locale=request.locale,
                        allowed_user_id=request.actor_id,
                    )
                    if tag is None:
                        return await self._fail(
                            request, FailureReason.NO_TAG_SELECTED, "common.errors.no_tag_selected"
                        )

                    snippets = await self.repository.list_snippets(guild_id)
                    if await self.deflection.deflect(request, guild_id, tag, snippets, member.mention):
                        return _Outcome(OpenStatus.DEFLECTED)

            is_message = isinstance(request, MessageOpenRequest)
            embed = summary_embed(
                self.translator,
                member,
                len(past_threads),
                opened_by_mention=None if is_message else f"<@{request.actor_id}>",
                locale=request.locale,
            )
            alert = await self._alert(settings, request.locale) if is_message else None
            content = start_content(member, alert)

            try:
                if destination.is_forum:
                    title = thread_title(member, request.content if is_message else None)
                    thread_channel = await self.gateway.create_forum_thread(
                        destination.id, title, content, embed, [tag.id] if tag else []
                    )
                else:
                    thread_channel = await self.gateway.create_message_thread(
                        destination.id, member.handle, content, embed
                    )
            except GatewayError as e:
                log.error(f"Failed to create modmail thread for {member.id} in guild {guild_id}", exc_info=e)
                return await self._fail(
                    request, FailureReason.CHANNEL_CREATION_FAILED, "common.errors.thread_creation"
                )

            try:
                thread = await self.repository.create_thread(
                    guild_id, thread_channel.id, member.id, request.actor_id
                )
            except ThreadConflictError:
                log.error(
                    f"Another open thread was recorded for {member.id} in guild {guild_id}; "
                    f"channel {thread_channel.id} is orphaned"
                )
                survivor = await self._find_reusable(guild_id, member.id)
                if survivor is None:
                    return await self._fail(
                        request, FailureReason.PERSISTENCE_FAILED, "common.errors.thread_creation"
                    )
                thread, channel = survivor
                return await self._reuse(request, ThreadContext(thread, channel, member, settings, existing=True))
            except RepositoryError as e:
                # Not retried: the channel exists but has no record
                log.error(
                    f"Modmail channel {thread_channel.id} was created but could not be recorded",
                    exc_info=e,
                )
                return await self._fail(
                    request, FailureReason.PERSISTENCE_FAILED, "common.errors.thread_creation"
                )

        log.info(f"Opened modmail thread {thread.thread_id} for {member.id} in guild {guild_id}")
        context = ThreadContext(thread, thread_channel, member, settings, existing=False)
        if is_message:
            return _Outcome(OpenStatus.CREATED, context=context)

        text = self._t("common.success.opened_thread", request.locale)
        await request.reply(text)
        return _Outcome(OpenStatus.CREATED, message=text, context=context)

    async def _find_reusable(self, guild_id: int, user_id: int) -> Optional[Tuple[Thread, ChannelInfo]]:
        """Return the open thread and its channel, deleting the record if the channel is gone."""
        thread = await self.repository.find_open_thread(guild_id, user_id)
        if thread is None:
            return None
        channel = await self.gateway.fetch_channel(thread.channel_id)
        if channel is not None:
            return thread, channel
        log.info(f"Deleting thread {thread.thread_id}: channel {thread.channel_id} no longer exists")
        await self.repository.delete_thread(thread.thread_id)
        return None

    async def _reuse(self, request: OpenRequest, context: ThreadContext) -> _Outcome:
        if isinstance(request, MessageOpenRequest):
            return _Outcome(OpenStatus.REUSED, context=context)
        text = self._t("common.errors.thread_exists", request.locale)
        await request.reply(text)
        return _Outcome(OpenStatus.REUSED, message=text, context=context)

    async def _alert(self, settings: GuildSettings, locale: Optional[str] = None) -> Optional[str]:
        # A configured role wins over individual subscribers, even if the role was deleted
        if settings.alert_role_id:
            mention = await self.gateway.fetch_role_mention(settings.guild_id, settings.alert_role_id)
            return alert_line(self.translator, role_mention=mention, locale=locale) if mention else None
        alerts = await self.repository.list_alert_subscribers(settings.guild_id)
        return alert_line(self.translator, subscriber_ids=[a.user_id for a in alerts], locale=locale)
