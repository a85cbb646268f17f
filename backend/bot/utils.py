import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from django.utils.datastructures import OrderedSet
from telegram import Bot, LinkPreviewOptions, Message as TGMessage, MessageEntity, ReplyParameters
from telegram.constants import ParseMode
from telegram.error import BadRequest, Forbidden, TelegramError

from bot.consts import UNKNOWN_USER
from bot.markup import make_reactions_keyboard
from core.codec import MARKER, decode, encode
from core.state import ReactionState

logger = logging.getLogger(__name__)

# BadRequest descriptions which mean that bot is not allowed to delete message
DELETE_PERMISSION_ERRORS = (
    "message can't be deleted",
    "not enough rights",
)
# BadRequest descriptions which mean that reaction message can't be updated anymore
EDIT_TARGET_ERRORS = (
    "message to edit not found",
    "message can't be edited",
)
NOT_MODIFIED_ERROR = "message is not modified"

NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


def error_matches(error: TelegramError, descriptions: Iterable[str]) -> bool:
    text = error.message.lower()
    return any(d in text for d in descriptions)


def is_delete_permission_error(error: TelegramError) -> bool:
    if isinstance(error, Forbidden):
        return True
    return isinstance(error, BadRequest) and error_matches(error, DELETE_PERMISSION_ERRORS)


async def try_delete(msg: TGMessage):
    """Delete message, ignore errors caused by lack of permissions."""
    try:
        await msg.delete()
    except (Forbidden, BadRequest) as e:
        if not is_delete_permission_error(e):
            raise
        logger.debug(f"not allowed to delete message {msg.message_id}: {e}")


def get_links(msg: TGMessage) -> List[str]:
    return [
        entity.url
        for entity in (msg.entities or ())
        if entity.type == MessageEntity.TEXT_LINK and entity.url
    ]


def read_state(msg: TGMessage) -> Optional[ReactionState]:
    """Decode votes stored in reaction message. Raise CorruptStateError on broken state."""
    return decode(msg.text, get_links(msg))


def is_reaction_message(bot: Bot, msg: Optional[TGMessage]) -> bool:
    if not msg or not msg.text or MARKER not in msg.text:
        return False
    author = msg.via_bot or msg.from_user
    return bool(author and author.id == bot.id)


async def send_reaction_message(bot: Bot, target: TGMessage, state: ReactionState) -> TGMessage:
    encoded = encode(state)
    return await bot.send_message(
        chat_id=target.chat_id,
        text=encoded.html,
        parse_mode=ParseMode.HTML,
        reply_parameters=ReplyParameters(message_id=target.message_id),
        reply_markup=make_reactions_keyboard(state),
        disable_notification=True,
        link_preview_options=NO_PREVIEW,
    )


async def edit_reaction_message(msg: TGMessage, state: ReactionState):
    encoded = encode(state)
    try:
        await msg.edit_text(
            encoded.html,
            parse_mode=ParseMode.HTML,
            reply_markup=make_reactions_keyboard(state),
            link_preview_options=NO_PREVIEW,
        )
    except BadRequest as e:
        if not error_matches(e, [NOT_MODIFIED_ERROR]):
            raise
        logger.debug(f"😡 {e}")


async def get_display_name(bot: Bot, chat_id: int, user_id: int) -> str:
    try:
        member = await bot.get_chat_member(chat_id, user_id)
    except TelegramError as e:
        logger.debug(f"can't get member {user_id} of chat {chat_id}: {e}")
        return UNKNOWN_USER
    return member.user.full_name


async def get_display_names(bot: Bot, chat_id: int, user_ids: Iterable[int]) -> Dict[int, str]:
    user_ids = list(OrderedSet(user_ids))
    names = await asyncio.gather(*[
        get_display_name(bot, chat_id, user_id)
        for user_id in user_ids
    ])
    return dict(zip(user_ids, names))
