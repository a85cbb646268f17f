import logging

from telegram import Update
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from bot import consts, redis
from bot.utils import EDIT_TARGET_ERRORS, edit_reaction_message, error_matches, read_state
from bot.wrapper import callback_query_handler
from core.codec import CorruptStateError
from core.reactions import Reaction
from core.state import ReactionState, toggle

logger = logging.getLogger(__name__)


async def reply_to_reaction(query, reaction: Reaction, added: bool):
    await query.answer(reaction.glyph if added else consts.CANCEL_GLYPH)


@callback_query_handler()
async def handle_reaction_callback(update: Update, _: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    user = update.effective_user

    reaction = Reaction.get(query.data)
    if not reaction:
        logger.warning(f"received invalid reaction: {query.data!r}")
        await query.answer(consts.INVALID_BUTTON, show_alert=True)
        return

    msg = query.message
    if not msg or not msg.is_accessible:
        logger.debug(f"message of query {query.id} is not available")
        await query.answer(consts.MESSAGE_GONE, show_alert=True, cache_time=1000)
        return

    async with redis.message_lock(msg.chat_id, msg.message_id):
        try:
            state = read_state(msg) or ReactionState()
        except CorruptStateError as e:
            logger.warning(f"corrupted state in message {msg.message_id}: {e}")
            await query.answer(consts.CORRUPT_STATE, show_alert=True)
            return

        state, added = toggle(state, reaction, user.id)
        try:
            await edit_reaction_message(msg, state)
        except BadRequest as e:
            if not error_matches(e, EDIT_TARGET_ERRORS):
                raise
            logger.debug(f"can't edit message {msg.message_id}: {e}")
            await query.answer(consts.MESSAGE_GONE, show_alert=True)
            return

    await reply_to_reaction(query, reaction, added)
