import logging
from typing import Optional

from telegram import Message as TGMessage, ReplyParameters, Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from bot import consts
from bot.utils import (
    get_display_names,
    is_reaction_message,
    read_state,
    send_reaction_message,
    try_delete,
)
from bot.wrapper import command
from core.codec import CorruptStateError
from core.reactions import REACTIONS, Reaction
from core.state import ReactionState, toggle

logger = logging.getLogger(__name__)

SHORTCUTS = [name for reaction in REACTIONS for name in reaction.commands]


def get_command_name(msg: TGMessage, default: str) -> str:
    text = msg.text or ''
    if not text.startswith('/'):
        return default
    return text[1:].split()[0].split('@')[0].lower()


async def get_reply_target(msg: TGMessage, command_name: str, purpose: str) -> Optional[TGMessage]:
    target = msg.reply_to_message
    if not target:
        await msg.reply_text(consts.REPLY_REQUIRED.format(command=command_name, purpose=purpose))
    return target


async def start_reaction(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    reaction: Optional[Reaction],
):
    msg = update.effective_message
    target = await get_reply_target(msg, get_command_name(msg, 'r'), 'reacting to')
    if not target:
        return

    await try_delete(msg)

    state = ReactionState()
    if reaction:
        state, _ = toggle(state, reaction, update.effective_user.id)
    sent = await send_reaction_message(context.bot, target, state)
    logger.debug(f"reaction message {sent.message_id} created in chat {sent.chat_id}")


@command('r')
async def command_react(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Reply to a message to attach reactions to it.
        ex: `/r` - add reactions panel
        ex: `/r 👍` - add reactions panel and vote right away
    """
    msg = update.effective_message
    reaction = None
    if context.args:
        text = ' '.join(context.args)
        reaction = Reaction.find(text)
        if not reaction:
            available = ' '.join(r.glyph for r in REACTIONS)
            await msg.reply_text(consts.UNKNOWN_REACTION.format(reaction=text, available=available))
            return
    await start_reaction(update, context, reaction)


@command(SHORTCUTS)
async def command_react_with(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Reply to a message to react to it with given reaction, eg `/up`."""
    msg = update.effective_message
    reaction = Reaction.find(get_command_name(msg, ''))
    await start_reaction(update, context, reaction)


def format_summary(state: ReactionState, names: dict) -> str:
    lines = []
    for reaction in state:
        users = ', '.join(names[user_id] for user_id in sorted(state[reaction]))
        lines.append(f"{reaction.glyph}{consts.SUMMARY_SEPARATOR}{users}")
    return '\n'.join(lines)


@command('s')
async def command_show(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Reply to a reaction message to show who reacted with what."""
    msg = update.effective_message
    target = await get_reply_target(msg, 's', 'asking about')
    if not target:
        return

    if not is_reaction_message(context.bot, target):
        await msg.reply_text(consts.NOT_REACTION_MESSAGE.format(command='s'))
        return

    try:
        state = read_state(target) or ReactionState()
    except CorruptStateError as e:
        logger.warning(f"corrupted state in message {target.message_id}: {e}")
        await msg.reply_text(consts.CORRUPT_STATE)
        return

    reply = ReplyParameters(message_id=target.message_id)
    if not state:
        await context.bot.send_message(
            chat_id=target.chat_id,
            text=consts.NO_REACTIONS,
            parse_mode=ParseMode.HTML,
            reply_parameters=reply,
        )
        return

    user_ids = [user_id for reaction in state for user_id in state[reaction]]
    names = await get_display_names(context.bot, target.chat_id, user_ids)
    await context.bot.send_message(
        chat_id=target.chat_id,
        text=format_summary(state, names),
        reply_parameters=reply,
    )
