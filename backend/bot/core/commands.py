import logging

from telegram import Update
from telegram.ext import ContextTypes

from bot.group_reaction import command_react, command_react_with, command_show
from bot.wrapper import command
from core.reactions import REACTIONS
from .utils import get_commands_help, normalize_text

logger = logging.getLogger(__name__)


@command(('help', 'h'))
async def command_help(update: Update, _: ContextTypes.DEFAULT_TYPE):
    """Show list of commands."""
    shortcuts = ' '.join(f"/{reaction.identifier} {reaction.glyph}" for reaction in REACTIONS)
    commands_help = get_commands_help(
        command_help,
        command_guide,
        command_react,
        command_react_with,
        command_show,
    )
    text = '\n'.join([
        "This bot adds a reactions panel to any message you reply to.",
        '',
        *commands_help,
        '',
        f"*Shortcuts:* {shortcuts}",
    ])
    await update.effective_message.reply_markdown(text)


@command('start')
async def command_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await command_help(update, context)


@command('guide')
async def command_guide(update: Update, _: ContextTypes.DEFAULT_TYPE):
    """Show how to use the bot."""
    text = """
    *Adding reactions:*

    - reply to any message with `/r`
    - bot will reply to it with reactions panel
    - anyone in the chat can press buttons to vote, press again to take vote back
    - `/r 👍` or `/up` will also put your vote right away

    *Checking who reacted:*

    - reply to the reactions panel with `/s`

    Bot removes your `/r` commands if it has "delete messages" permission.
    """
    await update.effective_message.reply_markdown(normalize_text(text))
