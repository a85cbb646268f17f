from typing import List, Optional

from django.conf import settings
from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from core.reactions import REACTIONS
from core.state import ReactionState


def format_count(count: int) -> str:
    count_text = str(count)
    if count > 1000:
        if count % 1000 >= 100:
            count_text = f'{count / 1000:.1f}k'
        else:
            count_text = f'{count // 1000}k'
    return count_text


def gen_buttons(state: Optional[ReactionState] = None) -> List[InlineKeyboardButton]:
    """One button per reaction in display order, payload is reaction identifier."""
    state = state or ReactionState()
    result = []
    for reaction in REACTIONS:
        text = reaction.glyph
        count = state.count(reaction)
        if count > 0:
            text = f'{text} {format_count(count)}'
        result.append(InlineKeyboardButton(text, callback_data=reaction.identifier))
    return result


def split_to_columns(lines: list, max_cols: int):
    res = []
    while lines:
        line = lines[:max_cols]
        res.append(line)
        lines = lines[max_cols:]
    return res


def make_reactions_keyboard(state: Optional[ReactionState] = None, max_cols: int = None):
    max_cols = max_cols or settings.KEYBOARD_COLUMNS
    buttons = gen_buttons(state)
    keyboard = split_to_columns(buttons, max_cols)
    return InlineKeyboardMarkup(keyboard)
