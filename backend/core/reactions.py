from enum import Enum
from typing import Optional, Tuple

import emoji


class Reaction(Enum):
    """
    Reaction kinds available on reaction messages.
    Member values are serialized into message state and must never change.
    """
    LAUGH = 'laugh'
    ANGER = 'anger'
    HEART = 'love'
    UP = 'up'
    DOWN = 'down'
    SAD = 'sad'

    def __str__(self):
        return self.value

    @property
    def identifier(self) -> str:
        return self.value

    @property
    def glyph(self) -> str:
        return GLYPHS[self]

    @property
    def commands(self) -> Tuple[str, ...]:
        return (self.value, *ALIASES.get(self, ()))

    @classmethod
    def get(cls, identifier: str) -> Optional['Reaction']:
        try:
            return cls(identifier)
        except ValueError:
            return None

    @classmethod
    def find(cls, text: str) -> Optional['Reaction']:
        """Resolve identifier, command alias or emoji into reaction."""
        text = (text or '').strip()
        if not text:
            return None
        reaction = cls.get(text.lower())
        if reaction:
            return reaction
        for reaction, aliases in ALIASES.items():
            if text.lower() in aliases:
                return reaction
        if emoji.emoji_count(text) != 1:
            return None
        name = emoji_name(text)
        for reaction in REACTIONS:
            if emoji_name(reaction.glyph) == name:
                return reaction
        return None


def emoji_name(text: str) -> str:
    # '❤' and '❤️' differ only by variation selector
    return emoji.demojize(text.replace('\ufe0f', ''))


GLYPHS = {
    Reaction.HEART: '❤️',
    Reaction.LAUGH: '😂',
    Reaction.ANGER: '😡',
    Reaction.SAD: '😭',
    Reaction.UP: '👍',
    Reaction.DOWN: '👎',
}
ALIASES = {
    Reaction.HEART: ('heart',),
}

# display order of buttons and summary lines
REACTIONS = (
    Reaction.HEART,
    Reaction.LAUGH,
    Reaction.ANGER,
    Reaction.SAD,
    Reaction.UP,
    Reaction.DOWN,
)
