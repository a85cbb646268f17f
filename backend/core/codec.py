"""
Reaction state is stored inside the reaction message itself.

Visible text of the message starts with `MARKER`, an invisible character
which marks messages created by the bot. The marker is wrapped into a text link
whose target holds the votes, eg:

    https://reaxnbot.dev/reactions?love=1,2&up=3

Link is never opened by anyone, it is just a carrier for data that survives
message edits. Visible tally after the marker is regenerated on every edit.
"""
import re
from collections import defaultdict
from dataclasses import dataclass
from html import escape
from typing import Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from .reactions import REACTIONS, Reaction
from .state import ReactionState

MARKER = '\u034f'
HOST = 'reaxnbot.dev'
PATH = '/reactions'
DELIMITER = ','
TALLY_SEPARATOR = '  '

USER_ID = re.compile(r'-?[0-9]+')


class CorruptStateError(ValueError):
    pass


@dataclass(frozen=True)
class EncodedState:
    text: str
    url: Optional[str]
    tally: Tuple[Tuple[str, int], ...]

    @property
    def html(self) -> str:
        if not self.url:
            return MARKER
        tally = TALLY_SEPARATOR.join(f'{glyph} <b>{count}</b>' for glyph, count in self.tally)
        return f'<a href="{escape(self.url)}">{MARKER}</a> {tally}'


def is_state_link(url: str) -> bool:
    parts = urlsplit(url)
    return parts.hostname == HOST and parts.path == PATH


def parse_user_ids(value: str) -> List[int]:
    ids = []
    for token in value.split(DELIMITER):
        if not USER_ID.fullmatch(token):
            raise CorruptStateError(f"invalid user id: {token!r}")
        ids.append(int(token))
    return ids


def decode(text: Optional[str], links: Iterable[str]) -> Optional[ReactionState]:
    """
    Restore votes from message text and urls of its text links.

    Return None if message doesn't look like reaction message at all.
    Raise CorruptStateError if state link is found but can't be parsed.
    """
    found = False
    votes = defaultdict(set)
    for url in links:
        if not url or not is_state_link(url):
            continue
        found = True
        for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
            reaction = Reaction.get(key)
            if reaction is None:
                raise CorruptStateError(f"unknown reaction: {key!r}")
            votes[reaction].update(parse_user_ids(value))

    if not found and MARKER not in (text or ''):
        return None
    return ReactionState(votes)


def encode(state: ReactionState) -> EncodedState:
    params = []
    tally = []
    for reaction in REACTIONS:
        users = state[reaction]
        if not users:
            continue
        ids = DELIMITER.join(str(user_id) for user_id in sorted(users))
        params.append(f'{reaction.identifier}={ids}')
        tally.append((reaction.glyph, len(users)))

    if not params:
        return EncodedState(text=MARKER, url=None, tally=())

    url = f'https://{HOST}{PATH}?' + '&'.join(params)
    text = f'{MARKER} ' + TALLY_SEPARATOR.join(f'{glyph} {count}' for glyph, count in tally)
    return EncodedState(text=text, url=url, tally=tuple(tally))
