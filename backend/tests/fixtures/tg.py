import re
from html import unescape
from typing import Callable, Optional
from unittest.mock import Mock

import pytest
from _pytest.fixtures import FixtureRequest
from django.conf import settings
from telegram import (
    Bot,
    Chat as TGChat,
    Message as TGMessage,
    Update,
    User as TGUser,
)

from core.codec import encode
from core.state import ReactionState
from .utils import append_to_cls, as_dict, get_id

BOT_ID = 777000111

STATE_HTML = re.compile(r'<a href="([^"]*)">(.)</a>(.*)', re.S)
TAG = re.compile(r'</?[a-z]+>')


def get_bot_user() -> TGUser:
    return TGUser(BOT_ID, 'reaxn', is_bot=True, username='reaxnbot')


def render_html(html: str):
    """Text and entities of message sent with HTML parse mode, the way telegram stores them."""
    match = STATE_HTML.fullmatch(html)
    if not match:
        return unescape(TAG.sub('', html)), []
    url, marker, rest = match.groups()
    text = marker + unescape(TAG.sub('', rest))
    entities = [{'type': 'text_link', 'offset': 0, 'length': len(marker), 'url': unescape(url)}]
    return text, entities


@pytest.fixture(scope='class')
def create_bot(request: FixtureRequest) -> Callable:
    def _create_bot():
        return Bot(settings.TG_BOT_TOKEN or '123456:test-token')

    return append_to_cls(request, _create_bot)


@pytest.fixture(scope='class')
def create_tg_user(request: FixtureRequest) -> Callable:
    def _create_tg_user(id=None, first_name='user', is_bot=False, **kwargs):
        return TGUser(id or get_id(), first_name, is_bot=is_bot, **kwargs)

    return append_to_cls(request, _create_tg_user)


@pytest.fixture(scope='class')
def create_tg_chat(request: FixtureRequest) -> Callable:
    def _create_tg_chat(id=None, type=TGChat.SUPERGROUP, title='chat', **kwargs):
        return TGChat(id or -get_id(), type, title=title, **kwargs)

    return append_to_cls(request, _create_tg_chat)


@pytest.fixture(scope='class')
def create_tg_message(
    request: FixtureRequest, create_bot, create_tg_user, create_tg_chat
) -> Callable:
    def _create_tg_message(
        bot=None,
        user=None,
        chat=None,
        text='message',
        reply_to_message: Optional[TGMessage] = None,
        **kwargs,
    ):
        bot = bot or create_bot()
        data = {
            'message_id': get_id() % 100000 + 1,
            'date': 1564646464,
            'from': as_dict(user, create_tg_user().to_dict()),
            'chat': as_dict(chat, create_tg_chat().to_dict()),
            'text': text,
            **kwargs,
        }
        if reply_to_message:
            data['reply_to_message'] = reply_to_message.to_dict()
        return TGMessage.de_json(data, bot)

    return append_to_cls(request, _create_tg_message)


@pytest.fixture(scope='class')
def create_reaction_message(request: FixtureRequest, create_tg_message) -> Callable:
    def _create_reaction_message(state=None, html=None, chat=None, bot=None, **kwargs):
        if html is None:
            html = encode(ReactionState(state)).html
        text, entities = render_html(html)
        return create_tg_message(
            bot=bot,
            user=get_bot_user(),
            chat=chat,
            text=text,
            entities=entities,
            **kwargs,
        )

    return append_to_cls(request, _create_reaction_message)


@pytest.fixture(scope='class')
def create_update(
    request: FixtureRequest,
    create_bot,
    create_tg_user,
    create_tg_chat,
    create_tg_message,
) -> Callable:
    def _create_update(
        bot=None,
        text='/r',
        user: TGUser = None,
        chat: TGChat = None,
        message: TGMessage = None,
        reply_to_message: TGMessage = None,
    ):
        bot = bot or create_bot()
        user = user or create_tg_user()
        if not chat:
            chat = reply_to_message.chat if reply_to_message else create_tg_chat()
        message = message or create_tg_message(
            bot=bot,
            user=user,
            chat=chat,
            text=text,
            reply_to_message=reply_to_message,
        )
        update = {'update_id': get_id(), 'message': message.to_dict()}
        return Update.de_json(update, bot)

    return append_to_cls(request, _create_update)


@pytest.fixture(scope='class')
def create_callback_update(request: FixtureRequest, create_bot, create_tg_user) -> Callable:
    def _create_callback_update(data, message=None, user: TGUser = None, bot=None):
        bot = bot or create_bot()
        user = user or create_tg_user()
        query = {
            'id': str(get_id()),
            'from': user.to_dict(),
            'chat_instance': 'instance',
            'data': data,
        }
        if message:
            query['message'] = message.to_dict()
        update = {'update_id': get_id(), 'callback_query': query}
        return Update.de_json(update, bot)

    return append_to_cls(request, _create_callback_update)


@pytest.fixture(scope='class')
def create_context(request, create_bot):
    def _create_context(bot=None, args=None):
        context = Mock()
        context.bot = bot or create_bot()
        context.args = args or []
        return context

    return append_to_cls(request, _create_context)
