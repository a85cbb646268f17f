from unittest.mock import AsyncMock, Mock, PropertyMock

import pytest
from telegram import Bot

from bot import redis
from .tg import get_bot_user


@pytest.fixture
def mock_bot(mocker):
    bot_user = get_bot_user()
    mocker.patch.object(Bot, 'bot', new_callable=PropertyMock, return_value=bot_user)

    bot_mocks = [
        'send_message',
        'edit_message_text',
        'delete_message',
        'answer_callback_query',
        'get_chat_member',
        'set_my_commands',
    ]
    for name in bot_mocks:
        mocker.patch.object(Bot, name, new_callable=AsyncMock)
    return bot_user


@pytest.fixture
def mock_redis(mocker):
    lock = Mock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock()
    rc = mocker.patch.object(redis, 'rc')
    rc.lock.return_value = lock
    return rc
