from .mockers import mock_bot, mock_redis
from .tg import (
    BOT_ID,
    create_bot,
    create_callback_update,
    create_context,
    create_reaction_message,
    create_tg_chat,
    create_tg_message,
    create_tg_user,
    create_update,
    get_bot_user,
    render_html,
)
