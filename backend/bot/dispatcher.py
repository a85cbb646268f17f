import logging
from enum import IntEnum
from typing import List

from django.conf import settings
from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
)

from . import core, group_reaction
from .core import handle_error
from .core.utils import get_bot_commands
from .wrapper import HandlerWrapper

logger = logging.getLogger(__name__)
WEBHOOK_PATH = 'webhook/{token}'


class Event(IntEnum):
    """Kinds of incoming updates, in order of handling priority."""
    command_received = 0
    control_pressed = 1


HANDLER_EVENTS = {
    CommandHandler: Event.command_received,
    CallbackQueryHandler: Event.control_pressed,
}


def extract_handlers(module):
    res = []
    for key, value in vars(module).items():
        if isinstance(value, HandlerWrapper):
            res.append(value)
    return res


def inspect_handlers(handlers: List[HandlerWrapper]):
    text = 'Handlers:\n'
    text += '\n'.join([
        f"  > {i + 1:2d}. {handler.module:40s} > {handler.name}"
        for i, handler in enumerate(handlers)
    ])
    logger.debug(text)


def sort_by_type(handlers: List[HandlerWrapper]):
    handlers.sort(key=lambda h: HANDLER_EVENTS[h.handler_class])


def collect_handlers() -> List[HandlerWrapper]:
    handlers = []
    for module in [core, group_reaction]:
        handlers.extend(extract_handlers(module))
    sort_by_type(handlers)
    return handlers


async def setup_commands(application: Application):
    commands = get_bot_commands(
        core.command_help,
        core.command_guide,
        group_reaction.command_react,
        group_reaction.command_show,
    )
    await application.bot.set_my_commands(commands)


def setup_application(application: Application, inspect=True):
    handlers = collect_handlers()
    for wrapper in handlers:
        application.add_handler(wrapper.handler)
    application.add_error_handler(handle_error)
    if inspect:
        inspect_handlers(handlers)


def build_application() -> Application:
    application = (
        Application.builder()
        .token(settings.TG_BOT_TOKEN)
        .concurrent_updates(settings.TG_BOT_WORKERS)
        .post_init(setup_commands)
        .build()
    )
    setup_application(application)
    return application


def get_webhook_url():
    path = WEBHOOK_PATH.format(token=settings.TG_BOT_TOKEN)
    return f"{settings.WEBHOOK_URL.rstrip('/')}/{path}"


def run():
    application = build_application()
    updates = [Update.MESSAGE, Update.CALLBACK_QUERY]

    if settings.WEBHOOK_URL:
        logger.info('start webhook...')
        application.run_webhook(
            listen=settings.WEBHOOK_LISTEN,
            port=settings.WEBHOOK_PORT,
            url_path=WEBHOOK_PATH.format(token=settings.TG_BOT_TOKEN),
            webhook_url=get_webhook_url(),
            allowed_updates=updates,
        )
    else:
        logger.info('start polling...')
        application.run_polling(allowed_updates=updates)
    logger.info('bye')
