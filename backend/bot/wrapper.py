import functools
import logging
from typing import List

from telegram import Update
from telegram.ext import (
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)


class HandlerWrapper:
    """Telegram handler bound to decorated coroutine, keeps coroutine's docs for /help."""

    def __init__(self, func, handler_class, *args, **kwargs):
        @functools.wraps(func)
        async def callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
            logger = logging.getLogger(func.__module__)
            logger.debug(f"☎️  CALLING: {func.__name__:30s}")
            logger.debug(f"📑\n{update}")
            return await func(update, context)

        self.callback = callback
        self.handler_class = handler_class
        self.handler = handler_class(*args, callback=callback, **kwargs)
        self.__doc__ = func.__doc__

    @property
    def name(self):
        return self.callback.__name__

    @property
    def module(self):
        return self.callback.__module__

    @property
    def commands(self) -> List[str]:
        # shorter aliases go last: /help /h
        names = getattr(self.handler, 'commands', ())
        return sorted(names, key=lambda c: (-len(c), c))

    @property
    def description(self) -> str:
        return (self.__doc__ or '').strip().split('\n')[0]

    async def __call__(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        return await self.callback(update, context)


def handler_decorator_factory(handler_class):
    def handler_decorator(*args, **kwargs):
        def decorator(func):
            return HandlerWrapper(func, handler_class, *args, **kwargs)

        return decorator

    return handler_decorator


command = handler_decorator_factory(CommandHandler)
callback_query_handler = handler_decorator_factory(CallbackQueryHandler)
