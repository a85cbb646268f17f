from typing import Iterator, List

from telegram import BotCommand

from bot.wrapper import HandlerWrapper


def get_commands_help(*commands: HandlerWrapper) -> Iterator[str]:
    for cmd in commands:
        names = ' '.join([f"/{c}" for c in cmd.commands])
        if cmd.__doc__:
            yield f"{names} - {normalize_text(cmd.__doc__)}"
        else:
            yield names


def get_bot_commands(*commands: HandlerWrapper) -> List[BotCommand]:
    """Commands for the menu of telegram client, described by first line of docstring."""
    return [
        BotCommand(cmd.commands[0], cmd.description)
        for cmd in commands
        if cmd.description
    ]


def normalize_text(text: str):
    lines = text.strip().split('\n')
    return '\n'.join([line.strip() for line in lines])
