from .commands import command_guide, command_help, command_start
from .misc_handlers import handle_error
from .query_callback_handlers import handle_reaction_callback
