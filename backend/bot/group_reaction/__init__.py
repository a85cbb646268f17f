"""
# REACTIONS IN GROUP CHATS

```
user: reply to some message with /r (or /r 👍, /up, ...)
> trigger "r" command: delete command message,
    reply to the target with reactions panel (and user's vote if one was given)

user: press button on reactions panel
> trigger query callback handler (bot.core): decode votes from panel's text,
    toggle user's vote, edit panel

user: reply to reactions panel with /s
> trigger "s" command: decode votes, reply with names of voters per reaction
```
"""

from .commands import command_react, command_react_with, command_show
