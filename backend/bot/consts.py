CANCEL_GLYPH = '❎'
UNKNOWN_USER = '(unknown)'
SUMMARY_SEPARATOR = ' — '

REPLY_REQUIRED = "You need to reply to a message with /{command} so I know which message you're {purpose}."
NOT_REACTION_MESSAGE = "You can only use /{command} to reply to a reaction message."
UNKNOWN_REACTION = "I don't know reaction {reaction!r}. Available reactions: {available}"
NO_REACTIONS = "<i>No one reacted to this message.</i>"
CORRUPT_STATE = "Reactions on this message are broken, I can't read them."
MESSAGE_GONE = "Something's wrong with that message. Try this on another message."
INVALID_BUTTON = "This button is not supported anymore."
