from os import getenv

TG_BOT_TOKEN = getenv('TG_BOT_TOKEN')
TG_BOT_WORKERS = int(getenv('TG_BOT_WORKERS', '4'))

# if not set - use long polling
WEBHOOK_URL = getenv('WEBHOOK_URL')
WEBHOOK_LISTEN = getenv('WEBHOOK_LISTEN', '0.0.0.0')
WEBHOOK_PORT = int(getenv('WEBHOOK_PORT', '8443'))

# if not set - toggles are serialized only within current process
REDIS_URL = getenv('REDIS_URL')
TOGGLE_LOCK_TIMEOUT = int(getenv('TOGGLE_LOCK_TIMEOUT', '5'))
TOGGLE_LOCK_WAIT = int(getenv('TOGGLE_LOCK_WAIT', '3'))

# markup
KEYBOARD_COLUMNS = int(getenv('KEYBOARD_COLUMNS', '6'))
