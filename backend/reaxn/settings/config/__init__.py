from .BOT import *
from .LOGGER import *
