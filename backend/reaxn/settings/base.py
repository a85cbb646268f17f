import os
from pathlib import Path

from .config import *

BASE_DIR = str(Path(os.path.abspath(__file__)).parents[2])
SECRET_KEY = os.getenv('SECRET_KEY', 'reaxn')
DEBUG = os.getenv('DEBUG', '0') == '1'
ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '').strip('"').split()

# Application definition

INSTALLED_APPS = [
    # local
    'bot.apps.BotConfig',
]

# Reactions are stored in messages themselves, no database is needed.
DATABASES = {}

# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = False

USE_TZ = True
