import os

import django


def setup():
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'reaxn.settings')
    django.setup()


def main():
    setup()
    from bot.dispatcher import run

    run()


if __name__ == '__main__':
    main()
