from django.core.management import BaseCommand

from bot.dispatcher import run


class Command(BaseCommand):
    help = 'Start bot. Use webhook if WEBHOOK_URL is specified, otherwise - long polling.'

    def handle(self, *args, **options):
        run()
