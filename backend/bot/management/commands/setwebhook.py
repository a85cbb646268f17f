import asyncio
from urllib.parse import urlparse

from django.conf import settings
from django.core.management import BaseCommand
from telegram import Bot

from bot.dispatcher import get_webhook_url


async def update_webhook(bot: Bot, url=None):
    async with bot:
        if url:
            return await bot.set_webhook(url)
        return await bot.delete_webhook()


class Command(BaseCommand):
    help = 'If WEBHOOK_URL is specified - setup webhook, otherwise - remove webhook.'

    def handle(self, *args, **options):
        bot = Bot(settings.TG_BOT_TOKEN)
        if settings.WEBHOOK_URL:
            asyncio.run(update_webhook(bot, get_webhook_url()))
            truncated_hook = urlparse(settings.WEBHOOK_URL).netloc
            self.stdout.write(self.style.SUCCESS(f"Webhook was set up. Host: {truncated_hook}."))
        else:
            asyncio.run(update_webhook(bot))
            self.stdout.write(self.style.WARNING("Webhook was removed."))
