from django.conf import settings
from django.core.management.base import BaseCommand

from apps.rates.infrastructure.persistence.repositories import CurrencyRepository


class Command(BaseCommand):
    help = "Replace placeholder currency names (name == code) with CURRENCY_DISPLAY_NAMES"

    def handle(self, *args, **opts):
        updated = CurrencyRepository.backfill_names(settings.CURRENCY_DISPLAY_NAMES)
        self.stdout.write(self.style.SUCCESS(f"Backfilled {updated} currency names"))
