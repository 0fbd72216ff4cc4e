from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from apps.rates.application.formatting import (
    format_comparison,
    format_rates,
    format_threshold,
)
from apps.rates.domain.services import (
    ExchangeRateService,
    normalize_code,
    parse_threshold,
)


class Command(BaseCommand):
    help = 'Print current exchange rates for a base currency and compare selected currencies'

    def add_arguments(self, parser):
        parser.add_argument(
            '--base',
            dest='base',
            type=str,
            default=None,
            help='Base currency code (defaults to DEFAULT_BASE_CURRENCY)'
        )
        parser.add_argument(
            '--compare',
            dest='compare',
            nargs='+',
            default=None,
            help='Target currency codes to compare (defaults to DEFAULT_COMPARE_CURRENCIES)'
        )
        parser.add_argument(
            '--above',
            dest='above',
            type=str,
            default=None,
            help='Also list currencies whose rate exceeds this threshold'
        )

    def handle(self, **options):
        try:
            base = normalize_code(options['base'] or settings.DEFAULT_BASE_CURRENCY)
            targets = [
                normalize_code(code)
                for code in options['compare'] or settings.DEFAULT_COMPARE_CURRENCIES
            ]
        except ValueError as e:
            raise CommandError(str(e))

        threshold = None
        if options['above'] is not None:
            try:
                threshold = parse_threshold(options['above'])
            except ValueError as e:
                raise CommandError(str(e))

        try:
            service = ExchangeRateService()
        except ImproperlyConfigured as e:
            raise CommandError(f'Could not start rate service: {e}')

        with service:
            rows = service.get_current_rates(base)

            if rows:
                self.stdout.write(format_rates(base, rows))
            else:
                self.stdout.write(self.style.WARNING(format_rates(base, rows)))

            self.stdout.write('\n--- Comparison of selected currencies ---')
            self.stdout.write(format_comparison(base, service.compare(base, targets, rows=rows)))

            if threshold is not None:
                self.stdout.write('')
                above = service.rates_above(base, threshold, rows=rows)
                self.stdout.write(format_threshold(base, threshold, above))
