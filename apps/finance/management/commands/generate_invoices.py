# apps/finance/management/commands/generate_invoices.py
from django.core.management.base import BaseCommand, CommandError

from apps.finance.exceptions import FeesError
from apps.finance.services import InvoiceService


class Command(BaseCommand):
    help = 'Generate or refresh the invoices of a class for a billing month'

    def add_arguments(self, parser):
        parser.add_argument('class_name', type=str, help='Class to bill')
        parser.add_argument('month', type=str, help='Billing month, YYYY-MM')
        parser.add_argument(
            '--head',
            action='append',
            default=[],
            metavar='HEAD_ID[=AMOUNT]',
            help='Bill only these fee heads, optionally overriding the amount (repeatable)'
        )

    def parse_heads(self, values):
        heads = []
        for value in values:
            head_id, _sep, amount = value.partition('=')
            try:
                heads.append({'head_id': int(head_id), 'amount': amount or None})
            except ValueError:
                raise CommandError(f'Invalid --head value: {value}')
        return heads

    def handle(self, *args, **options):
        heads = self.parse_heads(options['head'])

        try:
            result = InvoiceService.generate_invoices(
                options['class_name'], options['month'], heads=heads or None
            )
        except FeesError as e:
            raise CommandError(f'{e.code}: {e.message}')

        self.stdout.write(
            self.style.SUCCESS(
                f'Invoices for {options["class_name"]} {options["month"]}: '
                f'{result.created} created, {result.updated} updated, {result.skipped} skipped'
            )
        )
