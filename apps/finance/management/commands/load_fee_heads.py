# apps/finance/management/commands/load_fee_heads.py
import json
import os

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.finance.models import FeeHead
from apps.finance.utils import MAX_AMOUNT, to_money


class Command(BaseCommand):
    help = 'Load fee heads from a JSON file'

    def add_arguments(self, parser):
        parser.add_argument(
            '--file',
            type=str,
            help='Specify custom JSON file path',
            default='apps/finance/data/fee_heads_demo.json'
        )
        parser.add_argument(
            '--deactivate-missing',
            action='store_true',
            help='Deactivate fee heads that are not in the file',
        )

    def handle(self, *args, **options):
        file_path = options['file']

        # Get absolute file path
        if not os.path.isabs(file_path):
            file_path = os.path.join(settings.BASE_DIR, file_path)

        if not os.path.exists(file_path):
            raise CommandError(f'File not found: {file_path}')

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CommandError(f'Invalid JSON file: {e}')

        heads_data = data.get('fee_heads', [])
        if not heads_data:
            raise CommandError('No fee heads found in JSON file')

        created_count = 0
        updated_count = 0
        skipped_count = 0
        names = []

        with transaction.atomic():
            for head_data in heads_data:
                name = (head_data.get('name') or '').strip()
                try:
                    amount = to_money(head_data.get('amount_default', '0'))
                except ValueError as e:
                    amount = None
                    self.stderr.write(self.style.ERROR(f'Invalid amount for fee head {name!r}: {e}'))

                if not name or amount is None or not 0 <= amount <= MAX_AMOUNT:
                    skipped_count += 1
                    self.stderr.write(self.style.WARNING(f'Skipped fee head entry: {head_data}'))
                    continue

                head, created = FeeHead.objects.update_or_create(
                    name=name,
                    defaults={
                        'amount_default': amount,
                        'is_active': head_data.get('is_active', True),
                    }
                )
                names.append(name)

                if created:
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f'Created fee head: {head.name} ({head.amount_default})'))
                else:
                    updated_count += 1
                    self.stdout.write(self.style.SUCCESS(f'Updated fee head: {head.name} ({head.amount_default})'))

            if options['deactivate_missing']:
                deactivated = FeeHead.objects.exclude(name__in=names).filter(is_active=True).update(is_active=False)
                if deactivated:
                    self.stdout.write(self.style.WARNING(f'Deactivated {deactivated} fee heads not in file'))

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully loaded fee heads: {created_count} created, '
                f'{updated_count} updated, {skipped_count} skipped'
            )
        )
