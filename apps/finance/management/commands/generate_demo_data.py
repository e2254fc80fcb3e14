# apps/finance/management/commands/generate_demo_data.py
from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.students.models import Student
from apps.finance.models import FeeHead, FeeInvoice, IdempotencyKey, Payment, ReceiptSequence
from apps.finance.services import InvoiceService, PaymentService
from apps.finance.utils import period_for, to_money

FIRST_NAMES = [
    'Aarav', 'Diya', 'Vivaan', 'Ananya', 'Aditya', 'Isha', 'Kabir', 'Meera',
    'Arjun', 'Saanvi', 'Rohan', 'Kavya', 'Ishaan', 'Riya', 'Dev', 'Tara',
]
LAST_NAMES = ['Sharma', 'Verma', 'Iyer', 'Reddy', 'Nair', 'Gupta', 'Das', 'Khan']


class Command(BaseCommand):
    help = 'Generate demo students, fee heads, invoices and payments'

    def add_arguments(self, parser):
        parser.add_argument(
            '--classes',
            type=int,
            default=3,
            help='Number of classes to create'
        )
        parser.add_argument(
            '--students',
            type=int,
            default=10,
            help='Students per class'
        )
        parser.add_argument(
            '--month',
            type=str,
            default=None,
            help='Billing month (YYYY-MM), defaults to the current month'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before generating new data'
        )

    def handle(self, *args, **options):
        period = options['month'] or period_for(timezone.now())

        if options['clear']:
            with transaction.atomic():
                IdempotencyKey.objects.all().delete()
                Payment.objects.all().delete()
                FeeInvoice.objects.all().delete()
                ReceiptSequence.objects.all().delete()
                Student.objects.all().delete()
            self.stdout.write(self.style.WARNING('Cleared existing fees data'))

        # First load fee heads
        self.stdout.write(self.style.SUCCESS('Loading fee heads...'))
        call_command('load_fee_heads', stdout=self.stdout, stderr=self.stderr)

        # Create demo students if they don't exist
        class_names = [f'Class {i}' for i in range(1, options['classes'] + 1)]
        student_count = 0
        for class_name in class_names:
            for i in range(1, options['students'] + 1):
                seq = student_count + 1
                Student.objects.get_or_create(
                    class_name=class_name,
                    roll_number=f'{class_name.split()[-1]}{i:02d}',
                    defaults={
                        'name': f'{FIRST_NAMES[seq % len(FIRST_NAMES)]} {LAST_NAMES[seq % len(LAST_NAMES)]}',
                    }
                )
                student_count += 1

        self.stdout.write(self.style.SUCCESS(f'{student_count} students across {len(class_names)} classes'))

        # Create fee invoices for students
        self.stdout.write(self.style.SUCCESS(f'Creating demo fee invoices for {period}...'))
        for class_name in class_names:
            result = InvoiceService.generate_invoices(class_name, period)
            self.stdout.write(
                f'{class_name}: {result.created} created, {result.updated} updated, {result.skipped} skipped'
            )

        # Create some demo payments: full, half, none in rotation
        self.stdout.write(self.style.SUCCESS('Creating demo payments...'))
        payments = 0
        invoices = FeeInvoice.objects.filter(period=period, paid_total=0).exclude(status=FeeInvoice.STATUS_VOID)
        for i, invoice in enumerate(invoices.order_by('pk')):
            if i % 3 == 2:
                continue
            amount = invoice.balance if i % 3 == 0 else to_money(invoice.balance / 2)
            if amount <= 0:
                continue
            mode = Payment.MODE_CASH if i % 2 == 0 else Payment.MODE_UPI
            result = PaymentService.record_payment(
                invoice_id=invoice.pk,
                amount=amount,
                mode=mode,
                txn_ref=None if mode == Payment.MODE_CASH else f'DEMO-{period}-{invoice.pk}',
            )
            payments += 1
            self.stdout.write(f'Created payment {result.receipt_number} for {invoice.student}')

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully generated demo data\n'
                f'- Fee Heads: {FeeHead.objects.count()}\n'
                f'- Students: {Student.objects.count()}\n'
                f'- Fee Invoices: {FeeInvoice.objects.count()}\n'
                f'- Payments: {payments} new, {Payment.objects.count()} total'
            )
        )
