# apps/finance/services.py

"""
Fees ledger core.

- Receipt sequence allocation (per-month counters)
- Invoice totals/status aggregation
- Payment recording
- Invoice generation and voiding
- Per-student ledger statement

Every mutation runs inside a single ``transaction.atomic()`` block; any error
rolls the whole operation back.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.students.models import Student
from .exceptions import AlreadyExists, FailedPrecondition, InvalidArgument, NotFound
from .models import FeeHead, FeeInvoice, FeeInvoiceItem, IdempotencyKey, Payment, ReceiptSequence
from .utils import MAX_AMOUNT, ZERO, is_valid_period, parse_instant, period_for, to_money

logger = logging.getLogger(__name__)


# =============================================================================
# SEQUENCE ALLOCATOR
# =============================================================================

def format_receipt_number(period, number):
    prefix = getattr(settings, 'FEES_RECEIPT_PREFIX', 'REC')
    return f"{prefix}-{period}-{number:06d}"


def allocate_receipt_number(period):
    """
    Issue the next receipt number for a YYYY-MM period.

    The counter row is created with ``next_number=2`` on first use (number 1 is
    issued), otherwise it is locked and incremented in place. Must run inside
    the caller's transaction so the number is released on rollback.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("Receipt numbers must be allocated inside a transaction")

    sequence, created = ReceiptSequence.objects.select_for_update().get_or_create(
        period=period,
        defaults={'next_number': 2},
    )
    if created:
        number = 1
    else:
        number = sequence.next_number
        ReceiptSequence.objects.filter(pk=sequence.pk).update(next_number=F('next_number') + 1)

    return format_receipt_number(period, number)


# =============================================================================
# INVOICE AGGREGATOR
# =============================================================================

@dataclass(frozen=True)
class InvoiceTotals:
    billed_total: Decimal
    paid_total: Decimal
    balance: Decimal
    status: str


def compute_invoice_totals(billed_total, paid_total, voided=False):
    """Derive balance and status from billed and paid amounts."""
    billed = to_money(billed_total)
    paid = to_money(paid_total)
    balance = to_money(billed - paid)

    if voided:
        status = FeeInvoice.STATUS_VOID
    elif paid <= ZERO:
        status = FeeInvoice.STATUS_UNPAID
    elif paid < billed:
        status = FeeInvoice.STATUS_PARTIAL
    else:
        status = FeeInvoice.STATUS_PAID

    return InvoiceTotals(billed_total=billed, paid_total=paid, balance=balance, status=status)


# =============================================================================
# PAYMENT SERVICE
# =============================================================================

@dataclass
class PaymentResult:
    payment: Payment
    invoice: FeeInvoice

    @property
    def receipt_number(self):
        return self.payment.receipt_number


class PaymentService:
    """Records payments against invoices and builds receipt views."""

    VALID_MODES = {choice for choice, _label in Payment.MODE_CHOICES}

    @staticmethod
    def _clean_amount(amount):
        try:
            raw = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidArgument(f"Invalid amount: {amount!r}")
        if not raw.is_finite() or raw <= 0:
            raise InvalidArgument("Amount must be greater than 0")

        try:
            rounded = to_money(raw)
        except ValueError as exc:
            raise InvalidArgument(str(exc))
        if rounded <= ZERO:
            raise InvalidArgument("Amount must be at least 0.01")
        if rounded > MAX_AMOUNT:
            raise InvalidArgument(f"Amount cannot exceed {MAX_AMOUNT}")
        return rounded

    @staticmethod
    def record_payment(invoice_id, amount, mode, txn_ref=None, paid_on=None, idempotency_key=None):
        """
        Commit a single payment against an invoice.

        Args:
            invoice_id: FeeInvoice primary key
            amount: payment amount, rounded half-up to 2 places
            mode: one of Payment.MODE_CHOICES
            txn_ref: transaction reference, required unless mode is CASH
            paid_on: datetime or ISO-8601 string, defaults to now
            idempotency_key: caller token, consumed exactly once

        Returns:
            PaymentResult with the new payment and the updated invoice

        Raises:
            InvalidArgument, NotFound, AlreadyExists, FailedPrecondition
        """
        amount = PaymentService._clean_amount(amount)

        if mode not in PaymentService.VALID_MODES:
            raise InvalidArgument(f"Invalid payment mode: {mode}")

        txn_ref = (txn_ref or '').strip() or None
        if mode != Payment.MODE_CASH and not txn_ref:
            raise InvalidArgument("Transaction reference is required for non-cash payments")

        if paid_on is None or paid_on == '':
            paid_on = timezone.now()
        else:
            parsed = parse_instant(paid_on)
            if parsed is None:
                raise InvalidArgument("Invalid paid_on date")
            paid_on = parsed

        idempotency_key = (idempotency_key or '').strip() or None

        try:
            with transaction.atomic():
                try:
                    invoice = FeeInvoice.objects.select_for_update().get(pk=invoice_id)
                except FeeInvoice.DoesNotExist:
                    raise NotFound("Invoice not found")

                if idempotency_key:
                    consumed = IdempotencyKey.objects.select_related('payment').filter(key=idempotency_key).first()
                    if consumed is not None:
                        logger.warning(f"Rejected payment: idempotency key {idempotency_key} already used")
                        details = None
                        if consumed.payment is not None:
                            details = {
                                'payment_id': consumed.payment.pk,
                                'receipt_no': consumed.payment.receipt_number,
                            }
                        raise AlreadyExists("Payment with this idempotency key already exists", details=details)

                if txn_ref and Payment.objects.filter(txn_ref=txn_ref).exists():
                    logger.warning(f"Rejected payment: transaction reference {txn_ref} already used")
                    raise AlreadyExists("Payment with this transaction reference already exists")

                if invoice.is_void:
                    raise FailedPrecondition("Cannot make payment to void invoice")

                if amount > invoice.balance:
                    raise InvalidArgument(f"Payment amount {amount} exceeds balance {invoice.balance}")

                receipt_number = allocate_receipt_number(period_for(paid_on))

                payment = Payment.objects.create(
                    invoice=invoice,
                    amount=amount,
                    mode=mode,
                    txn_ref=txn_ref,
                    paid_on=paid_on,
                    receipt_number=receipt_number,
                )

                invoice.apply_totals(paid_total=invoice.paid_total + amount)
                invoice.save(update_fields=['paid_total', 'balance', 'status', 'updated_at'])

                if idempotency_key:
                    IdempotencyKey.objects.create(key=idempotency_key, payment=payment)

        except IntegrityError as exc:
            # A concurrent request won the race on txn_ref or the idempotency key
            logger.warning(f"Rejected payment on invoice {invoice_id}: {exc}")
            raise AlreadyExists("Payment with this transaction reference or idempotency key already exists")

        logger.info(
            f"Recorded payment {payment.receipt_number} of {amount} ({mode}) "
            f"on invoice {invoice.pk}; balance now {invoice.balance}"
        )
        return PaymentResult(payment=payment, invoice=invoice)

    @staticmethod
    def get_receipt(payment_id):
        """Payment with its invoice, student and invoice items for printing."""
        try:
            payment = Payment.objects.select_related('invoice__student').get(pk=payment_id)
        except Payment.DoesNotExist:
            raise NotFound("Receipt not found")

        items = list(payment.invoice.items.order_by('head_name', 'pk'))
        return payment, items


# =============================================================================
# INVOICE SERVICE
# =============================================================================

@dataclass(frozen=True)
class ResolvedHead:
    head: FeeHead
    head_name: str
    amount: Decimal


@dataclass
class GenerationResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0


class InvoiceService:
    """Generates invoices for a class and billing period, and voids invoices."""

    @staticmethod
    def resolve_heads(heads=None):
        """
        Resolve the fee heads to bill.

        Args:
            heads: optional list of {'head_id': int, 'amount': Decimal|None}.
                Each head must exist and be active; a missing amount falls
                back to the head's default amount. Without a list, every
                active head is billed at its default amount.

        Returns:
            list of ResolvedHead
        """
        if heads:
            head_ids = [entry['head_id'] for entry in heads]
            if len(set(head_ids)) != len(head_ids):
                raise InvalidArgument("Duplicate fee heads in request")

            found = {head.pk: head for head in FeeHead.objects.filter(pk__in=head_ids, is_active=True)}
            missing = [head_id for head_id in head_ids if head_id not in found]
            if missing:
                raise InvalidArgument(
                    "One or more fee heads not found or inactive",
                    details={'head_ids': missing},
                )

            resolved = []
            for entry in heads:
                head = found[entry['head_id']]
                amount = entry.get('amount')
                try:
                    amount = to_money(head.amount_default if amount is None else amount)
                except ValueError as exc:
                    raise InvalidArgument(str(exc))
                if amount < ZERO:
                    raise InvalidArgument(f"Amount for fee head {head.name} cannot be negative")
                if amount > MAX_AMOUNT:
                    raise InvalidArgument(f"Amount for fee head {head.name} cannot exceed {MAX_AMOUNT}")
                resolved.append(ResolvedHead(head=head, head_name=head.name, amount=amount))
        else:
            resolved = [
                ResolvedHead(head=head, head_name=head.name, amount=to_money(head.amount_default))
                for head in FeeHead.objects.filter(is_active=True).order_by('name')
            ]

        if not resolved:
            raise InvalidArgument("No active fee heads to bill")
        return resolved

    @staticmethod
    def _replace_items(invoice, resolved):
        invoice.items.all().delete()
        FeeInvoiceItem.objects.bulk_create([
            FeeInvoiceItem(invoice=invoice, head=entry.head, head_name=entry.head_name, amount=entry.amount)
            for entry in resolved
        ])

    @staticmethod
    def generate_invoices(class_name, period, heads=None):
        """
        Create or refresh the invoices of every student in a class for a period.

        Existing invoices get their items replaced and totals recomputed while
        keeping what has been paid; void invoices are left alone. The whole
        class is processed in one transaction.

        Returns:
            GenerationResult(created, updated, skipped)
        """
        class_name = (class_name or '').strip()
        if not class_name:
            raise InvalidArgument("Class is required")
        if not is_valid_period(period):
            raise InvalidArgument("Month must be in YYYY-MM format")

        result = GenerationResult()

        try:
            with transaction.atomic():
                students = list(Student.objects.filter(class_name=class_name).order_by('roll_number', 'pk'))
                if not students:
                    raise NotFound(f"No students found in class {class_name}")

                resolved = InvoiceService.resolve_heads(heads)
                billed_total = to_money(sum((entry.amount for entry in resolved), ZERO))
                if billed_total > MAX_AMOUNT:
                    raise InvalidArgument(f"Invoice total cannot exceed {MAX_AMOUNT}")

                existing = {
                    invoice.student_id: invoice
                    for invoice in FeeInvoice.objects.select_for_update().filter(
                        student__in=students, period=period
                    )
                }

                for student in students:
                    invoice = existing.get(student.pk)

                    if invoice is None:
                        invoice = FeeInvoice(student=student, class_name=class_name, period=period)
                        invoice.apply_totals(billed_total=billed_total, paid_total=ZERO)
                        invoice.save()
                        result.created += 1
                    elif invoice.is_void:
                        result.skipped += 1
                        continue
                    else:
                        invoice.class_name = class_name
                        invoice.apply_totals(billed_total=billed_total)
                        invoice.save(update_fields=[
                            'class_name', 'billed_total', 'paid_total', 'balance', 'status', 'updated_at',
                        ])
                        result.updated += 1

                    InvoiceService._replace_items(invoice, resolved)

        except IntegrityError as exc:
            logger.warning(f"Invoice generation for {class_name} {period} collided: {exc}")
            raise AlreadyExists(f"Invoices for class {class_name} and {period} were generated concurrently")

        logger.info(
            f"Generated invoices for class {class_name} {period}: "
            f"{result.created} created, {result.updated} updated, {result.skipped} skipped "
            f"(billed {billed_total} each)"
        )
        return result

    @staticmethod
    def void_invoice(invoice_id, reason=''):
        """Administratively cancel an invoice that has no payments."""
        with transaction.atomic():
            try:
                invoice = FeeInvoice.objects.select_for_update().get(pk=invoice_id)
            except FeeInvoice.DoesNotExist:
                raise NotFound("Invoice not found")

            if invoice.is_void:
                raise FailedPrecondition("Invoice is already void")
            if invoice.payments.exists():
                raise FailedPrecondition("Cannot void an invoice with recorded payments")

            invoice.status = FeeInvoice.STATUS_VOID
            invoice.void_reason = (reason or '').strip()
            invoice.apply_totals()
            invoice.save(update_fields=['status', 'void_reason', 'billed_total', 'paid_total', 'balance', 'updated_at'])

        logger.info(f"Voided invoice {invoice.pk} ({invoice.period}, student {invoice.student_id})")
        return invoice


# =============================================================================
# LEDGER SERVICE
# =============================================================================

ENTRY_INVOICE = 'INVOICE'
ENTRY_PAYMENT = 'PAYMENT'


@dataclass
class LedgerEntry:
    type: str
    date: datetime
    description: str
    amount: Decimal
    reference: str
    invoice_id: int
    payment_id: Optional[int] = None
    balance: Decimal = ZERO

    def sort_key(self):
        # invoices go before payments on the same instant
        kind = 0 if self.type == ENTRY_INVOICE else 1
        return (self.date, kind, self.payment_id or self.invoice_id)


@dataclass
class Ledger:
    student: Student
    entries: List[LedgerEntry] = field(default_factory=list)
    opening_balance: Decimal = ZERO
    closing_balance: Decimal = ZERO


class LedgerService:

    @staticmethod
    def get_ledger(student_id):
        """Chronological charges and credits for a student with a running balance."""
        try:
            student = Student.objects.get(pk=student_id)
        except Student.DoesNotExist:
            raise NotFound("Student not found")

        with transaction.atomic():
            invoices = list(FeeInvoice.objects.filter(student=student))
            payments = list(Payment.objects.filter(invoice__student=student))

        entries = [
            LedgerEntry(
                type=ENTRY_INVOICE,
                date=invoice.created_at,
                description=f"Invoice for {invoice.period}",
                amount=to_money(invoice.billed_total),
                reference=invoice.reference,
                invoice_id=invoice.pk,
            )
            for invoice in invoices
        ]
        entries += [
            LedgerEntry(
                type=ENTRY_PAYMENT,
                date=payment.paid_on,
                description=payment.description,
                amount=-to_money(payment.amount),
                reference=payment.receipt_number,
                invoice_id=payment.invoice_id,
                payment_id=payment.pk,
            )
            for payment in payments
        ]
        entries.sort(key=LedgerEntry.sort_key)

        ledger = Ledger(student=student, entries=entries)
        running = ledger.opening_balance
        for entry in entries:
            running = to_money(running + entry.amount)
            entry.balance = running
        ledger.closing_balance = running
        return ledger
