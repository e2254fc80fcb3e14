from decimal import Decimal
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class FeeHead(models.Model):
    """A billable category used as the template for invoice line items."""

    name = models.CharField(max_length=100, unique=True, verbose_name=_("Name"))
    amount_default = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), verbose_name=_("Default Amount")
    )
    is_active = models.BooleanField(default=True, verbose_name=_("Active"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'fee_heads'
        ordering = ['name']
        verbose_name = _("Fee Head")
        verbose_name_plural = _("Fee Heads")

    def __str__(self):
        return f"{self.name} ({self.amount_default})"


class FeeInvoice(models.Model):
    STATUS_UNPAID = 'UNPAID'
    STATUS_PARTIAL = 'PARTIAL'
    STATUS_PAID = 'PAID'
    STATUS_VOID = 'VOID'

    STATUS_CHOICES = (
        (STATUS_UNPAID, _('Unpaid')),
        (STATUS_PARTIAL, _('Partially Paid')),
        (STATUS_PAID, _('Paid')),
        (STATUS_VOID, _('Void')),
    )

    student = models.ForeignKey(
        'students.Student', on_delete=models.PROTECT, related_name='invoices', verbose_name=_("Student")
    )
    class_name = models.CharField(max_length=50, verbose_name=_("Class"))
    period = models.CharField(max_length=7, verbose_name=_("Period"), help_text=_("Billing month, YYYY-MM"))
    billed_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    paid_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_UNPAID)
    void_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'invoices'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['student', 'period'], name='uniq_invoice_student_period'),
        ]
        indexes = [
            models.Index(fields=['class_name', 'period'], name='invoices_class_period_idx'),
            models.Index(fields=['status'], name='invoices_status_idx'),
        ]

    def __str__(self):
        return f"INV-{self.pk} {self.student} {self.period}"

    @property
    def is_void(self) -> bool:
        return self.status == self.STATUS_VOID

    @property
    def reference(self) -> str:
        return f"INV-{self.pk}"

    def apply_totals(self, billed_total=None, paid_total=None):
        """Recompute balance and status from billed/paid through the aggregator."""
        from .services import compute_invoice_totals

        totals = compute_invoice_totals(
            self.billed_total if billed_total is None else billed_total,
            self.paid_total if paid_total is None else paid_total,
            voided=self.is_void,
        )
        self.billed_total = totals.billed_total
        self.paid_total = totals.paid_total
        self.balance = totals.balance
        self.status = totals.status
        return totals


class FeeInvoiceItem(models.Model):
    invoice = models.ForeignKey(FeeInvoice, on_delete=models.CASCADE, related_name='items')
    head = models.ForeignKey(
        FeeHead, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoice_items'
    )
    head_name = models.CharField(max_length=100)
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'invoice_items'
        ordering = ['head_name']

    def __str__(self):
        return f"{self.head_name}: {self.amount}"


class Payment(models.Model):
    MODE_CASH = 'CASH'
    MODE_CARD = 'CARD'
    MODE_UPI = 'UPI'
    MODE_BANK = 'BANK'
    MODE_OTHER = 'OTHER'

    MODE_CHOICES = (
        (MODE_CASH, _("Cash")),
        (MODE_CARD, _("Card")),
        (MODE_UPI, _("UPI")),
        (MODE_BANK, _("Bank Transfer")),
        (MODE_OTHER, _("Other")),
    )

    invoice = models.ForeignKey(
        FeeInvoice, on_delete=models.PROTECT, related_name='payments', verbose_name=_("Invoice")
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_("Amount"))
    mode = models.CharField(max_length=10, choices=MODE_CHOICES, verbose_name=_("Payment Mode"))
    txn_ref = models.CharField(
        max_length=100, unique=True, null=True, blank=True, verbose_name=_("Transaction Reference")
    )
    paid_on = models.DateTimeField(default=timezone.now, verbose_name=_("Paid On"))
    receipt_number = models.CharField(max_length=40, unique=True, verbose_name=_("Receipt Number"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-paid_on']
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        indexes = [
            models.Index(fields=['paid_on'], name='payments_paid_on_idx'),
        ]

    def __str__(self):
        return f"{self.receipt_number} - {self.amount} ({self.get_mode_display()})"

    @property
    def description(self) -> str:
        text = f"Payment - {self.mode}"
        if self.txn_ref:
            text += f" ({self.txn_ref})"
        return text


class ReceiptSequence(models.Model):
    """Per-month receipt counter. ``next_number`` is the next number to issue."""

    period = models.CharField(max_length=7, unique=True)
    next_number = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'receipts_sequence'

    def __str__(self):
        return f"{self.period}: {self.next_number}"


class IdempotencyKey(models.Model):
    key = models.CharField(max_length=255, unique=True)
    payment = models.OneToOneField(
        Payment, on_delete=models.CASCADE, null=True, blank=True, related_name='idempotency_key'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'idempotency'

    def __str__(self):
        return self.key
