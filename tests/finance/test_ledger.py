"""Student ledger statements."""

from decimal import Decimal

import pytest

from apps.finance.exceptions import NotFound
from apps.finance.models import FeeInvoice, Payment
from apps.finance.services import InvoiceService, LedgerService, PaymentService
from tests.helpers import utc


@pytest.mark.django_db
class TestGetLedger:
    def test_worked_example(self, invoice):
        FeeInvoice.objects.filter(pk=invoice.pk).update(created_at=utc(2024, 1, 1))
        payment = PaymentService.record_payment(
            invoice.pk, "2000", Payment.MODE_CASH, paid_on="2024-01-15T00:00:00Z"
        ).payment

        ledger = LedgerService.get_ledger(invoice.student_id)

        assert [(e.type, e.amount, e.balance) for e in ledger.entries] == [
            ("INVOICE", Decimal("5000.00"), Decimal("5000.00")),
            ("PAYMENT", Decimal("-2000.00"), Decimal("3000.00")),
        ]
        assert ledger.opening_balance == Decimal("0.00")
        assert ledger.closing_balance == Decimal("3000.00")

        charge, credit = ledger.entries
        assert charge.description == "Invoice for 2024-01"
        assert charge.reference == f"INV-{invoice.pk}"
        assert charge.date == utc(2024, 1, 1)
        assert credit.description == "Payment - CASH"
        assert credit.reference == payment.receipt_number
        assert credit.payment_id == payment.pk
        assert credit.invoice_id == invoice.pk

    def test_payment_description_includes_txn_ref(self, invoice):
        PaymentService.record_payment(invoice.pk, "100", Payment.MODE_UPI, txn_ref="UPI-77")
        ledger = LedgerService.get_ledger(invoice.student_id)
        assert ledger.entries[-1].description == "Payment - UPI (UPI-77)"

    def test_entries_are_chronological_across_invoices(self, invoice):
        student = invoice.student
        InvoiceService.generate_invoices("5A", "2024-02")
        february = FeeInvoice.objects.get(student=student, period="2024-02")
        FeeInvoice.objects.filter(pk=invoice.pk).update(created_at=utc(2024, 1, 1))
        FeeInvoice.objects.filter(pk=february.pk).update(created_at=utc(2024, 2, 1))

        PaymentService.record_payment(february.pk, "1000", Payment.MODE_CASH, paid_on="2024-02-10")
        PaymentService.record_payment(invoice.pk, "5000", Payment.MODE_CASH, paid_on="2024-01-20")

        ledger = LedgerService.get_ledger(student.pk)

        assert [(e.type, e.date.month) for e in ledger.entries] == [
            ("INVOICE", 1), ("PAYMENT", 1), ("INVOICE", 2), ("PAYMENT", 2),
        ]
        assert [e.balance for e in ledger.entries] == [
            Decimal("5000.00"), Decimal("0.00"), Decimal("5000.00"), Decimal("4000.00"),
        ]
        assert ledger.closing_balance == Decimal("4000.00")

    def test_invoice_sorts_before_payment_at_same_instant(self, invoice):
        FeeInvoice.objects.filter(pk=invoice.pk).update(created_at=utc(2024, 1, 5))
        PaymentService.record_payment(invoice.pk, "500", Payment.MODE_CASH, paid_on="2024-01-05T00:00:00Z")

        ledger = LedgerService.get_ledger(invoice.student_id)
        assert [e.type for e in ledger.entries] == ["INVOICE", "PAYMENT"]
        assert ledger.entries[1].balance == Decimal("4500.00")

    def test_void_invoice_is_listed(self, invoice):
        InvoiceService.void_invoice(invoice.pk, reason="duplicate")
        ledger = LedgerService.get_ledger(invoice.student_id)
        assert len(ledger.entries) == 1
        assert ledger.closing_balance == Decimal("5000.00")

    def test_student_without_invoices(self, students):
        ledger = LedgerService.get_ledger(students[3].pk)
        assert ledger.entries == []
        assert ledger.closing_balance == Decimal("0.00")

    def test_missing_student(self, db):
        with pytest.raises(NotFound):
            LedgerService.get_ledger(999999)
