"""Per-month receipt numbering."""

import pytest
from django.db import transaction

from apps.finance.models import ReceiptSequence
from apps.finance.services import allocate_receipt_number


@pytest.mark.django_db
class TestAllocateReceiptNumber:
    def test_first_number_of_a_period(self):
        with transaction.atomic():
            assert allocate_receipt_number("2024-01") == "REC-2024-01-000001"

        # the counter row holds the next number to issue
        assert ReceiptSequence.objects.get(period="2024-01").next_number == 2

    def test_numbers_are_consecutive_within_a_period(self):
        with transaction.atomic():
            numbers = [allocate_receipt_number("2024-01") for _ in range(5)]

        assert numbers == [f"REC-2024-01-{n:06d}" for n in range(1, 6)]
        assert ReceiptSequence.objects.get(period="2024-01").next_number == 6

    def test_each_period_has_its_own_counter(self):
        with transaction.atomic():
            allocate_receipt_number("2024-01")
            allocate_receipt_number("2024-01")
            assert allocate_receipt_number("2024-02") == "REC-2024-02-000001"
            assert allocate_receipt_number("2024-01") == "REC-2024-01-000003"

    def test_rolled_back_allocation_is_released(self):
        with transaction.atomic():
            allocate_receipt_number("2024-03")

        with pytest.raises(RuntimeError):
            with transaction.atomic():
                allocate_receipt_number("2024-03")
                raise RuntimeError("payment failed")

        with transaction.atomic():
            assert allocate_receipt_number("2024-03") == "REC-2024-03-000002"

    def test_prefix_comes_from_settings(self, settings):
        settings.FEES_RECEIPT_PREFIX = "RCPT"
        with transaction.atomic():
            assert allocate_receipt_number("2024-01") == "RCPT-2024-01-000001"


@pytest.mark.django_db(transaction=True)
def test_allocation_requires_a_transaction():
    with pytest.raises(RuntimeError):
        allocate_receipt_number("2024-01")
    assert not ReceiptSequence.objects.exists()
