"""HTTP endpoints under /api/fees/."""

from decimal import Decimal

import pytest

from apps.finance.models import FeeInvoice, Payment
from apps.finance.services import PaymentService


@pytest.mark.django_db
class TestPaymentEndpoint:
    url = "/api/fees/payments"

    def test_create(self, api_client, invoice):
        response = api_client.post(self.url, {
            "invoice_id": invoice.pk,
            "amount": "2000",
            "mode": "CASH",
            "paid_on": "2024-01-15T09:30:00Z",
        }, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["receipt_no"] == "REC-2024-01-000001"
        assert body["invoice"] == {
            "id": invoice.pk,
            "status": "PARTIAL",
            "balance": 3000.0,
            "paid_total": 2000.0,
        }
        assert Payment.objects.get(pk=body["id"]).amount == Decimal("2000.00")

    def test_over_balance(self, api_client, invoice):
        response = api_client.post(self.url, {
            "invoice_id": invoice.pk, "amount": "6000", "mode": "CASH",
        }, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"

    def test_duplicate_idempotency_key(self, api_client, invoice):
        payload = {"invoice_id": invoice.pk, "amount": "100", "mode": "CASH", "idempotency_key": "abc-1"}
        first = api_client.post(self.url, payload, format="json")
        second = api_client.post(self.url, payload, format="json")

        assert first.status_code == 201
        assert second.status_code == 409
        body = second.json()
        assert body["code"] == "already_exists"
        assert body["details"]["payment_id"] == first.json()["id"]
        assert Payment.objects.count() == 1

    def test_duplicate_txn_ref(self, api_client, invoice):
        payload = {"invoice_id": invoice.pk, "amount": "100", "mode": "UPI", "txn_ref": "UPI-9"}
        api_client.post(self.url, payload, format="json")
        response = api_client.post(self.url, payload, format="json")
        assert response.status_code == 409

    def test_void_invoice(self, api_client, invoice):
        api_client.post(f"/api/fees/invoices/{invoice.pk}/void", {"reason": "x"}, format="json")
        response = api_client.post(self.url, {
            "invoice_id": invoice.pk, "amount": "100", "mode": "CASH",
        }, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "failed_precondition"

    def test_extra_precision_is_rounded(self, api_client, invoice):
        response = api_client.post(self.url, {
            "invoice_id": invoice.pk, "amount": "100.0050001", "mode": "CASH",
        }, format="json")
        assert response.status_code == 201
        assert Payment.objects.get().amount == Decimal("100.01")

    def test_huge_amount(self, api_client, invoice):
        response = api_client.post(self.url, {
            "invoice_id": invoice.pk, "amount": "1e30", "mode": "CASH",
        }, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"
        assert not Payment.objects.exists()

    def test_missing_invoice(self, api_client, db):
        response = api_client.post(self.url, {"invoice_id": 99999, "amount": "1", "mode": "CASH"}, format="json")
        assert response.status_code == 404
        assert response.json() == {"code": "not_found", "message": "Invoice not found", "details": None}

    def test_validation_errors_use_error_shape(self, api_client, db):
        response = api_client.post(self.url, {"amount": "1", "mode": "WIRE"}, format="json")
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "invalid_argument"
        assert set(body["details"]) == {"invoice_id", "mode"}


@pytest.mark.django_db
class TestGenerateEndpoint:
    url = "/api/fees/invoices/generate"

    def test_generate(self, api_client, students, heads):
        response = api_client.post(self.url, {"class": "5A", "month": "2024-05"}, format="json")
        assert response.status_code == 200
        assert response.json() == {"created": 3, "updated": 0, "skipped": 0}

    def test_generate_with_heads_and_strategy(self, api_client, students, heads):
        response = api_client.post(self.url, {
            "class": "6B",
            "month": "2024-05",
            "strategy": "CUSTOM_PER_CLASS",
            "heads": [{"head_id": heads["tuition"].pk, "amount": 4200}],
        }, format="json")

        assert response.status_code == 200
        assert FeeInvoice.objects.get(period="2024-05").billed_total == Decimal("4200.00")

    @pytest.mark.parametrize("payload", [
        {"class": "5A", "month": "2024-13"},
        {"month": "2024-05"},
        {"class": "5A", "month": "2024-05", "strategy": "RANDOM"},
    ])
    def test_invalid_requests(self, api_client, students, heads, payload):
        response = api_client.post(self.url, payload, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"

    def test_unknown_class(self, api_client, heads):
        response = api_client.post(self.url, {"class": "9Z", "month": "2024-05"}, format="json")
        assert response.status_code == 404


@pytest.mark.django_db
class TestInvoiceList:
    url = "/api/fees/invoices"

    def test_list_with_totals(self, api_client, invoice):
        PaymentService.record_payment(invoice.pk, "1000", Payment.MODE_CASH)

        body = api_client.get(self.url).json()

        assert body["total"] == 3
        assert len(body["items"]) == 3
        assert body["billed_sum"] == 15000.0
        assert body["paid_sum"] == 1000.0
        assert body["balance_sum"] == 14000.0
        item = next(row for row in body["items"] if row["id"] == invoice.pk)
        assert item["class"] == "5A"
        assert item["month"] == "2024-01"
        assert item["student_name"] == "Asha Rao"
        assert item["status"] == "PARTIAL"

    def test_filters(self, api_client, invoice):
        PaymentService.record_payment(invoice.pk, "1000", Payment.MODE_CASH)

        assert api_client.get(self.url, {"status": "PARTIAL"}).json()["total"] == 1
        assert api_client.get(self.url, {"class": "5A", "month": "2024-01"}).json()["total"] == 3
        assert api_client.get(self.url, {"class": "6B"}).json()["total"] == 0
        assert api_client.get(self.url, {"q": "bilal"}).json()["total"] == 1
        assert api_client.get(self.url, {"q": "5a03"}).json()["total"] == 1

    def test_paging_keeps_totals_over_full_set(self, api_client, invoice):
        body = api_client.get(self.url, {"limit": 2, "offset": 2}).json()
        assert len(body["items"]) == 1
        assert body["total"] == 3
        assert body["billed_sum"] == 15000.0
        assert (body["limit"], body["offset"]) == (2, 2)

    def test_limit_is_capped(self, api_client, invoice):
        assert api_client.get(self.url, {"limit": 100000}).json()["limit"] == 500

    def test_bad_filters(self, api_client, db):
        assert api_client.get(self.url, {"month": "2024-1"}).status_code == 400
        assert api_client.get(self.url, {"status": "LOST"}).status_code == 400


@pytest.mark.django_db
class TestVoidEndpoint:
    def test_void(self, api_client, invoice):
        response = api_client.post(f"/api/fees/invoices/{invoice.pk}/void", {"reason": "left"}, format="json")
        assert response.status_code == 200
        assert response.json()["status"] == "VOID"
        assert response.json()["void_reason"] == "left"

    def test_void_paid_invoice(self, api_client, invoice):
        PaymentService.record_payment(invoice.pk, "10", Payment.MODE_CASH)
        response = api_client.post(f"/api/fees/invoices/{invoice.pk}/void", {}, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "failed_precondition"


@pytest.mark.django_db
class TestReadEndpoints:
    def test_fee_heads(self, api_client, heads):
        active = api_client.get("/api/fees/fee-heads").json()["items"]
        every = api_client.get("/api/fees/fee-heads", {"all": "1"}).json()["items"]
        assert [head["name"] for head in active] == ["Transport", "Tuition"]
        assert len(every) == 3

    def test_ledger(self, api_client, invoice):
        PaymentService.record_payment(invoice.pk, "2000", Payment.MODE_CASH)
        body = api_client.get(f"/api/fees/ledger/{invoice.student_id}").json()

        assert body["student"]["roll_number"] == "5A01"
        assert [entry["type"] for entry in body["entries"]] == ["INVOICE", "PAYMENT"]
        assert [entry["balance"] for entry in body["entries"]] == [5000.0, 3000.0]
        assert body["opening_balance"] == 0.0
        assert body["closing_balance"] == 3000.0

    def test_ledger_missing_student(self, api_client, db):
        assert api_client.get("/api/fees/ledger/4242").status_code == 404

    def test_receipt(self, api_client, invoice):
        result = PaymentService.record_payment(invoice.pk, "2000", Payment.MODE_UPI, txn_ref="UPI-5")
        body = api_client.get(f"/api/fees/receipt/{result.payment.pk}").json()

        assert body["receipt_no"] == result.receipt_number
        assert body["amount"] == 2000.0
        assert body["txn_ref"] == "UPI-5"
        assert body["student"]["name"] == "Asha Rao"
        assert body["invoice"]["balance"] == 3000.0
        assert [item["head_name"] for item in body["items"]] == ["Transport", "Tuition"]

    def test_receipt_pdf(self, api_client, invoice):
        result = PaymentService.record_payment(invoice.pk, "2000", Payment.MODE_CASH)
        response = api_client.get(f"/api/fees/receipt/{result.payment.pk}", {"format": "pdf"})

        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_missing_receipt(self, api_client, db):
        response = api_client.get("/api/fees/receipt/777")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_report(self, api_client, invoice, heads):
        PaymentService.record_payment(invoice.pk, "2500", Payment.MODE_CASH)
        body = api_client.get("/api/fees/reports/fees", {"month": "2024-01"}).json()

        assert body["summary"] == {
            "total_billed": 15000.0,
            "total_collected": 2500.0,
            "total_outstanding": 12500.0,
        }
        assert body["by_class"][0]["class"] == "5A"
        assert body["by_class"][0]["student_count"] == 3
        tuition = next(row for row in body["by_head"] if row["head_name"] == "Tuition")
        assert tuition["collected"] == 2000.0

    def test_report_bad_month(self, api_client, db):
        response = api_client.get("/api/fees/reports/fees", {"month": "2024/01"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"
