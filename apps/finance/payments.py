# finance/payments.py
import logging

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from utils.utils import export_pdf_response, render_to_pdf
from .serializers import PaymentCreateSerializer, PaymentResultSerializer, ReceiptSerializer
from .services import PaymentService
from .views import FeesAPIMixin

logger = logging.getLogger(__name__)


class PaymentCreateView(FeesAPIMixin, APIView):

    def post(self, request, *args, **kwargs):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PaymentService.record_payment(
            invoice_id=data['invoice_id'],
            amount=data['amount'],
            mode=data['mode'],
            txn_ref=data.get('txn_ref'),
            paid_on=data.get('paid_on'),
            idempotency_key=data.get('idempotency_key'),
        )
        return Response(PaymentResultSerializer(result).data, status=status.HTTP_201_CREATED)


class ReceiptView(FeesAPIMixin, APIView):
    """
    Receipt for a payment. JSON by default, ``?format=pdf`` for the
    printable receipt.
    """

    def get(self, request, payment_id, *args, **kwargs):
        payment, items = PaymentService.get_receipt(payment_id)

        if request.query_params.get('format', '').lower() == 'pdf':
            context = {
                'payment': payment,
                'invoice': payment.invoice,
                'student': payment.invoice.student,
                'items': items,
                'currency': settings.FEES_CURRENCY,
                'school_name': settings.FEES_SCHOOL_NAME,
                'generated_date': timezone.now(),
            }
            pdf_bytes = render_to_pdf('finance/receipt_pdf.html', context)
            if pdf_bytes:
                return export_pdf_response(pdf_bytes, f"Receipt_{payment.receipt_number}.pdf")
            logger.error(f"PDF rendering failed for receipt {payment.receipt_number}")
            return HttpResponse("Error generating PDF", status=500)

        return Response(ReceiptSerializer(payment, context={'items': items}).data)
