# finance/invoices.py
import logging

from django.conf import settings
from rest_framework import generics
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from .filters import InvoiceFilter
from .models import FeeInvoice
from .serializers import (
    GenerateInvoicesSerializer,
    InvoiceListSerializer,
    InvoiceStateSerializer,
    VoidInvoiceSerializer,
)
from .services import InvoiceService
from .stats import get_invoice_summary
from .views import FeesAPIMixin

logger = logging.getLogger(__name__)


class InvoicePagination(LimitOffsetPagination):
    default_limit = settings.FEES_INVOICE_PAGE_LIMIT
    max_limit = settings.FEES_INVOICE_MAX_LIMIT


def invoice_queryset():
    # newest first, then by student
    return FeeInvoice.objects.select_related('student').order_by('-created_at', 'student__name', 'pk')


class InvoiceListView(FeesAPIMixin, generics.ListAPIView):
    """
    Paged invoice list with totals over the whole filtered set.
    Filters: class, month, status, q. Paging: limit, offset.
    """
    serializer_class = InvoiceListSerializer
    filterset_class = InvoiceFilter
    pagination_class = InvoicePagination

    def get_queryset(self):
        return invoice_queryset()

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        summary = get_invoice_summary(queryset)

        return Response({
            'items': self.get_serializer(page, many=True).data,
            'total': summary['total'],
            'billed_sum': summary['billed_sum'],
            'paid_sum': summary['paid_sum'],
            'balance_sum': summary['balance_sum'],
            'limit': self.paginator.limit,
            'offset': self.paginator.offset,
        })


class GenerateInvoicesView(FeesAPIMixin, APIView):

    def post(self, request, *args, **kwargs):
        serializer = GenerateInvoicesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = InvoiceService.generate_invoices(
            class_name=data['class'],
            period=data['month'],
            heads=data.get('heads') or None,
        )
        return Response({
            'created': result.created,
            'updated': result.updated,
            'skipped': result.skipped,
        })


class VoidInvoiceView(FeesAPIMixin, APIView):
    permission_action = 'change'

    def post(self, request, pk, *args, **kwargs):
        serializer = VoidInvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invoice = InvoiceService.void_invoice(pk, reason=serializer.validated_data['reason'])
        data = InvoiceStateSerializer(invoice).data
        data['void_reason'] = invoice.void_reason
        return Response(data)
