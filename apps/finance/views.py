# finance/views.py
import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from .models import FeeHead
from .serializers import FeeHeadSerializer, LedgerSerializer
from .services import LedgerService

logger = logging.getLogger(__name__)


class FeesAPIMixin:
    """Puts every fees endpoint under the 'finance' permission area."""
    app_label = 'finance'


# -------------------
# Fee Heads
# -------------------

class FeeHeadListView(FeesAPIMixin, APIView):
    """Fee heads for the invoice generation form. ``?all=1`` includes inactive heads."""

    def get(self, request, *args, **kwargs):
        heads = FeeHead.objects.order_by('name')
        if request.query_params.get('all') not in ('1', 'true', 'yes'):
            heads = heads.filter(is_active=True)
        return Response({'items': FeeHeadSerializer(heads, many=True).data})


# -------------------
# Ledger
# -------------------

class LedgerView(FeesAPIMixin, APIView):

    def get(self, request, student_id, *args, **kwargs):
        ledger = LedgerService.get_ledger(student_id)
        return Response(LedgerSerializer(ledger).data)
