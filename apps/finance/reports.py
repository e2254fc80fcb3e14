# finance/reports.py
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import ReportQuerySerializer
from .stats import get_fee_report
from .views import FeesAPIMixin


def read_report_filters(query_params):
    serializer = ReportQuerySerializer(data=query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    return {
        'period': data.get('month') or None,
        'class_name': data.get('class') or None,
        'head_id': data.get('head_id'),
    }


def report_payload(report):
    return {
        'summary': report['summary'],
        'by_class': [
            {
                'class': row['class_name'],
                'billed': row['billed'],
                'collected': row['collected'],
                'outstanding': row['outstanding'],
                'student_count': row['student_count'],
            }
            for row in report['by_class']
        ],
        'by_head': report['by_head'],
    }


class FeeCollectionReportView(FeesAPIMixin, APIView):
    """Billed, collected and outstanding totals; query: month, class, head_id."""

    def get(self, request, *args, **kwargs):
        report = get_fee_report(**read_report_filters(request.query_params))
        return Response(report_payload(report))
