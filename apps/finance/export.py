# finance/export.py
import logging

from django.utils import timezone
from rest_framework.views import APIView

from utils.utils import export_csv_response, export_excel_response
from .exceptions import InvalidArgument
from .filters import InvoiceFilter
from .invoices import invoice_queryset
from .reports import read_report_filters
from .services import LedgerService
from .stats import get_fee_report, get_invoice_summary
from .views import FeesAPIMixin

logger = logging.getLogger(__name__)


def export_format(request, allowed=('csv', 'excel')):
    fmt = request.query_params.get('format', 'csv').lower()
    if fmt not in allowed:
        raise InvalidArgument(f"Invalid export format: {fmt}", details={'allowed': list(allowed)})
    return fmt


class ExportAPIView(FeesAPIMixin, APIView):
    permission_action = 'export'


class InvoiceExportView(ExportAPIView):
    """
    Export the invoice list with the same filters as the listing.
    Supports CSV and Excel formats
    """

    HEADERS = [
        'Invoice', 'Student', 'Roll Number', 'Class', 'Month',
        'Billed', 'Paid', 'Balance', 'Status', 'Created At',
    ]
    MONEY_COLUMNS = (5, 6, 7)

    def get(self, request, *args, **kwargs):
        fmt = export_format(request)

        filterset = InvoiceFilter(request.query_params, queryset=invoice_queryset())
        if not filterset.is_valid():
            details = {
                field: [error['message'] for error in errors]
                for field, errors in filterset.errors.get_json_data().items()
            }
            raise InvalidArgument("Invalid invoice filters", details=details)
        invoices = filterset.qs
        summary = get_invoice_summary(invoices)

        rows = [
            [
                invoice.reference,
                invoice.student.name,
                invoice.student.roll_number,
                invoice.class_name,
                invoice.period,
                invoice.billed_total,
                invoice.paid_total,
                invoice.balance,
                str(invoice.get_status_display()),
                invoice.created_at,
            ]
            for invoice in invoices
        ]

        # Build filename
        filename_parts = ["invoices"]
        for param in ('class', 'month', 'status'):
            if request.query_params.get(param):
                filename_parts.append(f"{param.title()}_{request.query_params[param]}")
        filename = "_".join(filename_parts)

        logger.info(f"Exporting {len(rows)} invoices as {fmt} for {request.user}")

        if fmt == 'excel':
            totals = [['Totals', '', '', '', '', summary['billed_sum'], summary['paid_sum'], summary['balance_sum']]]
            return export_excel_response(filename, [
                ('Invoices', self.HEADERS, rows + totals, self.MONEY_COLUMNS),
            ])

        csv_rows = [
            row[:5] + [f"{value:.2f}" for value in row[5:8]] + [row[8], row[9].isoformat()]
            for row in rows
        ]
        footer = [
            ['Total Invoices:', summary['total']],
            ['Total Billed:', f"{summary['billed_sum']:.2f}"],
            ['Total Paid:', f"{summary['paid_sum']:.2f}"],
            ['Total Balance:', f"{summary['balance_sum']:.2f}"],
            ['Export Date:', timezone.now().strftime("%Y-%m-%d %H:%M")],
        ]
        return export_csv_response(filename, self.HEADERS, csv_rows, footer)


class LedgerExportView(ExportAPIView):
    """Export a student's ledger statement as CSV."""

    HEADERS = ['Date', 'Type', 'Description', 'Reference', 'Amount', 'Balance']

    def get(self, request, student_id, *args, **kwargs):
        export_format(request, allowed=('csv',))
        ledger = LedgerService.get_ledger(student_id)

        rows = [
            [
                entry.date.isoformat(),
                entry.type,
                entry.description,
                entry.reference,
                f"{entry.amount:.2f}",
                f"{entry.balance:.2f}",
            ]
            for entry in ledger.entries
        ]
        footer = [
            ['Student:', ledger.student.name],
            ['Roll Number:', ledger.student.roll_number],
            ['Opening Balance:', f"{ledger.opening_balance:.2f}"],
            ['Closing Balance:', f"{ledger.closing_balance:.2f}"],
        ]
        filename = f"ledger_{ledger.student.roll_number}"
        return export_csv_response(filename, self.HEADERS, rows, footer)


class FeeReportExportView(ExportAPIView):
    """Export the fee collection report; CSV puts both breakdowns in one file."""

    CLASS_HEADERS = ['Class', 'Billed', 'Collected', 'Outstanding', 'Students']
    HEAD_HEADERS = ['Fee Head', 'Billed', 'Collected', 'Outstanding']

    def get(self, request, *args, **kwargs):
        fmt = export_format(request)
        filters = read_report_filters(request.query_params)
        report = get_fee_report(**filters)

        class_rows = [
            [row['class_name'], row['billed'], row['collected'], row['outstanding'], row['student_count']]
            for row in report['by_class']
        ]
        head_rows = [
            [row['head_name'], row['billed'], row['collected'], row['outstanding']]
            for row in report['by_head']
        ]
        summary = report['summary']

        filename = "fee_report"
        if filters['period']:
            filename += f"_{filters['period']}"
        if filters['class_name']:
            filename += f"_Class_{filters['class_name']}"

        if fmt == 'excel':
            summary_rows = [
                ['Total Billed', summary['total_billed']],
                ['Total Collected', summary['total_collected']],
                ['Total Outstanding', summary['total_outstanding']],
            ]
            return export_excel_response(filename, [
                ('Summary', ['Metric', 'Amount'], summary_rows, (1,)),
                ('By Class', self.CLASS_HEADERS, class_rows, (1, 2, 3)),
                ('By Fee Head', self.HEAD_HEADERS, head_rows, (1, 2, 3)),
            ])

        def fmt_money(rows, columns):
            return [
                [f"{value:.2f}" if idx in columns else value for idx, value in enumerate(row)]
                for row in rows
            ]

        footer = [
            ['Total Billed:', f"{summary['total_billed']:.2f}"],
            ['Total Collected:', f"{summary['total_collected']:.2f}"],
            ['Total Outstanding:', f"{summary['total_outstanding']:.2f}"],
            [],
            self.HEAD_HEADERS,
        ] + fmt_money(head_rows, (1, 2, 3))
        return export_csv_response(filename, self.CLASS_HEADERS, fmt_money(class_rows, (1, 2, 3)), footer)
