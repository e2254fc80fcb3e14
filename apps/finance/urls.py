from django.urls import path
from . import views
from . import invoices
from . import payments
from . import reports
from . import export

app_name = "finance"

urlpatterns = [
    # Fee Heads
    path('fee-heads', views.FeeHeadListView.as_view(), name='fee_head_list'),

    # Invoices
    path('invoices', invoices.InvoiceListView.as_view(), name='invoice_list'),
    path('invoices/generate', invoices.GenerateInvoicesView.as_view(), name='invoice_generate'),
    path('invoices/export', export.InvoiceExportView.as_view(), name='invoice_export'),
    path('invoices/<int:pk>/void', invoices.VoidInvoiceView.as_view(), name='invoice_void'),

    # Payments
    path('payments', payments.PaymentCreateView.as_view(), name='payment_create'),
    path('receipt/<int:payment_id>', payments.ReceiptView.as_view(), name='receipt'),

    # Ledger
    path('ledger/<int:student_id>', views.LedgerView.as_view(), name='ledger'),
    path('ledger/<int:student_id>/export', export.LedgerExportView.as_view(), name='ledger_export'),

    # Reports
    path('reports/fees', reports.FeeCollectionReportView.as_view(), name='fee_report'),
    path('reports/fees/export', export.FeeReportExportView.as_view(), name='fee_report_export'),
]
