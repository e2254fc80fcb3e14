# apps/finance/stats.py

"""
Aggregations over invoices and invoice items for the fee reports and the
invoice listing totals.
"""

import logging
from collections import OrderedDict

from django.db.models import Count, DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from .exceptions import InvalidArgument
from .models import FeeInvoice, FeeInvoiceItem
from .utils import ZERO, is_valid_period, to_money

logger = logging.getLogger(__name__)


def _money_sum(field_name):
    return Coalesce(
        Sum(field_name),
        Value(ZERO),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )


# =============================================================================
# INVOICE LISTING
# =============================================================================

def get_invoice_summary(queryset):
    """Count and money sums over an already filtered invoice queryset."""
    totals = queryset.order_by().aggregate(
        total=Count('id'),
        billed_sum=_money_sum('billed_total'),
        paid_sum=_money_sum('paid_total'),
        balance_sum=_money_sum('balance'),
    )
    return {
        'total': totals['total'],
        'billed_sum': to_money(totals['billed_sum']),
        'paid_sum': to_money(totals['paid_sum']),
        'balance_sum': to_money(totals['balance_sum']),
    }


# =============================================================================
# FEE REPORT
# =============================================================================

def clean_report_filters(period=None, class_name=None, head_id=None):
    period = (period or '').strip() or None
    class_name = (class_name or '').strip() or None

    if period and not is_valid_period(period):
        raise InvalidArgument("Month must be in YYYY-MM format")

    if head_id in (None, ''):
        head_id = None
    else:
        try:
            head_id = int(head_id)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Invalid head_id: {head_id!r}")

    return period, class_name, head_id


def _apportion(item_amount, invoice_billed, invoice_part):
    """Share of an invoice-level amount attributable to one item, capped at the item."""
    if invoice_part <= ZERO or invoice_billed <= ZERO:
        return ZERO
    share = item_amount / invoice_billed * invoice_part
    return to_money(min(item_amount, share))


def get_fee_report(period=None, class_name=None, head_id=None):
    """
    Billed / collected / outstanding totals.

    Args:
        period: optional YYYY-MM billing month
        class_name: optional class
        head_id: optional fee head; narrows only the per-head breakdown

    Returns:
        dict with 'summary', 'by_class' and 'by_head'
    """
    period, class_name, head_id = clean_report_filters(period, class_name, head_id)

    invoices = FeeInvoice.objects.exclude(status=FeeInvoice.STATUS_VOID)
    if period:
        invoices = invoices.filter(period=period)
    if class_name:
        invoices = invoices.filter(class_name=class_name)

    summary = invoices.order_by().aggregate(
        total_billed=_money_sum('billed_total'),
        total_collected=_money_sum('paid_total'),
        total_outstanding=_money_sum('balance'),
    )

    by_class = [
        {
            'class_name': row['class_name'],
            'billed': to_money(row['billed']),
            'collected': to_money(row['collected']),
            'outstanding': to_money(row['outstanding']),
            'student_count': row['student_count'],
        }
        for row in invoices.order_by().values('class_name').annotate(
            billed=_money_sum('billed_total'),
            collected=_money_sum('paid_total'),
            outstanding=_money_sum('balance'),
            student_count=Count('student', distinct=True),
        ).order_by('class_name')
    ]

    items = FeeInvoiceItem.objects.filter(invoice__in=invoices).select_related('invoice')
    if head_id is not None:
        items = items.filter(head_id=head_id)

    heads = OrderedDict()
    for item in items.order_by('head_name', 'pk'):
        invoice = item.invoice
        row = heads.setdefault(item.head_name, {
            'head_name': item.head_name,
            'billed': ZERO,
            'collected': ZERO,
            'outstanding': ZERO,
        })
        row['billed'] += to_money(item.amount)
        row['collected'] += _apportion(item.amount, invoice.billed_total, invoice.paid_total)
        row['outstanding'] += _apportion(item.amount, invoice.billed_total, invoice.balance)

    report = {
        'summary': {key: to_money(value) for key, value in summary.items()},
        'by_class': by_class,
        'by_head': list(heads.values()),
    }
    logger.debug(
        f"Fee report period={period} class={class_name} head={head_id}: "
        f"{len(by_class)} classes, {len(report['by_head'])} heads"
    )
    return report
