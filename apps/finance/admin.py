from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from .exceptions import FeesError
from .models import FeeHead, FeeInvoice, FeeInvoiceItem, IdempotencyKey, Payment, ReceiptSequence
from .services import InvoiceService


class ReadOnlyAdminMixin:
    """Rows written only by the ledger services."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# -------------------
# Fee Head Admin
# -------------------
@admin.register(FeeHead)
class FeeHeadAdmin(admin.ModelAdmin):
    list_display = ('name', 'amount_default', 'is_active', 'updated_at')
    list_filter = ('is_active',)
    search_fields = ('name',)
    ordering = ('name',)


# -------------------
# Fee Invoice Admin
# -------------------
class FeeInvoiceItemInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = FeeInvoiceItem
    fields = ('head_name', 'head', 'amount')
    readonly_fields = fields
    extra = 0


class PaymentInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = Payment
    fields = ('receipt_number', 'amount', 'mode', 'txn_ref', 'paid_on')
    readonly_fields = fields
    extra = 0


@admin.register(FeeInvoice)
class FeeInvoiceAdmin(admin.ModelAdmin):
    list_display = ('reference', 'student', 'class_name', 'period', 'billed_total', 'paid_total', 'balance', 'status')
    list_filter = ('status', 'period', 'class_name')
    search_fields = ('student__name', 'student__roll_number')
    ordering = ('-created_at',)
    raw_id_fields = ('student',)
    readonly_fields = (
        'student', 'class_name', 'period', 'billed_total', 'paid_total', 'balance',
        'status', 'void_reason', 'created_at', 'updated_at',
    )
    inlines = [FeeInvoiceItemInline, PaymentInline]
    actions = ['void_invoices']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description=_("Void selected invoices"))
    def void_invoices(self, request, queryset):
        voided = 0
        for invoice in queryset:
            try:
                InvoiceService.void_invoice(invoice.pk, reason=f"Voided from admin by {request.user}")
                voided += 1
            except FeesError as exc:
                self.message_user(request, f"{invoice.reference}: {exc.message}", messages.WARNING)
        if voided:
            self.message_user(request, f"{voided} invoice(s) voided.", messages.SUCCESS)


# -------------------
# Payment Admin
# -------------------
@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('receipt_number', 'invoice', 'amount', 'mode', 'txn_ref', 'paid_on')
    list_filter = ('mode', 'paid_on')
    search_fields = ('receipt_number', 'txn_ref', 'invoice__student__name', 'invoice__student__roll_number')
    ordering = ('-paid_on',)


@admin.register(ReceiptSequence)
class ReceiptSequenceAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('period', 'next_number')
    ordering = ('-period',)


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('key', 'payment', 'created_at')
    search_fields = ('key',)
