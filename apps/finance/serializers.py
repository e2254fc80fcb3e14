from decimal import Decimal

from rest_framework import serializers

from .models import FeeHead, FeeInvoice, FeeInvoiceItem, Payment
from .utils import is_valid_period

MONEY = dict(max_digits=12, decimal_places=2, coerce_to_string=False)


class MoneyField(serializers.DecimalField):
    def __init__(self, **kwargs):
        for key, value in MONEY.items():
            kwargs.setdefault(key, value)
        super().__init__(**kwargs)


# -------------------
# Requests
# -------------------

class PaymentCreateSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField(min_value=1)
    # Precision and range are handled by the recorder (half-up to 2 places)
    amount = serializers.DecimalField(max_digits=None, decimal_places=None)
    mode = serializers.ChoiceField(choices=Payment.MODE_CHOICES)
    txn_ref = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    paid_on = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class HeadOverrideSerializer(serializers.Serializer):
    head_id = serializers.IntegerField(min_value=1)
    amount = MoneyField(required=False, allow_null=True, min_value=Decimal('0'))


class GenerateInvoicesSerializer(serializers.Serializer):
    STRATEGY_CHOICES = ('DEFAULT_HEADS', 'CUSTOM_PER_CLASS')

    # "class" is reserved in Python, so it's declared below
    month = serializers.CharField()
    heads = HeadOverrideSerializer(many=True, required=False)
    strategy = serializers.ChoiceField(choices=STRATEGY_CHOICES, required=False)

    def get_fields(self):
        fields = super().get_fields()
        fields['class'] = serializers.CharField(max_length=50)
        return fields

    def validate_month(self, value):
        if not is_valid_period(value):
            raise serializers.ValidationError("Month must be in YYYY-MM format")
        return value


class VoidInvoiceSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


# -------------------
# Responses
# -------------------

class FeeHeadSerializer(serializers.ModelSerializer):
    amount_default = MoneyField()

    class Meta:
        model = FeeHead
        fields = ['id', 'name', 'amount_default', 'is_active']


class InvoiceItemSerializer(serializers.ModelSerializer):
    amount = MoneyField()

    class Meta:
        model = FeeInvoiceItem
        fields = ['id', 'head_id', 'head_name', 'amount']


class InvoiceListSerializer(serializers.ModelSerializer):
    student_id = serializers.IntegerField(source='student.id')
    student_name = serializers.CharField(source='student.name')
    roll_number = serializers.CharField(source='student.roll_number')
    month = serializers.CharField(source='period')
    billed_total = MoneyField()
    paid_total = MoneyField()
    balance = MoneyField()

    class Meta:
        model = FeeInvoice
        fields = [
            'id', 'student_id', 'student_name', 'roll_number', 'month',
            'billed_total', 'paid_total', 'balance', 'status', 'created_at',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['class'] = instance.class_name
        return data


class InvoiceStateSerializer(serializers.ModelSerializer):
    paid_total = MoneyField()
    balance = MoneyField()

    class Meta:
        model = FeeInvoice
        fields = ['id', 'status', 'balance', 'paid_total']


class PaymentResultSerializer(serializers.Serializer):
    """Response of a recorded payment."""

    def to_representation(self, result):
        return {
            'id': result.payment.pk,
            'receipt_no': result.receipt_number,
            'invoice': InvoiceStateSerializer(result.invoice).data,
        }


class ReceiptSerializer(serializers.ModelSerializer):
    receipt_no = serializers.CharField(source='receipt_number')
    amount = MoneyField()
    invoice = serializers.SerializerMethodField()
    student = serializers.SerializerMethodField()
    items = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = ['id', 'receipt_no', 'amount', 'mode', 'txn_ref', 'paid_on', 'invoice', 'student', 'items']

    def get_invoice(self, payment):
        invoice = payment.invoice
        return {
            'id': invoice.pk,
            'month': invoice.period,
            'class': invoice.class_name,
            'billed_total': MoneyField().to_representation(invoice.billed_total),
            'paid_total': MoneyField().to_representation(invoice.paid_total),
            'balance': MoneyField().to_representation(invoice.balance),
            'status': invoice.status,
        }

    def get_student(self, payment):
        student = payment.invoice.student
        return {
            'id': student.pk,
            'name': student.name,
            'roll_number': student.roll_number,
            'class': payment.invoice.class_name,
        }

    def get_items(self, payment):
        return InvoiceItemSerializer(self.context.get('items', []), many=True).data


class LedgerEntrySerializer(serializers.Serializer):
    type = serializers.CharField()
    date = serializers.DateTimeField()
    description = serializers.CharField()
    amount = MoneyField()
    balance = MoneyField()
    reference = serializers.CharField()
    invoice_id = serializers.IntegerField()
    payment_id = serializers.IntegerField(allow_null=True)


class LedgerSerializer(serializers.Serializer):
    student = serializers.SerializerMethodField()
    entries = LedgerEntrySerializer(many=True)
    opening_balance = MoneyField()
    closing_balance = MoneyField()

    def get_student(self, ledger):
        student = ledger.student
        return {
            'id': student.pk,
            'name': student.name,
            'roll_number': student.roll_number,
            'class': student.class_name,
        }


class ReportQuerySerializer(serializers.Serializer):
    month = serializers.CharField(required=False, allow_blank=True)
    head_id = serializers.IntegerField(required=False, min_value=1)

    def get_fields(self):
        fields = super().get_fields()
        fields['class'] = serializers.CharField(required=False, allow_blank=True)
        return fields

    def validate_month(self, value):
        if value and not is_valid_period(value):
            raise serializers.ValidationError("Month must be in YYYY-MM format")
        return value
