import django_filters
from django.core.validators import RegexValidator
from django.db.models import Q

from .models import FeeInvoice
from .utils import PERIOD_RE

period_validator = RegexValidator(PERIOD_RE, "Month must be in YYYY-MM format")


class InvoiceFilter(django_filters.FilterSet):
    """
    Invoice listing filters: ``class``, ``month``, ``status`` and ``q``
    (student name or roll number, case-insensitive).
    """

    class_name = django_filters.CharFilter(field_name='class_name')
    month = django_filters.CharFilter(field_name='period', validators=[period_validator])
    status = django_filters.ChoiceFilter(choices=FeeInvoice.STATUS_CHOICES)
    q = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = FeeInvoice
        fields = ['class_name', 'month', 'status', 'q']

    def __init__(self, data=None, *args, **kwargs):
        # "class" can't be a Python attribute name
        if data is not None and 'class' in data:
            data = data.copy()
            data['class_name'] = data['class']
        super().__init__(data, *args, **kwargs)

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(student__name__icontains=value) | Q(student__roll_number__icontains=value)
        )
