# students/admin.py
from django.contrib import admin
from django.db.models import Sum
from django.utils.translation import gettext_lazy as _
from .models import Student


# ---------------- Main Admin ----------------
@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("roll_number", "name", "class_name", "outstanding_balance", "created_at")
    list_filter = ("class_name",)
    search_fields = ("name", "roll_number")
    ordering = ("class_name", "roll_number")
    readonly_fields = ("created_at",)

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(_outstanding=Sum("invoices__balance"))

    @admin.display(description=_("Outstanding"), ordering="_outstanding")
    def outstanding_balance(self, obj):
        return obj._outstanding or 0
