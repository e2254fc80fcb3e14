from django.db import models
from django.utils.translation import gettext_lazy as _


# -------------------- Student Core --------------------
class Student(models.Model):
    """Student as seen by the fees ledger: identity, roll number and class."""

    name = models.CharField(max_length=200, verbose_name=_("Name"))
    roll_number = models.CharField(max_length=50, db_index=True, verbose_name=_("Roll Number"))
    class_name = models.CharField(max_length=50, db_index=True, verbose_name=_("Class"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "students"
        ordering = ["class_name", "roll_number"]
        verbose_name = _("Student")
        verbose_name_plural = _("Students")

    def __str__(self):
        return f"{self.name} ({self.roll_number})"
