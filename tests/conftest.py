"""Shared fixtures for the fees ledger tests."""

from decimal import Decimal

import pytest
from django.contrib.auth.models import Group, User
from rest_framework.test import APIClient

from apps.finance.models import FeeHead, FeeInvoice
from apps.finance.services import InvoiceService
from apps.students.models import Student


@pytest.fixture
def students(db):
    """Three students in class 5A and one in 6B."""
    return [
        Student.objects.create(name="Asha Rao", roll_number="5A01", class_name="5A"),
        Student.objects.create(name="Bilal Khan", roll_number="5A02", class_name="5A"),
        Student.objects.create(name="Chitra Nair", roll_number="5A03", class_name="5A"),
        Student.objects.create(name="Dev Mehta", roll_number="6B01", class_name="6B"),
    ]


@pytest.fixture
def student(students):
    return students[0]


@pytest.fixture
def heads(db):
    """Active heads sum to 5000; one inactive head."""
    return {
        "tuition": FeeHead.objects.create(name="Tuition", amount_default=Decimal("4000.00")),
        "transport": FeeHead.objects.create(name="Transport", amount_default=Decimal("1000.00")),
        "sports": FeeHead.objects.create(name="Sports", amount_default=Decimal("300.00"), is_active=False),
    }


@pytest.fixture
def invoice(students, heads):
    """Invoice of 5000 for the first student of 5A, period 2024-01."""
    InvoiceService.generate_invoices("5A", "2024-01")
    return FeeInvoice.objects.get(student=students[0], period="2024-01")


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser("admin", "admin@example.com", "pass")


def make_user(username, *roles):
    user = User.objects.create_user(username, f"{username}@example.com", "pass")
    for role in roles:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


@pytest.fixture
def api_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def client_for(db):
    """APIClient authenticated as a fresh user holding the given roles."""

    def build(*roles):
        client = APIClient()
        client.force_authenticate(user=make_user("-".join(roles) or "norole", *roles))
        return client

    return build
