"""API error rendering."""

import pytest
from django.http import Http404
from rest_framework import exceptions

from apps.core.exceptions import api_exception_handler
from apps.finance.exceptions import AlreadyExists, FailedPrecondition, InvalidArgument, NotFound


@pytest.mark.parametrize("error, status, code", [
    (InvalidArgument("bad"), 400, "invalid_argument"),
    (NotFound("gone"), 404, "not_found"),
    (AlreadyExists("dup"), 409, "already_exists"),
    (FailedPrecondition("void"), 400, "failed_precondition"),
])
def test_ledger_errors(error, status, code):
    response = api_exception_handler(error, {})
    assert response.status_code == status
    assert response.data == {"code": code, "message": error.message, "details": None}


def test_details_are_passed_through():
    error = AlreadyExists("dup", details={"payment_id": 7, "receipt_no": "REC-2024-01-000001"})
    response = api_exception_handler(error, {})
    assert response.data["details"] == {"payment_id": 7, "receipt_no": "REC-2024-01-000001"}


def test_validation_error():
    response = api_exception_handler(exceptions.ValidationError({"amount": ["A valid number is required."]}), {})
    assert response.status_code == 400
    assert response.data["code"] == "invalid_argument"
    assert response.data["message"] == "amount: A valid number is required."
    assert "amount" in response.data["details"]


def test_http404():
    response = api_exception_handler(Http404(), {})
    assert response.status_code == 404
    assert response.data["code"] == "not_found"


def test_unexpected_errors_are_left_to_django():
    assert api_exception_handler(ZeroDivisionError(), {"view": None}) is None
