# apps/finance/utils.py

import re
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a DecimalField(max_digits=12, decimal_places=2) column holds
MAX_AMOUNT = Decimal("9999999999.99")

PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def to_money(value):
    """
    Quantize a currency amount to 2 decimal places, rounding half up.
    Every amount that enters or leaves the ledger goes through here.
    """
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        try:
            # str() first so floats like 0.1 don't drag binary noise along
            value = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValueError(f"Invalid amount: {value!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {value!r}")


def is_valid_period(period):
    return bool(period) and bool(PERIOD_RE.match(str(period)))


def period_for(moment):
    """YYYY-MM key of an instant, taken in UTC."""
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment, dt_timezone.utc)
    return moment.astimezone(dt_timezone.utc).strftime("%Y-%m")


def parse_instant(value):
    """
    Parse an ISO-8601 datetime (or plain date) into an aware datetime.
    Naive values are taken as UTC. Returns None when the value can't be parsed.
    """
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = parse_datetime(text)
            if moment is None:
                day = parse_date(text)
                moment = datetime(day.year, day.month, day.day) if day else None
        except ValueError:
            return None
    if moment is None:
        return None
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment, dt_timezone.utc)
    return moment
