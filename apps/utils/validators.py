# utils/validators.py

"""
Input parsing for ledger operations.

Every helper returns the cleaned value or raises Django's ValidationError, and
they are always called before a transaction opens so rejected input never
writes anything.
"""

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date as django_parse_date

VALID_TERMS = (1, 2, 3)


def _bursary_setting(key):
    return settings.BURSARY[key]


def to_amount(value):
    """Round a money value half-up to a whole currency unit."""
    return Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP)


def _parse_decimal(value, label):
    if value is None or value == '' or isinstance(value, bool):
        raise ValidationError(f"{label} is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a number")
    return to_amount(amount)


def parse_positive_amount(value, label="Amount"):
    amount = _parse_decimal(value, label)
    if amount <= 0:
        raise ValidationError(f"{label} must be greater than zero")
    return amount


def parse_non_negative_amount(value, label="Amount"):
    amount = _parse_decimal(value, label)
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative")
    return amount


def parse_int(value, label, required=True):
    if value is None or value == '':
        if required:
            raise ValidationError(f"{label} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number")
    try:
        return int(str(value))
    except ValueError:
        raise ValidationError(f"{label} must be a whole number")


def parse_id(value, label="id", required=True):
    parsed = parse_int(value, label, required=required)
    if parsed is not None and parsed <= 0:
        raise ValidationError(f"{label} must be a positive id")
    return parsed


def parse_term(value, required=True):
    term = parse_int(value, "Term", required=required)
    if term is not None and term not in VALID_TERMS:
        raise ValidationError("Term must be 1, 2 or 3")
    return term


def parse_year(value, required=True):
    year = parse_int(value, "Year", required=required)
    if year is None:
        return None
    year_min = _bursary_setting('YEAR_MIN')
    year_max = _bursary_setting('YEAR_MAX')
    if not year_min <= year <= year_max:
        raise ValidationError(f"Year must be between {year_min} and {year_max}")
    return year


def parse_date(value, label="Date", required=True):
    if value is None or value == '':
        if required:
            raise ValidationError(f"{label} is required")
        return None
    if isinstance(value, date):
        return value
    try:
        parsed = django_parse_date(str(value)[:10])
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{label} must be a date in YYYY-MM-DD format")
    return parsed


def parse_choice(value, choices, label, default=None):
    if value is None or value == '':
        if default is not None:
            return default
        raise ValidationError(f"{label} is required")
    if value not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(choices)}")
    return value


def require_text(value, label):
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()
