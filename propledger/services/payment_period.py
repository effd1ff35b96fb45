"""Payment periods are calendar months written as ``YYYY-MM``.

The string is both the API parameter and the key stored on payout records,
so its shape never changes: four ASCII digits, a dash, two ASCII digits.
"""

import calendar
import re
from datetime import datetime

from propledger.errors import ValidationError

PERIOD_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}$")
MIN_YEAR = 2020
MAX_YEAR = 2030


def _split(payment_period):
    if not isinstance(payment_period, str) or not PERIOD_PATTERN.fullmatch(payment_period):
        raise ValidationError("Payment period must be in format YYYY-MM (e.g., 2024-01)")
    year, month = payment_period.split("-")
    return int(year), int(month)


def validate_payment_period(payment_period):
    year, month = _split(payment_period)
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 01 and 12")
    return True


def get_payment_period_start(payment_period):
    year, month = _split(payment_period)
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 01 and 12")
    return datetime(year, month, 1)


def get_payment_period_end(payment_period):
    year, month = _split(payment_period)
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 01 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, last_day, 23, 59, 59, 999000)


def payment_period_window(payment_period):
    """Inclusive ``(start, end)`` bounds for filtering ``paid_at``."""
    return get_payment_period_start(payment_period), get_payment_period_end(payment_period)
