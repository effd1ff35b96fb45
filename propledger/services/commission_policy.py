from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from propledger.errors import ValidationError

PERCENTAGE = "PERCENTAGE"
FLAT_RATE = "FLAT_RATE"
COMMISSION_TYPES = {PERCENTAGE, FLAT_RATE}

MINOR_UNITS = Decimal("100")


def round_half_up(value):
    """Round a Decimal to a whole number of minor units, halves away from zero."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CommissionPolicy:
    """How a subject (agent or caretaker) is paid for a period.

    ``PERCENTAGE`` pays ``rate`` percent of rent collected. ``FLAT_RATE`` pays
    ``rate`` major currency units regardless of rent collected. Any other type
    pays nothing; it is only constructed when strict checking is off.
    """

    commission_type: str
    rate: Decimal

    @classmethod
    def for_subject(cls, subject, strict=True):
        commission_type = (subject.commission_type or PERCENTAGE).strip().upper()
        rate = Decimal(str(subject.commission_rate if subject.commission_rate is not None else 0))
        if strict and commission_type not in COMMISSION_TYPES:
            raise ValidationError(f"Unsupported commission type: {subject.commission_type}.")
        return cls(commission_type=commission_type, rate=rate)

    @property
    def is_percentage(self):
        return self.commission_type == PERCENTAGE

    @property
    def is_flat_rate(self):
        return self.commission_type == FLAT_RATE

    def commission_on(self, rent_collected):
        if self.is_percentage:
            if self.rate <= 0:
                return 0
            return round_half_up(Decimal(int(rent_collected)) * self.rate / MINOR_UNITS)
        if self.is_flat_rate:
            return round_half_up(self.rate * MINOR_UNITS)
        return 0
