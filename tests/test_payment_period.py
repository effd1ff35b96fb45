"""Payment period validation and month windows."""

from datetime import datetime

import pytest

from propledger.errors import ValidationError
from propledger.services.payment_period import (
    get_payment_period_end,
    get_payment_period_start,
    payment_period_window,
    validate_payment_period,
)


class TestValidatePaymentPeriod:
    @pytest.mark.parametrize("period", ["2020-01", "2024-06", "2030-12"])
    def test_accepts_periods_in_range(self, period):
        assert validate_payment_period(period) is True

    @pytest.mark.parametrize(
        "period",
        ["2024-1", "24-01", "2024/01", "2024-01-01", "", "abcd-ef", " 2024-01", "２０２４-01", None],
    )
    def test_rejects_malformed_periods(self, period):
        with pytest.raises(ValidationError) as exc:
            validate_payment_period(period)
        assert "YYYY-MM" in exc.value.message

    @pytest.mark.parametrize("period", ["2019-12", "2031-01"])
    def test_rejects_years_out_of_range(self, period):
        with pytest.raises(ValidationError, match="Year must be between 2020 and 2030"):
            validate_payment_period(period)

    @pytest.mark.parametrize("period", ["2024-00", "2024-13"])
    def test_rejects_months_out_of_range(self, period):
        with pytest.raises(ValidationError, match="Month must be between 01 and 12"):
            validate_payment_period(period)


class TestPeriodWindow:
    def test_leap_year_february(self):
        assert get_payment_period_start("2024-02") == datetime(2024, 2, 1, 0, 0, 0)
        assert get_payment_period_end("2024-02") == datetime(2024, 2, 29, 23, 59, 59, 999000)

    def test_non_leap_february(self):
        assert get_payment_period_end("2023-02") == datetime(2023, 2, 28, 23, 59, 59, 999000)

    def test_december_does_not_roll_into_next_year(self):
        start, end = payment_period_window("2024-12")
        assert start == datetime(2024, 12, 1)
        assert end == datetime(2024, 12, 31, 23, 59, 59, 999000)

    def test_window_rejects_unparseable_period(self):
        with pytest.raises(ValidationError):
            payment_period_window("March 2024")
