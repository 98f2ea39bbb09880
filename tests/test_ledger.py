import pytest
from datetime import date
from decimal import Decimal

from suagrana.core.dates import iter_months, month_bounds, shift_months
from suagrana.core.exceptions import ValidationException
from suagrana.models.entry import Entry
from suagrana.services.ledger_service import to_money, validate_balance


class TestMoney:
    @pytest.mark.parametrize(
        "value,expected",
        [(10, "10.00"), (10.005, "10.01"), (0.1 + 0.2, "0.30"), ("99.994", "99.99")],
    )
    def test_to_money_rounds_half_up(self, value, expected):
        assert to_money(value) == Decimal(expected)

    def test_balanced_entries_pass(self):
        entries = [
            Entry(account_id=1, debit=Decimal("10.00"), credit=Decimal("0.00")),
            Entry(account_id=2, debit=Decimal("0.00"), credit=Decimal("10.00")),
        ]

        validate_balance(entries)

    def test_unbalanced_entries_fail(self):
        entries = [
            Entry(account_id=1, debit=Decimal("10.00"), credit=Decimal("0.00")),
            Entry(account_id=2, debit=Decimal("0.00"), credit=Decimal("9.50")),
        ]

        with pytest.raises(ValidationException, match="Unbalanced transaction"):
            validate_balance(entries)

    def test_one_cent_tolerance(self):
        entries = [
            Entry(account_id=1, debit=Decimal("10.00"), credit=Decimal("0.00")),
            Entry(account_id=2, debit=Decimal("0.00"), credit=Decimal("9.99")),
        ]

        validate_balance(entries)


class TestDates:
    def test_shift_months_clamps_day(self):
        assert shift_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_shift_months_across_years(self):
        assert shift_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
        assert shift_months(date(2024, 2, 10), -14) == date(2022, 12, 10)

    def test_month_bounds(self):
        assert month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))

    def test_iter_months(self):
        assert list(iter_months(date(2023, 11, 20), date(2024, 2, 1))) == [
            "2023-11", "2023-12", "2024-01", "2024-02",
        ]
