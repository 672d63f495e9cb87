"""Tests for salary normalization."""

import pytest

from jobmarket.calculations import normalize_salary
from jobmarket.calculations.salary import currency_rate, period_factor
from jobmarket.services.filter_model import SalaryPeriod


class TestPeriodFactor:
    @pytest.mark.parametrize(
        "unit,expected",
        [("HOUR", 2080), ("day", 260), ("WEEK", 52), ("MONTH", 12), ("YEAR", 1)],
    )
    def test_known_units(self, unit, expected):
        assert period_factor(unit) == expected

    def test_missing_or_unknown_unit_is_yearly(self):
        assert period_factor(None) == 1
        assert period_factor("FORTNIGHT") == 1


class TestCurrencyRate:
    def test_missing_currency(self):
        assert currency_rate(None, {"USD": 1.1}) == 1.0

    def test_currency_absent_from_table(self):
        assert currency_rate("GBP", {"USD": 1.1}) == 1.0

    def test_lookup_is_case_insensitive(self):
        assert currency_rate("usd", {"USD": 1.1}) == 1.1


class TestNormalizeSalary:
    def test_monthly_to_yearly(self):
        assert normalize_salary(5000, "MONTH", "EUR", SalaryPeriod.YEAR, {"EUR": 1.0}) == 60000.0

    def test_hourly_to_monthly(self):
        result = normalize_salary(30, "HOUR", "EUR", SalaryPeriod.MONTH, None)
        assert result == pytest.approx(30 * 2080 / 12)

    def test_converts_currency(self):
        result = normalize_salary(120000, "YEAR", "USD", SalaryPeriod.YEAR, {"USD": 1.2})
        assert result == pytest.approx(100000)

    def test_missing_amount(self):
        assert normalize_salary(None, "YEAR", "EUR", SalaryPeriod.YEAR, None) is None
