"""Salary normalization to a comparison period and currency."""

from jobmarket.services.filter_model import SalaryPeriod

# Periods per year, used to annualise before converting to the target period
PERIOD_FACTORS: dict[str, float] = {
    SalaryPeriod.HOUR.value: 2080.0,
    SalaryPeriod.DAY.value: 260.0,
    SalaryPeriod.WEEK.value: 52.0,
    SalaryPeriod.MONTH.value: 12.0,
    SalaryPeriod.YEAR.value: 1.0,
}

DEFAULT_PERIOD = SalaryPeriod.YEAR.value


def period_factor(unit: str | None) -> float:
    """Periods per year for a provider unit string; unknown or missing is yearly."""
    if not unit:
        return PERIOD_FACTORS[DEFAULT_PERIOD]
    return PERIOD_FACTORS.get(unit.upper(), PERIOD_FACTORS[DEFAULT_PERIOD])


def currency_rate(currency: str | None, exchange_rates: dict[str, float] | None) -> float:
    """
    Units of `currency` per one unit of the comparison currency.

    Missing currency, or one absent from the table, compares at 1.0.
    """
    if not currency or not exchange_rates:
        return 1.0
    return exchange_rates.get(currency.upper(), 1.0)


def normalize_salary(
    amount: float | None,
    unit: str | None,
    currency: str | None,
    target_period: SalaryPeriod,
    exchange_rates: dict[str, float] | None,
) -> float | None:
    """
    Express `amount` (per `unit`, in `currency`) per `target_period` in the
    comparison currency the rate table was built for.

    >>> normalize_salary(5000, "MONTH", "EUR", SalaryPeriod.YEAR, {"EUR": 1.0})
    60000.0
    """
    if amount is None:
        return None
    annual = float(amount) * period_factor(unit)
    per_period = annual / PERIOD_FACTORS[target_period.value]
    return per_period / currency_rate(currency, exchange_rates)
