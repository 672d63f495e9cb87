"""
SQL translation of filter conditions.

The remote counterpart of calculations.filter_eval: both read OPERATOR_SPECS,
so an operator's meaning is defined once. Negated operators keep rows whose
value is missing (NULL), as the in-memory evaluator does.
"""

from typing import Any

from sqlalchemy import case, func, literal, not_, or_, select
from sqlalchemy.sql.elements import ColumnElement

from jobmarket.calculations.salary import PERIOD_FACTORS
from jobmarket.models import Job
from jobmarket.services.filter_model import (
    FIELDS_BY_KEY,
    SALARY_CURRENCY_FIELD,
    SALARY_UNIT_FIELD,
    FieldType,
    FilterCondition,
    FilterField,
    PredicateKind,
    SalaryPeriod,
)


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _negate(positive: ColumnElement, expression: Any, condition: FilterCondition) -> ColumnElement:
    if condition.spec.matches_missing:
        return not_(positive)
    return or_(expression.is_(None), not_(positive))


def scalar_predicate(
    expression: Any, condition: FilterCondition, field: FilterField
) -> ColumnElement:
    """Predicate over a single-valued column (or a derived expression)."""
    kind = condition.spec.kind
    target: Any = condition.value

    if kind == PredicateKind.EMPTINESS:
        positive = expression.is_(None)
        if field.type in (FieldType.TEXT, FieldType.SELECT):
            positive = or_(positive, expression == "")
    elif kind == PredicateKind.SUBSTRING:
        positive = expression.ilike(_like_pattern(str(target.value)), escape="\\")
    elif kind == PredicateKind.EQUALITY:
        positive = expression == target.value
    elif kind == PredicateKind.MEMBERSHIP:
        positive = expression.in_(target.values)
    elif kind == PredicateKind.GREATER:
        positive = expression > target.value
    elif kind == PredicateKind.LESS:
        positive = expression < target.value
    else:
        positive = expression.between(target.low, target.high)

    if condition.spec.negated:
        return _negate(positive, expression, condition)
    return positive


def _array_elements(column: Any, dialect_name: str):
    """Table-valued expansion of a JSON array column with a `value` column."""
    if dialect_name == "postgresql":
        return func.json_array_elements_text(column).table_valued("value")
    return func.json_each(column).table_valued("value")


def array_predicate(column: Any, condition: FilterCondition, dialect_name: str) -> ColumnElement:
    """
    Predicate over a JSON array column.

    is_any_of is set overlap (any element in the value set), and contains
    matches when any single element contains the text.
    """
    kind = condition.spec.kind
    target: Any = condition.value

    if kind == PredicateKind.EMPTINESS:
        positive = or_(column.is_(None), func.json_array_length(column) == 0)
    else:
        elements = _array_elements(column, dialect_name)
        if kind == PredicateKind.SUBSTRING:
            match = elements.c.value.ilike(_like_pattern(str(target.value)), escape="\\")
        elif kind == PredicateKind.MEMBERSHIP:
            match = elements.c.value.in_(target.values)
        else:
            raise ValueError(f"{condition.operator.value} is not supported on list fields")
        positive = select(literal(1)).select_from(elements).where(match).exists()

    # NOT EXISTS already holds for NULL arrays
    return not_(positive) if condition.spec.negated else positive


def normalized_salary_expression(
    amount: Any, period: SalaryPeriod, exchange_rates: dict[str, float] | None
) -> ColumnElement:
    """Row-level salary per `period` in the comparison currency (see calculations.salary)."""
    unit = getattr(Job, SALARY_UNIT_FIELD)
    currency = getattr(Job, SALARY_CURRENCY_FIELD)

    unit_factor = case(PERIOD_FACTORS, value=func.upper(unit), else_=literal(1.0))
    if exchange_rates:
        rate = case(exchange_rates, value=func.upper(currency), else_=literal(1.0))
    else:
        rate = literal(1.0)
    return amount * unit_factor / PERIOD_FACTORS[period.value] / rate


def condition_predicate(
    condition: FilterCondition,
    dialect_name: str,
    exchange_rates: dict[str, float] | None = None,
) -> ColumnElement:
    """Predicate for any condition: array, currency-normalized or plain column."""
    field = FIELDS_BY_KEY[condition.field]
    column = getattr(Job, field.key)

    if field.is_array:
        return array_predicate(column, condition, dialect_name)

    expression = column
    if condition.is_currency_normalized:
        expression = normalized_salary_expression(column, condition.salary_period, exchange_rates)
    return scalar_predicate(expression, condition, field)
