"""
In-memory evaluation of filter conditions.

Conditions combine with AND; a set-valued condition matches when any of its
values matches (OR within the set). Records may be mappings or objects such
as Job rows, and field keys may be dotted paths.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from jobmarket.calculations.salary import normalize_salary
from jobmarket.services.filter_model import (
    FIELDS_BY_KEY,
    SALARY_CURRENCY_FIELD,
    SALARY_UNIT_FIELD,
    FieldType,
    FilterCondition,
    PredicateKind,
)
from jobmarket.utils.clock import to_naive_utc
from jobmarket.utils.query_params import parse_datetime_param

_COLLECTIONS = (list, tuple, set, frozenset)


def get_field_value(record: Any, field: str) -> Any:
    """Read a (possibly dotted) field from a mapping or attribute object."""
    value = record
    for key in field.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def _is_empty(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, _COLLECTIONS) and len(value) == 0


def _comparable(value: Any, field_type: FieldType) -> float | datetime | None:
    """Coerce a record value for ordering comparisons; None if not comparable."""
    if value is None:
        return None
    if field_type == FieldType.DATE:
        if isinstance(value, datetime):
            return to_naive_utc(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            return parse_datetime_param(value)
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _strict_equals(actual: Any, expected: Any) -> bool:
    """Type-sensitive equality: no coercion between text, numbers and booleans."""
    if actual is None:
        return False
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if isinstance(expected, float):
        return isinstance(actual, (int, float)) and float(actual) == expected
    if isinstance(expected, datetime):
        return isinstance(actual, datetime) and to_naive_utc(actual) == expected
    return isinstance(actual, type(expected)) and actual == expected


def _contains(value: Any, needle: str) -> bool:
    needle = needle.lower()
    if isinstance(value, _COLLECTIONS):
        # Any element matching is enough, not the serialized collection
        return any(needle in str(v).lower() for v in value if v is not None)
    if value is None:
        return False
    return needle in str(value).lower()


def _overlaps(value: Any, candidates: tuple[str, ...]) -> bool:
    if isinstance(value, _COLLECTIONS):
        return any(v in candidates for v in value)
    return value is not None and value in candidates


def _positive(condition: FilterCondition, value: Any, field_type: FieldType) -> bool:
    kind = condition.spec.kind
    target: Any = condition.value

    if kind == PredicateKind.EMPTINESS:
        return _is_empty(value)

    if kind == PredicateKind.SUBSTRING:
        return _contains(value, str(target.value))

    if kind == PredicateKind.MEMBERSHIP:
        return _overlaps(value, target.values)

    if kind == PredicateKind.EQUALITY:
        return _strict_equals(value, target.value)

    actual = _comparable(value, field_type)
    if actual is None:
        return False

    if kind == PredicateKind.RANGE:
        # Callers hand over ordered ranges; no swapping here
        return target.low <= actual <= target.high

    if kind == PredicateKind.GREATER:
        return actual > target.value
    return actual < target.value


def matches(
    record: Any,
    condition: FilterCondition,
    exchange_rates: dict[str, float] | None = None,
) -> bool:
    """Whether a single record satisfies a single condition."""
    field = FIELDS_BY_KEY[condition.field]
    value = get_field_value(record, condition.field)

    if condition.is_currency_normalized:
        value = normalize_salary(
            _comparable(value, FieldType.NUMBER),
            get_field_value(record, SALARY_UNIT_FIELD),
            get_field_value(record, SALARY_CURRENCY_FIELD),
            condition.salary_period,
            exchange_rates,
        )

    result = _positive(condition, value, field.type)
    return not result if condition.spec.negated else result


def apply_all(
    records: Iterable[Any],
    conditions: list[FilterCondition],
    exchange_rates: dict[str, float] | None = None,
) -> list[Any]:
    """Records matching every condition, in their original order."""
    return [
        record
        for record in records
        if all(matches(record, condition, exchange_rates) for condition in conditions)
    ]
