"""
Filter vocabulary: filterable fields, operators, typed condition values.

OPERATOR_SPECS is the single description of what each operator means. The
in-memory evaluator (calculations.filter_eval) and the SQL translation
(services.predicates) both dispatch on it, so adding or changing an operator
happens here and nowhere else.
"""

import logging
import math
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from jobmarket.exceptions import ValidationError
from jobmarket.utils.clock import to_naive_utc
from jobmarket.utils.query_params import parse_bool_param, parse_datetime_param

if TYPE_CHECKING:
    from jobmarket.services.dynamic_options import DynamicOptions

logger = logging.getLogger(__name__)


class FilterOperator(str, Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    IS_ANY_OF = "is_any_of"
    IS_NOT_ANY_OF = "is_not_any_of"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    BOOLEAN = "boolean"
    DATE = "date"


class PredicateKind(str, Enum):
    SUBSTRING = "substring"
    EQUALITY = "equality"
    MEMBERSHIP = "membership"
    GREATER = "greater"
    LESS = "less"
    RANGE = "range"
    EMPTINESS = "emptiness"


class ValueShape(str, Enum):
    NONE = "none"
    SCALAR = "scalar"
    RANGE = "range"
    SET = "set"


@dataclass(frozen=True)
class OperatorSpec:
    """How an operator evaluates, independent of the execution backend."""

    kind: PredicateKind
    shape: ValueShape
    negated: bool = False
    # Whether a missing field value satisfies the positive predicate
    matches_missing: bool = False


OPERATOR_SPECS: dict[FilterOperator, OperatorSpec] = {
    FilterOperator.CONTAINS: OperatorSpec(PredicateKind.SUBSTRING, ValueShape.SCALAR),
    FilterOperator.NOT_CONTAINS: OperatorSpec(
        PredicateKind.SUBSTRING, ValueShape.SCALAR, negated=True
    ),
    FilterOperator.EQUALS: OperatorSpec(PredicateKind.EQUALITY, ValueShape.SCALAR),
    FilterOperator.NOT_EQUALS: OperatorSpec(
        PredicateKind.EQUALITY, ValueShape.SCALAR, negated=True
    ),
    FilterOperator.IS_ANY_OF: OperatorSpec(PredicateKind.MEMBERSHIP, ValueShape.SET),
    FilterOperator.IS_NOT_ANY_OF: OperatorSpec(
        PredicateKind.MEMBERSHIP, ValueShape.SET, negated=True
    ),
    FilterOperator.GREATER_THAN: OperatorSpec(PredicateKind.GREATER, ValueShape.SCALAR),
    FilterOperator.LESS_THAN: OperatorSpec(PredicateKind.LESS, ValueShape.SCALAR),
    FilterOperator.BETWEEN: OperatorSpec(PredicateKind.RANGE, ValueShape.RANGE),
    FilterOperator.IS_EMPTY: OperatorSpec(
        PredicateKind.EMPTINESS, ValueShape.NONE, matches_missing=True
    ),
    FilterOperator.IS_NOT_EMPTY: OperatorSpec(
        PredicateKind.EMPTINESS, ValueShape.NONE, negated=True, matches_missing=True
    ),
}

OPERATOR_LABELS: dict[FilterOperator, str] = {
    FilterOperator.CONTAINS: "contains",
    FilterOperator.NOT_CONTAINS: "does not contain",
    FilterOperator.EQUALS: "is",
    FilterOperator.NOT_EQUALS: "is not",
    FilterOperator.IS_ANY_OF: "is any of",
    FilterOperator.IS_NOT_ANY_OF: "is not any of",
    FilterOperator.GREATER_THAN: "is greater than",
    FilterOperator.LESS_THAN: "is less than",
    FilterOperator.BETWEEN: "is between",
    FilterOperator.IS_EMPTY: "is empty",
    FilterOperator.IS_NOT_EMPTY: "is not empty",
}

_EMPTINESS = frozenset({FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY})

# Operators a field of each type may declare
TYPE_OPERATORS: dict[FieldType, frozenset[FilterOperator]] = {
    FieldType.TEXT: frozenset(
        {
            FilterOperator.CONTAINS,
            FilterOperator.NOT_CONTAINS,
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
        }
    )
    | _EMPTINESS,
    FieldType.NUMBER: frozenset(
        {
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.GREATER_THAN,
            FilterOperator.LESS_THAN,
            FilterOperator.BETWEEN,
        }
    )
    | _EMPTINESS,
    FieldType.SELECT: frozenset(
        {
            FilterOperator.CONTAINS,
            FilterOperator.NOT_CONTAINS,
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.IS_ANY_OF,
            FilterOperator.IS_NOT_ANY_OF,
        }
    )
    | _EMPTINESS,
    FieldType.MULTISELECT: frozenset(
        {
            FilterOperator.CONTAINS,
            FilterOperator.NOT_CONTAINS,
            FilterOperator.IS_ANY_OF,
            FilterOperator.IS_NOT_ANY_OF,
        }
    )
    | _EMPTINESS,
    FieldType.BOOLEAN: frozenset({FilterOperator.EQUALS, FilterOperator.NOT_EQUALS})
    | _EMPTINESS,
    FieldType.DATE: frozenset(
        {
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.GREATER_THAN,
            FilterOperator.LESS_THAN,
            FilterOperator.BETWEEN,
        }
    )
    | _EMPTINESS,
}


class SalaryPeriod(str, Enum):
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


SUPPORTED_CURRENCIES = ("EUR", "USD", "GBP", "CHF", "SEK", "NOK", "DKK", "PLN", "CZK", "HUF")

# Record attributes the salary normalization reads alongside the amount
SALARY_CURRENCY_FIELD = "ai_salary_currency"
SALARY_UNIT_FIELD = "ai_salary_unittext"
FIRST_SEEN_FIELD = "first_seen_date"

Scalar = str | float | bool | datetime


@dataclass(frozen=True)
class ScalarValue:
    value: Scalar


@dataclass(frozen=True)
class RangeValue:
    """Inclusive range; low <= high is guaranteed by parse_condition."""

    low: float | datetime
    high: float | datetime


@dataclass(frozen=True)
class SetValue:
    values: tuple[str, ...]


ConditionValue = ScalarValue | RangeValue | SetValue | None


@dataclass(frozen=True)
class FieldOption:
    value: str
    label: str


@dataclass(frozen=True)
class FilterField:
    """One filterable job attribute."""

    key: str
    label: str
    type: FieldType
    operators: tuple[FilterOperator, ...]
    options: tuple[FieldOption, ...] = ()
    placeholder: str = ""
    description: str = ""
    is_array: bool = False
    is_salary: bool = False
    # DynamicOptions attribute supplying this field's options
    option_source: str | None = None

    def __post_init__(self) -> None:
        if not self.operators:
            raise ValueError(f"Field {self.key} declares no operators")
        illegal = set(self.operators) - TYPE_OPERATORS[self.type]
        if illegal:
            names = ", ".join(sorted(op.value for op in illegal))
            raise ValueError(f"Field {self.key} ({self.type.value}) cannot use: {names}")


@dataclass(frozen=True)
class FilterCondition:
    """One field + operator + value constraint."""

    id: str
    field: str
    operator: FilterOperator
    value: ConditionValue = None
    label: str = ""
    salary_period: SalaryPeriod | None = None
    salary_currency: str | None = None

    @property
    def spec(self) -> OperatorSpec:
        return OPERATOR_SPECS[self.operator]

    @property
    def is_currency_normalized(self) -> bool:
        return self.salary_currency is not None

    def to_dict(self) -> dict[str, Any]:
        """Wire/storage form, the same shape parse_condition accepts."""
        data: dict[str, Any] = {
            "id": self.id,
            "field": self.field,
            "fieldLabel": self.label,
            "operator": self.operator.value,
            "value": value_to_json(self.value),
        }
        if self.salary_period is not None:
            data["salaryPeriod"] = self.salary_period.value
            data["salaryCurrency"] = self.salary_currency
        return data

    def to_procedure_param(self) -> dict[str, Any]:
        """Structured parameter for the server-side search procedure."""
        return {
            "field": self.field,
            "operator": self.operator.value,
            "value": value_to_json(self.value),
            "is_array_value": FIELDS_BY_KEY[self.field].is_array,
            "salary_period": self.salary_period.value if self.salary_period else None,
            "salary_currency": self.salary_currency,
        }


def _json_scalar(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def value_to_json(value: ConditionValue) -> Any:
    if isinstance(value, ScalarValue):
        return _json_scalar(value.value)
    if isinstance(value, RangeValue):
        return [_json_scalar(value.low), _json_scalar(value.high)]
    if isinstance(value, SetValue):
        return list(value.values)
    return None


_TEXT_OPS = (
    FilterOperator.CONTAINS,
    FilterOperator.NOT_CONTAINS,
    FilterOperator.EQUALS,
    FilterOperator.NOT_EQUALS,
)
_SALARY_OPS = (
    FilterOperator.GREATER_THAN,
    FilterOperator.LESS_THAN,
    FilterOperator.BETWEEN,
    FilterOperator.EQUALS,
    FilterOperator.IS_EMPTY,
    FilterOperator.IS_NOT_EMPTY,
)

FILTER_FIELDS: tuple[FilterField, ...] = (
    FilterField(
        key="title",
        label="Job Title",
        type=FieldType.TEXT,
        operators=_TEXT_OPS,
        placeholder="e.g., Software Engineer",
        description="Search by job title",
    ),
    FilterField(
        key="organization",
        label="Company",
        type=FieldType.TEXT,
        operators=_TEXT_OPS,
        placeholder="e.g., Google",
        description="Search by company name",
    ),
    FilterField(
        key="cities_derived",
        label="City",
        type=FieldType.MULTISELECT,
        operators=(
            FilterOperator.IS_ANY_OF,
            FilterOperator.IS_NOT_ANY_OF,
            FilterOperator.IS_EMPTY,
            FilterOperator.IS_NOT_EMPTY,
        ),
        description="Filter by city location",
        is_array=True,
        option_source="cities",
    ),
    FilterField(
        key="employment_type",
        label="Employment Type",
        type=FieldType.MULTISELECT,
        operators=(FilterOperator.IS_ANY_OF, FilterOperator.IS_NOT_ANY_OF),
        description="Filter by employment type",
        is_array=True,
        option_source="employment_types",
    ),
    FilterField(
        key="ai_experience_level",
        label="Experience Level",
        type=FieldType.SELECT,
        operators=(
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.IS_ANY_OF,
            FilterOperator.IS_NOT_ANY_OF,
        ),
        description="Filter by required experience",
        option_source="experience_levels",
    ),
    FilterField(
        key="remote_derived",
        label="Remote Work",
        type=FieldType.BOOLEAN,
        operators=(FilterOperator.EQUALS,),
        description="Filter remote jobs",
    ),
    FilterField(
        key="ai_visa_sponsorship",
        label="Visa Sponsorship",
        type=FieldType.BOOLEAN,
        operators=(FilterOperator.EQUALS,),
        description="Jobs offering visa sponsorship",
    ),
    FilterField(
        key="ai_work_arrangement",
        label="Work Arrangement",
        type=FieldType.SELECT,
        operators=(FilterOperator.EQUALS, FilterOperator.NOT_EQUALS, FilterOperator.IS_ANY_OF),
        description="Work location arrangement",
        option_source="work_arrangements",
    ),
    FilterField(
        key="ai_salary_minvalue",
        label="Minimum Salary",
        type=FieldType.NUMBER,
        operators=_SALARY_OPS,
        placeholder="e.g., 50000",
        description="Filter by minimum salary",
        is_salary=True,
    ),
    FilterField(
        key="ai_salary_maxvalue",
        label="Maximum Salary",
        type=FieldType.NUMBER,
        operators=_SALARY_OPS,
        placeholder="e.g., 90000",
        description="Filter by maximum salary",
        is_salary=True,
    ),
    FilterField(
        key="ai_key_skills",
        label="Skills",
        type=FieldType.TEXT,
        operators=(
            FilterOperator.CONTAINS,
            FilterOperator.NOT_CONTAINS,
            FilterOperator.IS_EMPTY,
            FilterOperator.IS_NOT_EMPTY,
        ),
        placeholder="e.g., Python, React, AWS",
        description="Search by required skills",
        is_array=True,
    ),
    FilterField(
        key="source",
        label="Source",
        type=FieldType.SELECT,
        operators=(
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.CONTAINS,
            FilterOperator.IS_ANY_OF,
        ),
        placeholder="e.g., greenhouse, lever",
        description="Job posting source/ATS",
        option_source="sources",
    ),
    FilterField(
        key="linkedin_org_industry",
        label="Industry",
        type=FieldType.SELECT,
        operators=(
            FilterOperator.CONTAINS,
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.IS_ANY_OF,
            FilterOperator.IS_EMPTY,
            FilterOperator.IS_NOT_EMPTY,
        ),
        placeholder="e.g., Technology, Finance",
        description="Company industry",
        option_source="industries",
    ),
    FilterField(
        key=FIRST_SEEN_FIELD,
        label="Date Added",
        type=FieldType.DATE,
        operators=(FilterOperator.GREATER_THAN, FilterOperator.LESS_THAN, FilterOperator.BETWEEN),
        description="When the job first appeared",
    ),
)

FIELDS_BY_KEY: dict[str, FilterField] = {f.key: f for f in FILTER_FIELDS}


def declare_fields(options: "DynamicOptions") -> list[FilterField]:
    """Filterable fields with select options taken from a dynamic-options snapshot."""
    fields = []
    for field in FILTER_FIELDS:
        if field.option_source:
            field = replace(field, options=tuple(getattr(options, field.option_source)))
        fields.append(field)
    return fields


def get_field(key: str) -> FilterField | None:
    return FIELDS_BY_KEY.get(key)


def _coerce_scalar(field: FilterField, raw: Any) -> Scalar:
    if field.type in (FieldType.TEXT, FieldType.SELECT, FieldType.MULTISELECT):
        if isinstance(raw, str) and raw.strip():
            return raw
        raise ValidationError(f"{field.label} needs a non-empty text value", field=field.key)

    if field.type == FieldType.NUMBER:
        if isinstance(raw, bool):
            raise ValidationError(f"{field.label} needs a number", field=field.key)
        try:
            number = float(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"{field.label} needs a number", field=field.key) from None
        if not math.isfinite(number):
            raise ValidationError(f"{field.label} needs a finite number", field=field.key)
        return number

    if field.type == FieldType.BOOLEAN:
        if isinstance(raw, bool):
            return raw
        parsed = parse_bool_param(raw) if isinstance(raw, str) else None
        if parsed is None:
            raise ValidationError(f"{field.label} needs true or false", field=field.key)
        return parsed

    # FieldType.DATE
    if isinstance(raw, datetime):
        return to_naive_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    parsed_dt = parse_datetime_param(raw) if isinstance(raw, str) else None
    if parsed_dt is None:
        raise ValidationError(f"{field.label} needs an ISO date", field=field.key)
    return parsed_dt


def _coerce_value(field: FilterField, spec: OperatorSpec, raw: Any) -> ConditionValue:
    if spec.shape == ValueShape.NONE:
        return None

    if spec.shape == ValueShape.SCALAR:
        return ScalarValue(_coerce_scalar(field, raw))

    if spec.shape == ValueShape.RANGE:
        if not isinstance(raw, (list, tuple)) or len(raw) != 2:
            raise ValidationError(f"{field.label} range needs [min, max]", field=field.key)
        low = _coerce_scalar(field, raw[0])
        high = _coerce_scalar(field, raw[1])
        if low > high:
            raise ValidationError(
                f"{field.label} range minimum must not exceed maximum", field=field.key
            )
        return RangeValue(low, high)

    # ValueShape.SET
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValidationError(f"{field.label} needs at least one value", field=field.key)
    values = [_coerce_scalar(field, item) for item in raw]
    return SetValue(tuple(dict.fromkeys(values)))


def _parse_salary_qualifiers(
    field: FilterField, raw: Mapping[str, Any]
) -> tuple[SalaryPeriod | None, str | None]:
    period_raw = raw.get("salaryPeriod", raw.get("salary_period"))
    currency_raw = raw.get("salaryCurrency", raw.get("salary_currency"))
    if period_raw is None and currency_raw is None:
        return None, None
    if not field.is_salary:
        raise ValidationError(
            "Salary period and currency only apply to salary fields", field=field.key
        )
    if period_raw is None or currency_raw is None:
        raise ValidationError(
            "Salary period and currency must be given together", field=field.key
        )
    try:
        period = SalaryPeriod(str(period_raw).upper())
    except ValueError:
        raise ValidationError(f"Unknown salary period: {period_raw}", field=field.key) from None
    currency = str(currency_raw).upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise ValidationError(f"Unsupported currency: {currency_raw}", field=field.key)
    return period, currency


def parse_condition(raw: Any) -> FilterCondition:
    """
    Validate a raw condition (API body, stored JSON or URL state).

    Unknown fields and operators are rejected here, so nothing downstream
    ever sees an operator outside OPERATOR_SPECS.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError("Filter condition must be an object")

    key = raw.get("field")
    field = FIELDS_BY_KEY.get(key) if isinstance(key, str) else None
    if field is None:
        raise ValidationError(f"Unknown filter field: {key!r}", field=key)

    try:
        operator = FilterOperator(raw.get("operator"))
    except ValueError:
        raise ValidationError(
            f"Unknown operator: {raw.get('operator')!r}", field=field.key
        ) from None
    if operator not in field.operators:
        raise ValidationError(
            f"{field.label} does not support '{OPERATOR_LABELS[operator]}'", field=field.key
        )

    value = _coerce_value(field, OPERATOR_SPECS[operator], raw.get("value"))
    period, currency = _parse_salary_qualifiers(field, raw)

    condition_id = raw.get("id")
    return FilterCondition(
        id=str(condition_id) if condition_id else uuid.uuid4().hex,
        field=field.key,
        operator=operator,
        value=value,
        label=raw.get("fieldLabel") or raw.get("label") or field.label,
        salary_period=period,
        salary_currency=currency,
    )


def comparison_currency(conditions: Iterable[FilterCondition]) -> str | None:
    """The single currency salary conditions compare in, if any."""
    for condition in conditions:
        if condition.salary_currency:
            return condition.salary_currency
    return None


def validate_conditions(conditions: list[FilterCondition]) -> list[FilterCondition]:
    """Set-level checks on already-parsed conditions."""
    currencies = {c.salary_currency for c in conditions if c.salary_currency}
    if len(currencies) > 1:
        raise ValidationError(
            "All salary filters must compare in the same currency", field="salaryCurrency"
        )
    return conditions


def parse_conditions(raw_conditions: Any) -> list[FilterCondition]:
    """Strict parsing of a condition list; the first invalid entry raises."""
    if not isinstance(raw_conditions, (list, tuple)):
        raise ValidationError("Filters must be a list of conditions")
    return validate_conditions([parse_condition(raw) for raw in raw_conditions])


def load_conditions(raw_conditions: Iterable[Any] | None) -> list[FilterCondition]:
    """
    Lenient parsing for stored or URL-encoded conditions.

    Entries that no longer validate (e.g. an operator this version does not
    know) are dropped with a warning, which widens rather than hides results.
    """
    conditions: list[FilterCondition] = []
    currency = None
    for raw in raw_conditions or []:
        try:
            condition = parse_condition(raw)
        except ValidationError as e:
            logger.warning("Ignoring filter condition %r: %s", raw, e)
            continue
        if condition.salary_currency:
            if currency and condition.salary_currency != currency:
                logger.warning(
                    "Ignoring salary condition %s in %s, set compares in %s",
                    condition.id,
                    condition.salary_currency,
                    currency,
                )
                continue
            currency = condition.salary_currency
        conditions.append(condition)
    return conditions


def order_range(value: Any, field: FilterField | None = None) -> Any:
    """
    Swap a [min, max] pair entered backwards. UI-level input only.

    With a field, both ends are compared after coercion so numeric strings
    order as numbers. Values that do not coerce are left for parsing to reject.
    """
    if isinstance(value, (list, tuple)) and len(value) == 2:
        low, high = value
        try:
            if field is not None:
                low_key, high_key = _coerce_scalar(field, low), _coerce_scalar(field, high)
            else:
                low_key, high_key = low, high
            if low_key is not None and high_key is not None and low_key > high_key:
                return [high, low]
        except (TypeError, ValidationError):
            pass
        return list(value)
    return value


def normalize_raw_condition(raw: Any) -> Any:
    """Apply UI-level normalisation to a raw condition before parsing."""
    if isinstance(raw, Mapping) and raw.get("operator") == FilterOperator.BETWEEN.value:
        key = raw.get("field")
        field = get_field(key) if isinstance(key, str) else None
        return {**raw, "value": order_range(raw.get("value"), field)}
    return raw


def since_condition(since: datetime) -> FilterCondition:
    """Implicit "first seen after" condition used for new-job counts."""
    return FilterCondition(
        id="first-seen-after",
        field=FIRST_SEEN_FIELD,
        operator=FilterOperator.GREATER_THAN,
        value=ScalarValue(to_naive_utc(since)),
        label=FIELDS_BY_KEY[FIRST_SEEN_FIELD].label,
    )
