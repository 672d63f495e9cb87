"""
Server-side job search procedure.

Receives the whole condition list as structured parameters
(field, operator, value, is_array_value, salary_period, salary_currency)
plus an exchange-rate table, and returns (rows, total_count). Rows and the
total are produced from one WHERE clause, so they never disagree.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm import Session

from jobmarket.exceptions import ValidationError
from jobmarket.models import Job
from jobmarket.services.filter_model import (
    FIELDS_BY_KEY,
    FilterCondition,
    parse_condition,
    validate_conditions,
)
from jobmarket.services.job_query import (
    PaginationParams,
    active_jobs_query,
    apply_job_ordering,
    apply_pagination,
)
from jobmarket.services.predicates import condition_predicate


def decode_filter_params(filters: Sequence[dict[str, Any]]) -> list[FilterCondition]:
    """Re-validate procedure parameters; they cross a trust boundary."""
    conditions = []
    for param in filters:
        condition = parse_condition(
            {
                "id": param.get("id"),
                "field": param.get("field"),
                "operator": param.get("operator"),
                "value": param.get("value"),
                "salaryPeriod": param.get("salary_period"),
                "salaryCurrency": param.get("salary_currency"),
            }
        )
        if bool(param.get("is_array_value")) != FIELDS_BY_KEY[condition.field].is_array:
            raise ValidationError(
                f"is_array_value does not match field {condition.field}", field=condition.field
            )
        conditions.append(condition)
    return validate_conditions(conditions)


def search_jobs(
    db: Session,
    filters: Sequence[dict[str, Any]],
    page: int = 1,
    page_size: int | None = 20,
    exchange_rates: dict[str, float] | None = None,
) -> tuple[list[Job], int]:
    """
    Filter active jobs and return (page of rows, total matching rows).

    page_size=0 is counting mode (no rows fetched); page_size=None returns
    every matching row.
    """
    conditions = decode_filter_params(filters)
    dialect_name = db.get_bind().dialect.name
    predicates = [condition_predicate(c, dialect_name, exchange_rates) for c in conditions]

    query = active_jobs_query(db).filter(*predicates)
    total_count = query.order_by(None).count()
    if page_size == 0:
        return [], total_count

    query = apply_pagination(apply_job_ordering(query), PaginationParams(page, page_size))
    return query.all(), total_count
