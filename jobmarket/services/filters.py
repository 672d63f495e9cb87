"""Compilation of filter conditions into query plans over the jobs table."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Query, Session

from jobmarket.models import Job
from jobmarket.services import job_search
from jobmarket.services.filter_model import (
    FIELDS_BY_KEY,
    FilterCondition,
    validate_conditions,
)
from jobmarket.services.job_query import (
    PaginationParams,
    active_jobs_query,
    apply_job_ordering,
    apply_pagination,
)
from jobmarket.services.predicates import scalar_predicate


@dataclass(frozen=True)
class SimpleQueryPlan:
    """Per-column predicates appended to the active-jobs query."""

    conditions: tuple[FilterCondition, ...]

    def predicates(self) -> list[Any]:
        return [
            scalar_predicate(getattr(Job, c.field), c, FIELDS_BY_KEY[c.field])
            for c in self.conditions
        ]

    def _filtered(self, db: Session) -> Query:
        return active_jobs_query(db).filter(*self.predicates())

    def count(self, db: Session) -> int:
        return self._filtered(db).order_by(None).count()

    def fetch(self, db: Session, page: int = 1, page_size: int | None = 20) -> list[Job]:
        if page_size == 0:
            return []
        query = apply_job_ordering(self._filtered(db))
        return apply_pagination(query, PaginationParams(page, page_size)).all()

    def fetch_page(
        self, db: Session, page: int = 1, page_size: int | None = 20
    ) -> tuple[list[Job], int]:
        return self.fetch(db, page, page_size), self.count(db)


@dataclass
class ProcedureQueryPlan:
    """Whole condition list handed to the server-side search procedure."""

    params: list[dict[str, Any]]
    exchange_rates: dict[str, float] = field(default_factory=dict)

    def _call(self, db: Session, page: int, page_size: int | None) -> tuple[list[Job], int]:
        return job_search.search_jobs(
            db,
            self.params,
            page=page,
            page_size=page_size,
            exchange_rates=self.exchange_rates,
        )

    def count(self, db: Session) -> int:
        return self._call(db, page=1, page_size=0)[1]

    def fetch(self, db: Session, page: int = 1, page_size: int | None = 20) -> list[Job]:
        return self._call(db, page, page_size)[0]

    def fetch_page(
        self, db: Session, page: int = 1, page_size: int | None = 20
    ) -> tuple[list[Job], int]:
        return self._call(db, page, page_size)


QueryPlan = SimpleQueryPlan | ProcedureQueryPlan


def requires_procedure(condition: FilterCondition) -> bool:
    """List fields and currency-normalized salaries cannot be plain column predicates."""
    return FIELDS_BY_KEY[condition.field].is_array or condition.is_currency_normalized


def compile_conditions(
    conditions: Iterable[FilterCondition],
    exchange_rates: dict[str, float] | None = None,
) -> QueryPlan:
    """
    Build the query plan for a condition set.

    One condition needing the procedure sends the whole set through it;
    the two paths are never mixed within a query.
    """
    conditions = validate_conditions(list(conditions))
    if any(requires_procedure(c) for c in conditions):
        return ProcedureQueryPlan(
            params=[c.to_procedure_param() for c in conditions],
            exchange_rates=dict(exchange_rates or {}),
        )
    return SimpleQueryPlan(tuple(conditions))
