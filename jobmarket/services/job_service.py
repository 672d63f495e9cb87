"""Read side for jobs: filtered search, counts, detail and view counts."""

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobmarket.exceptions import QueryExecutionError
from jobmarket.models import Job
from jobmarket.services import exchange_rate_service
from jobmarket.services.filter_model import FilterCondition, comparison_currency
from jobmarket.services.filters import QueryPlan, compile_conditions
from jobmarket.services.job_query import active_jobs_query, apply_job_ordering

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run(db: Session, action: str, operation: Callable[[], T]) -> T:
    """Run a store operation, surfacing driver errors as QueryExecutionError."""
    try:
        return operation()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Job store error while %s: %s", action, e)
        raise QueryExecutionError(f"Failed while {action}", original_error=e) from e


def get_salary_currencies(db: Session) -> list[str]:
    """Distinct salary currencies present on active jobs."""
    rows = _run(
        db,
        "listing salary currencies",
        lambda: active_jobs_query(db, Job.ai_salary_currency)
        .filter(Job.ai_salary_currency.isnot(None))
        .distinct()
        .all(),
    )
    return sorted(r[0].upper() for r in rows if r[0])


def exchange_rates_for(db: Session, conditions: list[FilterCondition]) -> dict[str, float]:
    """Rate table for the set's comparison currency; empty when none is needed."""
    target = comparison_currency(conditions)
    if target is None:
        return {}
    return exchange_rate_service.rates_for(target, get_salary_currencies(db))


def build_plan(db: Session, conditions: list[FilterCondition]) -> QueryPlan:
    """Compile conditions, resolving exchange rates only when a salary currency is set."""
    return compile_conditions(conditions, exchange_rates_for(db, conditions))


def search_jobs(
    db: Session,
    conditions: list[FilterCondition],
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Job], int]:
    """Filtered page of active jobs and the total number of matches."""
    plan = build_plan(db, conditions)
    return _run(db, "searching jobs", lambda: plan.fetch_page(db, page, per_page))


def count_jobs(db: Session, conditions: list[FilterCondition]) -> int:
    """Number of active jobs matching the conditions."""
    plan = build_plan(db, conditions)
    return _run(db, "counting jobs", lambda: plan.count(db))


def count_active_jobs(db: Session) -> int:
    return _run(db, "counting active jobs", lambda: active_jobs_query(db).count())


def fetch_jobs_sample(db: Session, limit: int = 1000) -> list[Job]:
    """Most recent active jobs, used to derive filter options."""
    return _run(
        db,
        "sampling jobs",
        lambda: apply_job_ordering(active_jobs_query(db)).limit(limit).all(),
    )


def get_job(db: Session, job_id: int) -> Job | None:
    """Get a job by ID (any status)."""
    return db.query(Job).filter(Job.id == job_id).first()


def increment_view_count(db: Session, job_id: int) -> None:
    """Bump a job's view counter; failures are logged, never raised."""
    try:
        db.query(Job).filter(Job.id == job_id).update(
            {Job.view_count: Job.view_count + 1}, synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error incrementing view count for job %s: %s", job_id, e)
