"""Base query, ordering and pagination shared by every job listing path."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Query, Session

from jobmarket.models import Job

ACTIVE_STATUS = "active"


@dataclass
class PaginationParams:
    """Pagination parameters. per_page=None means no limit."""

    page: int = 1
    per_page: int | None = 20

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * (self.per_page or 0)


def active_jobs_query(db: Session, *entities: Any) -> Query:
    """Query over active jobs; defaults to selecting Job rows."""
    return db.query(*(entities or (Job,))).filter(Job.status == ACTIVE_STATUS)


def apply_job_ordering(query: Query) -> Query:
    """Newest first, id as tie-breaker so pages are stable."""
    return query.order_by(Job.first_seen_date.desc(), Job.id.desc())


def apply_pagination(query: Query, pagination: PaginationParams) -> Query:
    """Apply pagination to a query."""
    if pagination.per_page is None:
        return query
    return query.offset(pagination.offset).limit(pagination.per_page)
