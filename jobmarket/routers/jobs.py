"""Job search, counts and filter metadata."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from jobmarket.config import get_settings
from jobmarket.database import get_db
from jobmarket.exceptions import NotFoundError
from jobmarket.schemas import (
    ConditionsRequest,
    CountOut,
    FilterFieldOut,
    JobDetailOut,
    JobOut,
    JobPage,
    SearchRequest,
    ValidatedConditionsOut,
    conditions_from_body,
)
from jobmarket.services import job_service
from jobmarket.services.dynamic_options import get_dynamic_options
from jobmarket.services.filter_model import FilterCondition, declare_fields
from jobmarket.utils.filter_url import deserialize_conditions, serialize_conditions
from jobmarket.utils.query_params import parse_int_param

router = APIRouter()


def _page_size(per_page: int | None) -> int:
    settings = get_settings()
    if not per_page or per_page < 1:
        return settings.default_page_size
    return min(per_page, settings.max_page_size)


def _job_page(
    db: Session, conditions: list[FilterCondition], page: int, per_page: int
) -> JobPage:
    jobs, total = job_service.search_jobs(db, conditions, page, per_page)
    return JobPage(
        jobs=[JobOut.model_validate(job) for job in jobs],
        total=total,
        page=page,
        per_page=per_page,
        filters=serialize_conditions(conditions),
    )


@router.get("")
def list_jobs(
    db: Session = Depends(get_db),
    filters: str | None = Query(default=None, description="URL-encoded filter state"),
    page: str | None = Query(default=None),
    per_page: str | None = Query(default=None),
) -> JobPage:
    """List active jobs matching the URL filter state. Bad filter state lists everything."""
    conditions = deserialize_conditions(filters)
    page_num = max(parse_int_param(page) or 1, 1)
    return _job_page(db, conditions, page_num, _page_size(parse_int_param(per_page)))


@router.post("/search")
def search_jobs(body: SearchRequest, db: Session = Depends(get_db)) -> JobPage:
    """Search with explicit conditions; invalid conditions are rejected."""
    conditions = conditions_from_body(body.filters)
    return _job_page(db, conditions, body.page, _page_size(body.per_page))


@router.get("/count")
def count_jobs(
    db: Session = Depends(get_db),
    filters: str | None = Query(default=None),
) -> CountOut:
    """Number of active jobs matching the URL filter state."""
    conditions = deserialize_conditions(filters)
    if not conditions:
        return CountOut(count=job_service.count_active_jobs(db))
    return CountOut(count=job_service.count_jobs(db, conditions))


@router.get("/filter-fields")
def filter_fields(db: Session = Depends(get_db)) -> list[FilterFieldOut]:
    """Filterable fields with options drawn from current jobs."""
    return [FilterFieldOut.from_field(f) for f in declare_fields(get_dynamic_options(db))]


@router.post("/filter-conditions/validate")
def validate_conditions(body: ConditionsRequest) -> ValidatedConditionsOut:
    """Normalise and validate conditions, returning their canonical and URL forms."""
    conditions = conditions_from_body(body.filters)
    return ValidatedConditionsOut(
        filters=[c.to_dict() for c in conditions],
        encoded=serialize_conditions(conditions),
    )


@router.get("/{job_id}")
def get_job(job_id: int, db: Session = Depends(get_db)) -> JobDetailOut:
    """Job detail; counts as a view."""
    job = job_service.get_job(db, job_id)
    if not job:
        raise NotFoundError("Job", job_id)
    job_service.increment_view_count(db, job_id)
    db.refresh(job)
    return JobDetailOut.model_validate(job)
