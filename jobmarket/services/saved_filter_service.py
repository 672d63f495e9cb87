"""
Saved filters and their "new jobs" freshness badge.

Badge states per saved filter: no checkpoint (never applied), fresh
snapshot (badge_count_snapshot frozen until badge_count_expires_at), and
expired snapshot. Applying with a fresh snapshot re-serves the frozen count;
only an apply after expiry measures a new delta and advances the checkpoint.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobmarket.config import get_settings
from jobmarket.exceptions import (
    ConcurrentApplyError,
    DuplicateFilterNameError,
    NotFoundError,
    QueryExecutionError,
    SavedFilterLimitError,
    ValidationError,
)
from jobmarket.models import SavedFilter
from jobmarket.services import filter_context_service, job_service
from jobmarket.services.filter_model import (
    FilterCondition,
    load_conditions,
    since_condition,
    validate_conditions,
)
from jobmarket.utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SavedFilterView:
    """A saved filter with its parsed conditions and current badge count."""

    saved_filter: SavedFilter
    conditions: list[FilterCondition]
    new_job_count: int


@dataclass
class ApplyResult:
    """Outcome of applying a saved filter."""

    saved_filter: SavedFilter
    conditions: list[FilterCondition]
    badge_count: int
    viewing_since: datetime | None
    expires_at: datetime
    recomputed: bool


def get_filters_for_user(db: Session, user_id: str) -> list[SavedFilter]:
    """All saved filters of a user, newest first."""
    return (
        db.query(SavedFilter)
        .filter(SavedFilter.user_id == user_id)
        .order_by(SavedFilter.created_at.desc(), SavedFilter.id.desc())
        .all()
    )


def get_filter(db: Session, user_id: str, filter_id: int) -> SavedFilter | None:
    """Get a saved filter by ID, only if the user owns it."""
    return (
        db.query(SavedFilter)
        .filter(SavedFilter.id == filter_id, SavedFilter.user_id == user_id)
        .first()
    )


def _get_owned(db: Session, user_id: str, filter_id: int) -> SavedFilter:
    saved_filter = get_filter(db, user_id, filter_id)
    if saved_filter is None:
        raise NotFoundError("Saved filter", filter_id)
    return saved_filter


def get_conditions(saved_filter: SavedFilter) -> list[FilterCondition]:
    return load_conditions(saved_filter.filters)


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Filter name is required", field="name")
    if len(name) > 100:
        raise ValidationError("Filter name is too long", field="name")
    return name


def _name_taken(db: Session, user_id: str, name: str, exclude_id: int | None = None) -> bool:
    query = db.query(SavedFilter.id).filter(
        SavedFilter.user_id == user_id, SavedFilter.name == name
    )
    if exclude_id is not None:
        query = query.filter(SavedFilter.id != exclude_id)
    return query.first() is not None


def _commit_named(db: Session, name: str) -> None:
    """Commit, mapping the per-user unique name constraint to its own error."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateFilterNameError(name) from e


def create_filter(
    db: Session,
    user_id: str,
    name: str,
    conditions: list[FilterCondition],
    notifications_enabled: bool = False,
) -> SavedFilter:
    """Create a saved filter within the per-user quota."""
    name = _clean_name(name)
    validate_conditions(conditions)

    limit = get_settings().max_saved_filters
    owned = (
        db.query(func.count(SavedFilter.id)).filter(SavedFilter.user_id == user_id).scalar()
    )
    if owned >= limit:
        raise SavedFilterLimitError(limit)
    if _name_taken(db, user_id, name):
        raise DuplicateFilterNameError(name)

    saved_filter = SavedFilter(
        user_id=user_id,
        name=name,
        filters=[c.to_dict() for c in conditions],
        notifications_enabled=notifications_enabled,
    )
    db.add(saved_filter)
    _commit_named(db, name)
    db.refresh(saved_filter)
    logger.info("User %s saved filter %s (%d conditions)", user_id, saved_filter.id, len(conditions))
    return saved_filter


def update_filter(
    db: Session,
    user_id: str,
    filter_id: int,
    *,
    name: str | None = None,
    notifications_enabled: bool | None = None,
    conditions: list[FilterCondition] | None = None,
) -> SavedFilter:
    """
    Rename, toggle notifications, or replace the conditions.

    New conditions invalidate the frozen badge and any viewing context that
    points at this filter; the checkpoint itself is kept.
    """
    if name is None and notifications_enabled is None and conditions is None:
        raise ValidationError("No fields to update")

    saved_filter = _get_owned(db, user_id, filter_id)

    if name is not None:
        name = _clean_name(name)
        if name != saved_filter.name and _name_taken(db, user_id, name, exclude_id=filter_id):
            raise DuplicateFilterNameError(name)
        saved_filter.name = name

    if notifications_enabled is not None:
        saved_filter.notifications_enabled = notifications_enabled

    if conditions is not None:
        validate_conditions(conditions)
        saved_filter.filters = [c.to_dict() for c in conditions]
        saved_filter.badge_count_snapshot = None
        saved_filter.badge_count_expires_at = None
        saved_filter.new_jobs_since = None
        filter_context_service.clear_context_for_filter(db, saved_filter.id)

    _commit_named(db, saved_filter.name)
    db.refresh(saved_filter)
    return saved_filter


def delete_filter(db: Session, user_id: str, filter_id: int) -> bool:
    """Delete a saved filter and any context pointing at it."""
    saved_filter = get_filter(db, user_id, filter_id)
    if not saved_filter:
        return False

    filter_context_service.clear_context_for_filter(db, saved_filter.id)
    db.delete(saved_filter)
    db.commit()
    return True


def compute_badge_expiry(
    now: datetime,
    tz_name: str | None = None,
    window_hours: int | None = None,
    refresh_hour: int | None = None,
) -> datetime:
    """
    Earlier of `now + window_hours` and the next local `refresh_hour`:00.

    `now` and the result are naive UTC.
    """
    settings = get_settings()
    tz = ZoneInfo(tz_name or settings.local_timezone)
    window = timedelta(hours=window_hours if window_hours is not None else settings.badge_window_hours)
    hour = refresh_hour if refresh_hour is not None else settings.badge_refresh_hour

    local_now = now.replace(tzinfo=timezone.utc).astimezone(tz)
    boundary = local_now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if boundary <= local_now:
        boundary += timedelta(days=1)
    boundary_utc = boundary.astimezone(timezone.utc).replace(tzinfo=None)
    return min(now + window, boundary_utc)


def has_fresh_snapshot(saved_filter: SavedFilter, now: datetime) -> bool:
    return (
        saved_filter.badge_count_snapshot is not None
        and saved_filter.badge_count_expires_at is not None
        and now < saved_filter.badge_count_expires_at
    )


def count_new_jobs(db: Session, conditions: list[FilterCondition], since: datetime) -> int:
    """Jobs matching the conditions that were first seen after `since`."""
    return job_service.count_jobs(db, [*conditions, since_condition(since)])


def new_job_count(db: Session, saved_filter: SavedFilter, now: datetime) -> int:
    """Badge value for listing: frozen snapshot while fresh, else a live count."""
    if has_fresh_snapshot(saved_filter, now):
        return saved_filter.badge_count_snapshot
    if saved_filter.last_checked_at is None:
        return 0
    try:
        return count_new_jobs(db, get_conditions(saved_filter), saved_filter.last_checked_at)
    except QueryExecutionError as e:
        logger.warning("Counting new jobs for filter %s failed: %s", saved_filter.id, e)
        return 0


def list_filters(db: Session, user_id: str, now: datetime | None = None) -> list[SavedFilterView]:
    """Saved filters of a user with their badge counts."""
    now = now or utcnow()
    return [
        SavedFilterView(
            saved_filter=saved_filter,
            conditions=get_conditions(saved_filter),
            new_job_count=new_job_count(db, saved_filter, now),
        )
        for saved_filter in get_filters_for_user(db, user_id)
    ]


def apply_filter(
    db: Session, user_id: str, filter_id: int, now: datetime | None = None
) -> ApplyResult:
    """
    Apply a saved filter and return the badge to show.

    While the snapshot is fresh the frozen count and boundary are re-served
    unchanged. Otherwise the delta since the previous checkpoint is counted
    (0 if there is none or the count fails), frozen until
    compute_badge_expiry(now), and the checkpoint moves to `now`. The
    checkpoint write is a compare-and-swap on last_checked_at; the snapshot,
    checkpoint and viewing context commit together.
    """
    now = now or utcnow()
    saved_filter = _get_owned(db, user_id, filter_id)
    conditions = get_conditions(saved_filter)

    if has_fresh_snapshot(saved_filter, now):
        filter_context_service.upsert_context(
            db,
            user_id,
            saved_filter.id,
            saved_filter.new_jobs_since,
            saved_filter.badge_count_expires_at,
        )
        db.commit()
        return ApplyResult(
            saved_filter=saved_filter,
            conditions=conditions,
            badge_count=saved_filter.badge_count_snapshot,
            viewing_since=saved_filter.new_jobs_since,
            expires_at=saved_filter.badge_count_expires_at,
            recomputed=False,
        )

    prev = saved_filter.last_checked_at
    badge_count = 0
    if prev is not None:
        try:
            badge_count = count_new_jobs(db, conditions, prev)
        except QueryExecutionError as e:
            logger.warning("Badge count for filter %s failed, showing 0: %s", filter_id, e)

    expires_at = compute_badge_expiry(now)
    checkpoint_unchanged = (
        SavedFilter.last_checked_at.is_(None)
        if prev is None
        else SavedFilter.last_checked_at == prev
    )

    try:
        result = db.execute(
            update(SavedFilter)
            .where(
                SavedFilter.id == filter_id,
                SavedFilter.user_id == user_id,
                checkpoint_unchanged,
            )
            .values(
                last_checked_at=now,
                badge_count_snapshot=badge_count,
                badge_count_expires_at=expires_at,
                new_jobs_since=prev,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise ConcurrentApplyError(filter_id)
        filter_context_service.upsert_context(db, user_id, filter_id, prev, expires_at)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise QueryExecutionError("Failed to apply saved filter", original_error=e) from e

    db.refresh(saved_filter)
    logger.info("Filter %s applied by %s: %d new since %s", filter_id, user_id, badge_count, prev)
    return ApplyResult(
        saved_filter=saved_filter,
        conditions=conditions,
        badge_count=badge_count,
        viewing_since=prev,
        expires_at=expires_at,
        recomputed=True,
    )
