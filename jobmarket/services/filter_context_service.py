"""Cross-device viewing context: the "new since" boundary a user is looking at."""

from datetime import datetime

from sqlalchemy.orm import Session

from jobmarket.models import FilterContext
from jobmarket.utils.clock import utcnow


def get_context(db: Session, user_id: str, now: datetime | None = None) -> FilterContext | None:
    """The user's active context; an expired one is deleted and not returned."""
    now = now or utcnow()
    context = db.query(FilterContext).filter(FilterContext.user_id == user_id).first()
    if context is not None and context.expires_at <= now:
        db.delete(context)
        db.commit()
        return None
    return context


def upsert_context(
    db: Session,
    user_id: str,
    saved_filter_id: int,
    viewing_since: datetime | None,
    expires_at: datetime,
) -> FilterContext:
    """Stage the user's single context row. The caller commits."""
    context = db.query(FilterContext).filter(FilterContext.user_id == user_id).first()
    if context is None:
        context = FilterContext(user_id=user_id)
        db.add(context)
    context.saved_filter_id = saved_filter_id
    context.viewing_since = viewing_since
    context.expires_at = expires_at
    return context


def clear_context(db: Session, user_id: str) -> bool:
    """Drop the user's context, e.g. after a manual filter change."""
    deleted = db.query(FilterContext).filter(FilterContext.user_id == user_id).delete()
    db.commit()
    return deleted > 0


def clear_context_for_filter(db: Session, saved_filter_id: int) -> None:
    """Stage removal of contexts pointing at a saved filter. The caller commits."""
    db.query(FilterContext).filter(FilterContext.saved_filter_id == saved_filter_id).delete(
        synchronize_session=False
    )


def purge_expired_contexts(db: Session, now: datetime | None = None) -> int:
    """Delete every expired context. Returns how many were removed."""
    now = now or utcnow()
    deleted = db.query(FilterContext).filter(FilterContext.expires_at <= now).delete(
        synchronize_session=False
    )
    db.commit()
    return deleted
