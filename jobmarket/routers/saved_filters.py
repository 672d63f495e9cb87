from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from jobmarket.auth import get_current_user_id
from jobmarket.database import get_db
from jobmarket.exceptions import NotFoundError
from jobmarket.models import SavedFilter
from jobmarket.schemas import (
    ApplyOut,
    SavedFilterCreate,
    SavedFilterOut,
    SavedFilterUpdate,
    conditions_from_body,
)
from jobmarket.services import saved_filter_service
from jobmarket.services.filter_model import FilterCondition
from jobmarket.utils.filter_url import serialize_conditions

router = APIRouter()


def _filter_out(
    saved_filter: SavedFilter, conditions: list[FilterCondition], new_job_count: int = 0
) -> SavedFilterOut:
    return SavedFilterOut(
        id=saved_filter.id,
        name=saved_filter.name,
        filters=[c.to_dict() for c in conditions],
        notifications_enabled=saved_filter.notifications_enabled,
        last_checked_at=saved_filter.last_checked_at,
        new_job_count=new_job_count,
        created_at=saved_filter.created_at,
        updated_at=saved_filter.updated_at,
    )


@router.get("")
def list_saved_filters(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[SavedFilterOut]:
    """List the user's saved filters with their new-job badges."""
    return [
        _filter_out(view.saved_filter, view.conditions, view.new_job_count)
        for view in saved_filter_service.list_filters(db, user_id)
    ]


@router.post("", status_code=201)
def create_saved_filter(
    body: SavedFilterCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> SavedFilterOut:
    """Save the current conditions under a name."""
    conditions = conditions_from_body(body.filters)
    saved_filter = saved_filter_service.create_filter(
        db, user_id, body.name, conditions, body.notifications_enabled
    )
    return _filter_out(saved_filter, conditions)


@router.patch("/{filter_id}")
def update_saved_filter(
    filter_id: int,
    body: SavedFilterUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> SavedFilterOut:
    """Rename, toggle notifications, or replace conditions."""
    conditions = conditions_from_body(body.filters) if body.filters is not None else None
    saved_filter = saved_filter_service.update_filter(
        db,
        user_id,
        filter_id,
        name=body.name,
        notifications_enabled=body.notifications_enabled,
        conditions=conditions,
    )
    return _filter_out(saved_filter, saved_filter_service.get_conditions(saved_filter))


@router.delete("/{filter_id}", status_code=204)
def delete_saved_filter(
    filter_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    if not saved_filter_service.delete_filter(db, user_id, filter_id):
        raise NotFoundError("Saved filter", filter_id)
    return Response(status_code=204)


@router.post("/{filter_id}/apply")
def apply_saved_filter(
    filter_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> ApplyOut:
    """Apply a saved filter: returns its conditions and the frozen new-job badge."""
    result = saved_filter_service.apply_filter(db, user_id, filter_id)
    return ApplyOut(
        saved_filter=_filter_out(result.saved_filter, result.conditions, result.badge_count),
        badge_count=result.badge_count,
        viewing_since=result.viewing_since,
        expires_at=result.expires_at,
        recomputed=result.recomputed,
        encoded=serialize_conditions(result.conditions),
    )
