from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from jobmarket.auth import get_current_user_id
from jobmarket.database import get_db
from jobmarket.schemas import FilterContextOut
from jobmarket.services import filter_context_service

router = APIRouter()


@router.get("")
def get_filter_context(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> FilterContextOut | None:
    """The "new since" boundary the user is viewing, or null."""
    context = filter_context_service.get_context(db, user_id)
    if context is None:
        return None
    return FilterContextOut.model_validate(context)


@router.delete("", status_code=204)
def clear_filter_context(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> Response:
    """Called when the user changes filters by hand."""
    filter_context_service.clear_context(db, user_id)
    return Response(status_code=204)
