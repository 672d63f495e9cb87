from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from jobmarket.auth import get_current_user_id
from jobmarket.database import get_db
from jobmarket.exceptions import NotFoundError
from jobmarket.schemas import FavoriteIn, FavoriteOut
from jobmarket.services import favorite_service

router = APIRouter()


@router.get("")
def list_favorites(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[FavoriteOut]:
    return [FavoriteOut.model_validate(f) for f in favorite_service.list_favorites(db, user_id)]


@router.post("", status_code=201)
def add_favorite(
    body: FavoriteIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> FavoriteOut:
    return FavoriteOut.model_validate(favorite_service.add_favorite(db, user_id, body.job_id))


@router.delete("/{job_id}", status_code=204)
def remove_favorite(
    job_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    if not favorite_service.remove_favorite(db, user_id, job_id):
        raise NotFoundError("Favorite", job_id)
    return Response(status_code=204)
