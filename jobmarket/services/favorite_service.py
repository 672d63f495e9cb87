from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobmarket.exceptions import DuplicateFavoriteError, NotFoundError
from jobmarket.models import Favorite, Job


def list_favorites(db: Session, user_id: str) -> list[Favorite]:
    """Get a user's favorites, most recent first."""
    return (
        db.query(Favorite)
        .filter(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )


def get_favorite(db: Session, user_id: str, job_id: int) -> Favorite | None:
    return (
        db.query(Favorite)
        .filter(Favorite.user_id == user_id, Favorite.job_id == job_id)
        .first()
    )


def add_favorite(db: Session, user_id: str, job_id: int) -> Favorite:
    """Bookmark a job for a user."""
    if db.query(Job.id).filter(Job.id == job_id).first() is None:
        raise NotFoundError("Job", job_id)
    if get_favorite(db, user_id, job_id) is not None:
        raise DuplicateFavoriteError(job_id)

    favorite = Favorite(user_id=user_id, job_id=job_id)
    db.add(favorite)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateFavoriteError(job_id) from e
    db.refresh(favorite)
    return favorite


def remove_favorite(db: Session, user_id: str, job_id: int) -> bool:
    """Remove a bookmark. Returns True if deleted, False if not found."""
    favorite = get_favorite(db, user_id, job_id)
    if not favorite:
        return False
    db.delete(favorite)
    db.commit()
    return True
