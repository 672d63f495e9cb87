from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.models.base import Base, TimestampMixin


class Favorite(Base, TimestampMixin):
    """Job bookmarked by a user."""

    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "job_id", name="uq_favorites_user_job"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), index=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
