from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.models.base import Base, TimestampMixin


class SavedFilter(Base, TimestampMixin):
    """Named, user-owned list of filter conditions with a freshness badge."""

    __tablename__ = "saved_filters"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_saved_filters_user_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), index=True)
    name: Mapped[str] = mapped_column(String(100))
    filters: Mapped[list] = mapped_column(JSON)  # list of FilterCondition dicts

    notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Freshness checkpoint: last time the owner applied this filter
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime)

    # Frozen "new jobs" count, decoupled from the live checkpoint
    badge_count_snapshot: Mapped[int | None] = mapped_column(Integer)
    badge_count_expires_at: Mapped[datetime | None] = mapped_column(DateTime)
    # Checkpoint the snapshot was measured against
    new_jobs_since: Mapped[datetime | None] = mapped_column(DateTime)
