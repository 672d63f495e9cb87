from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.models.base import Base, TimestampMixin


class FilterContext(Base, TimestampMixin):
    """Per-user "new since" boundary shared across devices."""

    __tablename__ = "filter_contexts"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    saved_filter_id: Mapped[int] = mapped_column(
        ForeignKey("saved_filters.id", ondelete="CASCADE")
    )
    viewing_since: Mapped[datetime | None] = mapped_column(DateTime)
    expires_at: Mapped[datetime] = mapped_column(DateTime, index=True)
