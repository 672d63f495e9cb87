from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.models.base import Base, TimestampMixin
from jobmarket.utils.clock import utcnow


class Job(Base, TimestampMixin):
    """Job posting ingested from the data provider."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[str] = mapped_column(String(100), unique=True, index=True)

    title: Mapped[str] = mapped_column(String(500))
    organization: Mapped[str | None] = mapped_column(String(300), index=True)
    url: Mapped[str | None] = mapped_column(String(1000))
    description_text: Mapped[str | None] = mapped_column(Text)

    # Multi-valued attributes stored as JSON arrays of strings
    cities_derived: Mapped[list | None] = mapped_column(JSON(none_as_null=True))
    countries_derived: Mapped[list | None] = mapped_column(JSON(none_as_null=True))
    employment_type: Mapped[list | None] = mapped_column(JSON(none_as_null=True))
    ai_key_skills: Mapped[list | None] = mapped_column(JSON(none_as_null=True))
    ai_keywords: Mapped[list | None] = mapped_column(JSON(none_as_null=True))

    remote_derived: Mapped[bool | None] = mapped_column(Boolean)
    ai_experience_level: Mapped[str | None] = mapped_column(String(20), index=True)
    ai_work_arrangement: Mapped[str | None] = mapped_column(String(50))
    ai_visa_sponsorship: Mapped[bool | None] = mapped_column(Boolean)

    # Salary as reported by the provider, in its own currency and unit
    ai_salary_currency: Mapped[str | None] = mapped_column(String(3))
    ai_salary_minvalue: Mapped[float | None] = mapped_column(Float)
    ai_salary_maxvalue: Mapped[float | None] = mapped_column(Float)
    ai_salary_unittext: Mapped[str | None] = mapped_column(String(10))  # HOUR, YEAR, ...

    source: Mapped[str | None] = mapped_column(String(100), index=True)
    linkedin_org_industry: Mapped[str | None] = mapped_column(String(200))

    # Internal tracking
    first_seen_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)
    expired_date: Mapped[datetime | None] = mapped_column(DateTime)
    view_count: Mapped[int] = mapped_column(Integer, default=0)
