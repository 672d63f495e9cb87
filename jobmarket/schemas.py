"""Request and response bodies for the JSON API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from jobmarket.services.filter_model import (
    OPERATOR_LABELS,
    FilterCondition,
    FilterField,
    normalize_raw_condition,
    parse_conditions,
)


def conditions_from_body(raw: list[dict[str, Any]]) -> list[FilterCondition]:
    """Strictly parse conditions posted by a client, after UI normalisation."""
    return parse_conditions([normalize_raw_condition(item) for item in raw])


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    external_id: str
    title: str
    organization: str | None = None
    url: str | None = None
    cities_derived: list[Any] | None = None
    countries_derived: list[Any] | None = None
    employment_type: list[str] | None = None
    remote_derived: bool | None = None
    ai_experience_level: str | None = None
    ai_work_arrangement: str | None = None
    ai_visa_sponsorship: bool | None = None
    ai_key_skills: list[str] | None = None
    ai_salary_currency: str | None = None
    ai_salary_minvalue: float | None = None
    ai_salary_maxvalue: float | None = None
    ai_salary_unittext: str | None = None
    source: str | None = None
    linkedin_org_industry: str | None = None
    first_seen_date: datetime
    status: str


class JobDetailOut(JobOut):
    description_text: str | None = None
    view_count: int = 0


class JobPage(BaseModel):
    jobs: list[JobOut]
    total: int
    page: int
    per_page: int
    filters: str = ""


class SearchRequest(BaseModel):
    filters: list[dict[str, Any]] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    per_page: int | None = Field(default=None, ge=1)


class ConditionsRequest(BaseModel):
    filters: list[dict[str, Any]] = Field(default_factory=list)


class CountOut(BaseModel):
    count: int


class ValidatedConditionsOut(BaseModel):
    filters: list[dict[str, Any]]
    encoded: str


class FieldOptionOut(BaseModel):
    value: str
    label: str


class OperatorOut(BaseModel):
    value: str
    label: str


class FilterFieldOut(BaseModel):
    key: str
    label: str
    type: str
    operators: list[OperatorOut]
    options: list[FieldOptionOut] = Field(default_factory=list)
    placeholder: str = ""
    description: str = ""
    is_array: bool = False
    is_salary: bool = False

    @classmethod
    def from_field(cls, field: FilterField) -> "FilterFieldOut":
        return cls(
            key=field.key,
            label=field.label,
            type=field.type.value,
            operators=[
                OperatorOut(value=op.value, label=OPERATOR_LABELS[op]) for op in field.operators
            ],
            options=[FieldOptionOut(value=o.value, label=o.label) for o in field.options],
            placeholder=field.placeholder,
            description=field.description,
            is_array=field.is_array,
            is_salary=field.is_salary,
        )


class SavedFilterCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    filters: list[dict[str, Any]] = Field(default_factory=list)
    notifications_enabled: bool = False


class SavedFilterUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    filters: list[dict[str, Any]] | None = None
    notifications_enabled: bool | None = None


class SavedFilterOut(BaseModel):
    id: int
    name: str
    filters: list[dict[str, Any]]
    notifications_enabled: bool
    last_checked_at: datetime | None = None
    new_job_count: int = 0
    created_at: datetime
    updated_at: datetime


class ApplyOut(BaseModel):
    saved_filter: SavedFilterOut
    badge_count: int
    viewing_since: datetime | None = None
    expires_at: datetime
    recomputed: bool
    encoded: str


class FilterContextOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    saved_filter_id: int
    viewing_since: datetime | None = None
    expires_at: datetime


class FavoriteIn(BaseModel):
    job_id: int


class FavoriteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    created_at: datetime
