"""Tests for saved filters and the new-jobs freshness badge."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import update

from jobmarket.exceptions import (
    ConcurrentApplyError,
    DuplicateFilterNameError,
    NotFoundError,
    QueryExecutionError,
    QuotaError,
    SavedFilterLimitError,
    ValidationError,
)
from jobmarket.models import FilterContext, SavedFilter
from jobmarket.services import (
    exchange_rate_service,
    filter_context_service,
    job_service,
    saved_filter_service,
)
from jobmarket.services.filter_model import parse_condition

USER = "user-1"

# 11:00 in Amsterdam, so the 12h window ends before the next 04:00
T0 = datetime(2025, 1, 15, 10, 0)


def senior_conditions():
    return [parse_condition({"field": "title", "operator": "contains", "value": "senior"})]


@pytest.fixture
def saved(db_session):
    return saved_filter_service.create_filter(db_session, USER, "Senior roles", senior_conditions())


def set_checkpoint(db_session, saved_filter, when):
    saved_filter.last_checked_at = when
    db_session.commit()


class TestCreate:
    def test_create_stores_conditions(self, db_session, saved):
        assert saved.id is not None
        assert saved.filters[0]["field"] == "title"
        assert saved.last_checked_at is None

    def test_name_is_trimmed_and_required(self, db_session):
        with pytest.raises(ValidationError):
            saved_filter_service.create_filter(db_session, USER, "   ", [])
        saved_filter = saved_filter_service.create_filter(db_session, USER, "  Mine ", [])
        assert saved_filter.name == "Mine"

    def test_duplicate_name(self, db_session, saved):
        with pytest.raises(DuplicateFilterNameError) as exc_info:
            saved_filter_service.create_filter(db_session, USER, "Senior roles", [])
        assert exc_info.value.code == "duplicate_name"

    def test_same_name_for_another_user(self, db_session, saved):
        other = saved_filter_service.create_filter(db_session, "user-2", "Senior roles", [])
        assert other.id != saved.id

    def test_quota(self, db_session):
        for i in range(25):
            saved_filter_service.create_filter(db_session, USER, f"Filter {i}", [])

        with pytest.raises(SavedFilterLimitError) as exc_info:
            saved_filter_service.create_filter(db_session, USER, "One too many", [])

        assert isinstance(exc_info.value, QuotaError)
        assert exc_info.value.code == "saved_filter_limit"
        names = {f.name for f in saved_filter_service.get_filters_for_user(db_session, USER)}
        assert names == {f"Filter {i}" for i in range(25)}

    def test_mixed_currencies_rejected(self, db_session):
        conditions = [
            parse_condition(
                {
                    "field": "ai_salary_minvalue",
                    "operator": "greater_than",
                    "value": 1,
                    "salaryPeriod": "YEAR",
                    "salaryCurrency": "EUR",
                }
            ),
            parse_condition(
                {
                    "field": "ai_salary_maxvalue",
                    "operator": "less_than",
                    "value": 2,
                    "salaryPeriod": "YEAR",
                    "salaryCurrency": "GBP",
                }
            ),
        ]
        with pytest.raises(ValidationError):
            saved_filter_service.create_filter(db_session, USER, "Salary", conditions)


class TestUpdateDelete:
    def test_rename(self, db_session, saved):
        updated = saved_filter_service.update_filter(db_session, USER, saved.id, name="Leads")
        assert updated.name == "Leads"

    def test_rename_to_taken_name(self, db_session, saved):
        saved_filter_service.create_filter(db_session, USER, "Other", [])
        with pytest.raises(DuplicateFilterNameError):
            saved_filter_service.update_filter(db_session, USER, saved.id, name="Other")

    def test_nothing_to_update(self, db_session, saved):
        with pytest.raises(ValidationError):
            saved_filter_service.update_filter(db_session, USER, saved.id)

    def test_other_users_filter_is_not_found(self, db_session, saved):
        with pytest.raises(NotFoundError):
            saved_filter_service.update_filter(db_session, "user-2", saved.id, name="Mine")

    def test_replacing_conditions_clears_snapshot_and_context(self, db_session, saved):
        saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)
        assert filter_context_service.get_context(db_session, USER, now=T0) is not None

        new_conditions = [
            parse_condition({"field": "title", "operator": "contains", "value": "lead"})
        ]
        updated = saved_filter_service.update_filter(
            db_session, USER, saved.id, conditions=new_conditions
        )

        assert updated.badge_count_snapshot is None
        assert updated.badge_count_expires_at is None
        assert updated.last_checked_at == T0
        assert updated.filters[0]["value"] == "lead"
        assert filter_context_service.get_context(db_session, USER, now=T0) is None

    def test_delete(self, db_session, saved):
        saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)
        assert saved_filter_service.delete_filter(db_session, USER, saved.id) is True
        assert saved_filter_service.get_filter(db_session, USER, saved.id) is None
        assert db_session.query(FilterContext).count() == 0

    def test_delete_missing(self, db_session):
        assert saved_filter_service.delete_filter(db_session, USER, 999) is False


class TestBadgeExpiry:
    def test_window_ends_first(self):
        expiry = saved_filter_service.compute_badge_expiry(datetime(2025, 1, 15, 10, 0))
        assert expiry == datetime(2025, 1, 15, 22, 0)

    def test_local_four_am_ends_first(self):
        # 21:00 CET; next 04:00 CET is 03:00 UTC
        expiry = saved_filter_service.compute_badge_expiry(datetime(2025, 1, 15, 20, 0))
        assert expiry == datetime(2025, 1, 16, 3, 0)

    def test_summer_time(self):
        # 22:00 CEST; next 04:00 CEST is 02:00 UTC
        expiry = saved_filter_service.compute_badge_expiry(datetime(2025, 7, 1, 20, 0))
        assert expiry == datetime(2025, 7, 2, 2, 0)

    def test_exactly_at_boundary_uses_next_day(self):
        expiry = saved_filter_service.compute_badge_expiry(datetime(2025, 1, 16, 3, 0))
        assert expiry == datetime(2025, 1, 16, 15, 0)

    def test_explicit_parameters(self):
        expiry = saved_filter_service.compute_badge_expiry(
            datetime(2025, 1, 15, 10, 0), tz_name="UTC", window_hours=1, refresh_hour=4
        )
        assert expiry == datetime(2025, 1, 15, 11, 0)


class TestApply:
    def test_first_apply_has_no_badge(self, db_session, saved, make_job):
        make_job(title="Senior Dev", first_seen_date=T0 - timedelta(hours=1))

        result = saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)

        assert result.badge_count == 0
        assert result.recomputed is True
        assert result.viewing_since is None
        assert result.saved_filter.last_checked_at == T0
        assert result.expires_at == datetime(2025, 1, 15, 22, 0)

    def test_snapshot_is_stable_until_expiry(self, db_session, saved, make_job):
        set_checkpoint(db_session, saved, T0 - timedelta(days=1))
        make_job(title="Senior A", first_seen_date=T0 - timedelta(hours=5))
        make_job(title="Senior B", first_seen_date=T0 - timedelta(hours=2))
        make_job(title="Junior", first_seen_date=T0 - timedelta(hours=2))

        first = saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)
        assert first.badge_count == 2
        assert first.viewing_since == T0 - timedelta(days=1)

        make_job(title="Senior C", first_seen_date=T0 + timedelta(minutes=30))
        again = saved_filter_service.apply_filter(
            db_session, USER, saved.id, now=T0 + timedelta(hours=1)
        )
        assert again.badge_count == 2
        assert again.recomputed is False
        assert again.viewing_since == first.viewing_since
        assert again.expires_at == first.expires_at
        assert again.saved_filter.last_checked_at == T0

        later = saved_filter_service.apply_filter(
            db_session, USER, saved.id, now=first.expires_at + timedelta(minutes=1)
        )
        assert later.recomputed is True
        assert later.badge_count == 1
        assert later.viewing_since == T0

    def test_failed_count_shows_zero_and_advances_checkpoint(self, db_session, saved):
        set_checkpoint(db_session, saved, T0 - timedelta(days=1))

        with patch.object(
            job_service, "count_jobs", side_effect=QueryExecutionError("timeout")
        ):
            result = saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)

        assert result.badge_count == 0
        assert result.saved_filter.last_checked_at == T0
        assert result.saved_filter.badge_count_snapshot == 0

    def test_bad_rate_response_does_not_block_apply(self, db_session, make_job):
        salary = parse_condition(
            {
                "field": "ai_salary_minvalue",
                "operator": "greater_than",
                "value": 1000,
                "salaryPeriod": "YEAR",
                "salaryCurrency": "EUR",
            }
        )
        saved_filter = saved_filter_service.create_filter(db_session, USER, "Paid", [salary])
        set_checkpoint(db_session, saved_filter, T0 - timedelta(days=1))
        make_job(
            ai_salary_minvalue=50000,
            ai_salary_unittext="YEAR",
            ai_salary_currency="USD",
            first_seen_date=T0 - timedelta(hours=1),
        )
        response = MagicMock()
        response.json.return_value = {"rates": {"USD": "n/a"}}

        with patch.object(exchange_rate_service.httpx, "get", return_value=response):
            result = saved_filter_service.apply_filter(
                db_session, USER, saved_filter.id, now=T0
            )

        assert result.recomputed is True
        assert result.badge_count == 1
        assert result.saved_filter.last_checked_at == T0

    def test_concurrent_apply_is_rejected_without_writes(self, db_session, saved):
        set_checkpoint(db_session, saved, T0 - timedelta(days=1))
        other_checkpoint = T0 - timedelta(minutes=5)

        def concurrent_apply(db, conditions, since):
            db.execute(
                update(SavedFilter)
                .where(SavedFilter.id == saved.id)
                .values(last_checked_at=other_checkpoint)
            )
            db.commit()
            return 3

        with patch.object(saved_filter_service, "count_new_jobs", side_effect=concurrent_apply):
            with pytest.raises(ConcurrentApplyError):
                saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)

        db_session.refresh(saved)
        assert saved.last_checked_at == other_checkpoint
        assert saved.badge_count_snapshot is None
        assert db_session.query(FilterContext).count() == 0

    def test_apply_sets_viewing_context(self, db_session, saved):
        set_checkpoint(db_session, saved, T0 - timedelta(days=1))
        result = saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)

        context = filter_context_service.get_context(db_session, USER, now=T0)
        assert context.saved_filter_id == saved.id
        assert context.viewing_since == T0 - timedelta(days=1)
        assert context.expires_at == result.expires_at

    def test_apply_unknown_filter(self, db_session):
        with pytest.raises(NotFoundError):
            saved_filter_service.apply_filter(db_session, USER, 42, now=T0)


class TestListFilters:
    def test_without_checkpoint_count_is_zero(self, db_session, saved, make_job):
        make_job(title="Senior Dev", first_seen_date=T0)
        views = saved_filter_service.list_filters(db_session, USER, now=T0)
        assert [v.new_job_count for v in views] == [0]

    def test_live_count_after_expiry(self, db_session, saved, make_job):
        set_checkpoint(db_session, saved, T0 - timedelta(hours=3))
        make_job(title="Senior Dev", first_seen_date=T0 - timedelta(hours=1))
        make_job(title="Senior Old", first_seen_date=T0 - timedelta(days=2))

        views = saved_filter_service.list_filters(db_session, USER, now=T0)
        assert views[0].new_job_count == 1
        assert views[0].conditions[0].field == "title"

    def test_fresh_snapshot_is_served(self, db_session, saved, make_job):
        set_checkpoint(db_session, saved, T0 - timedelta(days=1))
        make_job(title="Senior Dev", first_seen_date=T0 - timedelta(hours=1))
        saved_filter_service.apply_filter(db_session, USER, saved.id, now=T0)

        make_job(title="Senior Later", first_seen_date=T0 + timedelta(minutes=10))
        views = saved_filter_service.list_filters(
            db_session, USER, now=T0 + timedelta(hours=1)
        )
        assert views[0].new_job_count == 1

    def test_newest_first(self, db_session):
        saved_filter_service.create_filter(db_session, USER, "First", [])
        saved_filter_service.create_filter(db_session, USER, "Second", [])
        names = [v.saved_filter.name for v in saved_filter_service.list_filters(db_session, USER)]
        assert names == ["Second", "First"]

    def test_stored_condition_with_unknown_operator_is_ignored(self, db_session, saved):
        saved.filters = [
            *saved.filters,
            {"field": "title", "operator": "fuzzy", "value": "x"},
        ]
        db_session.commit()
        views = saved_filter_service.list_filters(db_session, USER, now=T0)
        assert len(views[0].conditions) == 1
