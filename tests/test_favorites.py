"""Tests for favorite jobs."""

import pytest

from jobmarket.exceptions import DuplicateFavoriteError, NotFoundError
from jobmarket.services import favorite_service


def test_add_and_list(db_session, make_job):
    first = make_job()
    second = make_job()
    favorite_service.add_favorite(db_session, "user-1", first.id)
    favorite_service.add_favorite(db_session, "user-1", second.id)
    favorite_service.add_favorite(db_session, "user-2", first.id)

    favorites = favorite_service.list_favorites(db_session, "user-1")
    assert [f.job_id for f in favorites] == [second.id, first.id]


def test_duplicate_favorite(db_session, make_job):
    job = make_job()
    favorite_service.add_favorite(db_session, "user-1", job.id)
    with pytest.raises(DuplicateFavoriteError):
        favorite_service.add_favorite(db_session, "user-1", job.id)


def test_unknown_job(db_session):
    with pytest.raises(NotFoundError):
        favorite_service.add_favorite(db_session, "user-1", 404)


def test_remove(db_session, make_job):
    job = make_job()
    favorite_service.add_favorite(db_session, "user-1", job.id)
    assert favorite_service.remove_favorite(db_session, "user-1", job.id) is True
    assert favorite_service.remove_favorite(db_session, "user-1", job.id) is False
