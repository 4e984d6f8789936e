"""Tests for the Strava credential store."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from rundown_api.core import NotFound, StorageError, as_utc, from_unix
from rundown_api.models import StravaUser
from rundown_api.schemas import StravaConnectRequest
from rundown_api.services import CredentialBundle, CredentialStore, user_to_dict


def _bundle(athlete_id=42, **overrides):
    values = dict(
        athlete_id=athlete_id,
        access_token="abc",
        refresh_token="refresh-abc",
        expires_at=from_unix(1700000000),
        username="runner42",
        firstname="Ada",
        lastname="Lovelace",
        profile="https://example.test/a.jpg",
    )
    values.update(overrides)
    return CredentialBundle(**values)


class TestCredentialBundle:
    def test_from_connect_request(self):
        body = StravaConnectRequest(
            access_token="abc",
            refresh_token="def",
            expires_at=1700000000,
            athlete={"id": 7, "firstname": "Ada", "profile_medium": "https://x/y.png"},
        )
        bundle = CredentialBundle.from_connect_request(body)
        assert bundle.athlete_id == 7
        assert bundle.expires_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert bundle.profile == "https://x/y.png"
        assert bundle.username is None


class TestUpsert:
    def test_insert_assigns_id_and_timestamps(self, session):
        user = CredentialStore(session).upsert(_bundle())
        assert user.id is not None
        assert user.athlete_id == 42
        assert user.created_at is not None
        assert user.updated_at is not None

    def test_second_upsert_overwrites_and_keeps_one_row(self, session):
        store = CredentialStore(session)
        first = store.upsert(_bundle())
        first_id = first.id
        first_created = first.created_at
        first_updated = first.updated_at

        second = store.upsert(
            _bundle(access_token="xyz", username="renamed", firstname=None, profile=None)
        )

        rows = session.exec(select(StravaUser).where(StravaUser.athlete_id == 42)).all()
        assert len(rows) == 1
        assert second.id == first_id
        assert second.access_token == "xyz"
        assert second.username == "renamed"
        # profile fields are replaced wholesale, not merged
        assert second.firstname is None
        assert second.profile is None
        assert second.created_at == first_created
        assert second.updated_at > first_updated

    def test_commit_failure_raises_storage_error(self, session):
        store = CredentialStore(session)
        with patch.object(session, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
            with pytest.raises(StorageError):
                store.upsert(_bundle())

    def test_row_created_by_another_session_is_overwritten(self, engine):
        with Session(engine) as first, Session(engine) as second:
            # first has already looked and seen no row for athlete 7
            assert first.exec(select(StravaUser).where(StravaUser.athlete_id == 7)).first() is None

            other = CredentialStore(second).upsert(_bundle(athlete_id=7, access_token="from-second"))
            other_created = other.created_at

            user = CredentialStore(first).upsert(_bundle(athlete_id=7, access_token="from-first"))
            assert user.access_token == "from-first"
            assert user.created_at == other_created

        with Session(engine) as check:
            rows = check.exec(select(StravaUser).where(StravaUser.athlete_id == 7)).all()
            assert [row.access_token for row in rows] == ["from-first"]


class TestGetAndDelete:
    def test_get_missing_raises_not_found(self, session):
        with pytest.raises(NotFound) as excinfo:
            CredentialStore(session).get(999)
        assert excinfo.value.message == "User not found"
        assert excinfo.value.status_code == 404

    def test_not_found_default_names_no_resource(self):
        assert NotFound().message == "Not found"

    def test_get_after_delete_raises_not_found(self, session):
        store = CredentialStore(session)
        store.upsert(_bundle())
        store.delete(42)
        with pytest.raises(NotFound):
            store.get(42)

    def test_delete_missing_raises_not_found(self, session):
        with pytest.raises(NotFound):
            CredentialStore(session).delete(999)

    def test_delete_after_concurrent_delete_raises_not_found(self, engine):
        with Session(engine) as first, Session(engine) as second:
            store = CredentialStore(first)
            store.upsert(_bundle())
            assert store.get(42).athlete_id == 42

            CredentialStore(second).delete(42)

            with pytest.raises(NotFound):
                store.delete(42)


class TestUpdateTokens:
    def test_updates_only_token_fields(self, session):
        store = CredentialStore(session)
        before = store.upsert(_bundle())
        before_updated = before.updated_at

        assert store.update_tokens(42, "new-access", "new-refresh", from_unix(1800000000)) is True

        user = store.get(42)
        assert user.access_token == "new-access"
        assert user.refresh_token == "new-refresh"
        assert as_utc(user.expires_at) == from_unix(1800000000)
        assert user.username == "runner42"
        assert user.updated_at > before_updated

    def test_missing_athlete_is_silent(self, session):
        store = CredentialStore(session)
        assert store.update_tokens(999, "a", "b", from_unix(1800000000)) is False
        assert session.exec(select(StravaUser)).all() == []


def test_user_to_dict_uses_utc_z_suffix(session):
    user = CredentialStore(session).upsert(_bundle())
    data = user_to_dict(user)
    assert data["expires_at"] == "2023-11-14T22:13:20Z"
    assert data["athlete_id"] == 42
    assert data["created_at"].endswith("Z")
    assert set(data) == {
        "id",
        "access_token",
        "refresh_token",
        "expires_at",
        "athlete_id",
        "username",
        "firstname",
        "lastname",
        "profile",
        "created_at",
        "updated_at",
    }
