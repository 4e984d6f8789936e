"""Persistence for per-athlete Strava credentials."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import delete as sa_delete, update as sa_update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import NotFound, StorageError
from ..core.time import from_unix, isoformat_z, utcnow
from ..models import StravaUser
from ..schemas import StravaConnectRequest

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO UPDATE ... RETURNING.
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class CredentialBundle:
    """Everything stored for one athlete; every field is written on upsert."""

    athlete_id: int
    access_token: str
    refresh_token: str
    expires_at: datetime
    username: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    profile: Optional[str] = None

    @classmethod
    def from_connect_request(cls, body: StravaConnectRequest) -> "CredentialBundle":
        athlete = body.athlete
        return cls(
            athlete_id=athlete.id,
            access_token=body.access_token,
            refresh_token=body.refresh_token,
            expires_at=from_unix(body.expires_at),
            username=athlete.username,
            firstname=athlete.firstname,
            lastname=athlete.lastname,
            profile=athlete.profile_medium,
        )


class CredentialStore:
    """CRUD over ``strava_users`` keyed by the Strava athlete id.

    Every write is a single statement, so concurrent writers for the same
    athlete resolve as last write wins.
    """

    def __init__(self, session: Session):
        self.session = session

    def _find(self, athlete_id: int) -> Optional[StravaUser]:
        return self.session.exec(
            select(StravaUser).where(StravaUser.athlete_id == athlete_id)
        ).first()

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect]
        except KeyError:
            raise StorageError(f"Upsert is not supported on {dialect}") from None

    def _commit(self, action: str, athlete_id: int, message: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Database error while %s athlete %s: %s", action, athlete_id, exc)
            raise StorageError(message) from exc

    def upsert(self, bundle: CredentialBundle) -> StravaUser:
        """Insert or overwrite the record for ``bundle.athlete_id``."""

        now = utcnow()
        fields = {
            "access_token": bundle.access_token,
            "refresh_token": bundle.refresh_token,
            "expires_at": bundle.expires_at,
            "username": bundle.username,
            "firstname": bundle.firstname,
            "lastname": bundle.lastname,
            "profile": bundle.profile,
            "updated_at": now,
        }
        stmt = self._insert()(StravaUser).values(
            athlete_id=bundle.athlete_id, created_at=now, **fields
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StravaUser.athlete_id],
            set_={name: stmt.excluded[name] for name in fields},
        ).returning(StravaUser)

        try:
            user = self.session.exec(
                stmt.execution_options(populate_existing=True)
            ).scalar_one()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Database error while saving athlete %s: %s", bundle.athlete_id, exc)
            raise StorageError("Failed to save user data") from exc

        self._commit("saving", bundle.athlete_id, "Failed to save user data")
        self.session.refresh(user)
        logger.info("Saved Strava credentials for athlete %s (id=%s)", user.athlete_id, user.id)
        return user

    def get(self, athlete_id: int) -> StravaUser:
        try:
            user = self._find(athlete_id)
        except SQLAlchemyError as exc:
            logger.error("Database error while loading athlete %s: %s", athlete_id, exc)
            raise StorageError("Failed to fetch user data") from exc
        if user is None:
            raise NotFound("User not found")
        return user

    def delete(self, athlete_id: int) -> None:
        try:
            result = self.session.exec(
                sa_delete(StravaUser).where(StravaUser.athlete_id == athlete_id)
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Database error while deleting athlete %s: %s", athlete_id, exc)
            raise StorageError("Failed to disconnect user") from exc

        if result.rowcount == 0:
            self.session.rollback()
            raise NotFound("User not found")

        self._commit("deleting", athlete_id, "Failed to disconnect user")
        logger.info("Deleted Strava credentials for athlete %s", athlete_id)

    def update_tokens(
        self,
        athlete_id: int,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> bool:
        """Replace the token triple; returns ``False`` if no row matched.

        A missing athlete is not an error here, unlike ``get``/``delete``.
        """

        stmt = (
            sa_update(StravaUser)
            .where(StravaUser.athlete_id == athlete_id)
            .values(
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=expires_at,
                updated_at=utcnow(),
            )
        )
        try:
            result = self.session.exec(stmt)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Database error while updating tokens for athlete %s: %s", athlete_id, exc)
            raise StorageError("Failed to update tokens") from exc

        if result.rowcount == 0:
            self.session.rollback()
            logger.warning("Token update matched no row for athlete %s", athlete_id)
            return False

        self._commit("updating tokens for", athlete_id, "Failed to update tokens")
        return True


def user_to_dict(user: StravaUser) -> Dict[str, Any]:
    return {
        "id": user.id,
        "access_token": user.access_token,
        "refresh_token": user.refresh_token,
        "expires_at": isoformat_z(user.expires_at),
        "athlete_id": user.athlete_id,
        "username": user.username,
        "firstname": user.firstname,
        "lastname": user.lastname,
        "profile": user.profile,
        "created_at": isoformat_z(user.created_at),
        "updated_at": isoformat_z(user.updated_at),
    }


__all__ = ["CredentialBundle", "CredentialStore", "user_to_dict"]
