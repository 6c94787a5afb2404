# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Teams, positions and users — the metadata the roster rules consult.

Teams and positions live in singleton ``metadata`` documents holding a
``list`` field; users are one document per auth UID carrying ``email``.
"""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from roster_service.core.config import settings
from roster_service.core.logging import get_logger
from roster_service.models.domain import AppUser, Position, Team, index_assignments
from roster_service.models.errors import FetchFailure, RemoteSyncFailure
from roster_service.repositories.document_store import DocumentStore
from roster_service.services.positions import find_position, group_of, validate_hierarchy

logger = get_logger(__name__)

METADATA_COLLECTION = "metadata"
USERS_COLLECTION = "users"


class MetadataService:
    """Business logic for team / position / user metadata."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def _read(self, what: str, loader):
        try:
            return loader()
        except SQLAlchemyError as exc:
            logger.error("Fetch failed: %s, error=%s", what, exc)
            raise FetchFailure(what, exc) from exc

    # ── Teams ──

    def list_teams(self) -> list[Team]:
        doc = self._read("teams", lambda: self._store.get(METADATA_COLLECTION, "teams"))
        return [Team.model_validate(t) for t in (doc or {}).get("list", [])]

    def get_team(self, name: str) -> Team:
        for team in self.list_teams():
            if team.name == name:
                return team
        raise KeyError(f"No team named '{name}'")

    def replace_teams(self, teams: list[Team]) -> list[Team]:
        names = [t.name for t in teams]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate team name(s): {', '.join(duplicates)}")
        self._store.set(
            METADATA_COLLECTION, "teams", {"list": [t.to_document() for t in teams]},
        )
        logger.info("Teams replaced: count=%d", len(teams))
        return teams

    # ── Positions ──

    def list_positions(self) -> list[Position]:
        doc = self._read("positions", lambda: self._store.get(METADATA_COLLECTION, "positions"))
        return [Position.model_validate(p) for p in (doc or {}).get("list", [])]

    def get_position(self, name: str) -> Position:
        position = find_position(self.list_positions(), name)
        if position is None:
            raise KeyError(f"No position named '{name}'")
        return position

    def replace_positions(self, positions: list[Position]) -> list[Position]:
        validate_hierarchy(positions)
        self._store.set(
            METADATA_COLLECTION, "positions", {"list": [p.to_document() for p in positions]},
        )
        logger.info("Positions replaced: count=%d", len(positions))
        return positions

    def position_group(self, name: str) -> list[str]:
        positions = self.list_positions()
        if find_position(positions, name) is None:
            raise KeyError(f"No position named '{name}'")
        return group_of(positions, name)

    # ── Users ──

    def list_users(self) -> list[dict[str, Any]]:
        docs = self._read("users", lambda: self._store.get_all(USERS_COLLECTION))
        users = [
            {"id": uid, **AppUser.model_validate(data).to_document()}
            for uid, data in docs.items()
        ]
        return sorted(users, key=lambda u: u.get("name") or "")

    def get_user_by_email(self, email: str) -> Optional[AppUser]:
        for user in self.list_users():
            if user.get("email") == email:
                return AppUser.model_validate(user)
        return None

    def users_for_position(self, team: str, position: str) -> list[dict[str, Any]]:
        key = f"{team}|{position}"
        return [u for u in self.list_users() if key in u.get("indexedAssignments", [])]

    def put_user(self, uid: str, user: AppUser) -> dict[str, Any]:
        user.indexed_assignments = index_assignments(user.team_positions)
        self._store.set(USERS_COLLECTION, uid, user.to_document())
        return {"id": uid, **user.to_document()}

    def bulk_update_users(self, updates: dict[str, dict[str, Any]]) -> int:
        """
        Merge field updates into existing user documents and write them in
        batches. ``indexedAssignments`` is recomputed for every user written.
        Raises KeyError for an unknown UID before anything is written.
        """
        existing = self._read("users", lambda: self._store.get_all(USERS_COLLECTION))
        missing = sorted(uid for uid in updates if uid not in existing)
        if missing:
            raise KeyError(f"Unknown user id(s): {', '.join(missing)}")

        merged: dict[str, dict[str, Any]] = {}
        for uid, fields in updates.items():
            user = AppUser.model_validate({**existing[uid], **fields})
            user.indexed_assignments = index_assignments(user.team_positions)
            merged[uid] = user.to_document()

        uids = sorted(merged)
        written = 0
        try:
            for offset in range(0, len(uids), settings.BATCH_LIMIT):
                batch = self._store.batch()
                for uid in uids[offset: offset + settings.BATCH_LIMIT]:
                    batch.set(USERS_COLLECTION, uid, merged[uid])
                written += batch.commit()
        except SQLAlchemyError as exc:
            raise RemoteSyncFailure(None, exc) from exc
        logger.info("Users updated: count=%d", written)
        return written

    # ── Seed ──

    def seed_defaults(self) -> None:
        """Create starter metadata so an empty store is usable immediately."""
        if self._store.get(METADATA_COLLECTION, "positions") is None:
            self.replace_positions([
                Position(name="Vocals", emoji="🎤", colour="#f59e0b"),
                Position(name="BackupVocals", emoji="🎶", colour="#fbbf24", parent_id="Vocals"),
                Position(name="Drums", emoji="🥁", colour="#ef4444"),
                Position(name="Keys", emoji="🎹", colour="#3b82f6"),
                Position(name="Sound", emoji="🎚️", colour="#10b981"),
            ])
        if self._store.get(METADATA_COLLECTION, "teams") is None:
            positions = {p.name: p for p in self.list_positions()}
            self.replace_teams([
                Team(
                    name="Worship",
                    emoji="🙌",
                    positions=[positions["Vocals"], positions["BackupVocals"], positions["Keys"]],
                    preferred_days=["Sunday"],
                    max_conflict=1,
                ),
                Team(
                    name="Band",
                    emoji="🎸",
                    positions=[positions["Drums"], positions["Sound"]],
                    preferred_days=["Sunday", "Wednesday"],
                    max_conflict=2,
                ),
            ])
        logger.info("Default metadata seeded")
