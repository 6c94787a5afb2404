# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Per-date dashboard summaries and the plain-text share format.
"""

from datetime import date as date_cls
from typing import Any, Optional

from roster_service.models.domain import AppUser, Team
from roster_service.repositories.entry_store import DirtyEntryStore
from roster_service.services import dates as roster_dates
from roster_service.services.metadata_service import MetadataService
from roster_service.services.positions import find_position


def _sort_people(people: list[dict[str, str]], by_gender: bool) -> list[dict[str, str]]:
    def key(person: dict[str, str]):
        name = person["name"].lower()
        if not by_gender:
            return (0, "", name)
        gender = person.get("gender") or ""
        return (0 if gender == "Male" else 1, gender, name)

    return sorted(people, key=key)


class DashboardService:
    """Read-only views over resolved roster entries."""

    def __init__(self, entry_store: DirtyEntryStore, metadata: MetadataService) -> None:
        self._entries = entry_store
        self._metadata = metadata

    def _teams(self, team_names: Optional[list[str]]) -> list[Team]:
        teams = self._metadata.list_teams()
        if not team_names:
            return teams
        by_name = {t.name: t for t in teams}
        return [by_name[n] for n in team_names if n in by_name]

    def team_summary(self, date: str, team: Team) -> dict[str, Any]:
        entry = self._entries.resolve(date)
        assignments = entry.teams.get(team.name, {}) if entry else {}
        all_positions = self._metadata.list_positions()
        users: dict[str, AppUser] = {}
        for u in self._metadata.list_users():
            if u.get("email"):
                users[u["email"]] = AppUser.model_validate(u)

        positions: list[dict[str, Any]] = []
        total = 0
        for team_position in team.positions:
            info = find_position(all_positions, team_position.name) or team_position
            people = []
            for identifier, held in assignments.items():
                if team_position.name not in held:
                    continue
                user = users.get(identifier)
                people.append({
                    "identifier": identifier,
                    "name": (user.name if user and user.name else identifier),
                    "gender": user.gender if user else "",
                })
            total += len(people)
            positions.append({
                "position": team_position.name,
                "emoji": info.emoji or "❓",
                "assigned": [
                    {"identifier": p["identifier"], "name": p["name"]}
                    for p in _sort_people(people, info.sort_by_gender)
                ],
            })

        return {
            "team": team.name,
            "emoji": team.emoji,
            "event_name": entry.event_name if entry else None,
            "positions": positions,
            "has_assignments": total > 0,
        }

    def summary(self, date: str, team_names: Optional[list[str]] = None) -> dict[str, Any]:
        """Teams with at least one assignment on ``date``, position by position."""
        teams = [self.team_summary(date, t) for t in self._teams(team_names)]
        entry = self._entries.resolve(date)
        return {
            "date": date,
            "event_name": entry.event_name if entry else None,
            "teams": [t for t in teams if t["has_assignments"]],
        }

    def share_text(self, date: str, team_name: str) -> str:
        team = self._metadata.get_team(team_name)
        summary = self.team_summary(date, team)
        day = roster_dates.parse_date_key(date)
        lines = []
        if summary["event_name"]:
            lines.append(f"✨ {summary['event_name']} ✨")
        lines.append(f"{team.emoji} {team.name} · {day.day} {day.strftime('%b %Y')}")
        for position in summary["positions"]:
            names = ", ".join(p["name"] for p in position["assigned"]) or "-"
            lines.append(f"{position['emoji']}: {names}")
        return "\n".join(lines) + "\n"

    def dates_with_assignments(
        self, team_names: Optional[list[str]] = None, today: Optional[date_cls] = None,
    ) -> list[str]:
        """Upcoming dates of the given teams on which any of them has assignments."""
        teams = self._teams(team_names)
        candidates: set[str] = set()
        for team in teams:
            candidates.update(roster_dates.upcoming(team.preferred_days, today=today))

        result = []
        for day in sorted(candidates):
            entry = self._entries.resolve(day)
            if entry is None:
                continue
            if any(
                any(held for held in entry.teams.get(t.name, {}).values())
                for t in teams
            ):
                result.append(day)
        return result
