"""
Crew conflict detectors
=======================
Read-only checks of a proposed crew against crews already stored on other
matches. Each detector returns an ordered, de-duplicated list of conflict
records (empty when there is nothing to report) and never writes.

  A) Recent team: a proposed referee already officiated either team within
     the last RECENT_TEAM_WINDOW matchdays of the same league/group
     (current matchday included). Overridable by the caller.
  B) Schedule: a proposed core referee already holds a slot on another match
     of the league with the identical kickoff. Never overridable.
  C) Same day: as B, but on the same calendar date, and the fourth official
     and assessor are considered too. Overridable by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlmodel import Session, select

from refdesk.models.match import Match
from refdesk.services.crew_types import ALL_ROLES, CORE_ROLES, stored_referee_ids

RECENT_TEAM_WINDOW = 4

RoleIds = Sequence[Tuple[str, int]]


# ─── Conflict records ────────────────────────────────────────────────────


@dataclass(frozen=True)
class RecentTeamConflict:
    role: str  # role proposed on the current match
    referee_id: int
    team_id: int
    matchday_number: int
    match_id: int
    previous_role: str  # role held on the earlier match

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "referee_id": self.referee_id,
            "team_id": self.team_id,
            "matchday_number": self.matchday_number,
            "match_id": self.match_id,
            "previous_role": self.previous_role,
        }


@dataclass(frozen=True)
class ScheduleConflict:
    role: str
    referee_id: int
    match_id: int
    kickoff: datetime
    existing_role: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "referee_id": self.referee_id,
            "match_id": self.match_id,
            "kickoff": self.kickoff.isoformat(),
            "existing_role": self.existing_role,
        }


@dataclass(frozen=True)
class SameDayConflict(ScheduleConflict):
    pass


# ─── A) Recent team ──────────────────────────────────────────────────────


def recent_team_window(matchday_number: int) -> Tuple[int, int]:
    """Inclusive matchday range checked for a match on `matchday_number`."""
    return matchday_number - (RECENT_TEAM_WINDOW - 1), matchday_number


def find_recent_team_conflicts(
    session: Session,
    league_id: int,
    group_id: int,
    matchday_number: Optional[int],
    home_team_id: Optional[int],
    away_team_id: Optional[int],
    proposed: RoleIds,
    current_match_id: Optional[int] = None,
) -> List[RecentTeamConflict]:
    """
    Find proposed core referees who already officiated one of the two teams recently.

    Args:
        proposed: (role, referee_id) for the core slots holding directory
            referees. Labelled slots have no directory identity and are skipped
            by the caller.
        current_match_id: excluded so that re-saving a crew does not conflict
            with itself.
    """
    team_ids = [t for t in (home_team_id, away_team_id) if t is not None]
    if matchday_number is None or not team_ids or not proposed:
        return []

    low, high = recent_team_window(matchday_number)
    query = select(Match).where(
        Match.league_id == league_id,
        Match.group_id == group_id,
        Match.matchday_number >= low,
        Match.matchday_number <= high,
        or_(Match.home_team_id.in_(team_ids), Match.away_team_id.in_(team_ids)),
    )
    if current_match_id is not None:
        query = query.where(Match.id != current_match_id)
    query = query.order_by(Match.matchday_number, Match.id)

    conflicts: List[RecentTeamConflict] = []
    seen = set()
    for other in session.exec(query).all():
        shared_teams = [t for t in (other.home_team_id, other.away_team_id) if t is not None and t in team_ids]
        previous = stored_referee_ids(other, CORE_ROLES)
        for team_id in shared_teams:
            for role, referee_id in proposed:
                for previous_role, previous_id in previous:
                    if previous_id != referee_id:
                        continue
                    key = (role, referee_id, team_id, other.id)
                    if key in seen:
                        continue
                    seen.add(key)
                    conflicts.append(
                        RecentTeamConflict(
                            role=role,
                            referee_id=referee_id,
                            team_id=team_id,
                            matchday_number=other.matchday_number,
                            match_id=other.id,
                            previous_role=previous_role,
                        )
                    )
    return conflicts


# ─── B/C) Schedule and same day ──────────────────────────────────────────


def _busy_conflicts(candidates: List[Match], proposed: RoleIds, record_type) -> List[ScheduleConflict]:
    conflicts = []
    seen = set()
    for other in candidates:
        held = stored_referee_ids(other, ALL_ROLES)
        for role, referee_id in proposed:
            for existing_role, existing_id in held:
                if existing_id != referee_id:
                    continue
                key = (role, referee_id, other.id)
                if key in seen:
                    continue
                seen.add(key)
                conflicts.append(
                    record_type(
                        role=role,
                        referee_id=referee_id,
                        match_id=other.id,
                        kickoff=other.kickoff,
                        existing_role=existing_role,
                    )
                )
    return conflicts


def find_schedule_conflicts(
    session: Session,
    league_id: int,
    kickoff: Optional[datetime],
    proposed: RoleIds,
    current_match_id: Optional[int] = None,
) -> List[ScheduleConflict]:
    """Proposed core referees already holding any slot on a match with the identical kickoff."""
    if kickoff is None or not proposed:
        return []

    query = select(Match).where(Match.league_id == league_id, Match.kickoff == kickoff)
    if current_match_id is not None:
        query = query.where(Match.id != current_match_id)
    candidates = list(session.exec(query.order_by(Match.id)).all())
    return _busy_conflicts(candidates, proposed, ScheduleConflict)


def find_same_day_conflicts(
    session: Session,
    league_id: int,
    kickoff: Optional[datetime],
    proposed: RoleIds,
    current_match_id: Optional[int] = None,
) -> List[SameDayConflict]:
    """
    Proposed referees already holding any slot on another match the same calendar day.

    `proposed` should include the fourth official and assessor as they will
    stand after the commit.
    """
    if kickoff is None or not proposed:
        return []

    day_start = datetime.combine(kickoff.date(), datetime.min.time())
    day_end = day_start + timedelta(days=1)
    query = select(Match).where(
        Match.league_id == league_id,
        Match.kickoff >= day_start,
        Match.kickoff < day_end,
    )
    if current_match_id is not None:
        query = query.where(Match.id != current_match_id)
    candidates = list(session.exec(query.order_by(Match.kickoff, Match.id)).all())
    return _busy_conflicts(candidates, proposed, SameDayConflict)
