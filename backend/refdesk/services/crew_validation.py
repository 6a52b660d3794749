"""
Crew assignment validation pipeline

Runs the guards for one proposed crew in a fixed order and stops at the
first failure. Every failure is returned as a CrewAssignmentOutcome, and
nothing is written unless all guards pass.

  1. MISSING_PARAMS            central, assistant 1 and assistant 2 filled
  2. DUPLICATE_REFEREES        no directory id repeated among those three
  3. MATCH_NOT_FOUND           match exists at the given path and tenant
  4. REFEREE_NOT_AVAILABLE     every core directory referee is AVAILABLE
  5. RECENT_TEAM_CONFLICT      rotation rule (overridable)
  6. SCHEDULE_CONFLICT         identical kickoff (never overridable)
  7. SAME_DAY_CONFLICT         same calendar day (overridable)
  8. RCS_BELOW_THRESHOLD_BLOCK central competency vs match difficulty

A WARN competency policy commits the crew but reports OK_WITH_WARNING.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from refdesk.config import DEFAULT_CENTRAL_TOLERANCE
from refdesk.models.league import CompetencyPolicyMode, League
from refdesk.models.referee import Referee
from refdesk.services.crew_commit import CrewWriteConflict, CrewWriter, SequentialCrewWriter, load_match_in_scope
from refdesk.services.crew_conflicts import (
    RecentTeamConflict,
    SameDayConflict,
    ScheduleConflict,
    find_recent_team_conflicts,
    find_same_day_conflicts,
    find_schedule_conflicts,
)
from refdesk.services.crew_types import CrewProposal, MatchPath, RefereeSlot
from refdesk.utils.competency import MatchDifficultyProvider, referee_competency
from refdesk.utils.referee_directory import RefereeDirectory

logger = logging.getLogger(__name__)

RCS_BELOW_THRESHOLD_WARNING = "RCS_BELOW_THRESHOLD_WARNING"


class OutcomeCode(str, Enum):
    OK = "OK"
    OK_WITH_WARNING = "OK_WITH_WARNING"
    MISSING_PARAMS = "MISSING_PARAMS"
    DUPLICATE_REFEREES = "DUPLICATE_REFEREES"
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    REFEREE_NOT_AVAILABLE = "REFEREE_NOT_AVAILABLE"
    RECENT_TEAM_CONFLICT = "RECENT_TEAM_CONFLICT"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    SAME_DAY_CONFLICT = "SAME_DAY_CONFLICT"
    RCS_BELOW_THRESHOLD_BLOCK = "RCS_BELOW_THRESHOLD_BLOCK"


@dataclass(frozen=True)
class CompetencyPolicy:
    tolerance: float = DEFAULT_CENTRAL_TOLERANCE
    mode: CompetencyPolicyMode = CompetencyPolicyMode.NONE


def policy_mode(value: Any) -> CompetencyPolicyMode:
    """Parse a stored policy leniently; unknown values fall back to NONE."""
    if isinstance(value, CompetencyPolicyMode):
        return value
    normalized = (value or "").strip().upper()
    try:
        return CompetencyPolicyMode(normalized)
    except ValueError:
        logger.warning("Unrecognized competency policy %r, using NONE", value)
        return CompetencyPolicyMode.NONE


def policy_for_league(league: League) -> CompetencyPolicy:
    tolerance = league.central_tolerance
    if tolerance is None:
        tolerance = DEFAULT_CENTRAL_TOLERANCE
    return CompetencyPolicy(tolerance=tolerance, mode=policy_mode(league.competency_policy))


@dataclass
class CompetencyEvaluation:
    difficulty: Optional[int]
    competency: Optional[int]
    tolerance: float
    policy: CompetencyPolicyMode
    below_threshold: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "difficulty": self.difficulty,
            "competency": self.competency,
            "tolerance": self.tolerance,
            "policy": self.policy.value,
            "below_threshold": self.below_threshold,
        }


def evaluate_central_competency(
    referee: Referee, difficulty: Optional[int], policy: CompetencyPolicy
) -> CompetencyEvaluation:
    """
    Compare the central referee's competency with the match difficulty.

    Unknown difficulty never breaches. A referee without a score (INELIGIBLE or
    an unrecognized tier) is compared as 0.
    """
    competency = referee_competency(referee)
    below = False
    if difficulty is not None:
        below = (competency or 0) + policy.tolerance < difficulty
    return CompetencyEvaluation(
        difficulty=difficulty,
        competency=competency,
        tolerance=policy.tolerance,
        policy=policy.mode,
        below_threshold=below,
    )


@dataclass
class CrewAssignmentOutcome:
    code: OutcomeCode
    message: str
    match_id: Optional[int] = None
    warning: Optional[str] = None
    missing_roles: List[str] = field(default_factory=list)
    duplicate_referee_ids: List[int] = field(default_factory=list)
    unavailable_referee_ids: List[int] = field(default_factory=list)
    recent_team_conflicts: List[RecentTeamConflict] = field(default_factory=list)
    schedule_conflicts: List[ScheduleConflict] = field(default_factory=list)
    same_day_conflicts: List[SameDayConflict] = field(default_factory=list)
    competency: Optional[CompetencyEvaluation] = None

    @property
    def ok(self) -> bool:
        return self.code in (OutcomeCode.OK, OutcomeCode.OK_WITH_WARNING)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "ok": self.ok,
            "message": self.message,
            "match_id": self.match_id,
            "warning": self.warning,
            "missing_roles": list(self.missing_roles),
            "duplicate_referee_ids": list(self.duplicate_referee_ids),
            "unavailable_referee_ids": list(self.unavailable_referee_ids),
            "recent_team_conflicts": [c.to_dict() for c in self.recent_team_conflicts],
            "schedule_conflicts": [c.to_dict() for c in self.schedule_conflicts],
            "same_day_conflicts": [c.to_dict() for c in self.same_day_conflicts],
            "competency": self.competency.to_dict() if self.competency else None,
        }


def _fail(code: OutcomeCode, message: str, **evidence) -> CrewAssignmentOutcome:
    logger.info("Crew assignment rejected: %s", code.value)
    return CrewAssignmentOutcome(code=code, message=message, **evidence)


def validate_and_assign(
    session: Session,
    path: MatchPath,
    proposal: CrewProposal,
    *,
    policy: CompetencyPolicy,
    difficulty_provider: MatchDifficultyProvider,
    actor_id: Optional[str] = None,
    ignore_recent_team_conflicts: bool = False,
    ignore_same_day_conflicts: bool = False,
    writer: Optional[CrewWriter] = None,
    directory: Optional[RefereeDirectory] = None,
) -> CrewAssignmentOutcome:
    """
    Validate a proposed crew for one match and commit it if every guard passes.

    Args:
        session: Database session (match store)
        path: Full address of the target match, including the tenant scope
        proposal: Submitted crew
        policy: Season competency policy for the match's league
        difficulty_provider: Supplies the match difficulty score
        actor_id: Stamped on the match as updated_by
        ignore_recent_team_conflicts: Accept repeats inside the rotation window
        ignore_same_day_conflicts: Accept two matches on the same day
        writer: Commit strategy (defaults to SequentialCrewWriter)
        directory: Referee lookups (defaults to RefereeDirectory(session))

    Returns:
        CrewAssignmentOutcome; only OK / OK_WITH_WARNING mean the crew was written
    """
    writer = writer or SequentialCrewWriter()
    directory = directory or RefereeDirectory(session)

    # 1) Required core slots
    missing = proposal.missing_core_roles()
    if missing:
        return _fail(
            OutcomeCode.MISSING_PARAMS,
            "Central referee and both assistants are required.",
            match_id=path.match_id,
            missing_roles=missing,
        )

    # 2) Repeated directory referee among the core roles
    duplicates = proposal.duplicate_referee_ids()
    if duplicates:
        return _fail(
            OutcomeCode.DUPLICATE_REFEREES,
            "A referee cannot hold more than one of central, assistant 1 and assistant 2.",
            match_id=path.match_id,
            duplicate_referee_ids=duplicates,
        )

    # 3) Match inside the claimed tenant
    match = load_match_in_scope(session, path)
    if match is None:
        return _fail(OutcomeCode.MATCH_NOT_FOUND, "Match not found.", match_id=path.match_id)

    core_ids = proposal.core_referee_ids()

    # 4) Availability
    unavailable = directory.unavailable(referee_id for _role, referee_id in core_ids)
    if unavailable:
        return _fail(
            OutcomeCode.REFEREE_NOT_AVAILABLE,
            "One or more referees are not available.",
            match_id=match.id,
            unavailable_referee_ids=unavailable,
        )

    # 5) Rotation rule
    recent = find_recent_team_conflicts(
        session,
        league_id=match.league_id,
        group_id=match.group_id,
        matchday_number=match.matchday_number,
        home_team_id=match.home_team_id,
        away_team_id=match.away_team_id,
        proposed=core_ids,
        current_match_id=match.id,
    )
    if recent and not ignore_recent_team_conflicts:
        return _fail(
            OutcomeCode.RECENT_TEAM_CONFLICT,
            "A referee already officiated one of these teams within the last 4 matchdays.",
            match_id=match.id,
            recent_team_conflicts=recent,
        )

    if match.kickoff is not None:
        # 6) Identical kickoff: hard block
        clashes = find_schedule_conflicts(
            session,
            league_id=match.league_id,
            kickoff=match.kickoff,
            proposed=core_ids,
            current_match_id=match.id,
        )
        if clashes:
            return _fail(
                OutcomeCode.SCHEDULE_CONFLICT,
                "A referee is already assigned to another match at the same kickoff.",
                match_id=match.id,
                schedule_conflicts=clashes,
            )

        # 7) Same calendar day
        same_day = find_same_day_conflicts(
            session,
            league_id=match.league_id,
            kickoff=match.kickoff,
            proposed=proposal.effective_referee_ids(match),
            current_match_id=match.id,
        )
        if same_day and not ignore_same_day_conflicts:
            return _fail(
                OutcomeCode.SAME_DAY_CONFLICT,
                "A referee is already assigned to another match on the same day.",
                match_id=match.id,
                same_day_conflicts=same_day,
            )

    # 8) Central competency vs match difficulty
    evaluation: Optional[CompetencyEvaluation] = None
    if isinstance(proposal.central, RefereeSlot):
        central = directory.get(proposal.central.referee_id)
        if central is not None:
            evaluation = evaluate_central_competency(central, difficulty_provider.difficulty_for(match), policy)

    breached = evaluation is not None and evaluation.below_threshold
    if breached and evaluation.policy == CompetencyPolicyMode.BLOCK:
        return _fail(
            OutcomeCode.RCS_BELOW_THRESHOLD_BLOCK,
            "The central referee's competency is below the minimum for this match.",
            match_id=match.id,
            competency=evaluation,
        )

    try:
        writer.write(session, match, proposal, actor_id)
    except CrewWriteConflict as exc:
        return _fail(
            OutcomeCode.SCHEDULE_CONFLICT,
            "A referee was assigned to another match at the same kickoff while this crew was being saved.",
            match_id=match.id,
            schedule_conflicts=exc.conflicts,
        )

    if breached and evaluation.policy == CompetencyPolicyMode.WARN:
        return CrewAssignmentOutcome(
            code=OutcomeCode.OK_WITH_WARNING,
            message="Crew saved. The central referee's competency is below the recommended level for this match.",
            match_id=match.id,
            warning=RCS_BELOW_THRESHOLD_WARNING,
            competency=evaluation,
        )

    return CrewAssignmentOutcome(code=OutcomeCode.OK, message="Crew saved.", match_id=match.id, competency=evaluation)
