"""
Crew Assignment API Routes

Single interactive assignment (full guard pipeline), batch confirmation
(structural checks only) and the cached per-tenant assignments view.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, model_validator
from sqlmodel import Session, select

from refdesk.database import get_session
from refdesk.models.league import League
from refdesk.models.match import Match
from refdesk.models.referee import Referee
from refdesk.services.assignment_cache import assignments_view_cache
from refdesk.services.crew_commit import BatchCrewItem, confirm_crews, writer_from_config
from refdesk.services.crew_types import (
    CrewProposal,
    LabelSlot,
    MatchPath,
    RefereeSlot,
    SlotUpdate,
    SlotValue,
    crew_to_dict,
)
from refdesk.services.crew_validation import (
    CompetencyPolicy,
    OutcomeCode,
    policy_for_league,
    validate_and_assign,
)
from refdesk.utils.competency import TeamTierDifficulty, competency_to_tier, referee_competency, tier_to_competency
from refdesk.utils.referee_directory import RefereeDirectory

router = APIRouter()

_OUTCOME_STATUS = {
    OutcomeCode.OK: 200,
    OutcomeCode.OK_WITH_WARNING: 200,
    OutcomeCode.MISSING_PARAMS: 422,
    OutcomeCode.MATCH_NOT_FOUND: 404,
}


# ============================================================================
# Request/Response Models
# ============================================================================


class CrewSlotIn(BaseModel):
    referee_id: Optional[int] = None
    label: Optional[str] = None

    @model_validator(mode="after")
    def _one_of(self) -> "CrewSlotIn":
        if self.referee_id is not None and self.label:
            raise ValueError("A crew slot holds either referee_id or label, not both")
        return self

    def to_value(self) -> Optional[SlotValue]:
        if self.referee_id is not None:
            return RefereeSlot(self.referee_id)
        if self.label and self.label.strip():
            return LabelSlot(self.label.strip())
        return None


def _value(slot: Optional[CrewSlotIn]) -> Optional[SlotValue]:
    return slot.to_value() if slot is not None else None


class CrewSlotsIn(BaseModel):
    central: Optional[CrewSlotIn] = None
    assistant_1: Optional[CrewSlotIn] = None
    assistant_2: Optional[CrewSlotIn] = None
    # Absent -> keep stored value; null or empty slot -> clear; value -> set
    fourth_official: Optional[CrewSlotIn] = None
    assessor: Optional[CrewSlotIn] = None

    def _optional_update(self, name: str) -> SlotUpdate:
        if name not in self.model_fields_set:
            return SlotUpdate.keep()
        value = _value(getattr(self, name))
        return SlotUpdate.set(value) if value is not None else SlotUpdate.clear()

    def to_proposal(self) -> CrewProposal:
        return CrewProposal(
            central=_value(self.central),
            assistant_1=_value(self.assistant_1),
            assistant_2=_value(self.assistant_2),
            fourth_official=self._optional_update("fourth_official"),
            assessor=self._optional_update("assessor"),
        )


class CrewAssignRequest(CrewSlotsIn):
    ignore_recent_team_conflicts: bool = False
    ignore_same_day_conflicts: bool = False
    actor_id: Optional[str] = None


class BatchConfirmItem(CrewSlotsIn):
    league_id: int
    group_id: int
    matchday_id: int
    match_id: int


class BatchConfirmRequest(BaseModel):
    items: List[BatchConfirmItem]
    actor_id: Optional[str] = None


class BatchConfirmResponse(BaseModel):
    committed: int


class RefereeCompetencyResponse(BaseModel):
    referee_id: int
    name: str
    tier: Optional[str] = None
    tier_competency: Optional[int] = None
    competency_override: Optional[int] = None
    central_competency: Optional[int] = None
    approximate_tier: Optional[str] = None
    available: bool


# ============================================================================
# Helpers
# ============================================================================


def _policy_for(session: Session, tenant_id: str, league_id: int) -> CompetencyPolicy:
    league = session.get(League, league_id)
    if league is None or league.tenant_id != tenant_id:
        # Pipeline answers MATCH_NOT_FOUND for a path outside the tenant
        return CompetencyPolicy()
    return policy_for_league(league)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _match_view(match: Match) -> Dict[str, Any]:
    return {
        "match_id": match.id,
        "league_id": match.league_id,
        "group_id": match.group_id,
        "matchday_id": match.matchday_id,
        "matchday_number": match.matchday_number,
        "home_team_id": match.home_team_id,
        "away_team_id": match.away_team_id,
        "kickoff": _iso(match.kickoff),
        "status": match.status,
        "crew": crew_to_dict(match),
        "updated_at": _iso(match.updated_at),
        "updated_by": match.updated_by,
    }


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/tenants/{tenant_id}/leagues/{league_id}/groups/{group_id}/matchdays/{matchday_id}/matches/{match_id}/crew"
)
def assign_crew(
    tenant_id: str,
    league_id: int,
    group_id: int,
    matchday_id: int,
    match_id: int,
    request: CrewAssignRequest,
    session: Session = Depends(get_session),
):
    """
    Validate and save the crew for one match.

    The response body is always the outcome payload; the status code is 200
    for OK / OK_WITH_WARNING, 422 for MISSING_PARAMS, 404 for MATCH_NOT_FOUND
    and 409 for every other rejection.
    """
    path = MatchPath(
        tenant_id=tenant_id,
        league_id=league_id,
        group_id=group_id,
        matchday_id=matchday_id,
        match_id=match_id,
    )
    outcome = validate_and_assign(
        session,
        path,
        request.to_proposal(),
        policy=_policy_for(session, tenant_id, league_id),
        difficulty_provider=TeamTierDifficulty(session),
        actor_id=request.actor_id,
        ignore_recent_team_conflicts=request.ignore_recent_team_conflicts,
        ignore_same_day_conflicts=request.ignore_same_day_conflicts,
        writer=writer_from_config(),
    )
    return JSONResponse(status_code=_OUTCOME_STATUS.get(outcome.code, 409), content=outcome.to_dict())


@router.post("/tenants/{tenant_id}/crews/confirm", response_model=BatchConfirmResponse)
def confirm_crews_batch(tenant_id: str, request: BatchConfirmRequest, session: Session = Depends(get_session)):
    """
    Confirm many crews at once.

    Only checks that the three core slots are filled with no repeated
    referee; availability, rotation, schedule, same-day and competency rules
    are NOT applied on this path. Rows failing the check are skipped.
    """
    items = [
        BatchCrewItem(
            path=MatchPath(
                tenant_id=tenant_id,
                league_id=item.league_id,
                group_id=item.group_id,
                matchday_id=item.matchday_id,
                match_id=item.match_id,
            ),
            proposal=item.to_proposal(),
        )
        for item in request.items
    ]
    committed = confirm_crews(session, tenant_id, items, request.actor_id)
    return BatchConfirmResponse(committed=committed)


@router.get("/tenants/{tenant_id}/assignments")
def get_assignments(tenant_id: str, session: Session = Depends(get_session)):
    """Crews for every match of the tenant, ordered by kickoff (unscheduled last) then id."""
    cached = assignments_view_cache.get(tenant_id)
    if cached is not None:
        return {"tenant_id": tenant_id, "cached": True, "matches": cached}

    # Taken before the read; a commit after this point makes put() a no-op
    generation = assignments_view_cache.generation(tenant_id)
    matches = session.exec(select(Match).where(Match.tenant_id == tenant_id)).all()
    ordered = sorted(matches, key=lambda m: (m.kickoff is None, m.kickoff or datetime.max, m.id))
    view = [_match_view(m) for m in ordered]
    assignments_view_cache.put(tenant_id, view, generation=generation)
    return {"tenant_id": tenant_id, "cached": False, "matches": view}


@router.get("/referees/{referee_id}/competency", response_model=RefereeCompetencyResponse)
def get_referee_competency(referee_id: int, session: Session = Depends(get_session)):
    referee = session.get(Referee, referee_id)
    if not referee:
        raise HTTPException(status_code=404, detail="Referee not found")

    central = referee_competency(referee)
    return RefereeCompetencyResponse(
        referee_id=referee.id,
        name=referee.name,
        tier=referee.tier,
        tier_competency=tier_to_competency(referee.tier),
        competency_override=referee.competency_override,
        central_competency=central,
        approximate_tier=competency_to_tier(central),
        available=RefereeDirectory(session).is_available(referee.id),
    )
