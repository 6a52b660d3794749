"""
Crew commit writers

Two paths persist crews onto Match rows, with different guarantees:

* CrewWriter implementations are the last step of the interactive
  validation pipeline (crew_validation.validate_and_assign). They run only
  after every guard has passed.
* confirm_crews is the batch confirmation fast path. It re-checks only that
  the three core slots are filled without repeated directory ids, and does
  NOT re-run availability, recent-team, schedule, same-day or competency
  checks. Crews confirmed this way carry no conflict guarantee.

SequentialCrewWriter writes in a separate step after the guards, so two
concurrent requests can each pass the schedule check before either commits
(best-effort invariant). RecheckingCrewWriter repeats the exact-kickoff check
inside the write transaction to narrow that window.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Set

from sqlmodel import Session

from refdesk.config import CREW_COMMIT_MODE
from refdesk.models.match import Match
from refdesk.services.assignment_cache import TenantViewCache, assignments_view_cache
from refdesk.services.crew_conflicts import ScheduleConflict, find_schedule_conflicts
from refdesk.services.crew_types import CrewProposal, MatchPath, write_slot

logger = logging.getLogger(__name__)


class CrewAssignmentError(Exception):
    """Base exception for crew assignment errors"""
    pass


class CrewWriteConflict(CrewAssignmentError):
    """A conflicting crew was committed between validation and write."""

    def __init__(self, conflicts: List[ScheduleConflict]):
        super().__init__(f"{len(conflicts)} schedule conflict(s) detected at commit time")
        self.conflicts = conflicts


def apply_crew(match: Match, proposal: CrewProposal, actor_id: Optional[str], now: datetime) -> None:
    """Copy the proposal onto the match row; optional roles absent from it are left as stored."""
    for role, value in proposal.core_slots():
        write_slot(match, role, value)
    for role, update in proposal.optional_updates():
        if update.present:
            write_slot(match, role, update.value)
    match.updated_at = now
    match.updated_by = actor_id


def load_match_in_scope(session: Session, path: MatchPath) -> Optional[Match]:
    match = session.get(Match, path.match_id)
    if match is None:
        return None
    if (
        match.tenant_id != path.tenant_id
        or match.league_id != path.league_id
        or match.group_id != path.group_id
        or match.matchday_id != path.matchday_id
    ):
        return None
    return match


class CrewWriter(Protocol):
    def write(self, session: Session, match: Match, proposal: CrewProposal, actor_id: Optional[str]) -> None: ...


class SequentialCrewWriter:
    def __init__(self, cache: TenantViewCache = assignments_view_cache):
        self.cache = cache

    def write(self, session: Session, match: Match, proposal: CrewProposal, actor_id: Optional[str]) -> None:
        apply_crew(match, proposal, actor_id, datetime.utcnow())
        try:
            session.add(match)
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(match)
        self.cache.invalidate(match.tenant_id)
        logger.info("Crew committed on match %s by %s", match.id, actor_id)


class RecheckingCrewWriter(SequentialCrewWriter):
    def write(self, session: Session, match: Match, proposal: CrewProposal, actor_id: Optional[str]) -> None:
        # Drop identity-map state so the re-read sees crews committed by other requests
        session.expire_all()
        conflicts = find_schedule_conflicts(
            session,
            league_id=match.league_id,
            kickoff=match.kickoff,
            proposed=proposal.core_referee_ids(),
            current_match_id=match.id,
        )
        if conflicts:
            logger.info("Commit-time schedule conflict on match %s: %d hit(s)", match.id, len(conflicts))
            raise CrewWriteConflict(conflicts)
        super().write(session, match, proposal, actor_id)


def writer_from_config(mode: str = CREW_COMMIT_MODE) -> CrewWriter:
    if mode == "recheck":
        return RecheckingCrewWriter()
    if mode != "sequential":
        logger.warning("Unknown CREW_COMMIT_MODE %r, using sequential", mode)
    return SequentialCrewWriter()


# ─── Batch confirmation (reduced guarantees) ─────────────────────────────


@dataclass
class BatchCrewItem:
    path: MatchPath
    proposal: CrewProposal


def confirm_crews(
    session: Session,
    tenant_id: str,
    items: Iterable[BatchCrewItem],
    actor_id: Optional[str],
    cache: TenantViewCache = assignments_view_cache,
) -> int:
    """
    Commit many crews at once after only structural checks.

    Items with a missing core slot, a repeated directory id among the core
    slots, or a match outside `tenant_id` are skipped without being reported.
    Every remaining item is written in a single commit (all or nothing).

    Returns:
        Number of distinct matches written. A match listed twice is written
        in list order (the last item wins) and counted once.
    """
    now = datetime.utcnow()
    written_ids: Set[int] = set()
    skipped = 0

    for item in items:
        proposal = item.proposal
        if item.path.tenant_id != tenant_id or proposal.missing_core_roles() or proposal.duplicate_referee_ids():
            skipped += 1
            logger.debug("Batch confirm skipped match %s: structural check failed", item.path.match_id)
            continue

        match = load_match_in_scope(session, item.path)
        if match is None:
            skipped += 1
            logger.debug("Batch confirm skipped match %s: not found in tenant %s", item.path.match_id, tenant_id)
            continue

        apply_crew(match, proposal, actor_id, now)
        session.add(match)
        written_ids.add(match.id)

    committed = len(written_ids)
    if committed:
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise

    cache.invalidate(tenant_id)
    logger.info("Batch confirm for tenant %s: %d committed, %d skipped", tenant_id, committed, skipped)
    return committed
