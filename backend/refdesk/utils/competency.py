"""
Competency scoring

Maps a referee's experience tier to a numeric competency score and a match's
team difficulty tiers to a difficulty score. The central referee passes the
competency check when competency + tolerance >= difficulty.
"""

import logging
from typing import Optional, Protocol

from sqlmodel import Session

from refdesk.models.match import Match
from refdesk.models.referee import Referee, RefereeTier
from refdesk.models.team import Team, TeamDifficultyTier

logger = logging.getLogger(__name__)

# INELIGIBLE maps to None: kept out of automatic pools, manual assignment only
TIER_COMPETENCY = {
    RefereeTier.INELIGIBLE.value: None,
    RefereeTier.DEBUTANT.value: 1,
    RefereeTier.DEVELOPING.value: 2,
    RefereeTier.EXPERIENCED.value: 3,
    RefereeTier.HIGHLY_EXPERIENCED.value: 4,
}

TEAM_TIER_DIFFICULTY = {
    TeamDifficultyTier.CALM.value: 1,
    TeamDifficultyTier.REGULAR.value: 2,
    TeamDifficultyTier.DIFFICULT.value: 3,
    TeamDifficultyTier.VERY_DIFFICULT.value: 4,
}


def _normalize(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = raw.value if isinstance(raw, RefereeTier) else str(raw)
    value = value.strip().upper()
    return value or None


def tier_to_competency(tier: Optional[str]) -> Optional[int]:
    """Competency score for a tier; None for INELIGIBLE, empty or unknown values."""
    normalized = _normalize(tier)
    if normalized is None:
        return None
    if normalized not in TIER_COMPETENCY:
        logger.warning("Unrecognized referee tier %r (normalized %r)", tier, normalized)
        return None
    return TIER_COMPETENCY[normalized]


def competency_to_tier(score: Optional[float]) -> Optional[str]:
    """Approximate inverse of tier_to_competency, for display only."""
    if score is None:
        return None
    if score >= 4:
        return RefereeTier.HIGHLY_EXPERIENCED.value
    if score >= 3:
        return RefereeTier.EXPERIENCED.value
    if score >= 2:
        return RefereeTier.DEVELOPING.value
    if score >= 1:
        return RefereeTier.DEBUTANT.value
    return None


def referee_competency(referee: Referee) -> Optional[int]:
    """Competency used for the central slot: override first, then tier."""
    if referee.competency_override is not None:
        return referee.competency_override
    return tier_to_competency(referee.tier)


def team_tier_to_difficulty(tier: Optional[str]) -> Optional[int]:
    if not tier:
        return None
    return TEAM_TIER_DIFFICULTY.get(str(tier).strip().upper())


def match_difficulty_from_tiers(home_tier: Optional[str], away_tier: Optional[str]) -> Optional[int]:
    """Harder of the two teams; a missing tier is ignored, None if neither is known."""
    home = team_tier_to_difficulty(home_tier)
    away = team_tier_to_difficulty(away_tier)
    if home is None:
        return away
    if away is None:
        return home
    return max(home, away)


class MatchDifficultyProvider(Protocol):
    def difficulty_for(self, match: Match) -> Optional[int]: ...


class TeamTierDifficulty:
    """Difficulty from the stored match score, falling back to the teams' tiers."""

    def __init__(self, session: Session):
        self.session = session

    def difficulty_for(self, match: Match) -> Optional[int]:
        if match.difficulty is not None:
            return match.difficulty

        home = self.session.get(Team, match.home_team_id) if match.home_team_id else None
        away = self.session.get(Team, match.away_team_id) if match.away_team_id else None
        return match_difficulty_from_tiers(
            home.difficulty_tier if home else None,
            away.difficulty_tier if away else None,
        )
