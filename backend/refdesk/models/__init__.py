from refdesk.models.league import CompetencyPolicyMode, League
from refdesk.models.league_group import LeagueGroup
from refdesk.models.match import Match
from refdesk.models.matchday import Matchday
from refdesk.models.referee import Referee, RefereeStatus, RefereeTier
from refdesk.models.team import Team, TeamDifficultyTier

__all__ = [
    "League",
    "CompetencyPolicyMode",
    "LeagueGroup",
    "Matchday",
    "Team",
    "TeamDifficultyTier",
    "Referee",
    "RefereeStatus",
    "RefereeTier",
    "Match",
]
