# Force SQLModel table registration at test discovery time
from refdesk.models.league import League  # noqa: F401
from refdesk.models.league_group import LeagueGroup  # noqa: F401
from refdesk.models.match import Match  # noqa: F401
from refdesk.models.matchday import Matchday  # noqa: F401
from refdesk.models.referee import Referee  # noqa: F401
from refdesk.models.team import Team  # noqa: F401
