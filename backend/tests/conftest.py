import os

# Keep app startup (init_db) away from the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from refdesk.database import get_session  # noqa: E402
from refdesk.main import app  # noqa: E402
from refdesk.models.league import CompetencyPolicyMode, League  # noqa: E402
from refdesk.models.league_group import LeagueGroup  # noqa: E402
from refdesk.models.match import Match  # noqa: E402
from refdesk.models.matchday import Matchday  # noqa: E402
from refdesk.models.referee import Referee, RefereeStatus  # noqa: E402
from refdesk.models.team import Team  # noqa: E402
from refdesk.services.assignment_cache import assignments_view_cache  # noqa: E402
from refdesk.services.crew_types import MatchPath  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables created per test and dropped afterwards
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on freshly created tables"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)
    assignments_view_cache.clear()


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# League fixture
# ============================================================================


class LeagueWorld:
    """One tenant, one league, one group, matchdays 1..10, four teams."""

    TENANT = "delegate-north"

    def __init__(self, session: Session):
        self.session = session

        self.league = League(
            tenant_id=self.TENANT,
            name="Liga Norte",
            season="2026",
            central_tolerance=1,
            competency_policy=CompetencyPolicyMode.NONE,
        )
        self._save(self.league)

        self.group = LeagueGroup(league_id=self.league.id, name="Group A")
        self._save(self.group)

        self.matchdays = {}
        for number in range(1, 11):
            matchday = Matchday(group_id=self.group.id, number=number)
            self._save(matchday)
            self.matchdays[number] = matchday

        self.teams = []
        for i, tier in enumerate(["CALM", "REGULAR", "DIFFICULT", "VERY_DIFFICULT"], start=1):
            team = Team(group_id=self.group.id, name=f"Team {i}", difficulty_tier=tier)
            self._save(team)
            self.teams.append(team)

    def _save(self, row):
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def referee(
        self,
        name: str,
        tier: Optional[str] = "EXPERIENCED",
        status: str = RefereeStatus.AVAILABLE.value,
        competency_override: Optional[int] = None,
    ) -> Referee:
        return self._save(
            Referee(
                name=name,
                tier=tier,
                status=status,
                roles_allowed=["CENTRAL", "ASSISTANT"],
                zones=["north"],
                competency_override=competency_override,
            )
        )

    def match(
        self,
        matchday_number: int,
        home: int = 0,
        away: int = 1,
        kickoff: Optional[datetime] = None,
        difficulty: Optional[int] = None,
        **crew,
    ) -> Match:
        """Create a match; team arguments are indexes into self.teams."""
        return self._save(
            Match(
                tenant_id=self.TENANT,
                league_id=self.league.id,
                group_id=self.group.id,
                matchday_id=self.matchdays[matchday_number].id,
                matchday_number=matchday_number,
                home_team_id=self.teams[home].id,
                away_team_id=self.teams[away].id,
                kickoff=kickoff,
                difficulty=difficulty,
                **crew,
            )
        )

    def path(self, match: Match) -> MatchPath:
        return MatchPath(
            tenant_id=match.tenant_id,
            league_id=match.league_id,
            group_id=match.group_id,
            matchday_id=match.matchday_id,
            match_id=match.id,
        )

    def url(self, match: Match) -> str:
        return (
            f"/api/tenants/{match.tenant_id}/leagues/{match.league_id}/groups/{match.group_id}"
            f"/matchdays/{match.matchday_id}/matches/{match.id}/crew"
        )


@pytest.fixture
def world(session: Session) -> LeagueWorld:
    return LeagueWorld(session)
