from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    group_id: int = Field(foreign_key="leaguegroup.id", index=True)
    matchday_id: int = Field(foreign_key="matchday.id", index=True)
    matchday_number: int = Field(index=True)  # denormalized from Matchday.number

    home_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    away_team_id: Optional[int] = Field(default=None, foreign_key="team.id")

    kickoff: Optional[datetime] = Field(default=None, index=True)
    status: str = Field(default="scheduled")  # "scheduled" | "played" | "postponed" | "cancelled"

    # Difficulty score supplied by scheduling tooling; None -> derived from team tiers
    difficulty: Optional[int] = Field(default=None)

    # Crew slots: each pair holds a directory referee OR an external label, never both.
    # Read and write them through refdesk.services.crew_types.read_slot/write_slot.
    central_referee_id: Optional[int] = Field(default=None, foreign_key="referee.id")
    central_label: Optional[str] = Field(default=None)
    assistant_1_referee_id: Optional[int] = Field(default=None, foreign_key="referee.id")
    assistant_1_label: Optional[str] = Field(default=None)
    assistant_2_referee_id: Optional[int] = Field(default=None, foreign_key="referee.id")
    assistant_2_label: Optional[str] = Field(default=None)
    fourth_official_referee_id: Optional[int] = Field(default=None, foreign_key="referee.id")
    fourth_official_label: Optional[str] = Field(default=None)
    assessor_referee_id: Optional[int] = Field(default=None, foreign_key="referee.id")
    assessor_label: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default=None)
    updated_by: Optional[str] = Field(default=None)
