from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from refdesk.models.league import League
    from refdesk.models.matchday import Matchday


class LeagueGroup(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    name: str

    # Relationships
    league: "League" = Relationship(back_populates="groups")
    matchdays: List["Matchday"] = Relationship(back_populates="group")
