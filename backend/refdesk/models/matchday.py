from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from refdesk.models.league_group import LeagueGroup


class Matchday(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("group_id", "number", name="uq_group_matchday_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="leaguegroup.id", index=True)
    number: int  # 1-based ordinal within the group

    # Relationships
    group: "LeagueGroup" = Relationship(back_populates="matchdays")
