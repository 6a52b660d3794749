from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class TeamDifficultyTier(str, Enum):
    CALM = "CALM"
    REGULAR = "REGULAR"
    DIFFICULT = "DIFFICULT"
    VERY_DIFFICULT = "VERY_DIFFICULT"


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("group_id", "name", name="uq_group_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="leaguegroup.id", index=True)
    name: str
    # Stored as plain text so legacy values survive; unknown values score as None
    difficulty_tier: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
