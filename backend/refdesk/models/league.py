from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from refdesk.models.league_group import LeagueGroup


class CompetencyPolicyMode(str, Enum):
    NONE = "NONE"
    WARN = "WARN"
    BLOCK = "BLOCK"


class League(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)  # delegate / organisation scope
    name: str
    season: Optional[str] = Field(default=None)

    # Season-level competency policy: central competency + tolerance must reach match difficulty
    central_tolerance: Optional[float] = Field(default=None)  # None -> DEFAULT_CENTRAL_TOLERANCE
    competency_policy: CompetencyPolicyMode = Field(
        default=CompetencyPolicyMode.NONE, sa_column=Column(String, nullable=False)
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    groups: List["LeagueGroup"] = Relationship(back_populates="league")
