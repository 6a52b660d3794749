from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class RefereeStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    DOUBTFUL = "DOUBTFUL"
    INJURED = "INJURED"


class RefereeTier(str, Enum):
    INELIGIBLE = "INELIGIBLE"
    DEBUTANT = "DEBUTANT"
    DEVELOPING = "DEVELOPING"
    EXPERIENCED = "EXPERIENCED"
    HIGHLY_EXPERIENCED = "HIGHLY_EXPERIENCED"


class Referee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    status: str = Field(default=RefereeStatus.AVAILABLE.value)  # AVAILABLE | DOUBTFUL | INJURED
    tier: Optional[str] = Field(default=None)  # RefereeTier value; legacy casing tolerated
    zones: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    roles_allowed: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    can_assess: bool = Field(default=False)

    # Takes precedence over the tier-derived score for the central slot
    competency_override: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
