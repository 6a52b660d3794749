"""
Crew value types

A crew slot holds either a directory referee or a free-text external label
(e.g. a guest official), never both. The two optional roles additionally
distinguish "absent from the submission" (keep what is stored) from an
explicit empty value (clear it).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from refdesk.models.match import Match

CENTRAL = "CENTRAL"
ASSISTANT_1 = "ASSISTANT_1"
ASSISTANT_2 = "ASSISTANT_2"
FOURTH_OFFICIAL = "FOURTH_OFFICIAL"
ASSESSOR = "ASSESSOR"

CORE_ROLES: Tuple[str, ...] = (CENTRAL, ASSISTANT_1, ASSISTANT_2)
OPTIONAL_ROLES: Tuple[str, ...] = (FOURTH_OFFICIAL, ASSESSOR)
ALL_ROLES: Tuple[str, ...] = CORE_ROLES + OPTIONAL_ROLES

# role -> Match column prefix
_COLUMN_PREFIX: Dict[str, str] = {
    CENTRAL: "central",
    ASSISTANT_1: "assistant_1",
    ASSISTANT_2: "assistant_2",
    FOURTH_OFFICIAL: "fourth_official",
    ASSESSOR: "assessor",
}


@dataclass(frozen=True)
class RefereeSlot:
    referee_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"referee_id": self.referee_id, "label": None}


@dataclass(frozen=True)
class LabelSlot:
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"referee_id": None, "label": self.label}


SlotValue = Union[RefereeSlot, LabelSlot]


@dataclass(frozen=True)
class SlotUpdate:
    """Optional-of-optional for the fourth official and assessor.

    present=False  -> field absent from the submission, keep stored value
    present=True, value=None -> explicit empty, clear the slot
    present=True, value=X    -> set the slot to X
    """

    present: bool = False
    value: Optional[SlotValue] = None

    @classmethod
    def keep(cls) -> "SlotUpdate":
        return cls(present=False, value=None)

    @classmethod
    def clear(cls) -> "SlotUpdate":
        return cls(present=True, value=None)

    @classmethod
    def set(cls, value: SlotValue) -> "SlotUpdate":
        return cls(present=True, value=value)

    def resolve(self, stored: Optional[SlotValue]) -> Optional[SlotValue]:
        """Value the slot will hold once this update is applied."""
        return self.value if self.present else stored


@dataclass(frozen=True)
class MatchPath:
    """Full hierarchical address of a match inside a tenant."""

    tenant_id: str
    league_id: int
    group_id: int
    matchday_id: int
    match_id: int


@dataclass
class CrewProposal:
    central: Optional[SlotValue] = None
    assistant_1: Optional[SlotValue] = None
    assistant_2: Optional[SlotValue] = None
    fourth_official: SlotUpdate = field(default_factory=SlotUpdate.keep)
    assessor: SlotUpdate = field(default_factory=SlotUpdate.keep)

    def core_slots(self) -> List[Tuple[str, Optional[SlotValue]]]:
        return [
            (CENTRAL, self.central),
            (ASSISTANT_1, self.assistant_1),
            (ASSISTANT_2, self.assistant_2),
        ]

    def optional_updates(self) -> List[Tuple[str, SlotUpdate]]:
        return [(FOURTH_OFFICIAL, self.fourth_official), (ASSESSOR, self.assessor)]

    def core_referee_ids(self) -> List[Tuple[str, int]]:
        """(role, referee_id) for every core slot holding a directory referee."""
        return [(role, value.referee_id) for role, value in self.core_slots() if isinstance(value, RefereeSlot)]

    def missing_core_roles(self) -> List[str]:
        return [role for role, value in self.core_slots() if not slot_is_filled(value)]

    def duplicate_referee_ids(self) -> List[int]:
        """Directory ids repeated among the core roles. Labels never count."""
        seen = set()
        duplicates: List[int] = []
        for _role, referee_id in self.core_referee_ids():
            if referee_id in seen and referee_id not in duplicates:
                duplicates.append(referee_id)
            seen.add(referee_id)
        return duplicates

    def effective_referee_ids(self, match: Match) -> List[Tuple[str, int]]:
        """Core ids plus the optional roles as they will stand after commit."""
        result = self.core_referee_ids()
        for role, update in self.optional_updates():
            value = update.resolve(read_slot(match, role))
            if isinstance(value, RefereeSlot):
                result.append((role, value.referee_id))
        return result


def slot_is_filled(value: Optional[SlotValue]) -> bool:
    if isinstance(value, RefereeSlot):
        return True
    if isinstance(value, LabelSlot):
        return bool(value.label and value.label.strip())
    return False


def read_slot(match: Match, role: str) -> Optional[SlotValue]:
    prefix = _COLUMN_PREFIX[role]
    referee_id = getattr(match, f"{prefix}_referee_id")
    if referee_id is not None:
        return RefereeSlot(referee_id)
    label = getattr(match, f"{prefix}_label")
    if label:
        return LabelSlot(label)
    return None


def write_slot(match: Match, role: str, value: Optional[SlotValue]) -> None:
    prefix = _COLUMN_PREFIX[role]
    if isinstance(value, RefereeSlot):
        setattr(match, f"{prefix}_referee_id", value.referee_id)
        setattr(match, f"{prefix}_label", None)
    elif isinstance(value, LabelSlot):
        setattr(match, f"{prefix}_referee_id", None)
        setattr(match, f"{prefix}_label", value.label.strip())
    else:
        setattr(match, f"{prefix}_referee_id", None)
        setattr(match, f"{prefix}_label", None)


def stored_referee_ids(match: Match, roles: Tuple[str, ...] = ALL_ROLES) -> List[Tuple[str, int]]:
    """(role, referee_id) for each stored slot holding a directory referee."""
    result: List[Tuple[str, int]] = []
    for role in roles:
        value = read_slot(match, role)
        if isinstance(value, RefereeSlot):
            result.append((role, value.referee_id))
    return result


def crew_to_dict(match: Match) -> Dict[str, Any]:
    crew: Dict[str, Any] = {}
    for role in ALL_ROLES:
        value = read_slot(match, role)
        crew[_COLUMN_PREFIX[role]] = value.to_dict() if value is not None else None
    return crew
