"""Read-only lookups against the referee directory."""

from typing import Iterable, List, Optional

from sqlmodel import Session

from refdesk.models.referee import Referee, RefereeStatus


class RefereeDirectory:
    def __init__(self, session: Session):
        self.session = session

    def get(self, referee_id: int) -> Optional[Referee]:
        return self.session.get(Referee, referee_id)

    def is_available(self, referee_id: int) -> bool:
        """
        A referee is available only if the record exists and its status is AVAILABLE.

        A missing record (e.g. a deleted referee still referenced by a form)
        counts as unavailable rather than raising.
        """
        referee = self.get(referee_id)
        if referee is None:
            return False
        return (referee.status or "").strip().upper() == RefereeStatus.AVAILABLE.value

    def unavailable(self, referee_ids: Iterable[int]) -> List[int]:
        """Ids that fail is_available, in input order, without repeats."""
        result: List[int] = []
        for referee_id in referee_ids:
            if referee_id not in result and not self.is_available(referee_id):
                result.append(referee_id)
        return result
