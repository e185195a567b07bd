from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence, Tuple

from .model import Workshop

# Receives the current workshop, returns the new participant tuple or raises.
ParticipantsMutation = Callable[[Workshop], Tuple[str, ...]]


class WorkshopRepository(Protocol):
    def get_by_id(self, workshop_id: str) -> Optional[Workshop]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Workshop]:
        raise NotImplementedError

    def add(self, workshop: Workshop) -> None:
        raise NotImplementedError

    def update(self, workshop_id: str, mutate: Callable[[Workshop], Workshop]) -> Optional[Workshop]:
        """Replace the workshop's attributes (participants are kept as stored).

        ``mutate`` runs inside the workshop's critical section, so it sees the
        current participant list and may reject the change by raising.
        """

        raise NotImplementedError

    def delete_by_id(self, workshop_id: str) -> bool:
        raise NotImplementedError

    def mutate_participants(self, workshop_id: str, mutate: ParticipantsMutation) -> Optional[Workshop]:
        """Atomically read-check-write the roster of one workshop.

        Returns the updated workshop, or None when the workshop does not exist.
        Nothing is written when ``mutate`` raises.
        """

        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[Workshop]:
        raise NotImplementedError
