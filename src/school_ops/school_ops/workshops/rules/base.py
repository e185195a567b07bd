from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...identity.model import User
from ..model import Workshop


@dataclass(frozen=True)
class EnrollmentRequest:
    workshop: Workshop
    student: User
    now: datetime


class EnrollmentRule(ABC):
    """Strategy Pattern: one precondition of enrolling a student."""

    @abstractmethod
    def check(self, request: EnrollmentRequest) -> None:
        """Raise the rule's ConflictError when the request violates it."""

        raise NotImplementedError
