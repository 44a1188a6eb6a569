"""Step outcome types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    ABORTED_PENDING_RETRY = "aborted"


@dataclass(frozen=True)
class StepOutcome:
    """Result of a lifecycle step that did not raise.

    ``ABORTED_PENDING_RETRY`` means the step did useful work but wants the
    scheduler to invoke it again later.
    """
    status: OutcomeStatus
    reason: Optional[str] = None

    @classmethod
    def completed(cls) -> "StepOutcome":
        return cls(OutcomeStatus.COMPLETED)

    @classmethod
    def aborted(cls, reason: str) -> "StepOutcome":
        return cls(OutcomeStatus.ABORTED_PENDING_RETRY, reason)

    @property
    def is_aborted(self) -> bool:
        return self.status is OutcomeStatus.ABORTED_PENDING_RETRY


__all__ = ["OutcomeStatus", "StepOutcome"]
