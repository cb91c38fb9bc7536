"""
Task requests: a task description bound to an identity and timing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from src.tasks.task import TaskDescription


class RequestPriority(Enum):
    """Binary priority marker."""

    STANDARD = auto()
    HIGH = auto()


@dataclass(frozen=True)
class Request:
    """A pending job to be assigned to one agent.

    Attributes:
        id: Unique request identifier.
        submission_time: Time in seconds when the request entered the system.
        description: What has to be done.
        priority: Optional priority marker; None behaves as STANDARD.
        earliest_start_time: The task may not begin before this time.
            Defaults to ``submission_time``.
        deadline: Optional time by which the task should be finished. A late
            finish is allowed but penalised like an unassigned request.
    """

    id: str
    submission_time: float
    description: TaskDescription
    priority: RequestPriority | None = None
    earliest_start_time: float | None = None
    deadline: float | None = None

    def __post_init__(self) -> None:
        if self.earliest_start_time is None:
            object.__setattr__(self, "earliest_start_time", self.submission_time)

    @property
    def is_high_priority(self) -> bool:
        return self.priority == RequestPriority.HIGH

    def is_late(self, finish_time: float) -> bool:
        """Whether finishing at ``finish_time`` misses the deadline."""
        return self.deadline is not None and finish_time > self.deadline
