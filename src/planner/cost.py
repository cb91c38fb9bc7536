"""
Cost calculators used by the search engine to rank candidate solutions.

Every calculator produces a two-level lexicographic ``Cost``:

  penalty  number of requests left unassigned plus requests finishing past
           their deadline (fewer is strictly better: serving dominates cost)
  value    a pluggable scalar, compared only when penalties tie

The branch-and-bound search relies on this contract: a partial solution's
penalty never decreases as more requests are placed, and each scalar cost
provides a ``bound`` that never overestimates the value of a completion.
Replacement schemes must keep both properties.

Scalar costs
────────────
  TotalLatency   Σ (finish − earliest start), high-priority requests weighted  ← DEFAULT
  Makespan       latest finish time over all agents
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from src.planner.schedule import Assignment
    from src.tasks.request import Request

FinishTime = Callable[["Assignment"], float]


def default_finish_time(assignment: Assignment) -> float:
    """Finish time straight from the projected finish state."""
    return assignment.finish_state.time


@dataclass(frozen=True, order=True)
class Cost:
    """Lexicographic cost: ``penalty`` first, then ``value``."""

    penalty: int
    value: float

    def __str__(self) -> str:
        return f"Cost(penalty={self.penalty}, value={self.value:.1f})"


class ScalarCost(Protocol):
    """Tie-breaking scalar cost over placed assignments."""

    def __call__(self, assignments: Sequence[Assignment], finish_time: FinishTime) -> float:
        """Scalar cost of the placed assignments."""

    def bound(self, value: float, remaining: Sequence[Request]) -> float:
        """Lower bound on the value once ``remaining`` are placed too."""


class TotalLatency:
    """Sum of (finish time − earliest start time) over all assignments.

    High-priority requests count ``high_priority_weight`` times, which pulls
    them to the front of the queues without changing the penalty level.
    """

    def __init__(self, high_priority_weight: float = 1.0) -> None:
        if high_priority_weight < 1.0:
            raise ValueError(f"high_priority_weight must be >= 1, got {high_priority_weight!r}")
        self.high_priority_weight = high_priority_weight

    def _weight(self, request: Request) -> float:
        return self.high_priority_weight if request.is_high_priority else 1.0

    def __call__(self, assignments: Sequence[Assignment], finish_time: FinishTime) -> float:
        return sum(
            self._weight(a.request) * (finish_time(a) - a.request.earliest_start_time)
            for a in assignments
        )

    def bound(self, value: float, remaining: Sequence[Request]) -> float:
        # A placed request finishes no earlier than its location-free duration after its start.
        return value + sum(self._weight(r) * r.description.min_duration_s() for r in remaining)


class Makespan:
    """Latest finish time over all assignments."""

    def __call__(self, assignments: Sequence[Assignment], finish_time: FinishTime) -> float:
        return max((finish_time(a) for a in assignments), default=0.0)

    def bound(self, value: float, remaining: Sequence[Request]) -> float:
        return max(
            [value]
            + [r.earliest_start_time + r.description.min_duration_s() for r in remaining]
        )


class CostCalculator:
    """Ranks candidate solutions with the two-level cost.

    Args:
        scalar_cost: Tie-breaking scalar. Defaults to TotalLatency().
    """

    def __init__(self, scalar_cost: ScalarCost | None = None) -> None:
        self.scalar_cost = scalar_cost or TotalLatency()

    def evaluate(
        self,
        schedules: Iterable[Sequence[Assignment]],
        n_unassigned: int,
        finish_time: FinishTime | None = None,
    ) -> Cost:
        """Cost of a (partial) solution.

        Args:
            schedules: Per-agent assignment sequences.
            n_unassigned: Requests that could not be placed.
            finish_time: Override for the finish time counted by the scalar.
        """
        assignments = [a for schedule in schedules for a in schedule]
        late = sum(1 for a in assignments if a.request.is_late(a.finish_state.time))
        value = self.scalar_cost(assignments, finish_time or default_finish_time)
        return Cost(n_unassigned + late, float(value))

    def lower_bound(self, cost: Cost, remaining: Sequence[Request]) -> Cost:
        """Best cost any completion of a partial solution could reach."""
        return Cost(cost.penalty, float(self.scalar_cost.bound(cost.value, remaining)))

    @staticmethod
    def compare(a: Cost, b: Cost) -> int:
        """-1 if ``a`` is better, 1 if ``b`` is better, 0 on a tie."""
        return (a > b) - (a < b)


class BinaryPriorityScheme:
    """Factory for the default calculator: serve as many requests as possible
    (high-priority ones first), then minimise latency."""

    DEFAULT_HIGH_PRIORITY_WEIGHT = 10.0

    @staticmethod
    def make_cost_calculator(
        scalar_cost: ScalarCost | None = None,
        high_priority_weight: float = DEFAULT_HIGH_PRIORITY_WEIGHT,
    ) -> CostCalculator:
        """Build a CostCalculator.

        Args:
            scalar_cost: Custom tie-breaker. If given, ``high_priority_weight`` is ignored.
            high_priority_weight: Latency weight of HIGH priority requests.
        """
        return CostCalculator(scalar_cost or TotalLatency(high_priority_weight))
