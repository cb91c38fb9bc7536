"""
Error taxonomy for task estimation and planning.

Two families:

  Caller errors (fail fast, raised out of the public API)
      EmptyTaskError           builder finalised without phases
      InvalidConstraintsError  thresholds outside [0, 1] or inverted

  Candidate infeasibility (caught by the planner, never fatal)
      InfeasibleError          base class
      NoRouteError             the route planner found no path
      BatteryDepletedError     SoC would drop below the allowed threshold
"""

from __future__ import annotations


class PlanningError(Exception):
    """Base class for every error raised by the planning core."""


class EmptyTaskError(PlanningError, ValueError):
    """A task description was built with zero phases."""


class InvalidConstraintsError(PlanningError, ValueError):
    """Battery constraints are not well formed."""


class InfeasibleError(PlanningError):
    """A candidate task or schedule cannot be executed."""


class NoRouteError(InfeasibleError):
    """No route exists between two locations."""

    def __init__(self, start, goal) -> None:
        super().__init__(f"No route from {start!r} to {goal!r}")
        self.start = start
        self.goal = goal


class BatteryDepletedError(InfeasibleError):
    """The projected state-of-charge violates the battery threshold."""

    def __init__(self, soc: float, threshold: float, where: str = "") -> None:
        detail = f" {where}" if where else ""
        super().__init__(f"SoC {soc:.4f} below threshold {threshold:.4f}{detail}")
        self.soc = soc
        self.threshold = threshold
