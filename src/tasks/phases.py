"""
Phase descriptions: the composable units of work inside a task.

The set of phase kinds is closed:

  GoToPlace      drive to a goal waypoint
  PerformAction  do a named action in place for an expected duration,
                 optionally powering a tool

``PhaseDescription`` is the union of the two. Every kind implements
``estimate(state, parameters) -> PhaseEstimate``; ``estimate_phase`` is the
single dispatch point used by task estimation and rejects anything outside
the union. A new kind is added by extending the union and its estimate.

Estimation is a pure function of its inputs: it never writes shared state,
so repeated calls with the same arguments return equal results.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from src.tasks.state import AgentState, Parameters


@dataclass(frozen=True)
class PhaseEstimate:
    """Projected cost of one phase.

    Attributes:
        duration_s: Time the phase takes.
        energy_j: Energy drawn from the battery.
        soc_consumed: The same energy as a fraction of full charge.
        finish_state: Agent state when the phase ends (SoC clamped to [0, 1]).
    """

    duration_s: float
    energy_j: float
    soc_consumed: float
    finish_state: AgentState


@dataclass(frozen=True)
class GoToPlace:
    """Drive to ``goal``."""

    goal: Hashable

    def estimate(self, state: AgentState, parameters: Parameters) -> PhaseEstimate:
        """Route from the current location and cost the travel.

        Raises:
            NoRouteError: The route planner found no path.
        """
        route = parameters.route_planner.route(state.location, self.goal)
        energy = parameters.motion_sink.energy(route) + parameters.ambient_sink.energy(
            route.duration_s
        )
        consumed = parameters.battery_system.soc_for_energy(energy)
        return PhaseEstimate(
            duration_s=route.duration_s,
            energy_j=energy,
            soc_consumed=consumed,
            finish_state=state.advanced(
                duration_s=route.duration_s, soc=state.soc - consumed, location=self.goal
            ),
        )


@dataclass(frozen=True)
class PerformAction:
    """Perform ``action`` in place for ``expected_duration_s`` seconds.

    Attributes:
        action: Action name understood by the agents (e.g. "clean").
        parameters: Free-form action parameters, passed through untouched.
        expected_duration_s: How long the action is expected to take.
        use_tool_sink: Whether the action powers the agent's tool.
        expected_finish_location: Where the action leaves the agent, if it moves it.
    """

    action: str
    parameters: Mapping = field(default_factory=dict)
    expected_duration_s: float = 0.0
    use_tool_sink: bool = False
    expected_finish_location: Hashable | None = None

    def __post_init__(self) -> None:
        if self.expected_duration_s < 0.0:
            raise ValueError(
                f"expected_duration_s must be non-negative, got {self.expected_duration_s!r}"
            )
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def __hash__(self) -> int:
        return hash(
            (
                self.action,
                tuple(sorted(self.parameters.items(), key=repr)),
                self.expected_duration_s,
                self.use_tool_sink,
                self.expected_finish_location,
            )
        )

    def estimate(self, state: AgentState, parameters: Parameters) -> PhaseEstimate:
        """Cost the action: ambient draw plus tool draw when requested."""
        duration = self.expected_duration_s
        energy = parameters.ambient_sink.energy(duration)
        if self.use_tool_sink and parameters.tool_sink is not None:
            energy += parameters.tool_sink.energy(duration)
        consumed = parameters.battery_system.soc_for_energy(energy)
        return PhaseEstimate(
            duration_s=duration,
            energy_j=energy,
            soc_consumed=consumed,
            finish_state=state.advanced(
                duration_s=duration,
                soc=state.soc - consumed,
                location=self.expected_finish_location,
            ),
        )


PhaseDescription = Union[GoToPlace, PerformAction]

PHASE_KINDS: tuple[type, ...] = (GoToPlace, PerformAction)


def estimate_phase(phase: PhaseDescription, state: AgentState, parameters: Parameters) -> PhaseEstimate:
    """Estimate any phase kind. Raises TypeError for kinds outside the union."""
    if isinstance(phase, PHASE_KINDS):
        return phase.estimate(state, parameters)
    raise TypeError(f"Unsupported phase description: {type(phase).__name__}")


def min_duration_s(phase: PhaseDescription) -> float:
    """Location-independent lower bound on a phase's duration."""
    if isinstance(phase, PerformAction):
        return phase.expected_duration_s
    return 0.0
