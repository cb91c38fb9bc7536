"""
Task descriptions and the builder that composes them from phases.

A TaskDescription is an immutable, non-empty tuple of phases plus reporting
metadata. It is the atomic unit the planner assigns: all of its phases go to
one agent, back-to-back, in order.

Composition is cost-neutral. Estimating a composed task equals chaining the
estimates of its phases from the same starting state; dispatching the same
phases as separate tasks adds no overhead of its own.

Usage:
    builder = TaskBuilder()
    builder.add_phase(GoToPlace(goal=1))
    go_task = builder.build("delivery", "go")          # 1 phase
    builder.add_phase(PerformAction("clean", expected_duration_s=3600, use_tool_sink=True))
    clean_task = builder.build("delivery", "go+clean")  # 2 phases, go_task unchanged
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from src.tasks.errors import BatteryDepletedError, EmptyTaskError
from src.tasks.phases import PHASE_KINDS, PhaseDescription, PhaseEstimate, estimate_phase, min_duration_s

if TYPE_CHECKING:
    from src.tasks.state import AgentState, Constraints, Parameters


@dataclass(frozen=True)
class TaskEstimate:
    """Projected cost of a whole task run from one starting state.

    Attributes:
        duration_s: Sum of phase durations.
        energy_j: Sum of phase energies.
        soc_consumed: Sum of phase SoC draws.
        finish_state: State after the last phase.
        phase_socs: SoC at every phase boundary, after each phase.
        phases: The individual phase estimates, in order.
    """

    duration_s: float
    energy_j: float
    soc_consumed: float
    finish_state: AgentState
    phase_socs: tuple[float, ...]
    phases: tuple[PhaseEstimate, ...]


@dataclass(frozen=True)
class TaskDescription:
    """An ordered, non-empty sequence of phases.

    Attributes:
        phases: The phases, in execution order.
        category: Free-form category used for reporting.
        tag: Free-form tag used for reporting.
        phase_params: Per-phase options (e.g. pre/post conditions), parallel
            to ``phases``. Carried through for dispatchers; not interpreted
            by estimation.
    """

    phases: tuple[PhaseDescription, ...]
    category: str = ""
    tag: str = ""
    phase_params: tuple[Mapping | None, ...] = field(default=(), hash=False)

    def __post_init__(self) -> None:
        if not self.phases:
            raise EmptyTaskError("A task needs at least one phase")
        if not self.phase_params:
            object.__setattr__(self, "phase_params", (None,) * len(self.phases))
        elif len(self.phase_params) != len(self.phases):
            raise ValueError(
                f"phase_params has {len(self.phase_params)} entries for {len(self.phases)} phases"
            )
        else:
            frozen = tuple(None if p is None else MappingProxyType(dict(p)) for p in self.phase_params)
            object.__setattr__(self, "phase_params", frozen)

    def estimate(
        self,
        state: AgentState,
        parameters: Parameters,
        constraints: Constraints,
    ) -> TaskEstimate:
        """Run every phase back-to-back from ``state``.

        With ``constraints.drain_battery`` the SoC after every phase must stay
        at or above ``constraints.soc_threshold``. Without it the SoC is held
        constant (energy is still reported).

        Raises:
            NoRouteError: A GoToPlace phase has no route.
            BatteryDepletedError: A phase boundary falls below the threshold.
        """
        current = state
        estimates: list[PhaseEstimate] = []
        socs: list[float] = []
        for index, phase in enumerate(self.phases):
            est = estimate_phase(phase, current, parameters)
            if constraints.drain_battery:
                soc = current.soc - est.soc_consumed
                if soc < constraints.soc_threshold:
                    raise BatteryDepletedError(
                        soc, constraints.soc_threshold, f"after phase {index} of {self.tag or 'task'}"
                    )
            else:
                soc = current.soc
            current = est.finish_state.advanced(duration_s=0.0, soc=soc)
            estimates.append(est)
            socs.append(soc)

        return TaskEstimate(
            duration_s=sum(e.duration_s for e in estimates),
            energy_j=sum(e.energy_j for e in estimates),
            soc_consumed=sum(e.soc_consumed for e in estimates),
            finish_state=current,
            phase_socs=tuple(socs),
            phases=tuple(estimates),
        )

    def min_duration_s(self) -> float:
        """Lower bound on the task duration that holds from any location."""
        return sum(min_duration_s(p) for p in self.phases)


class TaskBuilder:
    """Accumulates phases and snapshots them into TaskDescriptions.

    The builder is reusable: ``build()`` leaves the accumulated phases in
    place, so appending more phases and building again yields a longer task
    sharing the prefix. Every built description owns an independent tuple.
    """

    def __init__(self) -> None:
        self._phases: list[PhaseDescription] = []
        self._phase_params: list[Mapping | None] = []

    def add_phase(self, description: PhaseDescription, per_phase_params: Mapping | None = None) -> TaskBuilder:
        """Append a phase. Returns the builder for chaining."""
        if not isinstance(description, PHASE_KINDS):
            raise TypeError(f"Unsupported phase description: {type(description).__name__}")
        self._phases.append(description)
        self._phase_params.append(per_phase_params)
        return self

    def build(self, category: str, tag: str) -> TaskDescription:
        """Snapshot the accumulated phases.

        Raises:
            EmptyTaskError: No phase has been added.
        """
        if not self._phases:
            raise EmptyTaskError("Cannot build a task without phases")
        return TaskDescription(
            phases=tuple(self._phases),
            category=category,
            tag=tag,
            phase_params=tuple(self._phase_params),
        )

    @property
    def n_phases(self) -> int:
        return len(self._phases)
