"""
Per-agent schedule projection.

Given an agent's starting state and an ordered queue of requests, project
each task in turn and produce one Assignment per request. Battery rules
applied on top of the task estimate (only when ``drain_battery`` is set):

  1. every phase boundary keeps SoC ≥ soc_threshold   (TaskDescription.estimate)
  2. after the task the agent can still drive back to its charger without
     falling below soc_threshold
  3. if 1 or 2 fails, retry once after a recharge detour: drive to the
     charger, charge to recharge_soc, drive back to where the detour began,
     then wait for the request's earliest start and run the task from there

A detour ends where it started, so the task runs from the same location it
would have without one. Splitting a composed task into separate requests
therefore changes the plan only by the detour's travel and the charge that
replaces it.

Anything still infeasible raises an InfeasibleError; the search engine turns
that into "this slot is not a candidate".
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.tasks.errors import BatteryDepletedError

if TYPE_CHECKING:
    from src.fleet.routing import Route
    from src.tasks.request import Request
    from src.tasks.state import AgentState, Constraints, Parameters
    from src.tasks.task import TaskEstimate


@dataclass(frozen=True)
class RechargeDetour:
    """Drive to the charger, charge, and drive back; executed right before a task.

    Attributes:
        start_state: State when the detour begins.
        arrival_state: State on reaching the charger.
        charged_state: State when charging stops.
        finish_state: State back at ``start_state.location``.
    """

    start_state: AgentState
    arrival_state: AgentState
    charged_state: AgentState
    finish_state: AgentState

    @property
    def travel_s(self) -> float:
        """Driving time of both legs."""
        outbound = self.arrival_state.time - self.start_state.time
        return outbound + self.finish_state.time - self.charged_state.time

    @property
    def charge_s(self) -> float:
        return self.charged_state.time - self.arrival_state.time


@dataclass(frozen=True)
class Assignment:
    """A request placed on one agent's queue.

    Attributes:
        request: The assigned request.
        agent: Index of the agent in the planning call.
        start_time: When the first phase begins.
        finish_state: Projected agent state after the last phase.
        estimate: Full task estimate, including per-phase SoC boundaries.
        recharge: Recharge detour executed before the task, if any.
    """

    request: Request
    agent: int
    start_time: float
    finish_state: AgentState
    estimate: TaskEstimate
    recharge: RechargeDetour | None = None

    @property
    def request_id(self) -> str:
        return self.request.id

    @property
    def phase_socs(self) -> tuple[float, ...]:
        return self.estimate.phase_socs


def travel_soc(route: Route, parameters: Parameters) -> float:
    """SoC drawn by driving ``route`` (motion plus ambient draw)."""
    energy = parameters.motion_sink.energy(route) + parameters.ambient_sink.energy(route.duration_s)
    return parameters.battery_system.soc_for_energy(energy)


def plan_recharge(state: AgentState, parameters: Parameters, constraints: Constraints) -> RechargeDetour:
    """Project a detour to the agent's charger, a charge to ``recharge_soc``
    and the drive back to the agent's current location.

    Raises:
        NoRouteError: The charger is unreachable, or the way back is.
        BatteryDepletedError: The charger is out of range, charging would not
            add charge, or the way back drops below ``soc_threshold``.
    """
    if state.charger is None:
        raise BatteryDepletedError(state.soc, constraints.soc_threshold, "and no charger to go to")

    route = parameters.route_planner.route(state.location, state.charger)
    arrival_soc = state.soc - travel_soc(route, parameters)
    if arrival_soc < 0.0:
        raise BatteryDepletedError(arrival_soc, 0.0, "on the way to the charger")
    if arrival_soc >= constraints.recharge_soc:
        raise BatteryDepletedError(
            arrival_soc, constraints.soc_threshold, "although already charged to the recharge level"
        )

    arrival = state.advanced(duration_s=route.duration_s, soc=arrival_soc, location=state.charger)
    charge_s = parameters.battery_system.charging_duration_s(constraints.recharge_soc - arrival_soc)
    charged = arrival.advanced(duration_s=charge_s, soc=constraints.recharge_soc)

    back = parameters.route_planner.route(state.charger, state.location)
    back_soc = charged.soc - travel_soc(back, parameters)
    if back_soc < constraints.soc_threshold:
        raise BatteryDepletedError(back_soc, constraints.soc_threshold, "on the way back from the charger")

    return RechargeDetour(
        start_state=state,
        arrival_state=arrival,
        charged_state=charged,
        finish_state=charged.advanced(duration_s=back.duration_s, soc=back_soc, location=state.location),
    )


def _check_return_to_charger(finish: AgentState, parameters: Parameters, constraints: Constraints) -> None:
    if finish.charger is None:
        return
    route = parameters.route_planner.route(finish.location, finish.charger)
    soc_left = finish.soc - travel_soc(route, parameters)
    if soc_left < constraints.soc_threshold:
        raise BatteryDepletedError(soc_left, constraints.soc_threshold, "when returning to the charger")


def _run_task(
    agent: int,
    state: AgentState,
    request: Request,
    parameters: Parameters,
    constraints: Constraints,
    recharge: RechargeDetour | None,
) -> Assignment:
    start = state.waited_until(request.earliest_start_time)
    estimate = request.description.estimate(start, parameters, constraints)
    if constraints.drain_battery:
        _check_return_to_charger(estimate.finish_state, parameters, constraints)
    return Assignment(
        request=request,
        agent=agent,
        start_time=start.time,
        finish_state=estimate.finish_state,
        estimate=estimate,
        recharge=recharge,
    )


def project_request(
    agent: int,
    state: AgentState,
    request: Request,
    parameters: Parameters,
    constraints: Constraints,
) -> Assignment:
    """Project one request from ``state``, inserting a recharge if needed.

    Raises:
        InfeasibleError: The request cannot be served from this state.
    """
    try:
        return _run_task(agent, state, request, parameters, constraints, recharge=None)
    except BatteryDepletedError:
        if not constraints.drain_battery or state.charger is None:
            raise
    detour = plan_recharge(state, parameters, constraints)
    return _run_task(agent, detour.finish_state, request, parameters, constraints, recharge=detour)


def extend_schedule(
    agent: int,
    initial_state: AgentState,
    prefix: Sequence[Assignment],
    requests: Sequence[Request],
    parameters: Parameters,
    constraints: Constraints,
) -> tuple[Assignment, ...]:
    """Append ``requests`` after an already-projected ``prefix``.

    The prefix is reused as-is; only the new tail is projected.

    Raises:
        InfeasibleError: Any request in the tail cannot be served.
    """
    state = prefix[-1].finish_state if prefix else initial_state
    tail: list[Assignment] = []
    for request in requests:
        assignment = project_request(agent, state, request, parameters, constraints)
        tail.append(assignment)
        state = assignment.finish_state
    return tuple(prefix) + tuple(tail)
