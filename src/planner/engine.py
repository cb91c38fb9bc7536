"""
Assignment search engine: requests + agent states → per-agent task queues.

Problem shape
─────────────
Each request goes to exactly one agent at one position in that agent's
queue. A queue is feasible when its tasks, projected in order from the
agent's current state (with automatic recharge detours), keep every battery
rule and route lookup satisfied. Composed requests are atomic: all their
phases travel together.

Search
──────
  Insertion search over candidate nodes. A node is a full assignment of the
  first k requests (in earliest-start order); expanding it inserts request
  k+1 into every feasible (agent, position) slot. Only the touched agent's
  schedule suffix is re-projected. A request with no feasible slot is
  recorded as unassigned in that branch, which costs one penalty point.

  Greedy mode   follow the single best child, no backtracking.
  Optimal mode  best-first branch-and-bound over an explicit heap of owned
                nodes keyed by (lower bound, node id). The greedy solution
                seeds the incumbent (warm start), so the optimal result is
                never worse than the greedy one. Nodes whose bound cannot
                beat the incumbent are pruned.

Requests that no agent can serve even alone are rejected before the search
and reported through ``Unassignable``; they never enter the search tree.

Budget & parallelism
────────────────────
  SearchBudget(max_nodes, time_limit_s) stops optimal mode early; the best
  solution so far is returned with status BUDGET_EXHAUSTED.
  workers > 1 expands a batch of frontier nodes on a thread pool. Children
  are merged back in batch order, so results do not depend on thread timing.

The planner keeps no state between ``plan`` calls beyond usage counters.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Union

from src.planner.cost import Cost, CostCalculator, FinishTime
from src.planner.schedule import Assignment, extend_schedule, project_request
from src.tasks.errors import InfeasibleError, InvalidConstraintsError
from src.tasks.request import Request
from src.tasks.state import AgentState, Constraints, Parameters

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Public types
# ─────────────────────────────────────────────────────────────────────────────


class SearchStatus(Enum):
    """How the returned solution was obtained."""

    OPTIMAL = auto()  # exhaustive branch-and-bound completed
    GREEDY = auto()  # greedy mode, no optimality claim
    BUDGET_EXHAUSTED = auto()  # best found before the search budget ran out


@dataclass(frozen=True)
class SearchBudget:
    """Limits for optimal mode. None means unbounded.

    The budget covers the branch-and-bound phase and counts the greedy warm
    start's expansions toward ``max_nodes``. The warm start itself always
    runs to completion (one expansion per request), so every optimal-mode
    result holds a full greedy solution even with a zero time limit.
    """

    max_nodes: int | None = None
    time_limit_s: float | None = None


@dataclass(frozen=True)
class PlannerOptions:
    """Per-call search options.

    Attributes:
        optimal: Exhaustive branch-and-bound (True) or greedy (False).
        search_budget: Optional node / wall-clock budget for optimal mode.
        finish_time_estimator: Optional override of the finish time counted
            by the cost calculator, called with each Assignment.
        workers: Threads used to expand frontier nodes in optimal mode.
    """

    optimal: bool = True
    search_budget: SearchBudget | None = None
    finish_time_estimator: Callable[[Assignment], float] | None = None
    workers: int = 1

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers!r}")


@dataclass(frozen=True)
class PlannerConfiguration:
    """Immutable inputs shared by every plan call."""

    parameters: Parameters
    constraints: Constraints
    cost_calculator: CostCalculator


@dataclass
class SearchStats:
    """Diagnostics of one plan call."""

    nodes_expanded: int = 0
    nodes_generated: int = 0
    nodes_pruned: int = 0
    solve_time_ms: float = 0.0


@dataclass
class Assignments:
    """Every request placed.

    Attributes:
        assignments: Agent index → assignments in execution order.
        cost: Cost of the solution.
        status: How the solution was obtained.
        stats: Search diagnostics.
    """

    assignments: dict[int, list[Assignment]]
    cost: Cost
    status: SearchStatus
    stats: SearchStats = field(default_factory=SearchStats)

    def finish_states(self) -> dict[int, AgentState | None]:
        """Projected state of each agent after its last task (None if idle)."""
        return {a: (q[-1].finish_state if q else None) for a, q in self.assignments.items()}


@dataclass
class Unassignable:
    """Some requests could not be placed in any solution considered.

    Attributes:
        request_ids: Requests left out, in earliest-start order.
        assignments: The best partial solution for everything else.
        cost: Cost of that partial solution (penalty counts the left-out requests).
        status: How the partial solution was obtained.
        stats: Search diagnostics.
    """

    request_ids: list[str]
    assignments: dict[int, list[Assignment]]
    cost: Cost
    status: SearchStatus
    stats: SearchStats = field(default_factory=SearchStats)


PlanResult = Union[Assignments, Unassignable]


# ─────────────────────────────────────────────────────────────────────────────
# Search internals
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Node:
    """A candidate solution for the first ``next_index`` requests."""

    schedules: tuple[tuple[Assignment, ...], ...]
    next_index: int
    unassigned: tuple[str, ...]
    cost: Cost
    bound: Cost


class _Search:
    """State of one plan call. Never shared between calls."""

    def __init__(
        self,
        configuration: PlannerConfiguration,
        options: PlannerOptions,
        states: Sequence[AgentState],
        requests: Sequence[Request],
    ) -> None:
        self.parameters = configuration.parameters
        self.constraints = configuration.constraints
        self.calculator = configuration.cost_calculator
        self.finish_time: FinishTime | None = options.finish_time_estimator
        self.options = options
        self.states = list(states)
        self.requests = list(requests)
        self.stats = SearchStats()
        self._stats_lock = threading.Lock()

    # ── Nodes ────────────────────────────────────────────────────────────────

    def make_node(
        self,
        schedules: tuple[tuple[Assignment, ...], ...],
        next_index: int,
        unassigned: tuple[str, ...],
    ) -> _Node:
        cost = self.calculator.evaluate(schedules, len(unassigned), self.finish_time)
        bound = self.calculator.lower_bound(cost, self.requests[next_index:])
        return _Node(schedules, next_index, unassigned, cost, bound)

    def root(self) -> _Node:
        return self.make_node(tuple(() for _ in self.states), 0, ())

    def is_complete(self, node: _Node) -> bool:
        return node.next_index >= len(self.requests)

    def expand(self, node: _Node) -> list[_Node]:
        """Insert the node's next request into every feasible slot.

        Safe to call from worker threads: reads shared immutable inputs only
        and updates the expansion counter under a lock.
        """
        request = self.requests[node.next_index]
        children: list[_Node] = []
        for agent, schedule in enumerate(node.schedules):
            for pos in range(len(schedule) + 1):
                queue = [request] + [a.request for a in schedule[pos:]]
                try:
                    new_schedule = extend_schedule(
                        agent,
                        self.states[agent],
                        schedule[:pos],
                        queue,
                        self.parameters,
                        self.constraints,
                    )
                except InfeasibleError:
                    continue
                schedules = node.schedules[:agent] + (new_schedule,) + node.schedules[agent + 1 :]
                children.append(self.make_node(schedules, node.next_index + 1, node.unassigned))

        if not children:
            children.append(
                self.make_node(node.schedules, node.next_index + 1, node.unassigned + (request.id,))
            )

        with self._stats_lock:
            self.stats.nodes_expanded += 1
            self.stats.nodes_generated += len(children)
        return children

    # ── Strategies ───────────────────────────────────────────────────────────

    def greedy(self) -> _Node:
        """Follow the best child at every step. Ties keep the first slot found."""
        node = self.root()
        while not self.is_complete(node):
            children = self.expand(node)
            node = min(enumerate(children), key=lambda ic: (ic[1].cost, ic[0]))[1]
        return node

    def branch_and_bound(self, t0: float) -> tuple[_Node, SearchStatus]:
        """Best-first search seeded with the greedy solution.

        The greedy warm start runs outside the budget check; see SearchBudget.
        """
        incumbent = self.greedy()
        budget = self.options.search_budget or SearchBudget()
        workers = self.options.workers

        arena: dict[int, _Node] = {}
        ids = itertools.count()
        heap: list[tuple[Cost, int]] = []

        def push(candidate: _Node) -> None:
            node_id = next(ids)
            arena[node_id] = candidate
            heapq.heappush(heap, (candidate.bound, node_id))

        push(self.root())
        status = SearchStatus.OPTIMAL
        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            while heap:
                if self._budget_exhausted(budget, t0):
                    status = SearchStatus.BUDGET_EXHAUSTED
                    break

                batch: list[_Node] = []
                while heap and len(batch) < workers:
                    bound, node_id = heapq.heappop(heap)
                    candidate = arena.pop(node_id)
                    if not bound < incumbent.cost:
                        # Heap is ordered: nothing left can beat the incumbent
                        self.stats.nodes_pruned += 1 + len(heap)
                        heap.clear()
                        arena.clear()
                        break
                    if self.is_complete(candidate):
                        incumbent = candidate
                        continue
                    batch.append(candidate)

                if not batch:
                    continue
                if executor is None:
                    expanded = [self.expand(n) for n in batch]
                else:
                    expanded = list(executor.map(self.expand, batch))

                for children in expanded:
                    for child in children:
                        if self.is_complete(child):
                            if child.cost < incumbent.cost:
                                incumbent = child
                        elif child.bound < incumbent.cost:
                            push(child)
                        else:
                            self.stats.nodes_pruned += 1
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        return incumbent, status

    def _budget_exhausted(self, budget: SearchBudget, t0: float) -> bool:
        if budget.max_nodes is not None and self.stats.nodes_expanded >= budget.max_nodes:
            return True
        if budget.time_limit_s is not None and time.perf_counter() - t0 >= budget.time_limit_s:
            return True
        return False

    # ── Pre-filter ───────────────────────────────────────────────────────────

    def servable_alone(self, request: Request) -> bool:
        """Whether at least one agent could serve ``request`` as its only task."""
        for agent, state in enumerate(self.states):
            try:
                project_request(agent, state, request, self.parameters, self.constraints)
            except InfeasibleError as exc:
                logger.debug("Agent %d cannot serve %s: %s", agent, request.id, exc)
                continue
            return True
        return False


# ─────────────────────────────────────────────────────────────────────────────
# Planner
# ─────────────────────────────────────────────────────────────────────────────


class TaskPlanner:
    """Battery-aware assignment planner.

    Args:
        configuration: Parameters, constraints and cost calculator.
        options: Default search options; ``plan`` may override them per call.

    Thread-safe: concurrent ``plan`` calls share only the immutable
    configuration; usage counters are lock-protected.
    """

    def __init__(
        self,
        configuration: PlannerConfiguration,
        options: PlannerOptions | None = None,
    ) -> None:
        self.configuration = configuration
        self.options = options or PlannerOptions()
        self.total_plans: int = 0
        self.total_solve_time_ms: float = 0.0
        self._counter_lock = threading.Lock()

    def plan(
        self,
        now: float,
        agent_states: Sequence[AgentState],
        requests: Sequence[Request],
        options: PlannerOptions | None = None,
    ) -> PlanResult:
        """Assign ``requests`` to the agents described by ``agent_states``.

        Args:
            now: Current time in seconds. Agents are not available before it.
            agent_states: One state per agent; the index is the agent's identity.
            requests: Pending requests. Ids must be unique.
            options: Overrides the planner's default options for this call.

        Returns:
            Assignments when every request is placed, Unassignable otherwise.

        Raises:
            InvalidConstraintsError: The configured constraints are malformed.
            ValueError: Duplicate request ids.
        """
        t0 = time.perf_counter()
        options = options or self.options
        self._validate(requests)

        states = [s.waited_until(now) for s in agent_states]
        ordered = sorted(requests, key=lambda r: (r.earliest_start_time, r.id))
        search = _Search(self.configuration, options, states, [])

        rejected = [r.id for r in ordered if not search.servable_alone(r)]
        if rejected:
            logger.info("Requests no agent can serve alone: %s", rejected)
        search.requests = [r for r in ordered if r.id not in rejected]

        if options.optimal:
            best, status = search.branch_and_bound(t0)
        else:
            best, status = search.greedy(), SearchStatus.GREEDY

        stats = search.stats
        stats.solve_time_ms = (time.perf_counter() - t0) * 1e3
        with self._counter_lock:
            self.total_plans += 1
            self.total_solve_time_ms += stats.solve_time_ms

        assignments = {agent: list(schedule) for agent, schedule in enumerate(best.schedules)}
        left_out = set(rejected) | set(best.unassigned)
        logger.debug(
            "Planned %d requests on %d agents: %s, %s, %d nodes expanded in %.1f ms",
            len(ordered),
            len(states),
            best.cost,
            status.name,
            stats.nodes_expanded,
            stats.solve_time_ms,
        )

        if not left_out:
            return Assignments(assignments, best.cost, status, stats)

        # Pre-filtered requests never entered the search; charge their penalty here.
        cost = Cost(best.cost.penalty + len(rejected), best.cost.value)
        return Unassignable(
            request_ids=[r.id for r in ordered if r.id in left_out],
            assignments=assignments,
            cost=cost,
            status=status,
            stats=stats,
        )

    def _validate(self, requests: Sequence[Request]) -> None:
        if not isinstance(self.configuration.constraints, Constraints):
            raise InvalidConstraintsError(
                f"Expected Constraints, got {type(self.configuration.constraints).__name__}"
            )
        seen: set[str] = set()
        for request in requests:
            if request.id in seen:
                raise ValueError(f"Duplicate request id {request.id!r}")
            seen.add(request.id)
