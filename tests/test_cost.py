"""Tests for the two-level cost and the scalar tie-breakers.

Run with: pytest tests/test_cost.py -v
"""

import pytest

from src.planner.cost import (
    BinaryPriorityScheme,
    Cost,
    CostCalculator,
    Makespan,
    TotalLatency,
)
from src.planner.schedule import Assignment
from src.tasks.phases import PerformAction
from src.tasks.request import Request, RequestPriority
from src.tasks.state import AgentState
from src.tasks.task import TaskDescription


def _request(req_id: str, duration: float = 10.0, start: float = 0.0, **kwargs) -> Request:
    task = TaskDescription(phases=(PerformAction("work", expected_duration_s=duration),))
    return Request(req_id, submission_time=0.0, description=task, earliest_start_time=start, **kwargs)


def _assignment(request: Request, finish: float, agent: int = 0) -> Assignment:
    return Assignment(
        request=request,
        agent=agent,
        start_time=request.earliest_start_time,
        finish_state=AgentState(time=finish, location=0, soc=1.0),
        estimate=None,
    )


class TestCost:
    def test_penalty_dominates(self):
        assert Cost(0, 1e9) < Cost(1, 0.0)

    def test_value_breaks_ties(self):
        assert Cost(1, 5.0) < Cost(1, 6.0)

    def test_compare(self):
        assert CostCalculator.compare(Cost(0, 1.0), Cost(0, 2.0)) == -1
        assert CostCalculator.compare(Cost(1, 1.0), Cost(0, 2.0)) == 1
        assert CostCalculator.compare(Cost(0, 2.0), Cost(0, 2.0)) == 0


class TestScalarCosts:
    def test_total_latency(self):
        a = _assignment(_request("a", start=10.0), finish=30.0)
        b = _assignment(_request("b"), finish=5.0)
        assert TotalLatency()([a, b], lambda x: x.finish_state.time) == pytest.approx(25.0)

    def test_high_priority_weight(self):
        high = _assignment(_request("h", priority=RequestPriority.HIGH), finish=10.0)
        assert TotalLatency(high_priority_weight=10.0)([high], lambda x: x.finish_state.time) == 100.0

    def test_weight_below_one_rejected(self):
        with pytest.raises(ValueError):
            TotalLatency(high_priority_weight=0.5)

    def test_makespan(self):
        a = _assignment(_request("a"), finish=30.0)
        b = _assignment(_request("b"), finish=50.0, agent=1)
        assert Makespan()([a, b], lambda x: x.finish_state.time) == 50.0
        assert Makespan()([], lambda x: x.finish_state.time) == 0.0

    def test_total_latency_bound(self):
        remaining = [_request("a", duration=20.0), _request("b", duration=5.0, priority=RequestPriority.HIGH)]
        assert TotalLatency(2.0).bound(100.0, remaining) == pytest.approx(100.0 + 20.0 + 10.0)

    def test_makespan_bound(self):
        remaining = [_request("a", duration=20.0, start=50.0)]
        assert Makespan().bound(30.0, remaining) == 70.0
        assert Makespan().bound(90.0, remaining) == 90.0


class TestCostCalculator:
    def test_unassigned_and_late_count_as_penalty(self):
        calc = CostCalculator()
        on_time = _assignment(_request("a", deadline=100.0), finish=50.0)
        late = _assignment(_request("b", deadline=10.0), finish=50.0)
        cost = calc.evaluate([[on_time], [late]], n_unassigned=2)
        assert cost.penalty == 3
        assert cost.value == pytest.approx(100.0)

    def test_finish_time_override(self):
        calc = CostCalculator()
        a = _assignment(_request("a"), finish=50.0)
        assert calc.evaluate([[a]], 0, finish_time=lambda x: 7.0).value == 7.0

    def test_lower_bound_never_exceeds_completion(self):
        calc = CostCalculator()
        first = _request("a", duration=10.0)
        second = _request("b", duration=10.0)
        partial = calc.evaluate([[_assignment(first, finish=10.0)]], 0)
        complete = calc.evaluate([[_assignment(first, finish=10.0), _assignment(second, finish=20.0)]], 0)
        assert calc.lower_bound(partial, [second]) <= complete

    def test_default_scheme(self):
        calc = BinaryPriorityScheme.make_cost_calculator()
        assert isinstance(calc.scalar_cost, TotalLatency)
        assert calc.scalar_cost.high_priority_weight == BinaryPriorityScheme.DEFAULT_HIGH_PRIORITY_WEIGHT

    def test_custom_scalar(self):
        calc = BinaryPriorityScheme.make_cost_calculator(scalar_cost=Makespan())
        assert isinstance(calc.scalar_cost, Makespan)
