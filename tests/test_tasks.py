"""
Tests for phases, task descriptions, the task builder and requests.

Tests cover:
1. Phase estimation (travel, in-place actions, tool draw)
2. Builder reuse and snapshot independence
3. Composition equivalence (composed task == chained phases)
4. Battery threshold enforcement and the drain-disabled mode
5. Constraint and state validation

Run with: pytest tests/test_tasks.py -v
"""

import pytest

from src.battery.sinks import GRAVITY_MPS2
from src.tasks.errors import BatteryDepletedError, EmptyTaskError, InvalidConstraintsError, NoRouteError
from src.tasks.phases import GoToPlace, PerformAction, estimate_phase
from src.tasks.request import Request, RequestPriority
from src.tasks.state import AgentState, Constraints
from src.tasks.task import TaskBuilder, TaskDescription

TRAVEL_S = 10.0 + 1.0 / 0.7  # 10 m corridor, trapezoidal profile
CAPACITY_J = 24.0 * 40.0 * 3600.0


@pytest.fixture
def full() -> AgentState:
    return AgentState(time=0.0, location=0, soc=1.0, charger=0)


@pytest.fixture
def no_drain() -> Constraints:
    return Constraints(soc_threshold=0.2, recharge_soc=1.0, drain_battery=False)


# ── Phases ───────────────────────────────────────────────────────


class TestPhases:
    def test_go_to_place(self, full, parameters):
        est = GoToPlace(1).estimate(full, parameters)
        motion = 0.22 * 70.0 * GRAVITY_MPS2 * 10.0 + 0.5 * 70.0
        assert est.duration_s == pytest.approx(TRAVEL_S)
        assert est.energy_j == pytest.approx(motion + 1.0 * TRAVEL_S)
        assert est.soc_consumed == pytest.approx(est.energy_j / CAPACITY_J)
        assert est.finish_state.location == 1
        assert est.finish_state.time == pytest.approx(TRAVEL_S)

    def test_go_to_current_location_is_free(self, full, parameters):
        est = GoToPlace(0).estimate(full, parameters)
        assert est.duration_s == 0.0
        assert est.energy_j == 0.0

    def test_go_to_unknown_place(self, full, parameters):
        with pytest.raises(NoRouteError):
            GoToPlace(42).estimate(full, parameters)

    def test_action_with_tool(self, full, parameters):
        est = PerformAction("clean", expected_duration_s=3600.0, use_tool_sink=True).estimate(full, parameters)
        assert est.energy_j == pytest.approx((480.0 + 1.0) * 3600.0)
        assert est.soc_consumed == pytest.approx(481.0 / 960.0)
        assert est.finish_state.location == 0

    def test_action_without_tool_draws_ambient_only(self, full, parameters):
        est = PerformAction("wait", expected_duration_s=100.0).estimate(full, parameters)
        assert est.energy_j == pytest.approx(100.0)

    def test_action_finish_location(self, full, parameters):
        action = PerformAction("ride_lift", expected_duration_s=30.0, expected_finish_location=1)
        assert action.estimate(full, parameters).finish_state.location == 1

    def test_action_parameters_are_read_only(self):
        params = {"mode": "deep"}
        action = PerformAction("clean", parameters=params)
        params["mode"] = "light"
        assert action.parameters["mode"] == "deep"
        with pytest.raises(TypeError):
            action.parameters["mode"] = "x"
        assert hash(action) == hash(PerformAction("clean", parameters={"mode": "deep"}))

    def test_negative_action_duration(self):
        with pytest.raises(ValueError):
            PerformAction("clean", expected_duration_s=-1.0)

    def test_unknown_phase_kind(self, full, parameters):
        with pytest.raises(TypeError):
            estimate_phase("dance", full, parameters)

    def test_estimation_is_idempotent(self, full, parameters):
        phase = GoToPlace(1)
        assert phase.estimate(full, parameters) == phase.estimate(full, parameters)


# ── Builder ──────────────────────────────────────────────────────


class TestTaskBuilder:
    def test_build_snapshots_phases(self):
        builder = TaskBuilder()
        builder.add_phase(GoToPlace(1))
        go = builder.build("delivery", "go")
        builder.add_phase(PerformAction("clean", expected_duration_s=60.0))
        go_clean = builder.build("delivery", "go+clean")

        assert len(go.phases) == 1
        assert len(go_clean.phases) == 2
        assert go_clean.phases[0] == go.phases[0]
        assert builder.n_phases == 2

    def test_chaining(self):
        task = TaskBuilder().add_phase(GoToPlace(1)).add_phase(GoToPlace(0)).build("patrol", "loop")
        assert [p.goal for p in task.phases] == [1, 0]
        assert task.category == "patrol"
        assert task.tag == "loop"

    def test_empty_builder(self):
        with pytest.raises(EmptyTaskError):
            TaskBuilder().build("c", "t")

    def test_empty_description(self):
        with pytest.raises(ValueError):
            TaskDescription(phases=())

    def test_rejects_unknown_phase(self):
        with pytest.raises(TypeError):
            TaskBuilder().add_phase("not a phase")

    def test_per_phase_params_carried_into_task(self):
        params = {"pre": "door_open"}
        builder = TaskBuilder().add_phase(GoToPlace(1), per_phase_params=params)
        builder.add_phase(PerformAction("clean", expected_duration_s=60.0))
        task = builder.build("c", "t")
        params["pre"] = "changed"

        assert task.phases == (GoToPlace(1), PerformAction("clean", expected_duration_s=60.0))
        assert task.phase_params[0]["pre"] == "door_open"
        assert task.phase_params[1] is None
        assert hash(task) == hash(TaskDescription(phases=task.phases, category="c", tag="t"))

    def test_phase_params_default_and_length_check(self):
        assert TaskDescription(phases=(GoToPlace(1),)).phase_params == (None,)
        with pytest.raises(ValueError):
            TaskDescription(phases=(GoToPlace(1),), phase_params=({}, {}))


# ── Task estimation ──────────────────────────────────────────────


class TestTaskEstimate:
    def test_composition_equivalence(self, full, parameters, constraints):
        go = GoToPlace(1)
        clean = PerformAction("clean", expected_duration_s=3600.0, use_tool_sink=True)
        composed = TaskDescription(phases=(go, clean)).estimate(full, parameters, constraints)

        first = TaskDescription(phases=(go,)).estimate(full, parameters, constraints)
        second = TaskDescription(phases=(clean,)).estimate(first.finish_state, parameters, constraints)

        assert composed.finish_state == second.finish_state
        assert composed.duration_s == pytest.approx(first.duration_s + second.duration_s)
        assert composed.energy_j == pytest.approx(first.energy_j + second.energy_j)
        assert composed.phase_socs == first.phase_socs + second.phase_socs

    def test_phase_socs_are_monotone(self, full, parameters, constraints):
        task = TaskDescription(phases=(GoToPlace(1), PerformAction("clean", expected_duration_s=600.0, use_tool_sink=True)))
        est = task.estimate(full, parameters, constraints)
        assert est.phase_socs[0] > est.phase_socs[1] >= constraints.soc_threshold

    def test_threshold_enforced(self, parameters, constraints):
        state = AgentState(time=0.0, location=0, soc=0.3, charger=0)
        task = TaskDescription(phases=(PerformAction("clean", expected_duration_s=3600.0, use_tool_sink=True),))
        with pytest.raises(BatteryDepletedError) as info:
            task.estimate(state, parameters, constraints)
        assert info.value.threshold == 0.2

    def test_drain_disabled_holds_soc(self, parameters, no_drain):
        state = AgentState(time=0.0, location=0, soc=0.3, charger=0)
        task = TaskDescription(phases=(PerformAction("clean", expected_duration_s=7200.0, use_tool_sink=True),))
        est = task.estimate(state, parameters, no_drain)
        assert est.finish_state.soc == 0.3
        assert est.energy_j == pytest.approx(481.0 * 7200.0)
        assert est.finish_state.time == pytest.approx(7200.0)

    def test_min_duration(self):
        task = TaskDescription(phases=(GoToPlace(1), PerformAction("a", expected_duration_s=5.0)))
        assert task.min_duration_s() == 5.0


# ── State, constraints, requests ─────────────────────────────────


class TestStateAndConstraints:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"soc_threshold": -0.1},
            {"recharge_soc": 1.5},
            {"soc_threshold": 0.8, "recharge_soc": 0.5},
        ],
    )
    def test_invalid_constraints(self, kwargs):
        with pytest.raises(InvalidConstraintsError):
            Constraints(**kwargs)

    def test_soc_out_of_range(self):
        with pytest.raises(ValueError):
            AgentState(time=0.0, location=0, soc=1.2)

    def test_advanced_clamps_soc(self, full):
        assert full.advanced(duration_s=5.0, soc=-0.5).soc == 0.0
        assert full.advanced(duration_s=5.0, soc=1.5).soc == 1.0

    def test_waited_until(self, full):
        assert full.waited_until(50.0).time == 50.0
        assert full.waited_until(50.0).waited_until(10.0).time == 50.0


class TestRequest:
    def test_earliest_start_defaults_to_submission(self):
        task = TaskDescription(phases=(GoToPlace(1),))
        assert Request("r1", submission_time=12.0, description=task).earliest_start_time == 12.0

    def test_priority_and_deadline(self):
        task = TaskDescription(phases=(GoToPlace(1),))
        r = Request("r1", 0.0, task, priority=RequestPriority.HIGH, deadline=100.0)
        assert r.is_high_priority
        assert not r.is_late(100.0)
        assert r.is_late(100.5)
        assert not Request("r2", 0.0, task).is_late(1e9)
