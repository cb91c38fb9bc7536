"""Shared fixtures: a two-waypoint corridor with a charger and the robot model
used across the planner tests (24 V / 40 Ah pack, 70 kg chassis)."""

import pytest

from src.battery.sinks import SimpleDevicePowerSink, SimpleMotionPowerSink
from src.battery.systems import BatterySystem, MechanicalSystem, PowerSystem
from src.fleet.graph import NavGraph
from src.fleet.routing import GraphRoutePlanner, VehicleTraits
from src.planner.cost import BinaryPriorityScheme
from src.planner.engine import PlannerConfiguration, TaskPlanner
from src.tasks.state import Constraints, Parameters


def make_parameters(graph: NavGraph, ambient_w: float = 1.0, tool_w: float = 480.0) -> Parameters:
    """Estimation collaborators for the reference robot on ``graph``."""
    battery = BatterySystem(nominal_voltage_v=24.0, capacity_ah=40.0, charging_current_a=8.8)
    mechanical = MechanicalSystem(mass_kg=70.0, moment_of_inertia_kgm2=40.0, friction_coefficient=0.22)
    traits = VehicleTraits(
        linear_velocity_mps=1.0,
        linear_acceleration_mps2=0.7,
        angular_velocity_rps=0.6,
        angular_acceleration_rps2=0.5,
    )
    return Parameters(
        route_planner=GraphRoutePlanner(graph, traits),
        battery_system=battery,
        motion_sink=SimpleMotionPowerSink(battery, mechanical),
        ambient_sink=SimpleDevicePowerSink(battery, PowerSystem(ambient_w)),
        tool_sink=SimpleDevicePowerSink(battery, PowerSystem(tool_w)),
    )


def make_planner(parameters: Parameters, constraints: Constraints | None = None, **kwargs) -> TaskPlanner:
    configuration = PlannerConfiguration(
        parameters=parameters,
        constraints=constraints or Constraints(soc_threshold=0.2, recharge_soc=1.0, drain_battery=True),
        cost_calculator=BinaryPriorityScheme.make_cost_calculator(),
    )
    return TaskPlanner(configuration, **kwargs)


@pytest.fixture
def corridor() -> NavGraph:
    """wp0 (charger) at the origin, wp1 ten metres north, two-way lane."""
    g = NavGraph()
    g.add_waypoint(0.0, 0.0, is_charger=True)
    g.add_waypoint(0.0, 10.0)
    g.add_bidirectional_lane(0, 1)
    return g


@pytest.fixture
def parameters(corridor) -> Parameters:
    return make_parameters(corridor)


@pytest.fixture
def constraints() -> Constraints:
    return Constraints(soc_threshold=0.2, recharge_soc=1.0, drain_battery=True)


@pytest.fixture
def parameters_for():
    """Factory: ``parameters_for(graph, ambient_w=..., tool_w=...)``."""
    return make_parameters


@pytest.fixture
def planner_for():
    """Factory: ``planner_for(parameters, constraints=None, options=None)``."""
    return make_planner
