"""
Wiring from a FleetConfig to a ready-to-use TaskPlanner.

Usage:
    config = load_config("config/default_fleet.yaml")
    graph = GridLayoutGenerator(config.layout).generate()
    planner = build_planner(config, graph)
    result = planner.plan(now=0.0, agent_states=states, requests=requests)
"""

from __future__ import annotations

from src.battery.sinks import SimpleDevicePowerSink, SimpleMotionPowerSink
from src.battery.systems import BatterySystem, MechanicalSystem, PowerSystem
from src.fleet.config import FleetConfig, SearchConfig
from src.fleet.graph import NavGraph
from src.fleet.routing import GraphRoutePlanner, VehicleTraits
from src.planner.cost import BinaryPriorityScheme, CostCalculator
from src.planner.engine import PlannerConfiguration, PlannerOptions, SearchBudget, TaskPlanner
from src.tasks.state import Constraints, Parameters


def build_parameters(config: FleetConfig, graph: NavGraph) -> Parameters:
    """Build the estimation collaborators described by ``config``."""
    battery = BatterySystem(
        nominal_voltage_v=config.battery.nominal_voltage_v,
        capacity_ah=config.battery.capacity_ah,
        charging_current_a=config.battery.charging_current_a,
    )
    mechanical = MechanicalSystem(
        mass_kg=config.mechanical.mass_kg,
        moment_of_inertia_kgm2=config.mechanical.moment_of_inertia_kgm2,
        friction_coefficient=config.mechanical.friction_coefficient,
    )
    traits = VehicleTraits(
        linear_velocity_mps=config.vehicle.linear_velocity_mps,
        linear_acceleration_mps2=config.vehicle.linear_acceleration_mps2,
        angular_velocity_rps=config.vehicle.angular_velocity_rps,
        angular_acceleration_rps2=config.vehicle.angular_acceleration_rps2,
    )
    tool_sink = None
    if config.power.tool_power_w > 0.0:
        tool_sink = SimpleDevicePowerSink(battery, PowerSystem(config.power.tool_power_w))

    return Parameters(
        route_planner=GraphRoutePlanner(graph, traits),
        battery_system=battery,
        motion_sink=SimpleMotionPowerSink(battery, mechanical),
        ambient_sink=SimpleDevicePowerSink(battery, PowerSystem(config.power.ambient_power_w)),
        tool_sink=tool_sink,
    )


def build_constraints(config: FleetConfig) -> Constraints:
    c = config.constraints
    return Constraints(
        soc_threshold=c.soc_threshold,
        recharge_soc=c.recharge_soc,
        drain_battery=c.drain_battery,
    )


def build_options(search: SearchConfig) -> PlannerOptions:
    """Translate the ``search`` config section into PlannerOptions."""
    budget = None
    if search.max_nodes is not None or search.time_limit_s is not None:
        budget = SearchBudget(max_nodes=search.max_nodes, time_limit_s=search.time_limit_s)
    return PlannerOptions(optimal=search.optimal, search_budget=budget, workers=search.workers)


def build_planner(
    config: FleetConfig,
    graph: NavGraph,
    cost_calculator: CostCalculator | None = None,
) -> TaskPlanner:
    """Build a TaskPlanner for ``graph`` from a FleetConfig.

    Args:
        config: Fleet configuration.
        graph: Navigation graph the agents drive on.
        cost_calculator: Defaults to the binary priority scheme.
    """
    configuration = PlannerConfiguration(
        parameters=build_parameters(config, graph),
        constraints=build_constraints(config),
        cost_calculator=cost_calculator or BinaryPriorityScheme.make_cost_calculator(),
    )
    return TaskPlanner(configuration, build_options(config.search))
