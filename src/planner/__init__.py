"""
Battery-aware task assignment for a fleet of agents.

Quick start:
    from src.planner import TaskPlanner, PlannerConfiguration, BinaryPriorityScheme
    planner = TaskPlanner(PlannerConfiguration(parameters, constraints,
                                               BinaryPriorityScheme.make_cost_calculator()))
    result = planner.plan(now=0.0, agent_states=states, requests=requests)
"""

from src.planner.cost import BinaryPriorityScheme, Cost, CostCalculator, Makespan, TotalLatency
from src.planner.engine import (
    Assignments,
    PlannerConfiguration,
    PlannerOptions,
    PlanResult,
    SearchBudget,
    SearchStats,
    SearchStatus,
    TaskPlanner,
    Unassignable,
)
from src.planner.schedule import Assignment, RechargeDetour

__all__ = [
    "BinaryPriorityScheme",
    "Cost",
    "CostCalculator",
    "Makespan",
    "TotalLatency",
    "Assignments",
    "PlannerConfiguration",
    "PlannerOptions",
    "PlanResult",
    "SearchBudget",
    "SearchStats",
    "SearchStatus",
    "TaskPlanner",
    "Unassignable",
    "Assignment",
    "RechargeDetour",
]
