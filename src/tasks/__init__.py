from src.tasks.errors import (
    BatteryDepletedError,
    EmptyTaskError,
    InfeasibleError,
    InvalidConstraintsError,
    NoRouteError,
    PlanningError,
)
from src.tasks.state import AgentState, Constraints, Parameters
from src.tasks.phases import GoToPlace, PerformAction, PhaseDescription, PhaseEstimate
from src.tasks.task import TaskBuilder, TaskDescription, TaskEstimate
from src.tasks.request import Request, RequestPriority

__all__ = [
    "BatteryDepletedError",
    "EmptyTaskError",
    "InfeasibleError",
    "InvalidConstraintsError",
    "NoRouteError",
    "PlanningError",
    "AgentState",
    "Constraints",
    "Parameters",
    "GoToPlace",
    "PerformAction",
    "PhaseDescription",
    "PhaseEstimate",
    "TaskBuilder",
    "TaskDescription",
    "TaskEstimate",
    "Request",
    "RequestPriority",
]
