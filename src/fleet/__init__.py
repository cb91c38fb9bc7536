from src.fleet.config import FleetConfig, load_config
from src.fleet.graph import NavGraph
from src.fleet.layout import GridLayoutGenerator
from src.fleet.routing import GraphRoutePlanner, Route, RoutePlanner, VehicleTraits

__all__ = [
    "FleetConfig",
    "load_config",
    "NavGraph",
    "GridLayoutGenerator",
    "GraphRoutePlanner",
    "Route",
    "RoutePlanner",
    "VehicleTraits",
]
