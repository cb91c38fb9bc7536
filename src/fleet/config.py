"""
Fleet configuration dataclasses and YAML loader.

All planning parameters live here as typed, validated dataclasses.
Load from YAML with `load_config()` or construct directly for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class LayoutConfig:
    """Grid navigation graph used by the CLI and the benchmark.

    Waypoints sit on an ``n_rows`` × ``n_cols`` lattice; neighbouring
    waypoints are joined by two-way lanes. Chargers are spread evenly along
    the bottom row.
    """

    n_rows: int = 6
    n_cols: int = 8
    spacing_m: float = 5.0
    n_chargers: int = 2


@dataclass(frozen=True)
class BatteryConfig:
    """Battery pack parameters."""

    nominal_voltage_v: float = 24.0
    capacity_ah: float = 40.0
    charging_current_a: float = 8.8


@dataclass(frozen=True)
class MechanicalConfig:
    """Chassis parameters for the motion power sink."""

    mass_kg: float = 70.0
    moment_of_inertia_kgm2: float = 40.0
    friction_coefficient: float = 0.22


@dataclass(frozen=True)
class PowerConfig:
    """Constant power draws."""

    ambient_power_w: float = 20.0  # onboard electronics, always on
    tool_power_w: float = 480.0  # e.g. cleaning brushes; only for tool-powered actions


@dataclass(frozen=True)
class VehicleConfig:
    """Kinematic limits used to turn a path into a travel duration."""

    linear_velocity_mps: float = 1.0
    linear_acceleration_mps2: float = 0.7
    angular_velocity_rps: float = 0.6
    angular_acceleration_rps2: float = 0.5


@dataclass(frozen=True)
class ConstraintsConfig:
    """Battery constraints applied while planning."""

    soc_threshold: float = 0.2  # never plan below this SoC
    recharge_soc: float = 1.0  # a recharge detour stops here
    drain_battery: bool = True  # False disables every SoC check


@dataclass(frozen=True)
class SearchConfig:
    """Assignment search options."""

    optimal: bool = True  # False → greedy, no backtracking
    max_nodes: int | None = None  # expansion budget, None = unbounded
    time_limit_s: float | None = None  # wall-clock budget, None = unbounded
    workers: int = 1  # >1 expands frontier nodes on a thread pool


@dataclass(frozen=True)
class FleetConfig:
    """Top-level configuration aggregating all sub-configs."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    battery: BatteryConfig = field(default_factory=BatteryConfig)
    mechanical: MechanicalConfig = field(default_factory=MechanicalConfig)
    power: PowerConfig = field(default_factory=PowerConfig)
    vehicle: VehicleConfig = field(default_factory=VehicleConfig)
    constraints: ConstraintsConfig = field(default_factory=ConstraintsConfig)
    search: SearchConfig = field(default_factory=SearchConfig)


def load_config(path: str | Path) -> FleetConfig:
    """Load a FleetConfig from a YAML file.

    Args:
        path: Path to a YAML config file. Missing sections use defaults.

    Returns:
        Fully constructed FleetConfig with all sub-configs.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return FleetConfig(
        layout=LayoutConfig(**raw.get("layout", {})),
        battery=BatteryConfig(**raw.get("battery", {})),
        mechanical=MechanicalConfig(**raw.get("mechanical", {})),
        power=PowerConfig(**raw.get("power", {})),
        vehicle=VehicleConfig(**raw.get("vehicle", {})),
        constraints=ConstraintsConfig(**raw.get("constraints", {})),
        search=SearchConfig(**raw.get("search", {})),
    )
