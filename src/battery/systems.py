"""
Physical descriptions of an agent's battery, chassis and powered devices.

These are plain value objects. They carry no behaviour beyond unit
conversions and are validated on construction, so an estimator can trust
every field to be physically meaningful.

Usage:
    battery = BatterySystem(nominal_voltage_v=24.0, capacity_ah=40.0, charging_current_a=8.8)
    battery.energy_capacity_j          # 3_456_000 J
    battery.charging_duration_s(0.7)   # time to add 70 % SoC
"""

from __future__ import annotations

from dataclasses import dataclass

SECONDS_PER_HOUR = 3600.0


def _require_positive(name: str, value: float) -> None:
    if not value > 0.0:
        raise ValueError(f"{name} must be positive, got {value!r}")


@dataclass(frozen=True)
class BatterySystem:
    """Electrical battery model.

    Attributes:
        nominal_voltage_v: Nominal pack voltage in volts.
        capacity_ah: Charge capacity in amp-hours.
        charging_current_a: Constant charging current in amps.
    """

    nominal_voltage_v: float
    capacity_ah: float
    charging_current_a: float

    def __post_init__(self) -> None:
        _require_positive("nominal_voltage_v", self.nominal_voltage_v)
        _require_positive("capacity_ah", self.capacity_ah)
        _require_positive("charging_current_a", self.charging_current_a)

    @property
    def energy_capacity_j(self) -> float:
        """Total stored energy of a full pack in joules."""
        return self.nominal_voltage_v * self.capacity_ah * SECONDS_PER_HOUR

    def soc_for_energy(self, energy_j: float) -> float:
        """Convert an energy draw in joules to a fraction of full charge."""
        return energy_j / self.energy_capacity_j

    def charging_duration_s(self, delta_soc: float) -> float:
        """Seconds of constant-current charging needed to add ``delta_soc``."""
        if delta_soc <= 0.0:
            return 0.0
        return delta_soc * self.capacity_ah / self.charging_current_a * SECONDS_PER_HOUR


@dataclass(frozen=True)
class MechanicalSystem:
    """Rigid-body parameters of the chassis.

    Attributes:
        mass_kg: Total moving mass.
        moment_of_inertia_kgm2: Inertia about the vertical axis.
        friction_coefficient: Rolling friction coefficient.
    """

    mass_kg: float
    moment_of_inertia_kgm2: float
    friction_coefficient: float

    def __post_init__(self) -> None:
        _require_positive("mass_kg", self.mass_kg)
        _require_positive("moment_of_inertia_kgm2", self.moment_of_inertia_kgm2)
        _require_positive("friction_coefficient", self.friction_coefficient)


@dataclass(frozen=True)
class PowerSystem:
    """A device drawing constant power (onboard computers, cleaning tools, ...)."""

    nominal_power_w: float

    def __post_init__(self) -> None:
        _require_positive("nominal_power_w", self.nominal_power_w)
