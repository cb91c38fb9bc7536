"""
Energy estimators ("power sinks") used by phase cost estimation.

Two kinds of sink exist:

  SimpleMotionPowerSink  energy of driving a Route: rolling friction over the
                         travelled distance plus the kinetic energy spent to
                         reach peak speed on every straight run and every turn
                         (no regenerative braking).
  SimpleDevicePowerSink  constant power draw over a duration.

Both report joules via ``energy()`` and the matching fraction of the battery
via ``compute_change_in_charge()``. Sinks are immutable and safe to share
across threads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.battery.systems import BatterySystem, MechanicalSystem, PowerSystem

if TYPE_CHECKING:
    from src.fleet.routing import Route

GRAVITY_MPS2 = 9.81


class SimpleMotionPowerSink:
    """Mechanical energy model for travelling along a route."""

    def __init__(self, battery_system: BatterySystem, mechanical_system: MechanicalSystem) -> None:
        self.battery_system = battery_system
        self.mechanical_system = mechanical_system

    def energy(self, route: Route) -> float:
        """Energy in joules spent by the drive train to follow ``route``."""
        mech = self.mechanical_system
        total = mech.friction_coefficient * mech.mass_kg * GRAVITY_MPS2 * route.distance_m
        for segment in route.segments:
            if segment.is_rotation:
                total += 0.5 * mech.moment_of_inertia_kgm2 * segment.peak_velocity**2
            else:
                total += 0.5 * mech.mass_kg * segment.peak_velocity**2
        return total

    def compute_change_in_charge(self, route: Route) -> float:
        """SoC fraction consumed by following ``route``."""
        return self.battery_system.soc_for_energy(self.energy(route))


class SimpleDevicePowerSink:
    """Constant-power device model."""

    def __init__(self, battery_system: BatterySystem, power_system: PowerSystem) -> None:
        self.battery_system = battery_system
        self.power_system = power_system

    def energy(self, duration_s: float) -> float:
        """Energy in joules drawn over ``duration_s`` seconds."""
        return self.power_system.nominal_power_w * max(0.0, duration_s)

    def compute_change_in_charge(self, duration_s: float) -> float:
        """SoC fraction drawn over ``duration_s`` seconds."""
        return self.battery_system.soc_for_energy(self.energy(duration_s))
