"""Tests for battery / mechanical / power systems and the power sinks.

Run with: pytest tests/test_battery.py -v
"""

import pytest

from src.battery.sinks import GRAVITY_MPS2, SimpleDevicePowerSink, SimpleMotionPowerSink
from src.battery.systems import BatterySystem, MechanicalSystem, PowerSystem
from src.fleet.routing import MotionKind, MotionSegment, Route


@pytest.fixture
def battery() -> BatterySystem:
    return BatterySystem(nominal_voltage_v=24.0, capacity_ah=40.0, charging_current_a=8.8)


@pytest.fixture
def mechanical() -> MechanicalSystem:
    return MechanicalSystem(mass_kg=70.0, moment_of_inertia_kgm2=40.0, friction_coefficient=0.22)


def _straight_route(length: float, peak: float = 1.0) -> Route:
    segment = MotionSegment(MotionKind.TRANSLATION, length, length / peak, peak)
    return Route(waypoints=(0, 1), duration_s=segment.duration_s, distance_m=length, segments=(segment,))


# ── Systems ──────────────────────────────────────────────────────


class TestBatterySystem:
    def test_energy_capacity(self, battery):
        assert battery.energy_capacity_j == pytest.approx(24.0 * 40.0 * 3600.0)

    def test_soc_for_energy(self, battery):
        assert battery.soc_for_energy(battery.energy_capacity_j / 2) == pytest.approx(0.5)

    def test_charging_duration(self, battery):
        # 70 % of 40 Ah at 8.8 A
        assert battery.charging_duration_s(0.7) == pytest.approx(0.7 * 40.0 / 8.8 * 3600.0)

    def test_charging_nothing_takes_no_time(self, battery):
        assert battery.charging_duration_s(0.0) == 0.0
        assert battery.charging_duration_s(-0.1) == 0.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"nominal_voltage_v": 0.0, "capacity_ah": 40.0, "charging_current_a": 8.8},
            {"nominal_voltage_v": 24.0, "capacity_ah": -1.0, "charging_current_a": 8.8},
            {"nominal_voltage_v": 24.0, "capacity_ah": 40.0, "charging_current_a": 0.0},
        ],
    )
    def test_rejects_non_positive_values(self, kwargs):
        with pytest.raises(ValueError):
            BatterySystem(**kwargs)


class TestMechanicalAndPowerSystems:
    def test_mechanical_validation(self):
        with pytest.raises(ValueError, match="mass_kg"):
            MechanicalSystem(mass_kg=0.0, moment_of_inertia_kgm2=40.0, friction_coefficient=0.22)

    def test_power_validation(self):
        with pytest.raises(ValueError, match="nominal_power_w"):
            PowerSystem(nominal_power_w=-5.0)

    def test_systems_are_frozen(self, battery):
        with pytest.raises(AttributeError):
            battery.capacity_ah = 10.0


# ── Sinks ────────────────────────────────────────────────────────


class TestMotionPowerSink:
    def test_straight_run_energy(self, battery, mechanical):
        sink = SimpleMotionPowerSink(battery, mechanical)
        expected = 0.22 * 70.0 * GRAVITY_MPS2 * 10.0 + 0.5 * 70.0 * 1.0**2
        assert sink.energy(_straight_route(10.0)) == pytest.approx(expected)

    def test_rotation_uses_moment_of_inertia(self, battery, mechanical):
        sink = SimpleMotionPowerSink(battery, mechanical)
        turn = MotionSegment(MotionKind.ROTATION, 1.57, 3.8, 0.6)
        route = Route(waypoints=(0,), duration_s=3.8, distance_m=0.0, segments=(turn,))
        assert sink.energy(route) == pytest.approx(0.5 * 40.0 * 0.6**2)

    def test_empty_route_costs_nothing(self, battery, mechanical):
        sink = SimpleMotionPowerSink(battery, mechanical)
        assert sink.energy(Route(waypoints=(0,), duration_s=0.0, distance_m=0.0)) == 0.0

    def test_change_in_charge(self, battery, mechanical):
        sink = SimpleMotionPowerSink(battery, mechanical)
        route = _straight_route(10.0)
        assert sink.compute_change_in_charge(route) == pytest.approx(
            sink.energy(route) / battery.energy_capacity_j
        )

    def test_longer_route_costs_more(self, battery, mechanical):
        sink = SimpleMotionPowerSink(battery, mechanical)
        assert sink.energy(_straight_route(20.0)) > sink.energy(_straight_route(10.0))


class TestDevicePowerSink:
    def test_one_hour_of_tool_is_half_the_battery(self, battery):
        sink = SimpleDevicePowerSink(battery, PowerSystem(nominal_power_w=480.0))
        assert sink.energy(3600.0) == pytest.approx(1_728_000.0)
        assert sink.compute_change_in_charge(3600.0) == pytest.approx(0.5)

    def test_negative_duration_draws_nothing(self, battery):
        sink = SimpleDevicePowerSink(battery, PowerSystem(nominal_power_w=20.0))
        assert sink.energy(-10.0) == 0.0
