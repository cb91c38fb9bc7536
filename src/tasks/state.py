"""
Agent state snapshots and the immutable inputs shared by one planning call.

Design decisions:
- AgentState is a frozen snapshot. Projections (phase estimates, recharges)
  return new instances, so every search branch owns its own states.
- Constraints and Parameters are frozen and passed explicitly into every
  call; nothing here is module-level state, so independent fleets can plan
  concurrently against the same objects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from collections.abc import Hashable
from typing import TYPE_CHECKING

from src.tasks.errors import InvalidConstraintsError

if TYPE_CHECKING:
    from src.battery.sinks import SimpleDevicePowerSink, SimpleMotionPowerSink
    from src.battery.systems import BatterySystem
    from src.fleet.routing import RoutePlanner


@dataclass(frozen=True)
class AgentState:
    """Where an agent is, when, and how much charge it holds.

    Attributes:
        time: Time in seconds at which the snapshot holds.
        location: Waypoint key, opaque to the planner and passed to the route planner.
        soc: State of charge as a fraction in [0, 1].
        charger: Waypoint key of the agent's charger, or None if it cannot recharge.
    """

    time: float
    location: Hashable
    soc: float
    charger: Hashable | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.soc <= 1.0:
            raise ValueError(f"soc must be within [0, 1], got {self.soc!r}")

    def advanced(self, *, duration_s: float, soc: float, location: Hashable | None = None) -> AgentState:
        """Project this state ``duration_s`` seconds forward."""
        return replace(
            self,
            time=self.time + duration_s,
            soc=min(1.0, max(0.0, soc)),
            location=self.location if location is None else location,
        )

    def waited_until(self, time: float) -> AgentState:
        """Idle in place until ``time`` (no-op if already later)."""
        if time <= self.time:
            return self
        return replace(self, time=time)


@dataclass(frozen=True)
class Constraints:
    """Battery constraints for one planning call.

    Attributes:
        soc_threshold: Lowest SoC any planned phase may leave the agent with.
        recharge_soc: SoC at which a planned recharge is considered finished.
        drain_battery: If False the SoC never drops and all SoC checks are skipped.
    """

    soc_threshold: float = 0.2
    recharge_soc: float = 1.0
    drain_battery: bool = True

    def __post_init__(self) -> None:
        for name in ("soc_threshold", "recharge_soc"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConstraintsError(f"{name} must be within [0, 1], got {value!r}")
        if self.soc_threshold > self.recharge_soc:
            raise InvalidConstraintsError(
                f"soc_threshold ({self.soc_threshold}) exceeds recharge_soc ({self.recharge_soc})"
            )


@dataclass(frozen=True)
class Parameters:
    """Collaborators used to estimate costs. Shared read-only.

    Attributes:
        route_planner: Turns a start/goal pair into a timed route.
        battery_system: Battery used to convert SoC deltas into charging time.
        motion_sink: Energy model for travel.
        ambient_sink: Always-on device draw (electronics), applied to every phase.
        tool_sink: Extra draw of tool-powered actions; None when agents carry no tool.
    """

    route_planner: RoutePlanner
    battery_system: BatterySystem
    motion_sink: SimpleMotionPowerSink
    ambient_sink: SimpleDevicePowerSink
    tool_sink: SimpleDevicePowerSink | None = None
