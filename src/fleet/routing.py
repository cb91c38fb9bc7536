"""
Route planning: from a start/goal waypoint pair to a timed route.

The planning core only ever sees the ``RoutePlanner`` protocol. The default
implementation, ``GraphRoutePlanner``, looks up the shortest lane sequence
on a NavGraph and times it with a simple kinematic model:

  • consecutive collinear lanes are merged into one straight run
  • every run follows a trapezoidal velocity profile (accelerate, cruise,
    decelerate), or a triangular one when the run is too short to reach
    cruise speed
  • the agent stops and turns in place between runs, with the same
    profile applied to its angular velocity

No conflict detection, no reservations: the route is what an agent would
drive alone on the floor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

import networkx as nx
import numpy as np

from src.fleet.graph import NavGraph, WaypointKey
from src.tasks.errors import NoRouteError

_HEADING_EPS = 1e-6


class MotionKind(Enum):
    """Kinds of motion segment along a route."""

    TRANSLATION = auto()
    ROTATION = auto()


@dataclass(frozen=True)
class MotionSegment:
    """One straight run or one in-place turn.

    Attributes:
        kind: Translation or rotation.
        magnitude: Metres for a translation, radians for a rotation.
        duration_s: Time taken by this segment.
        peak_velocity: Highest (angular) velocity reached.
    """

    kind: MotionKind
    magnitude: float
    duration_s: float
    peak_velocity: float

    @property
    def is_rotation(self) -> bool:
        return self.kind == MotionKind.ROTATION


@dataclass(frozen=True)
class Route:
    """A timed route between two waypoints."""

    waypoints: tuple[WaypointKey, ...]
    duration_s: float
    distance_m: float
    segments: tuple[MotionSegment, ...] = ()

    @property
    def start(self) -> WaypointKey:
        return self.waypoints[0]

    @property
    def goal(self) -> WaypointKey:
        return self.waypoints[-1]


@dataclass(frozen=True)
class VehicleTraits:
    """Kinematic limits of an agent."""

    linear_velocity_mps: float = 1.0
    linear_acceleration_mps2: float = 0.7
    angular_velocity_rps: float = 0.6
    angular_acceleration_rps2: float = 0.5

    def __post_init__(self) -> None:
        for name in (
            "linear_velocity_mps",
            "linear_acceleration_mps2",
            "angular_velocity_rps",
            "angular_acceleration_rps2",
        ):
            if not getattr(self, name) > 0.0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")


class RoutePlanner(Protocol):
    """Protocol for the external route planner."""

    def route(self, start: WaypointKey, goal: WaypointKey) -> Route:
        """Return a timed route. Raises NoRouteError when none exists."""


def profile_duration(distance: float, max_velocity: float, acceleration: float) -> tuple[float, float]:
    """Time and peak velocity to cover ``distance`` from rest to rest.

    Returns:
        Tuple of (duration, peak velocity).
    """
    if distance <= 0.0:
        return 0.0, 0.0
    accel_distance = max_velocity**2 / acceleration
    if distance >= accel_distance:
        return distance / max_velocity + max_velocity / acceleration, max_velocity
    peak = math.sqrt(acceleration * distance)
    return 2.0 * peak / acceleration, peak


def _wrap_angle(angle: float) -> float:
    return (angle + math.pi) % (2.0 * math.pi) - math.pi


class GraphRoutePlanner:
    """Shortest-path route planner over a NavGraph.

    Thread-safe: the only shared mutable state is the graph's path cache,
    which is lock-protected.
    """

    def __init__(self, graph: NavGraph, traits: VehicleTraits | None = None) -> None:
        self.graph = graph
        self.traits = traits or VehicleTraits()

    def route(self, start: WaypointKey, goal: WaypointKey) -> Route:
        """Plan and time the shortest route from ``start`` to ``goal``."""
        if not self.graph.has_waypoint(start) or not self.graph.has_waypoint(goal):
            raise NoRouteError(start, goal)
        if start == goal:
            return Route(waypoints=(start,), duration_s=0.0, distance_m=0.0)

        try:
            path = self.graph.shortest_path(start, goal)
        except (nx.NetworkXNoPath, nx.NodeNotFound) as exc:
            raise NoRouteError(start, goal) from exc

        segments = self._segments(path)
        return Route(
            waypoints=tuple(path),
            duration_s=sum(s.duration_s for s in segments),
            distance_m=sum(s.magnitude for s in segments if not s.is_rotation),
            segments=tuple(segments),
        )

    def _segments(self, path: list[WaypointKey]) -> list[MotionSegment]:
        """Split a waypoint path into straight runs and in-place turns."""
        positions = np.array([self.graph.position(k) for k in path], dtype=np.float64)
        deltas = np.diff(positions, axis=0)
        lengths = np.hypot(deltas[:, 0], deltas[:, 1])
        keep = lengths > 0.0
        deltas, lengths = deltas[keep], lengths[keep]
        if lengths.size == 0:
            return []
        headings = np.arctan2(deltas[:, 1], deltas[:, 0])

        # Merge collinear lanes into runs: (heading, length)
        runs: list[tuple[float, float]] = []
        for heading, length in zip(headings, lengths):
            if runs and abs(_wrap_angle(float(heading) - runs[-1][0])) < _HEADING_EPS:
                runs[-1] = (runs[-1][0], runs[-1][1] + float(length))
            else:
                runs.append((float(heading), float(length)))

        t = self.traits
        segments: list[MotionSegment] = []
        for i, (heading, length) in enumerate(runs):
            if i > 0:
                turn = abs(_wrap_angle(heading - runs[i - 1][0]))
                duration, peak = profile_duration(
                    turn, t.angular_velocity_rps, t.angular_acceleration_rps2
                )
                segments.append(MotionSegment(MotionKind.ROTATION, turn, duration, peak))
            duration, peak = profile_duration(
                length, t.linear_velocity_mps, t.linear_acceleration_mps2
            )
            segments.append(MotionSegment(MotionKind.TRANSLATION, length, duration, peak))
        return segments
