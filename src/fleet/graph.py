"""Navigation graph representation.

The fleet's world is modeled as a directed graph where:
- Nodes are waypoints with planar coordinates; some of them are chargers
- Edges are lanes an agent can drive along, weighted by their length
- The graph is the single source of truth for topology

Route planning operates on this graph through ``GraphRoutePlanner``.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Hashable

import networkx as nx

WaypointKey = Hashable


class NavGraph:
    """Directed graph of waypoints and lanes.

    Wraps a NetworkX DiGraph with typed waypoint attributes, keeping the raw
    graph accessible for pathfinding. Waypoint keys are any hashable value;
    ``add_waypoint`` without a key assigns consecutive integers, so a graph
    built in order can be addressed by index.

    Attributes:
        graph: The underlying NetworkX DiGraph.
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()
        self._path_cache: dict[tuple[WaypointKey, WaypointKey], list[WaypointKey]] = {}
        self._cache_lock = threading.Lock()

    # ── Waypoint management ──────────────────────────────────────────

    def add_waypoint(
        self,
        x: float,
        y: float,
        key: WaypointKey | None = None,
        is_charger: bool = False,
        **attrs,
    ) -> WaypointKey:
        """Add a waypoint and return its key.

        Args:
            x: X coordinate in meters.
            y: Y coordinate in meters.
            key: Waypoint key. Defaults to the next integer index.
            is_charger: Whether an agent can charge here.
            **attrs: Additional attributes (e.g. a human-readable name).
        """
        if key is None:
            key = self.graph.number_of_nodes()
        self.graph.add_node(key, x=float(x), y=float(y), is_charger=is_charger, **attrs)
        self._invalidate()
        return key

    def set_charger(self, key: WaypointKey, is_charger: bool = True) -> None:
        """Mark or unmark a waypoint as a charger."""
        self.graph.nodes[key]["is_charger"] = is_charger

    def position(self, key: WaypointKey) -> tuple[float, float]:
        """Planar coordinates of a waypoint."""
        data = self.graph.nodes[key]
        return data["x"], data["y"]

    def has_waypoint(self, key: WaypointKey) -> bool:
        return key in self.graph

    def chargers(self) -> list[WaypointKey]:
        """Return all charger waypoint keys."""
        return [n for n, d in self.graph.nodes(data=True) if d.get("is_charger")]

    # ── Lane management ──────────────────────────────────────────────

    def add_lane(self, from_key: WaypointKey, to_key: WaypointKey, **attrs) -> None:
        """Add a one-way lane. Its length is the straight-line distance."""
        (x0, y0), (x1, y1) = self.position(from_key), self.position(to_key)
        self.graph.add_edge(from_key, to_key, distance=math.hypot(x1 - x0, y1 - y0), **attrs)
        self._invalidate()

    def add_bidirectional_lane(self, key_a: WaypointKey, key_b: WaypointKey, **attrs) -> None:
        """Add lanes in both directions."""
        self.add_lane(key_a, key_b, **attrs)
        self.add_lane(key_b, key_a, **attrs)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def n_waypoints(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def n_lanes(self) -> int:
        return self.graph.number_of_edges()

    def lane_length(self, from_key: WaypointKey, to_key: WaypointKey) -> float:
        """Length of a specific lane. Raises KeyError if the lane doesn't exist."""
        return self.graph.edges[from_key, to_key]["distance"]

    def shortest_path(self, source: WaypointKey, target: WaypointKey) -> list[WaypointKey]:
        """Shortest waypoint sequence from source to target.

        Results are cached; the cache is shared by concurrent planners.

        Raises:
            nx.NetworkXNoPath: If target is unreachable.
            nx.NodeNotFound: If either waypoint is unknown.
        """
        with self._cache_lock:
            cached = self._path_cache.get((source, target))
        if cached is not None:
            return list(cached)

        path = nx.shortest_path(self.graph, source, target, weight="distance")
        with self._cache_lock:
            self._path_cache[(source, target)] = path
        return list(path)

    def path_length(self, path: list[WaypointKey]) -> float:
        """Total lane length along a waypoint sequence."""
        return sum(self.lane_length(a, b) for a, b in zip(path, path[1:]))

    def nearest_charger(self, from_key: WaypointKey) -> tuple[WaypointKey, float]:
        """Find the charger with the shortest path from a waypoint.

        Returns:
            Tuple of (waypoint key, distance).

        Raises:
            ValueError: If no charger is reachable.
        """
        best_key = None
        best_dist = float("inf")
        for candidate in self.chargers():
            try:
                dist = self.path_length(self.shortest_path(from_key, candidate))
            except nx.NetworkXNoPath:
                continue
            if dist < best_dist:
                best_key, best_dist = candidate, dist

        if best_key is None:
            raise ValueError(f"No reachable charger from {from_key!r}")
        return best_key, best_dist

    def validate(self) -> list[str]:
        """Run basic sanity checks on the graph.

        Returns:
            List of warning/error messages (empty = all good).
        """
        issues = []

        if self.n_waypoints and not nx.is_strongly_connected(self.graph):
            components = list(nx.strongly_connected_components(self.graph))
            issues.append(
                f"Graph is not strongly connected: {len(components)} components "
                f"(sizes: {sorted(len(c) for c in components)})"
            )

        if not self.chargers():
            issues.append("No charger waypoints")

        return issues

    def _invalidate(self) -> None:
        with self._cache_lock:
            self._path_cache.clear()
