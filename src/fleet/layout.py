"""
Grid layout generator.

Builds a NavGraph from a LayoutConfig: a rectangular lattice of waypoints
joined by two-way lanes, with chargers spread along the bottom row.

Layout geometry (top-down, 3 × 4 example, 2 chargers):

    (0,2)──(1,2)──(2,2)──(3,2)
      │      │      │      │
    (0,1)──(1,1)──(2,1)──(3,1)
      │      │      │      │
    [C0,0]─(1,0)──[C2,0]─(3,0)

Waypoint keys are ``(col, row)`` tuples; coordinates are ``key × spacing_m``.
"""

from __future__ import annotations

from src.fleet.config import LayoutConfig
from src.fleet.graph import NavGraph


class GridLayoutGenerator:
    """Generates a lattice navigation graph."""

    def __init__(self, config: LayoutConfig) -> None:
        if config.n_rows < 1 or config.n_cols < 1:
            raise ValueError(f"Grid must be at least 1×1, got {config.n_rows}×{config.n_cols}")
        if not 0 < config.n_chargers <= config.n_cols:
            raise ValueError(
                f"n_chargers must be between 1 and n_cols ({config.n_cols}), "
                f"got {config.n_chargers}"
            )
        self.config = config

    def generate(self) -> NavGraph:
        """Build and return the grid graph."""
        cfg = self.config
        g = NavGraph()

        for row in range(cfg.n_rows):
            for col in range(cfg.n_cols):
                g.add_waypoint(col * cfg.spacing_m, row * cfg.spacing_m, key=(col, row))

        for row in range(cfg.n_rows):
            for col in range(cfg.n_cols):
                if col + 1 < cfg.n_cols:
                    g.add_bidirectional_lane((col, row), (col + 1, row))
                if row + 1 < cfg.n_rows:
                    g.add_bidirectional_lane((col, row), (col, row + 1))

        for col in self.charger_columns():
            g.set_charger((col, 0))

        issues = g.validate()
        if issues:
            raise ValueError(f"Generated layout is invalid: {issues}")
        return g

    def charger_columns(self) -> list[int]:
        """Columns of the bottom row that host a charger, evenly spaced."""
        n, cols = self.config.n_chargers, self.config.n_cols
        step = cols / n
        return sorted({int(i * step) for i in range(n)})
