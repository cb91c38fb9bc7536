"""
src/planner/benchmark.py
──────────────────────────────────────────────────────────────────────────────
Benchmark: greedy vs optimal assignment search.

Plans the same random scenarios twice, once per search mode, on a grid
navigation graph built from the fleet config.

Metrics per mode:
  • Cost value            (tie-breaking scalar, seconds of weighted latency)
  • Unassigned requests   (penalty level)
  • Recharge detours      (planned charger visits)
  • Nodes expanded        (search effort)
  • Solve time            (wall-clock, ms)

Optimal mode is warm-started from the greedy solution, so its cost is never
worse; the "Cost improvement vs greedy" row shows by how much it is better.

Usage:
    python -m src.planner.benchmark                       # 20 scenarios, defaults
    python -m src.planner.benchmark --scenarios 100
    python -m src.planner.benchmark --agents 3 --requests 6 --max-nodes 5000
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass

import numpy as np

from src.fleet.config import FleetConfig, SearchConfig, load_config
from src.fleet.graph import NavGraph
from src.fleet.layout import GridLayoutGenerator
from src.planner.engine import Assignments, PlannerOptions, PlanResult, SearchBudget
from src.planner.setup import build_planner
from src.tasks.phases import GoToPlace, PerformAction
from src.tasks.request import Request, RequestPriority
from src.tasks.state import AgentState
from src.tasks.task import TaskBuilder


# ── Scenario generation ───────────────────────────────────────────────────────


@dataclass
class Scenario:
    """A single random planning scenario."""

    agent_states: list[AgentState]
    requests: list[Request]


def generate_scenario(
    graph: NavGraph,
    n_agents: int,
    n_requests: int,
    rng: np.random.Generator,
    low_battery_fraction: float = 0.25,
    action_fraction: float = 0.5,
    high_priority_fraction: float = 0.1,
    horizon_s: float = 600.0,
) -> Scenario:
    """Generate a random planning scenario.

    Agents start at random waypoints, each tied to its nearest charger. A
    share of them start with a low battery to exercise recharge detours.
    Requests drive to a random waypoint and, for ``action_fraction`` of them,
    clean there with the tool for one to ten minutes.
    """
    waypoints = sorted(graph.graph.nodes)

    agents = []
    for _ in range(n_agents):
        location = waypoints[rng.integers(len(waypoints))]
        charger, _ = graph.nearest_charger(location)
        soc = rng.uniform(0.22, 0.35) if rng.random() < low_battery_fraction else rng.uniform(0.5, 1.0)
        agents.append(AgentState(time=0.0, location=location, soc=float(soc), charger=charger))

    requests = []
    for j in range(n_requests):
        goal = waypoints[rng.integers(len(waypoints))]
        builder = TaskBuilder().add_phase(GoToPlace(goal))
        if rng.random() < action_fraction:
            duration = float(rng.uniform(60.0, 600.0))
            builder.add_phase(PerformAction("clean", expected_duration_s=duration, use_tool_sink=True))
        priority = RequestPriority.HIGH if rng.random() < high_priority_fraction else None
        release = float(rng.uniform(0.0, horizon_s))
        requests.append(
            Request(
                id=f"REQ_{j:03d}",
                submission_time=0.0,
                description=builder.build("benchmark", f"req-{j}"),
                priority=priority,
                earliest_start_time=release,
            )
        )

    return Scenario(agent_states=agents, requests=requests)


# ── Metric helpers ────────────────────────────────────────────────────────────


def n_recharges(result: PlanResult) -> int:
    """Number of recharge detours planned across all agents."""
    return sum(
        1 for queue in result.assignments.values() for a in queue if a.recharge is not None
    )


def n_unassigned(result: PlanResult) -> int:
    return 0 if isinstance(result, Assignments) else len(result.request_ids)


# ── Main benchmark loop ───────────────────────────────────────────────────────


def run_benchmark(
    config: FleetConfig,
    n_scenarios: int = 20,
    n_agents: int = 3,
    n_requests: int = 6,
    seed: int = 42,
    max_nodes: int | None = 20_000,
) -> None:
    """Run scenarios and print a comparison table."""

    modes = ["greedy", "optimal"]

    print("=" * 72)
    print("  Fleet Task Planner Benchmark")
    print("=" * 72)
    print(
        f"  Scenarios: {n_scenarios}  |  Agents: {n_agents}  |  Requests: {n_requests}"
        f"  |  Seed: {seed}"
    )

    graph = GridLayoutGenerator(config.layout).generate()
    print(f"  Graph: {graph.n_waypoints} waypoints, {graph.n_lanes} lanes, {len(graph.chargers())} chargers\n")

    planner = build_planner(config, graph)
    options = {
        "greedy": PlannerOptions(optimal=False),
        "optimal": PlannerOptions(
            optimal=True,
            search_budget=SearchBudget(max_nodes=max_nodes),
            workers=config.search.workers,
        ),
    }

    rng = np.random.default_rng(seed)

    results: dict[str, dict[str, list]] = {
        mode: {"value": [], "unassigned": [], "recharges": [], "nodes": [], "time_ms": [], "status": []}
        for mode in modes
    }

    for _ in range(n_scenarios):
        scenario = generate_scenario(graph, n_agents, n_requests, rng)
        for mode in modes:
            r = planner.plan(0.0, scenario.agent_states, scenario.requests, options[mode])
            results[mode]["value"].append(r.cost.value)
            results[mode]["unassigned"].append(n_unassigned(r))
            results[mode]["recharges"].append(n_recharges(r))
            results[mode]["nodes"].append(r.stats.nodes_expanded)
            results[mode]["time_ms"].append(r.stats.solve_time_ms)
            results[mode]["status"].append(r.status.name)

    # ── Print results ─────────────────────────────────────────────────────────
    col_w = 16

    def val(v: float, fmt: str = ".1f") -> str:
        return f"{v:{col_w}{fmt}}"

    print(f"  {'Metric':<30}" + "".join(f"{m:>{col_w}}" for m in modes))
    print("  " + "─" * (30 + col_w * len(modes)))

    rows = [
        ("Avg cost value (s)", lambda d: np.mean(d["value"]), ".1f"),
        ("Avg unassigned requests", lambda d: np.mean(d["unassigned"]), ".2f"),
        ("Avg recharge detours", lambda d: np.mean(d["recharges"]), ".2f"),
        ("Avg nodes expanded", lambda d: np.mean(d["nodes"]), ".0f"),
        ("Avg solve time (ms)", lambda d: np.mean(d["time_ms"]), ".2f"),
        ("P95 solve time (ms)", lambda d: np.percentile(d["time_ms"], 95), ".2f"),
    ]
    for label, fn, fmt in rows:
        print(f"  {label:<30}" + "".join(val(fn(results[m]), fmt) for m in modes))

    g_values = results["greedy"]["value"]
    improvements = [
        (g - o) / g * 100 if g > 0 else 0.0
        for g, o in zip(g_values, results["optimal"]["value"])
    ]
    print()
    print(f"  {'Cost improvement vs greedy':<30}{'baseline':>{col_w}}" + val(np.mean(improvements)) + "%")

    print()
    print("  Search status distribution:")
    for mode in modes:
        counts: dict[str, int] = {}
        for s in results[mode]["status"]:
            counts[s] = counts.get(s, 0) + 1
        dist_str = "  ".join(f"{s}={c}" for s, c in sorted(counts.items()))
        print(f"    {mode:<12}: {dist_str}")

    print(f"\n  Planner totals: {planner.total_plans} plans, {planner.total_solve_time_ms:.0f} ms")
    print("\n" + "=" * 72)


# ── CLI entry point ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Benchmark greedy vs optimal task assignment")
    parser.add_argument("--config", type=str, default=None, help="Path to fleet config YAML")
    parser.add_argument("--scenarios", type=int, default=20)
    parser.add_argument("--agents", type=int, default=3)
    parser.add_argument("--requests", type=int, default=6)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--max-nodes", type=int, default=20_000, help="Optimal-mode node budget")
    parser.add_argument("--workers", type=int, default=None, help="Expansion threads (overrides config)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    cfg = load_config(args.config) if args.config else FleetConfig()
    if args.workers is not None:
        cfg = FleetConfig(
            layout=cfg.layout,
            battery=cfg.battery,
            mechanical=cfg.mechanical,
            power=cfg.power,
            vehicle=cfg.vehicle,
            constraints=cfg.constraints,
            search=SearchConfig(
                optimal=cfg.search.optimal,
                max_nodes=cfg.search.max_nodes,
                time_limit_s=cfg.search.time_limit_s,
                workers=args.workers,
            ),
        )
    run_benchmark(cfg, args.scenarios, args.agents, args.requests, args.seed, args.max_nodes)
