"""
Quick-run script for the fleet task planner.

Usage:
    python run_planner.py                                  # defaults: 3 agents, 6 requests
    python run_planner.py --n-agents 4 --n-requests 10     # custom
    python run_planner.py --config config/default_fleet.yaml --greedy

Draws a random scenario on the configured grid, plans it and prints each
agent's queue to stdout.
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from src.fleet.config import FleetConfig, load_config
from src.fleet.layout import GridLayoutGenerator
from src.planner.benchmark import generate_scenario
from src.planner.engine import Assignments, PlannerOptions
from src.planner.setup import build_options, build_planner


def main():
    """Main function that runs if the file is run directly."""

    parser = argparse.ArgumentParser(description="Plan a random fleet scenario")
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_fleet.yaml",
        help="Path to fleet config YAML",
    )
    parser.add_argument("--n-agents", type=int, default=3, help="Number of agents")
    parser.add_argument("--n-requests", type=int, default=6, help="Number of requests")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--greedy", action="store_true", help="Greedy search instead of optimal")
    parser.add_argument("--verbose", action="store_true", help="Log search diagnostics")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load config
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
        print(f"Loaded config from {config_path}")
    else:
        print(f"Config {config_path} not found, using defaults")
        config = FleetConfig()

    graph = GridLayoutGenerator(config.layout).generate()
    planner = build_planner(config, graph)
    scenario = generate_scenario(
        graph, args.n_agents, args.n_requests, np.random.default_rng(args.seed)
    )

    options = build_options(config.search)
    if args.greedy:
        options = PlannerOptions(optimal=False, workers=options.workers)

    result = planner.plan(0.0, scenario.agent_states, scenario.requests, options)

    print(f"\n{'=' * 72}")
    print(f"Plan: {result.status.name}  {result.cost}")
    print(
        f"Nodes expanded: {result.stats.nodes_expanded}  "
        f"Solve time: {result.stats.solve_time_ms:.1f} ms"
    )
    if not isinstance(result, Assignments):
        print(f"Unassignable: {', '.join(result.request_ids)}")
    print(f"{'=' * 72}")
    print(f"{'Agent':<6} {'Request':<9} {'Start':>8} {'Finish':>8} {'SoC':>6} {'Recharge':>9}")
    print(f"{'-' * 6} {'-' * 9} {'-' * 8} {'-' * 8} {'-' * 6} {'-' * 9}")
    for agent, queue in sorted(result.assignments.items()):
        start = scenario.agent_states[agent]
        if not queue:
            print(f"{agent:<6} {'(idle)':<9} {'':>8} {'':>8} {start.soc * 100:>5.1f}%")
        for a in queue:
            recharge = f"{a.recharge.charge_s:>8.0f}s" if a.recharge else f"{'-':>9}"
            print(
                f"{agent:<6} {a.request_id:<9} {a.start_time:>8.0f} "
                f"{a.finish_state.time:>8.0f} {a.finish_state.soc * 100:>5.1f}% {recharge}"
            )


if __name__ == "__main__":
    main()
