"""
Headless runner for the heat search simulation.
Builds a world (generated or loaded), ticks the supervisor, optionally
renders, reports coordinates and saves metrics, then prints a summary.
"""
import argparse
import logging
import sys
import time

import numpy as np

from heat_seeker.clock import MonotonicClock, SimulatedClock
from heat_seeker.config import ConfigurationError, SimulationConfig
from heat_seeker.env.world import LayoutError, World
from heat_seeker.robot.rover import OperatingMode, SearchPattern
from heat_seeker.search_supervisor import HeatSearchSimulation

logger = logging.getLogger(__name__)


def configure_logging(level="INFO"):
    """Console logging for the runner and every heat_seeker module."""
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    root = logging.getLogger()
    if root.handlers:
        root.handlers.clear()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)


def build_parser():
    parser = argparse.ArgumentParser(description="Heat-seeking search rover simulation")
    parser.add_argument("--ticks", type=int, default=3000, help="number of simulation steps")
    parser.add_argument("--pattern", default="grid",
                        choices=["grid", "spiral", "perimeter", "random"])
    parser.add_argument("--mode", default="auto", choices=["auto", "search-rescue"])
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--field-size", type=float, default=40.0)
    parser.add_argument("--see-through", action="store_true",
                        help="let sensor rays pass through obstacles")
    parser.add_argument("--render", action="store_true", help="show the matplotlib view")
    parser.add_argument("--save-metrics", metavar="DIR", default=None)
    parser.add_argument("--report-url", metavar="URL", default=None,
                        help="coordinate log service base URL")
    parser.add_argument("--save-layout", metavar="PATH", default=None)
    parser.add_argument("--load-layout", metavar="PATH", default=None)
    parser.add_argument("--log-level", default="INFO")
    return parser


def build_simulation(args):
    config = SimulationConfig(field_size=args.field_size, see_through_obstacles=args.see_through,
                              seed=args.seed)
    rng = np.random.default_rng(args.seed)
    world = None
    if args.load_layout:
        world = World.load_layout(args.load_layout, rng)
    # Rendered runs follow wall time, headless runs are deterministic
    clock = MonotonicClock() if args.render else SimulatedClock()
    sim = HeatSearchSimulation(config, world=world, clock=clock, rng=rng)

    pattern = SearchPattern.parse(args.pattern)
    if pattern is not sim.robot.pattern:
        sim.set_pattern(pattern)
    mode = OperatingMode(args.mode)
    if mode is not sim.robot.mode:
        sim.set_mode(mode)
    return sim


def print_summary(sim, elapsed):
    print("\n" + "=" * 70)
    print("HEAT SEARCH SUMMARY")
    print("=" * 70)
    print(f"Mode: {sim.robot.mode.value}  Pattern: {sim.robot.pattern.value}")
    print(f"Ticks: {sim.tick_count}")
    print(f"Targets Found: {sim.targets_found}")
    print(f"Pattern Coverage: {sim.coverage:.1f}%")
    print(f"Area Explored: {sim.explored:.1f}%")
    print(f"Final Status: {sim.status}")
    print(f"Elapsed: {elapsed:.1f}s")
    print("=" * 70)


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        sim = build_simulation(args)
    except (ConfigurationError, LayoutError, OSError) as e:
        logger.error("Cannot start simulation: %s", e)
        return 1

    if args.save_layout:
        sim.world.save_layout(args.save_layout)

    reporter = None
    if args.report_url:
        from heat_seeker.services.telemetry import CoordinateReporter
        reporter = CoordinateReporter(args.report_url)

    renderer = None
    if args.render:
        from heat_seeker.env.env_2d import Renderer2D
        renderer = Renderer2D(sim)

    start = time.time()
    last_status = sim.status
    for _ in range(args.ticks):
        result = sim.tick()
        if result.status != last_status:
            print(f"[{sim.tick_count:5d}] {result.status}")
            last_status = result.status
        if reporter is not None:
            reporter.maybe_report(sim.tick_count, result)
        if renderer is not None and sim.tick_count % 5 == 0:
            renderer.render()

    if reporter is not None:
        reporter.close()
    if renderer is not None:
        renderer.close()

    print_summary(sim, time.time() - start)
    if args.save_metrics:
        from heat_seeker.metrics_logger import save_run_metrics
        save_run_metrics(sim, args.save_metrics)
    return 0


if __name__ == "__main__":
    sys.exit(main())
