"""LimbIK command-line entry point.

Loads a rig, optionally moves targets or poles, runs the solver for a
number of frames and prints the per-chain result and joint positions.

Usage::

    limbik arm.json
    limbik arm.json --frames 5 --move hand_target 0.5 1.2 0.3 -v
"""

import argparse
import logging
import sys

from limbik.core.events import EventBus, EventType
from limbik.core.state import ChainStats
from limbik.ik.host import SceneGraphHost
from limbik.ik.solver import IKSolver
from limbik.loaders.rig_loader import load_rig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="limbik",
        description="Solve FABRIK chains of a JSON rig",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("rig", help="Rig JSON path, or a file name in assets/config/rigs/")
    parser.add_argument("--frames", type=int, default=1, help="Frames to solve (default 1)")
    parser.add_argument(
        "--move", nargs=4, action="append", default=[],
        metavar=("NODE", "X", "Y", "Z"),
        help="Place a node at a world position before solving (repeatable)",
    )
    parser.add_argument("--tolerance", type=float, help="Override the rig's solver tolerance")
    parser.add_argument("--iterations", type=int, help="Override the rig's iteration budget")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _print_stats(stats: ChainStats) -> None:
    state = "out of reach" if stats.out_of_reach else ("reached" if stats.reached else "not reached")
    pole = ", pole" if stats.pole_applied else ""
    print(f"  {stats.name}: {state}, {stats.iterations} passes, "
          f"tip {stats.final_distance:.5f} from target{pole}")


def main(argv=None) -> int:
    """Run the solver over a rig file.  Returns a process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s: %(message)s",
    )

    try:
        rig = load_rig(args.rig)
    except (OSError, ValueError) as e:
        logger.error("Cannot load rig %s: %s", args.rig, e)
        return 1

    try:
        settings = rig.settings.override(args.tolerance, args.iterations)
    except ValueError as e:
        logger.error("Bad solver settings: %s", e)
        return 1

    bus = EventBus()
    bus.subscribe(EventType.CONFIG_WARNING,
                  lambda name, message: print(f"warning: {name}: {message}"))

    # Build against the rig's authored pose before any node is moved
    solver = IKSolver(SceneGraphHost(), rig.specs, settings, bus)
    solver.initialize()
    for error in solver.rejected.values():
        print(f"rejected: {error}")

    for name, *coords in args.move:
        node = rig.nodes.get(name)
        if node is None:
            logger.error("Unknown node %r", name)
            return 1
        try:
            position = tuple(float(c) for c in coords)
        except ValueError:
            logger.error("Bad position for %s: %s", name, " ".join(coords))
            return 1
        node.set_world_position(position)

    for frame in range(args.frames):
        print(f"frame {frame}")
        for stats in solver.update():
            _print_stats(stats)

    print("joints")
    for chain in solver.chains:
        for joint in chain.joints:
            p = joint.get_world_position()
            print(f"  {chain.name}/{joint.name}: ({p[0]:.4f}, {p[1]:.4f}, {p[2]:.4f})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
