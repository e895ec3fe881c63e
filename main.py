"""Demo script for label-correcting motion planning."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import matplotlib.pyplot as plt

from glc_planner import Planner, Visualizer, create_scenario
from glc_planner.export import nodes_to_file, trajectory_to_file
from glc_planner.scenarios import SCENARIOS


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Label-Correcting Motion Planning Demo")

    p.add_argument(
        "--scenario",
        type=str,
        default="car",
        choices=SCENARIOS,
        help="Predefined scenario to run"
    )
    p.add_argument(
        "--save",
        type=str,
        default=None,
        help="Save result to image file"
    )
    p.add_argument(
        "--export_dir",
        type=str,
        default=None,
        help="Write the solution table and explored cells to this directory"
    )
    p.add_argument(
        "--print_samples",
        type=int,
        default=20,
        help="Number of solution samples printed to the console"
    )
    p.add_argument(
        "--no_plot",
        action="store_true",
        help="Skip plotting"
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s"
    )

    print("=" * 60)
    print("LABEL-CORRECTING MOTION PLANNING")
    print("=" * 60)
    print(f"Scenario: {args.scenario}")
    print()

    scenario = create_scenario(args.scenario)
    planner = Planner(**scenario.planner_args())

    print(f"Start:      {scenario.config.x0}")
    print(f"Inputs:     {len(scenario.inputs)}")
    print(f"Horizon:    {planner.expand_time:.4f}")
    print(f"Cell width: {planner.domain_labels.cell_width:.4f}")
    print()

    print("Planning...")
    out = planner.plan()

    if args.export_dir:
        export_dir = Path(args.export_dir)
        export_dir.mkdir(parents=True, exist_ok=True)
        nodes_path = nodes_to_file(export_dir / f"{args.scenario}_nodes.txt", planner.domain_labels)
        print(f"Explored cells saved to {nodes_path}")

    if not out.solution_found:
        print(f"Failed to find a solution ({out})")
        return

    print(f"Solution found: {out}")
    print(out.trajectory.format_spline(args.print_samples, "Solution"))

    if args.export_dir:
        path = trajectory_to_file(export_dir / f"{args.scenario}_path.txt", out.trajectory)
        print(f"Solution saved to {path}")

    if not args.no_plot and scenario.config.state_dim >= 2:
        viz = Visualizer(scenario)
        fig = viz.plot_planning_result(
            trajectory=out.trajectory,
            path=out.path,
            labels=planner.domain_labels,
            title=f"{args.scenario.replace('_', ' ').title()} Scenario"
        )

        if args.save:
            fig.savefig(args.save, dpi=150, bbox_inches='tight')
            print(f"Result saved to {args.save}")
        else:
            plt.show()

    print("\nDone!")


if __name__ == "__main__":
    main()
