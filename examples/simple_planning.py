"""Simple example: kinematic car around one disk."""

import sys
sys.path.insert(0, '..')

from glc_planner import InputSet, Planner, PlannerConfig, Visualizer, linear_space
from glc_planner.scenarios import (
    CircularObstacles,
    ElapsedTime,
    EuclideanHeuristic,
    NonholonomicCar,
    Scenario,
    SphericalGoal,
)
import matplotlib.pyplot as plt


def main():
    print("Simple Label-Correcting Planning Example")
    print("=" * 40)

    # 1. Algorithm parameters
    config = PlannerConfig(
        resolution=15,        # 15 turn rates, horizon time_scale / 15
        state_dim=3,          # (x, y, theta)
        control_dim=2,        # (speed, turn rate)
        time_scale=15.0,
        partition_scale=40.0,
        dt_max=1.0,
        max_iter=20000,
        x0=[0.0, 0.0, 0.0],
    )

    # 2. Controls: unit speed, turn rates in [-0.3, 0.3] rad/s
    inputs = InputSet.from_grid([1.0], linear_space(-0.3, 0.3, config.resolution))
    print(f"Inputs: {len(inputs)} samples")

    # 3. Problem
    goal_center = [12.0, 4.0]
    scenario = Scenario(
        name="simple",
        config=config,
        inputs=inputs,
        dynamics=NonholonomicCar(),
        goal=SphericalGoal(goal_center, 0.75),
        heuristic=EuclideanHeuristic(goal_center, radius=0.75),
        obstacles=CircularObstacles([([6.0, 1.0], 1.5)]),
        cost_function=ElapsedTime(),
    )

    # 4. Plan
    planner = Planner(**scenario.planner_args())
    print(f"\nHorizon: {planner.expand_time:.3f}s, cell width {1 / planner.eta:.3f}")

    print("\nPlanning...")
    out = planner.plan()

    if not out.solution_found:
        print("No path found!")
        return

    print(f"Found path: cost {out.cost:.3f} over {len(out.path)} nodes")

    # 5. Visualize
    viz = Visualizer(scenario)
    viz.plot_planning_result(
        trajectory=out.trajectory,
        path=out.path,
        labels=planner.domain_labels,
        title="Label-Correcting Planner - Simple Example"
    )

    plt.show()


if __name__ == "__main__":
    main()
