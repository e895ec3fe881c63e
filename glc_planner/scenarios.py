"""Ready-made problem components and reference scenarios."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .config import PlannerConfig
from .inputs import InputSet, linear_space
from .interfaces import CostFunction, DynamicModel, GoalRegion, Heuristic, Obstacles
from .trajectory import Trajectory


# ---------------------------------------------------------------------------
# Dynamics
# ---------------------------------------------------------------------------

class SingleIntegrator(DynamicModel):
    """dx/dt = u. The flow does not depend on the state."""

    def flow(self, state, control):
        return np.asarray(control, dtype=float).copy()

    @property
    def lipschitz_constant(self) -> float:
        return 0.0


class NonholonomicCar(DynamicModel):
    """
    Kinematic car with state (x, y, theta) and control (speed, turn rate).

    dx = v cos(theta), dy = v sin(theta), dtheta = omega
    """

    def __init__(self, lipschitz: float = 1.0):
        self._lipschitz = lipschitz

    def flow(self, state, control):
        v, omega = control[0], control[1]
        return np.array([v * math.cos(state[2]), v * math.sin(state[2]), omega])

    @property
    def lipschitz_constant(self) -> float:
        return self._lipschitz


# ---------------------------------------------------------------------------
# Goal regions
# ---------------------------------------------------------------------------

class SphericalGoal(GoalRegion):
    """Ball around a center, measured over the leading coordinates."""

    def __init__(self, center: Sequence[float], radius: float, resolution: int = 10):
        self.center = np.asarray(center, dtype=float)
        self.radius = radius
        self.resolution = resolution

    def contains(self, state: np.ndarray) -> bool:
        d = state[:len(self.center)] - self.center
        return float(d @ d) < self.radius ** 2

    def in_goal(self, trajectory: Trajectory):
        times, states = trajectory.sample(self.resolution)
        for t, x in zip(times, states):
            if self.contains(x):
                return True, float(t)
        return False, None


class IntervalGoal(GoalRegion):
    """Closed band lo <= x[dim] <= hi."""

    def __init__(self, lo: float, hi: float, dim: int = 0, resolution: int = 10):
        self.lo = lo
        self.hi = hi
        self.dim = dim
        self.resolution = resolution

    def contains(self, state: np.ndarray) -> bool:
        return self.lo <= state[self.dim] <= self.hi

    def in_goal(self, trajectory: Trajectory):
        times, states = trajectory.sample(self.resolution)
        for t, x in zip(times, states):
            if self.contains(x):
                return True, float(t)
        return False, None


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------

class ZeroHeuristic(Heuristic):
    """Turns the search into uniform-cost search."""

    def cost_to_go(self, state):
        return 0.0


class EuclideanHeuristic(Heuristic):
    """Distance to a goal ball, scaled by the slowest-case cost per unit length."""

    def __init__(self, goal: Sequence[float], radius: float = 0.0, scale: float = 1.0):
        self.goal = np.asarray(goal, dtype=float)
        self.radius = radius
        self.scale = scale

    def cost_to_go(self, state):
        dist = float(np.linalg.norm(self.goal - np.asarray(state)[:len(self.goal)]))
        return self.scale * max(0.0, dist - self.radius)


# ---------------------------------------------------------------------------
# Obstacles
# ---------------------------------------------------------------------------

class NoObstacles(Obstacles):
    def collision_free(self, trajectory):
        return True


class CircularObstacles(Obstacles):
    """
    Disks (or balls) over the leading coordinates of the state.

    Each segment is sampled at ``resolution`` points after its start; the
    start itself was checked as the end of the previous segment.
    """

    def __init__(self, circles: Sequence[Tuple[Sequence[float], float]], resolution: int = 10):
        self.centers = [np.asarray(c, dtype=float) for c, _ in circles]
        self.radii = [r for _, r in circles]
        self.resolution = resolution

    def contains(self, state: np.ndarray) -> bool:
        for center, radius in zip(self.centers, self.radii):
            d = state[:len(center)] - center
            if float(d @ d) <= radius ** 2:
                return True
        return False

    def collision_free(self, trajectory):
        _, states = trajectory.sample(self.resolution)
        return not any(self.contains(x) for x in states[1:])


class IntervalObstacles(Obstacles):
    """Closed intervals blocked along one coordinate."""

    def __init__(self, intervals: Sequence[Tuple[float, float]], dim: int = 0, resolution: int = 10):
        self.intervals = list(intervals)
        self.dim = dim
        self.resolution = resolution

    def contains(self, state: np.ndarray) -> bool:
        return any(lo <= state[self.dim] <= hi for lo, hi in self.intervals)

    def collision_free(self, trajectory):
        _, states = trajectory.sample(self.resolution)
        return not any(self.contains(x) for x in states[1:])


# ---------------------------------------------------------------------------
# Cost functions
# ---------------------------------------------------------------------------

class ElapsedTime(CostFunction):
    """Duration of the segment; equals arc length for unit speed."""

    def cost(self, trajectory, control, t0, tf):
        return tf - t0


class ControlEffort(CostFunction):
    """Integral of 1 + weight * |u|^2 under a zero-order hold control."""

    def __init__(self, weight: float = 1.0):
        self.weight = weight

    def cost(self, trajectory, control, t0, tf):
        u = control.at(t0)
        return (tf - t0) * (1.0 + self.weight * float(u @ u))


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

@dataclass
class Scenario:
    """Everything needed to build a Planner."""

    name: str
    config: PlannerConfig
    inputs: InputSet
    dynamics: DynamicModel
    goal: GoalRegion
    heuristic: Heuristic
    obstacles: Obstacles
    cost_function: CostFunction

    def planner_args(self) -> dict:
        return dict(
            obstacles=self.obstacles,
            goal=self.goal,
            dynamics=self.dynamics,
            heuristic=self.heuristic,
            cost_function=self.cost_function,
            config=self.config,
            inputs=self.inputs,
        )


def car_inputs(num_steering_angles: int, max_turn_rate: float = 0.0625 * math.pi) -> InputSet:
    """Unit speed with evenly spaced turn rates."""
    return InputSet.from_grid([1.0], linear_space(-max_turn_rate, max_turn_rate, num_steering_angles))


def compass_inputs(num_directions: int) -> InputSet:
    """Unit-speed planar velocities on evenly spaced headings."""
    inputs = InputSet(2)
    for k in range(num_directions):
        angle = 2 * math.pi * k / num_directions
        inputs.add_input_sample([math.cos(angle), math.sin(angle)])
    return inputs


def create_scenario(scenario: str = "car") -> Scenario:
    """
    Build a predefined scenario.

    line:          1-D single integrator from 0 to the band [9, 11]
    enclosed_goal: the same line with the goal band inside an obstacle
    planar:        2-D single integrator around one disk
    car:           kinematic car to a disk at (10, 10) past two disks
    """
    if scenario == "line":
        config = PlannerConfig(
            resolution=10, state_dim=1, control_dim=1,
            time_scale=10.0, dt_max=0.5, partition_scale=10.0,
            depth_scale=10.0, max_iter=5000, x0=[0.0],
        )
        return Scenario(
            name=scenario,
            config=config,
            inputs=InputSet(1, [[-1.0], [0.0], [1.0]]),
            dynamics=SingleIntegrator(),
            goal=IntervalGoal(9.0, 11.0),
            heuristic=EuclideanHeuristic([10.0]),
            obstacles=NoObstacles(),
            cost_function=ElapsedTime(),
        )

    elif scenario == "enclosed_goal":
        base = create_scenario("line")
        base.name = scenario
        base.obstacles = IntervalObstacles([(8.0, 12.0)])
        base.heuristic = EuclideanHeuristic([10.0], radius=1.0)
        base.config.max_iter = 2000
        return base

    elif scenario == "planar":
        config = PlannerConfig(
            resolution=8, state_dim=2, control_dim=2,
            time_scale=8.0, dt_max=0.5, partition_scale=16.0,
            depth_scale=10.0, max_iter=20000, x0=[0.0, 0.0],
        )
        return Scenario(
            name=scenario,
            config=config,
            inputs=compass_inputs(8),
            dynamics=SingleIntegrator(),
            goal=SphericalGoal([8.0, 0.0], 0.75),
            heuristic=EuclideanHeuristic([8.0, 0.0], radius=0.75),
            obstacles=CircularObstacles([([4.0, 0.0], 1.5)]),
            cost_function=ElapsedTime(),
        )

    elif scenario == "car":
        config = PlannerConfig(
            resolution=21, state_dim=3, control_dim=2,
            depth_scale=100.0, dt_max=5.0, max_iter=50000,
            time_scale=20.0, partition_scale=60.0,
            x0=[0.0, 0.0, math.pi / 2.0],
        )
        goal_center = [10.0, 10.0]
        goal_radius = 0.5
        return Scenario(
            name=scenario,
            config=config,
            inputs=car_inputs(config.resolution),
            dynamics=NonholonomicCar(),
            goal=SphericalGoal(goal_center, goal_radius, resolution=10),
            heuristic=EuclideanHeuristic(goal_center, radius=goal_radius),
            obstacles=CircularObstacles([([3.0, 2.0], 2.0), ([6.0, 8.0], 2.0)], resolution=10),
            cost_function=ElapsedTime(),
        )

    else:
        raise ValueError(f"Unknown scenario: {scenario}")


SCENARIOS: List[str] = ["line", "enclosed_goal", "planar", "car"]
