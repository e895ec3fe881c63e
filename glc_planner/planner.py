"""Label-correcting kinodynamic planner."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

from .config import ConfigurationError, PlannerConfig
from .inputs import InputSet
from .integrator import IntegrationError, Integrator, RungeKuttaTwo
from .interfaces import CostFunction, DynamicModel, GoalRegion, Heuristic, Obstacles
from .node import Node, NodeArena, OpenQueue
from .partition import DominanceMap
from .trajectory import Trajectory

logger = logging.getLogger(__name__)


class SearchStatus(Enum):
    """State of a planning query."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class PlannerOutput:
    """Result of a planning query."""

    status: SearchStatus
    cost: float = math.inf
    time: float = math.inf  # Time at which the goal is entered
    iterations: int = 0
    nodes_created: int = 0
    path: List[Node] = field(default_factory=list)  # Root first
    trajectory: Trajectory | None = None
    control_trajectory: Trajectory | None = None

    # Candidates dropped during expansion, by reason
    discarded_integrations: int = 0
    discarded_collisions: int = 0
    discarded_dominated: int = 0
    discarded_stale: int = 0

    @property
    def solution_found(self) -> bool:
        return self.status is SearchStatus.SUCCEEDED

    def __str__(self) -> str:
        if not self.solution_found:
            return f"no solution after {self.iterations} iterations"
        return (f"cost={self.cost:.4f}, time={self.time:.4f}, "
                f"iterations={self.iterations}, nodes={self.nodes_created}")


class Planner:
    """
    Generalized label-correcting planner.

    Searches the tree of trajectories generated by applying every sampled
    input for a fixed horizon from each node. The state space is
    partitioned into cells and a node is kept only if it is the cheapest
    one seen in its cell, which makes the search finite. Nodes come off the
    queue in order of cost plus admissible heuristic.

    A segment that reaches the goal is cut at the hit time when it is
    generated, and its node is queued with the exact cost of the cut
    path. Every other queue key is a lower bound on the cost of any
    solution below it, so the first goal node popped is optimal for the
    discretized problem.
    """

    def __init__(
        self,
        obstacles: Obstacles,
        goal: GoalRegion,
        dynamics: DynamicModel | Integrator,
        heuristic: Heuristic,
        cost_function: CostFunction,
        config: PlannerConfig,
        inputs: InputSet
    ):
        self.obstacles = obstacles
        self.goal = goal
        self.heuristic = heuristic
        self.cost_function = cost_function
        self.config = config
        self.inputs = inputs

        # A bare model gets the default midpoint scheme, rebuilt from the
        # config on every query
        if isinstance(dynamics, Integrator):
            self._model = None
            self.integrator = dynamics
        else:
            self._model = dynamics

        # Per-query search state
        self.arena = NodeArena()
        self.queue = OpenQueue()
        self.status = SearchStatus.RUNNING
        self._goal_index: int | None = None
        self._prepare()

    def plan(self) -> PlannerOutput:
        """
        Run one query from the configured start state.

        The config is validated again, so changes made to it since the
        planner was built take effect.

        Returns:
            PlannerOutput; status is EXHAUSTED when the queue empties or
            the iteration cap is reached
        """
        self._prepare()
        self._reset()
        out = PlannerOutput(status=SearchStatus.RUNNING)

        x0 = self.config.x0.copy()
        root_hit, _ = self.goal.in_goal(Trajectory.point(0.0, x0))
        root = self.arena.add(
            state=x0,
            time=0.0,
            cost=0.0,
            heuristic=self._estimate(x0),
            in_goal=bool(root_hit),
        )
        self.domain_labels.record(self.domain_labels.cell_of(x0), 0.0)
        self.queue.push(root)

        logger.debug(
            "Planning from %s: %d inputs, horizon %.4g, eta %.4g, depth limit %d",
            x0, len(self.inputs), self.expand_time, self.eta, self.depth_limit
        )

        while self.queue and out.iterations < self.config.max_iter:
            node = self.arena[self.queue.pop()]
            out.iterations += 1

            if node.in_goal:
                self._goal_index = node.index
                self._finish(out, node)
                break

            # Superseded after it was queued
            if self.domain_labels.superseded(self.domain_labels.cell_of(node.state), node.cost):
                out.discarded_stale += 1
                continue

            if node.depth >= self.depth_limit:
                continue

            self._expand(node, out)

        out.nodes_created = len(self.arena)
        if out.solution_found:
            logger.info("Solution found in %d iterations: %s", out.iterations, out)
        else:
            self.status = SearchStatus.EXHAUSTED
            out.status = SearchStatus.EXHAUSTED
            logger.info("No solution found after %d iterations", out.iterations)
        return out

    def path_to_root(self, goal_first: bool = False) -> List[Node]:
        """Nodes on the solution path of the last query."""
        if self._goal_index is None:
            return []
        return self.arena.path_to_root(self._goal_index, goal_first=goal_first)

    @staticmethod
    def recover_trajectory(path: List[Node]) -> Trajectory:
        """
        Join the incoming segments along a root-first path.

        The goal node's segment is stored already cut at the hit time, so
        for a solution path this is the same trajectory as the output's.
        """
        if not path:
            raise ValueError("path is empty")
        if path[0].trajectory is None and len(path) == 1:
            return Trajectory.point(path[0].time, path[0].state)
        return Trajectory.join(n.trajectory for n in path if n.trajectory is not None)

    @staticmethod
    def recover_controls(path: List[Node]) -> Trajectory | None:
        segments = [n.control_trajectory for n in path if n.control_trajectory is not None]
        if not segments:
            return None
        return Trajectory.join(segments)

    def _prepare(self) -> None:
        """Validate the query setup and derive the search constants."""
        self.config.validate()
        self.inputs.validate(self.config.control_dim)

        if self._model is not None:
            self.integrator = RungeKuttaTwo(
                self._model, self.config.dt_max, self.config.error_tolerance
            )

        self.expand_time = self.config.expand_time
        self.depth_limit = self.config.depth_limit
        self.eta = self.config.partition_eta(self.integrator.lipschitz_constant)
        self.domain_labels = DominanceMap(self.eta)

    def _reset(self) -> None:
        self.arena.clear()
        self.queue.clear()
        self.domain_labels.reset()
        self.status = SearchStatus.RUNNING
        self._goal_index = None

    def _estimate(self, state: np.ndarray) -> float:
        h = float(self.heuristic.cost_to_go(state))
        if math.isnan(h) or h < 0:
            raise ConfigurationError(f"heuristic returned {h} at state {state}")
        return h

    def _segment_cost(
        self,
        trajectory: Trajectory,
        control: Trajectory,
        t0: float,
        tf: float
    ) -> float:
        cost = float(self.cost_function.cost(trajectory, control, t0, tf))
        if math.isnan(cost) or cost < 0:
            raise ConfigurationError(f"cost function returned {cost} on [{t0}, {tf}]")
        return cost

    def _expand(self, node: Node, out: PlannerOutput) -> None:
        """Integrate every input from node and queue the surviving children."""
        t0 = node.time
        tf = t0 + self.expand_time

        for i, u in enumerate(self.inputs):
            try:
                segment, control = self.integrator.sim(t0, tf, node.state, u)
            except IntegrationError:
                out.discarded_integrations += 1
                continue

            if not self.obstacles.collision_free(segment):
                out.discarded_collisions += 1
                continue

            hit, hit_time = self.goal.in_goal(segment)
            if hit:
                self._add_goal_child(node, i, segment, control, hit_time)
                continue

            state = segment.final_state
            cost = node.cost + self._segment_cost(segment, control, t0, tf)
            cell = self.domain_labels.cell_of(state)

            if not self.domain_labels.improves(cell, cost):
                out.discarded_dominated += 1
                continue

            child = self.arena.add(
                state=state,
                time=tf,
                cost=cost,
                heuristic=self._estimate(state),
                depth=node.depth + 1,
                parent=node.index,
                control_index=i,
                trajectory=segment,
                control_trajectory=control,
            )
            self.domain_labels.record(cell, cost)
            self.queue.push(child)

    def _add_goal_child(
        self,
        node: Node,
        control_index: int,
        segment: Trajectory,
        control: Trajectory,
        hit_time: float | None
    ) -> None:
        """Queue a goal-reaching child keyed on the cost of its cut segment."""
        t0 = node.time
        t_hit = segment.final_time if hit_time is None else min(max(hit_time, t0), segment.final_time)
        segment = segment.truncated(t_hit)
        control = control.truncated(t_hit)

        # Not recorded in the partition: its descendants are never needed
        child = self.arena.add(
            state=segment.final_state,
            time=t_hit,
            cost=node.cost + self._segment_cost(segment, control, t0, t_hit),
            heuristic=0.0,
            depth=node.depth + 1,
            parent=node.index,
            control_index=control_index,
            trajectory=segment,
            control_trajectory=control,
            in_goal=True,
        )
        self.queue.push(child)

    def _finish(self, out: PlannerOutput, node: Node) -> None:
        """Fill the output for a goal node."""
        self.status = SearchStatus.SUCCEEDED
        out.status = SearchStatus.SUCCEEDED

        out.path = self.arena.path_to_root(node.index)
        out.cost = node.cost
        out.time = node.time
        out.trajectory = self.recover_trajectory(out.path)
        out.control_trajectory = self.recover_controls(out.path)
