"""
Problem-specific behaviour supplied by the caller.

Each capability is its own abstract class. A problem implements whichever
subset it needs, and none of them share a base.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from .trajectory import Trajectory


class GoalRegion(ABC):
    """Goal membership test."""

    @abstractmethod
    def in_goal(self, trajectory: Trajectory) -> Tuple[bool, float | None]:
        """
        Check whether a trajectory segment enters the goal.

        Returns:
            (hit, time) where time is the earliest time at or after the
            segment start at which the state lies in the goal, or None
        """


class Heuristic(ABC):
    """Admissible estimate of the optimal cost-to-go."""

    @abstractmethod
    def cost_to_go(self, state: np.ndarray) -> float:
        """Must never overestimate the optimal cost from state to the goal."""


class DynamicModel(ABC):
    """Continuous-time dynamics dx/dt = f(x, u)."""

    @abstractmethod
    def flow(self, state: np.ndarray, control: np.ndarray) -> np.ndarray:
        """State derivative at (state, control)."""

    @property
    @abstractmethod
    def lipschitz_constant(self) -> float:
        """Bound on the sensitivity of the flow to state perturbations."""


class Obstacles(ABC):
    """State constraints."""

    @abstractmethod
    def collision_free(self, trajectory: Trajectory) -> bool:
        """True if the sampled trajectory segment avoids every obstacle."""


class CostFunction(ABC):
    """Running cost, additive over concatenated segments."""

    @abstractmethod
    def cost(
        self,
        trajectory: Trajectory,
        control: Trajectory,
        t0: float,
        tf: float
    ) -> float:
        """Nonnegative cost of the segment restricted to [t0, tf]."""
