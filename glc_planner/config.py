"""Planner configuration for a single planning query."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


class ConfigurationError(ValueError):
    """Raised when a query is set up with invalid parameters."""


@dataclass
class PlannerConfig:
    """Parameters of one planning query."""

    # Discretization
    resolution: int = 10  # Resolution R; more samples, shorter steps, finer cells
    partition_scale: float = 10.0  # Larger = coarser partition cells

    # Dimensions
    state_dim: int = 2
    control_dim: int = 1

    # Horizons
    time_scale: float = 10.0  # Expansion horizon is time_scale / R (s)
    depth_scale: float = 100.0  # Depth limit is depth_scale * R * floor(log R)
    dt_max: float = 0.1  # Maximum integration step (s)
    error_tolerance: Optional[float] = 1.0  # Local error budget per step, None disables

    # Search limits
    max_iter: int = 50000  # Maximum popped nodes

    # Start state
    x0: np.ndarray = field(default_factory=lambda: np.zeros(2))

    def __post_init__(self):
        self.x0 = np.asarray(self.x0, dtype=float).reshape(-1)

    def validate(self) -> None:
        """Raise ConfigurationError if any parameter is unusable."""
        if not isinstance(self.resolution, (int, np.integer)) or self.resolution < 3:
            raise ConfigurationError(
                f"resolution must be an integer >= 3, got {self.resolution!r}"
            )
        for name in ("partition_scale", "time_scale", "depth_scale", "dt_max"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value!r}")
        if self.error_tolerance is not None and not (
            math.isfinite(self.error_tolerance) and self.error_tolerance > 0
        ):
            raise ConfigurationError(
                f"error_tolerance must be positive or None, got {self.error_tolerance!r}"
            )
        if self.state_dim < 1 or self.control_dim < 1:
            raise ConfigurationError(
                f"dimensions must be >= 1, got state_dim={self.state_dim}, "
                f"control_dim={self.control_dim}"
            )
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.depth_limit < 1:
            raise ConfigurationError(
                f"depth limit is {self.depth_limit}; raise depth_scale or resolution"
            )
        if self.x0.shape != (self.state_dim,):
            raise ConfigurationError(
                f"x0 has {self.x0.size} entries but state_dim is {self.state_dim}"
            )
        if not np.all(np.isfinite(self.x0)):
            raise ConfigurationError("x0 must be finite")

    @property
    def expand_time(self) -> float:
        """Duration of a single expansion."""
        return self.time_scale / self.resolution

    @property
    def depth_limit(self) -> int:
        """Depth beyond which nodes are no longer expanded."""
        return int(self.depth_scale * self.resolution * math.floor(math.log(self.resolution)))

    def partition_eta(self, lipschitz: float) -> float:
        """
        Number of partition cells per unit of state.

        The cell width shrinks faster than the expansion horizon so that
        refining the resolution converges to the continuous optimum. For a
        state independent flow (zero Lipschitz bound) a log-squared rate is
        enough.
        """
        R = float(self.resolution)
        if lipschitz < 0:
            raise ConfigurationError(f"Lipschitz bound must be >= 0, got {lipschitz}")
        if lipschitz == 0.0:
            return R * math.log(R) ** 2 / self.partition_scale
        return R ** (1.0 + lipschitz) / self.partition_scale
