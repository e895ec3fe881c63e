"""Fixed-step explicit integration of the dynamic model."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np
from scipy.interpolate import CubicHermiteSpline

from .config import ConfigurationError
from .interfaces import DynamicModel
from .trajectory import Trajectory


class IntegrationError(RuntimeError):
    """Raised when a segment cannot be propagated within the error budget."""


class Integrator(ABC):
    """
    Propagates a DynamicModel under a constant control.

    The horizon is split into equal steps no longer than max_time_step. The
    knots produced by the scheme are joined with cubic Hermite pieces built
    from the state and flow at each knot, so the result is C1 and passes
    exactly through the integrated states.
    """

    def __init__(
        self,
        model: DynamicModel,
        max_time_step: float,
        error_tolerance: float | None = None
    ):
        if not max_time_step > 0:
            raise ConfigurationError(f"max_time_step must be positive, got {max_time_step}")
        self.model = model
        self.max_time_step = max_time_step
        self.error_tolerance = error_tolerance

    @property
    def lipschitz_constant(self) -> float:
        return float(self.model.lipschitz_constant)

    @abstractmethod
    def step(
        self,
        x: np.ndarray,
        u: np.ndarray,
        dx: np.ndarray,
        dt: float
    ) -> Tuple[np.ndarray, float]:
        """
        Advance one step.

        Args:
            x: State at the start of the step
            u: Control held over the step
            dx: Flow at (x, u), already evaluated
            dt: Step length

        Returns:
            (next state, local error estimate)
        """

    def _flow(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        dx = np.asarray(self.model.flow(x, u), dtype=float).reshape(-1)
        if dx.shape != x.shape:
            raise ConfigurationError(
                f"flow returned {dx.size} entries for a state of dimension {x.size}"
            )
        if not np.all(np.isfinite(dx)):
            raise IntegrationError(f"non-finite flow at state {x}")
        return dx

    def sim(
        self,
        t0: float,
        tf: float,
        x0: np.ndarray,
        u: np.ndarray
    ) -> Tuple[Trajectory, Trajectory]:
        """
        Integrate from x0 over [t0, tf] holding control u.

        Returns:
            (state trajectory, zero-order-hold control trajectory)
        """
        duration = tf - t0
        if not math.isfinite(duration) or duration <= 0:
            raise IntegrationError(f"degenerate horizon [{t0}, {tf}]")

        num_steps = max(1, math.ceil(duration / self.max_time_step - 1e-12))
        dt = duration / num_steps

        x = np.asarray(x0, dtype=float).reshape(-1)
        u = np.asarray(u, dtype=float).reshape(-1)

        states = [x]
        derivatives = [self._flow(x, u)]
        for _ in range(num_steps):
            x, error = self.step(x, u, derivatives[-1], dt)
            if not np.all(np.isfinite(x)):
                raise IntegrationError("state diverged during integration")
            if self.error_tolerance is not None and error > self.error_tolerance:
                raise IntegrationError(
                    f"local error {error:.3e} exceeds tolerance {self.error_tolerance:.3e}"
                )
            states.append(x)
            derivatives.append(self._flow(x, u))

        times = t0 + dt * np.arange(num_steps + 1)
        times[-1] = tf

        spline = CubicHermiteSpline(times, np.array(states), np.array(derivatives), axis=0)
        return Trajectory.from_ppoly(spline), Trajectory.constant(t0, tf, u)


class EulerIntegrator(Integrator):
    """First-order forward Euler. No error estimate is available."""

    def step(self, x, u, dx, dt):
        return x + dt * dx, 0.0


class RungeKuttaTwo(Integrator):
    """
    Explicit midpoint method.

    The local error is estimated against the embedded Euler step.
    """

    def step(self, x, u, dx, dt):
        midpoint = x + 0.5 * dt * dx
        dx_mid = self._flow(midpoint, u)
        x_next = x + dt * dx_mid
        error = float(dt * np.max(np.abs(dx_mid - dx)))
        return x_next, error
