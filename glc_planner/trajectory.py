"""Piecewise polynomial trajectories."""

from __future__ import annotations

from typing import Iterable, List, Tuple

import numpy as np
from scipy.interpolate import PPoly

# Gap allowed between the end of one segment and the start of the next
JOIN_TOLERANCE = 1e-9


class Trajectory:
    """
    Vector valued piecewise polynomial over a time interval.

    Coefficients use the scipy.interpolate.PPoly layout, shape
    (degree + 1, pieces, dim), highest power first and each piece expanded
    about its own left breakpoint. Evaluation outside the domain clamps to
    the nearest endpoint.
    """

    def __init__(self, coefficients: np.ndarray, breaks: np.ndarray, poly: PPoly | None = None):
        coefficients = np.asarray(coefficients, dtype=float)
        breaks = np.asarray(breaks, dtype=float)

        if coefficients.ndim != 3:
            raise ValueError("coefficients must have shape (degree + 1, pieces, dim)")
        if breaks.shape != (coefficients.shape[1] + 1,):
            raise ValueError(
                f"expected {coefficients.shape[1] + 1} breakpoints, got {breaks.shape[0]}"
            )
        if np.any(np.diff(breaks) < 0):
            raise ValueError("breakpoints must be non-decreasing")

        self._coefficients = coefficients
        self._breaks = breaks

        # A zero-length trajectory is a single point; PPoly is skipped for it
        self._poly: PPoly | None = None
        if breaks[-1] > breaks[0]:
            self._poly = poly if poly is not None else PPoly(coefficients, breaks, extrapolate=False)

    @classmethod
    def from_ppoly(cls, poly: PPoly) -> Trajectory:
        """Wrap a vector valued PPoly without rebuilding it."""
        if poly.c.ndim == 2:
            return cls(poly.c[:, :, np.newaxis], poly.x)
        return cls(poly.c, poly.x, poly=poly)

    @classmethod
    def constant(cls, t0: float, tf: float, value: Iterable[float]) -> Trajectory:
        """Degree-zero trajectory holding ``value`` on [t0, tf]."""
        value = np.asarray(value, dtype=float).reshape(1, 1, -1)
        return cls(value, np.array([t0, tf], dtype=float))

    @classmethod
    def point(cls, t: float, value: Iterable[float]) -> Trajectory:
        """Zero-duration trajectory at a single state."""
        return cls.constant(t, t, value)

    @classmethod
    def join(cls, segments: Iterable[Trajectory]) -> Trajectory:
        """Concatenate consecutive segments into one trajectory."""
        segments = list(segments)
        if not segments:
            raise ValueError("cannot join an empty sequence of trajectories")
        result = segments[0]
        for segment in segments[1:]:
            result = result.concatenate(segment)
        return result

    # Properties
    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    @property
    def breaks(self) -> np.ndarray:
        return self._breaks

    @property
    def initial_time(self) -> float:
        return float(self._breaks[0])

    @property
    def final_time(self) -> float:
        return float(self._breaks[-1])

    @property
    def duration(self) -> float:
        return self.final_time - self.initial_time

    @property
    def number_of_intervals(self) -> int:
        return self._coefficients.shape[1]

    @property
    def degree(self) -> int:
        return self._coefficients.shape[0] - 1

    @property
    def dimension(self) -> int:
        return self._coefficients.shape[2]

    @property
    def initial_state(self) -> np.ndarray:
        return self.at(self.initial_time)

    @property
    def final_state(self) -> np.ndarray:
        return self.at(self.final_time)

    def at(self, t: float) -> np.ndarray:
        """Evaluate the trajectory at time t."""
        if self._poly is None:
            return self._coefficients[-1, 0].copy()
        t = min(max(t, self.initial_time), self.final_time)
        return np.asarray(self._poly(t), dtype=float)

    def sample(self, num_intervals: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Evenly spaced samples over the domain.

        Returns:
            (times, states) with num_intervals + 1 rows, both endpoints included
        """
        times = np.linspace(self.initial_time, self.final_time, num_intervals + 1)
        if self._poly is None:
            states = np.tile(self._coefficients[-1, 0], (len(times), 1))
            return times, states
        states = np.asarray(self._poly(np.clip(times, self.initial_time, self.final_time)))
        return times, states.reshape(len(times), self.dimension)

    def concatenate(self, other: Trajectory) -> Trajectory:
        """Return a trajectory that follows ``self`` with ``other``."""
        if other.dimension != self.dimension:
            raise ValueError(
                f"dimension mismatch: {self.dimension} vs {other.dimension}"
            )
        if abs(other.initial_time - self.final_time) > JOIN_TOLERANCE:
            raise ValueError(
                f"segments are not contiguous: {self.final_time} then {other.initial_time}"
            )

        # Zero-length pieces carry no information once joined to something longer
        if self.duration == 0.0:
            return other
        if other.duration == 0.0:
            return self

        if other.degree != self.degree:
            raise ValueError(f"degree mismatch: {self.degree} vs {other.degree}")

        breaks = np.concatenate([self._breaks, other._breaks[1:]])
        coefficients = np.concatenate([self._coefficients, other._coefficients], axis=1)
        return Trajectory(coefficients, breaks)

    def truncated(self, t: float) -> Trajectory:
        """Copy of the trajectory ending at time t."""
        if t >= self.final_time:
            return self
        if t <= self.initial_time:
            return Trajectory.point(self.initial_time, self.initial_state)

        # Pieces whose left breakpoint lies strictly before t are kept
        last = int(np.searchsorted(self._breaks, t, side="left"))
        breaks = np.append(self._breaks[:last], t)
        return Trajectory(self._coefficients[:, :last].copy(), breaks)

    def format_spline(self, num_samples: int, name: str = "trajectory") -> str:
        """Render sampled states as text, one row per sample."""
        times, states = self.sample(num_samples)
        lines: List[str] = [f"{name}: {self.number_of_intervals} pieces, "
                            f"t in [{self.initial_time:.4f}, {self.final_time:.4f}]"]
        for t, x in zip(times, states):
            values = ", ".join(f"{v:.4f}" for v in x)
            lines.append(f"  t={t:.4f}  [{values}]")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"Trajectory(dim={self.dimension}, degree={self.degree}, "
                f"pieces={self.number_of_intervals}, "
                f"t=[{self.initial_time:g}, {self.final_time:g}])")
