"""Finite control input sets."""

from __future__ import annotations

import itertools
from typing import Iterable, Iterator, List, Sequence

import numpy as np

from .config import ConfigurationError


def linear_space(start: float, stop: float, num: int) -> np.ndarray:
    """Evenly spaced samples including both ends (a single sample sits at the midpoint)."""
    if num < 1:
        raise ConfigurationError(f"num must be >= 1, got {num}")
    if num == 1:
        return np.array([0.5 * (start + stop)])
    return np.linspace(start, stop, num)


class InputSet:
    """
    Ordered, finite collection of sampled control vectors.

    Samples are appended while the set is being built and are read-only
    afterwards: every stored vector is a non-writeable numpy array.
    """

    def __init__(self, control_dim: int, samples: Iterable[Sequence[float]] = ()):
        self.control_dim = control_dim
        self._samples: List[np.ndarray] = []
        for u in samples:
            self.add_input_sample(u)

    @classmethod
    def from_grid(cls, *axes: Sequence[float]) -> InputSet:
        """Cartesian product of per-axis samples (first axis varies slowest)."""
        inputs = cls(len(axes))
        for u in itertools.product(*axes):
            inputs.add_input_sample(u)
        return inputs

    def add_input_sample(self, u: Sequence[float]) -> None:
        sample = np.array(u, dtype=float).reshape(-1)
        if sample.size != self.control_dim:
            raise ConfigurationError(
                f"control sample has {sample.size} entries, expected {self.control_dim}"
            )
        sample.setflags(write=False)
        self._samples.append(sample)

    def validate(self, control_dim: int) -> None:
        """Check the set against the configured control dimension."""
        if not self._samples:
            raise ConfigurationError("input set is empty")
        if self.control_dim != control_dim:
            raise ConfigurationError(
                f"input set has control_dim {self.control_dim}, "
                f"configuration expects {control_dim}"
            )
        for u in self._samples:
            if not np.all(np.isfinite(u)):
                raise ConfigurationError(f"control sample {u} is not finite")

    def __len__(self) -> int:
        return len(self._samples)

    def __getitem__(self, index: int) -> np.ndarray:
        return self._samples[index]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._samples)

    def __repr__(self) -> str:
        return f"InputSet(control_dim={self.control_dim}, size={len(self)})"
