"""State space partition used to prune dominated nodes."""

from __future__ import annotations

import math
from typing import Dict, ItemsView, Tuple

import numpy as np

Cell = Tuple[int, ...]


class DominanceMap:
    """
    Best accumulated cost seen in each partition cell.

    A state falls into the cell floor(eta * x) elementwise. A node survives
    only if it strictly improves its cell's record, so the number of live
    nodes is bounded by the number of cells visited.
    """

    def __init__(self, eta: float):
        if not eta > 0 or not math.isfinite(eta):
            raise ValueError(f"eta must be positive and finite, got {eta}")
        self.eta = eta
        self._records: Dict[Cell, float] = {}

    @property
    def cell_width(self) -> float:
        return 1.0 / self.eta

    def cell_of(self, state: np.ndarray) -> Cell:
        """Discrete cell containing the state."""
        return tuple(int(i) for i in np.floor(self.eta * np.asarray(state, dtype=float)))

    def best(self, cell: Cell) -> float:
        return self._records.get(cell, math.inf)

    def improves(self, cell: Cell, cost: float) -> bool:
        """True if cost is strictly below the cell's record."""
        return cost < self.best(cell)

    def superseded(self, cell: Cell, cost: float) -> bool:
        """True if the cell's record is strictly below cost."""
        return self.best(cell) < cost

    def record(self, cell: Cell, cost: float) -> None:
        self._records[cell] = cost

    def reset(self) -> None:
        self._records = {}

    def items(self) -> ItemsView[Cell, float]:
        return self._records.items()

    def __contains__(self, cell: Cell) -> bool:
        return cell in self._records

    def __len__(self) -> int:
        return len(self._records)
