"""Plain-text dumps of solution trajectories and partition labels."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple

import numpy as np

from .partition import Cell, DominanceMap
from .trajectory import Trajectory


def trajectory_to_file(path: str | Path, trajectory: Trajectory, num_samples: int = 500) -> Path:
    """
    Write a time-stamped state table.

    One row per sample: t followed by the state coordinates.
    """
    path = Path(path)
    times, states = trajectory.sample(num_samples)
    table = np.column_stack([times, states])
    header = "t " + " ".join(f"x{i}" for i in range(trajectory.dimension))
    np.savetxt(path, table, fmt="%.17g", header=header)
    return path


def read_trajectory_file(path: str | Path) -> Tuple[np.ndarray, np.ndarray]:
    """Read a table written by trajectory_to_file as (times, states)."""
    table = np.loadtxt(path, ndmin=2)
    return table[:, 0], table[:, 1:]


def nodes_to_file(path: str | Path, labels: DominanceMap) -> Path:
    """
    Write every labeled partition cell and its best cost.

    One row per cell: the integer cell coordinates, then the cost.
    """
    path = Path(path)
    cells = sorted(labels.items())
    dim = len(cells[0][0]) if cells else 0
    header = " ".join(f"c{i}" for i in range(dim)) + " cost"

    with open(path, "w") as f:
        f.write(f"# eta {labels.eta!r}\n")
        f.write(f"# {header}\n")
        for cell, cost in cells:
            f.write(" ".join(str(i) for i in cell) + f" {cost!r}\n")
    return path


def read_nodes_file(path: str | Path) -> Tuple[float, Dict[Cell, float]]:
    """Read a dump written by nodes_to_file as (eta, {cell: cost})."""
    eta = float("nan")
    records: Dict[Cell, float] = {}
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith("# eta"):
                eta = float(line.split()[2])
                continue
            if line.startswith("#"):
                continue
            *cell, cost = line.split()
            records[tuple(int(i) for i in cell)] = float(cost)
    return eta, records
