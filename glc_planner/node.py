"""Search nodes, the per-query node arena and the open queue."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

import numpy as np

from .trajectory import Trajectory


@dataclass(eq=False)
class Node:
    """Labeled reachable state."""

    index: int  # Position in the arena
    state: np.ndarray
    time: float
    cost: float  # Accumulated cost g from the root
    heuristic: float  # Cost-to-go estimate h
    depth: int = 0
    parent: int | None = None  # Arena index of the parent, None for the root
    control_index: int | None = None  # Input that generated this node
    trajectory: Trajectory | None = field(default=None, repr=False)  # Segment from parent
    control_trajectory: Trajectory | None = field(default=None, repr=False)
    in_goal: bool = False  # Segment reaches the goal; cut at the hit time

    @property
    def merit(self) -> float:
        """Total estimated cost f = g + h."""
        return self.cost + self.heuristic

    @property
    def is_root(self) -> bool:
        return self.parent is None


class NodeArena:
    """
    Owns every node created during one query.

    Parent links are integer indices into the arena, so the search tree
    holds no object references and can be dropped in one go.
    """

    def __init__(self):
        self._nodes: List[Node] = []

    def add(self, **kwargs) -> Node:
        node = Node(index=len(self._nodes), **kwargs)
        self._nodes.append(node)
        return node

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def clear(self) -> None:
        self._nodes = []

    def path_to_root(self, index: int, goal_first: bool = False) -> List[Node]:
        """Nodes from the root to ``index`` (reversed if goal_first)."""
        path = []
        current: int | None = index
        while current is not None:
            node = self._nodes[current]
            path.append(node)
            current = node.parent

        if not goal_first:
            path.reverse()
        return path


class OpenQueue:
    """
    Min-priority queue of arena indices keyed by merit.

    Ties on merit go to the earlier insertion. Stale entries are not
    removed; the planner discards them when they come out.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, int]] = []
        self._counter = itertools.count()

    def push(self, node: Node) -> None:
        heapq.heappush(self._heap, (node.merit, next(self._counter), node.index))

    def pop(self) -> int:
        """Remove and return the index of the node with the lowest merit."""
        return heapq.heappop(self._heap)[2]

    def peek_merit(self) -> float:
        return self._heap[0][0]

    def clear(self) -> None:
        self._heap = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
