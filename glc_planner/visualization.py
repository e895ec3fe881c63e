"""Visualization of planning results in the plane."""

from __future__ import annotations

from typing import List

import matplotlib.pyplot as plt
import matplotlib.patches as patches
import numpy as np

from .node import Node
from .partition import DominanceMap
from .scenarios import CircularObstacles, Scenario, SphericalGoal
from .trajectory import Trajectory


class Visualizer:
    """Plots the first two state coordinates of a scenario and its solution."""

    # Color scheme
    COLORS = {
        'obstacle': '#2c3e50',
        'path': '#e74c3c',
        'node': '#f39c12',
        'start': '#3498db',
        'goal': '#9b59b6',
        'explored': '#bdc3c7',
    }

    def __init__(self, scenario: Scenario):
        self.scenario = scenario

    def plot_environment(self, ax: plt.Axes | None = None) -> plt.Axes:
        """Plot circular obstacles and a spherical goal, if the scenario has them."""
        if ax is None:
            fig, ax = plt.subplots(figsize=(10, 10))

        obstacles = self.scenario.obstacles
        if isinstance(obstacles, CircularObstacles):
            for center, radius in zip(obstacles.centers, obstacles.radii):
                ax.add_patch(patches.Circle(
                    (center[0], center[1]), radius,
                    facecolor=self.COLORS['obstacle'], alpha=0.8
                ))

        goal = self.scenario.goal
        if isinstance(goal, SphericalGoal):
            ax.add_patch(patches.Circle(
                (goal.center[0], goal.center[1]), goal.radius,
                facecolor=self.COLORS['goal'], alpha=0.5, label='Goal'
            ))

        x0 = self.scenario.config.x0
        ax.plot(x0[0], x0[1], 'o', color=self.COLORS['start'], markersize=8, label='Start')

        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_aspect('equal')
        ax.grid(True, alpha=0.3)
        return ax

    def plot_explored(self, labels: DominanceMap, ax: plt.Axes) -> None:
        """Scatter the centers of every labeled cell."""
        if len(labels) == 0:
            return
        cells = np.array([cell[:2] for cell, _ in labels.items()], dtype=float)
        centers = (cells + 0.5) / labels.eta
        ax.scatter(centers[:, 0], centers[:, 1], s=2,
                   color=self.COLORS['explored'], label='Explored cells')

    def plot_trajectory(
        self,
        trajectory: Trajectory,
        ax: plt.Axes,
        color: str | None = None,
        linewidth: float = 2.0,
        label: str | None = None,
        num_samples: int = 500
    ) -> None:
        """Plot a trajectory as a line."""
        color = color or self.COLORS['path']
        _, states = trajectory.sample(num_samples)
        ax.plot(states[:, 0], states[:, 1], color=color, linewidth=linewidth, label=label)

    def plot_nodes(self, path: List[Node], ax: plt.Axes) -> None:
        """Mark the node states along a path."""
        if not path:
            return
        states = np.array([n.state for n in path])
        ax.plot(states[:, 0], states[:, 1], '.', color=self.COLORS['node'], markersize=6)

    def plot_planning_result(
        self,
        trajectory: Trajectory | None = None,
        path: List[Node] | None = None,
        labels: DominanceMap | None = None,
        title: str = "Label-Correcting Motion Planning"
    ) -> plt.Figure:
        """Create complete visualization of planning result."""
        fig, ax = plt.subplots(figsize=(12, 10))

        if labels is not None:
            self.plot_explored(labels, ax)

        self.plot_environment(ax)

        if trajectory is not None:
            self.plot_trajectory(trajectory, ax, linewidth=2, label='Solution')
        if path:
            self.plot_nodes(path, ax)

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.legend(loc='upper left')

        plt.tight_layout()
        return fig
