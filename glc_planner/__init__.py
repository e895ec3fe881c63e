"""Generalized label-correcting kinodynamic motion planning."""

from .config import ConfigurationError, PlannerConfig
from .inputs import InputSet, linear_space
from .trajectory import Trajectory
from .interfaces import CostFunction, DynamicModel, GoalRegion, Heuristic, Obstacles
from .integrator import EulerIntegrator, IntegrationError, Integrator, RungeKuttaTwo
from .node import Node, NodeArena, OpenQueue
from .partition import DominanceMap
from .planner import Planner, PlannerOutput, SearchStatus
from .export import nodes_to_file, read_nodes_file, read_trajectory_file, trajectory_to_file
from .scenarios import Scenario, create_scenario
from .visualization import Visualizer

__all__ = [
    # Core planner
    "Planner",
    "PlannerOutput",
    "SearchStatus",
    "PlannerConfig",
    "ConfigurationError",
    # Search structures
    "Node",
    "NodeArena",
    "OpenQueue",
    "DominanceMap",
    # Controls and trajectories
    "InputSet",
    "linear_space",
    "Trajectory",
    # Integration
    "Integrator",
    "EulerIntegrator",
    "RungeKuttaTwo",
    "IntegrationError",
    # Problem interfaces
    "GoalRegion",
    "Heuristic",
    "DynamicModel",
    "Obstacles",
    "CostFunction",
    # Export
    "trajectory_to_file",
    "read_trajectory_file",
    "nodes_to_file",
    "read_nodes_file",
    # Scenarios
    "Scenario",
    "create_scenario",
    # Visualization
    "Visualizer",
]
