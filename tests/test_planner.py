"""Tests for the label-correcting planner."""

import math

import numpy as np
import pytest

from glc_planner.config import ConfigurationError, PlannerConfig
from glc_planner.export import nodes_to_file, trajectory_to_file
from glc_planner.inputs import InputSet
from glc_planner.interfaces import DynamicModel, Heuristic
from glc_planner.planner import Planner, SearchStatus
from glc_planner.scenarios import (
    CircularObstacles,
    ControlEffort,
    ElapsedTime,
    IntervalGoal,
    NoObstacles,
    SingleIntegrator,
    ZeroHeuristic,
    create_scenario,
)


class FailingHeuristic(Heuristic):
    def cost_to_go(self, state):
        if state[0] > 2.5:
            raise RuntimeError("heuristic bug")
        return 0.0


class NegativeHeuristic(Heuristic):
    def cost_to_go(self, state):
        return -1.0


class UnstableReverse(DynamicModel):
    """dx/dt = u, except backwards motion blows up."""

    def flow(self, state, control):
        if control[0] < 0:
            return np.array([math.nan])
        return np.asarray(control, dtype=float).copy()

    @property
    def lipschitz_constant(self):
        return 0.0


class StiffDecay(DynamicModel):
    """dx/dt = -50 x, unstable for the midpoint rule at large steps."""

    def flow(self, state, control):
        return -50.0 * np.asarray(state, dtype=float)

    @property
    def lipschitz_constant(self):
        return 50.0


class TestLineScenario:
    """Tests on the 1-D single integrator from 0 to the band [9, 11]."""

    def setup_method(self):
        self.scenario = create_scenario("line")

    def plan(self):
        planner = Planner(**self.scenario.planner_args())
        return planner, planner.plan()

    def test_moves_straight_to_goal(self):
        """The planner should drive at u = 1 and arrive after 9 time units."""
        # WHY: With unit cost per unit time the fastest path is the only
        # optimal one. Anything else means the search order is broken.
        _, out = self.plan()

        assert out.solution_found
        assert out.status is SearchStatus.SUCCEEDED
        assert out.cost == pytest.approx(9.0, abs=1e-6)
        assert out.time == pytest.approx(9.0, abs=1e-6)
        assert all(n.control_index == 2 for n in out.path[1:])

    def test_solution_trajectory(self):
        """The trajectory starts at x0 and ends inside the goal band."""
        _, out = self.plan()

        assert out.trajectory.initial_state[0] == pytest.approx(0.0)
        assert 9.0 <= out.trajectory.final_state[0] <= 11.0
        np.testing.assert_allclose(out.control_trajectory.at(4.5), [1.0])

    def test_path_is_parent_chain(self):
        """Each node on the path is the parent of the next."""
        planner, out = self.plan()

        assert out.path[0].is_root
        for parent, child in zip(out.path, out.path[1:]):
            assert child.parent == parent.index
            assert child.cost >= parent.cost
            assert child.time > parent.time

        goal_first = planner.path_to_root(goal_first=True)
        assert [n.index for n in goal_first] == [n.index for n in reversed(out.path)]

    def test_recover_trajectory_matches_output(self):
        planner, out = self.plan()
        recovered = planner.recover_trajectory(planner.path_to_root())

        assert recovered.final_time == pytest.approx(out.trajectory.final_time)
        np.testing.assert_allclose(recovered.final_state, out.trajectory.final_state)

        controls = planner.recover_controls(planner.path_to_root())
        assert controls.degree == 0
        assert controls.final_time == pytest.approx(9.0)

    def test_zero_heuristic_is_uniform_cost_search(self):
        """With h = 0 the same optimal cost is found, with more work."""
        # WHY: A zero heuristic is always admissible, so the optimum over
        # the discretized graph must not change, only the effort.
        _, informed = self.plan()
        self.scenario.heuristic = ZeroHeuristic()
        _, uniform = self.plan()

        assert uniform.solution_found
        assert uniform.cost == pytest.approx(informed.cost)
        assert uniform.iterations > informed.iterations

    def test_monotone_refinement(self):
        """Finer partitions never give a more expensive solution."""
        # WHY: Refining the partition keeps more candidate branches alive.
        # The returned cost should only go down as it gets finer.
        self.scenario.goal = IntervalGoal(4.5, 6.0)
        self.scenario.heuristic = ZeroHeuristic()

        costs = []
        for partition_scale in [20.0, 10.0, 5.0, 2.5]:
            self.scenario.config.partition_scale = partition_scale
            _, out = self.plan()
            assert out.solution_found
            costs.append(out.cost)

        assert costs[0] == pytest.approx(4.5)
        assert all(b <= a + 1e-9 for a, b in zip(costs, costs[1:]))

    def test_goal_entered_mid_segment(self):
        """The final segment is cut where it first enters the goal."""
        self.scenario.goal = IntervalGoal(4.5, 6.0)
        planner, out = self.plan()

        assert out.time == pytest.approx(4.5)
        assert out.trajectory.final_time == pytest.approx(4.5)
        assert out.trajectory.final_state[0] == pytest.approx(4.5)

        recovered = planner.recover_trajectory(planner.path_to_root())
        assert recovered.final_time == pytest.approx(out.time)
        np.testing.assert_allclose(recovered.final_state, out.trajectory.final_state)

    def test_start_in_goal(self):
        """A start state inside the goal is a zero-cost solution."""
        self.scenario.goal = IntervalGoal(-1.0, 1.0)
        _, out = self.plan()

        assert out.solution_found
        assert out.cost == 0.0
        assert len(out.path) == 1
        assert out.trajectory.duration == 0.0

    def test_determinism(self, tmp_path):
        """Repeated queries produce byte-identical output."""
        # WHY: Same inputs, same tie-break rule, same answer. Debugging a
        # planner whose output drifts between runs is hopeless.
        planner = Planner(**self.scenario.planner_args())
        dumps = []
        for run in range(2):
            out = planner.plan()
            path = trajectory_to_file(tmp_path / f"path{run}.txt", out.trajectory)
            nodes = nodes_to_file(tmp_path / f"nodes{run}.txt", planner.domain_labels)
            dumps.append((path.read_bytes(), nodes.read_bytes(), out.iterations))

        assert dumps[0] == dumps[1]

    def test_depth_limit_stops_expansion(self):
        """Nodes at the depth limit are not expanded."""
        # depth limit = 0.25 * 10 * floor(log 10) = 5, short of x = 9
        self.scenario.config.depth_scale = 0.25
        planner, out = self.plan()

        assert planner.depth_limit == 5
        assert not out.solution_found
        assert out.iterations < self.scenario.config.max_iter
        assert max(n.depth for n in planner.arena) == 5


class TestInfeasibility:
    """The planner reports no solution instead of failing."""

    def test_goal_inside_obstacle(self):
        """A goal band fully covered by an obstacle cannot be reached."""
        # WHY: The planner must give up cleanly within the iteration cap.
        scenario = create_scenario("enclosed_goal")
        planner = Planner(**scenario.planner_args())
        out = planner.plan()

        assert not out.solution_found
        assert out.status is SearchStatus.EXHAUSTED
        assert planner.status is SearchStatus.EXHAUSTED
        assert out.iterations <= scenario.config.max_iter
        assert out.trajectory is None
        assert out.path == []
        assert out.cost == math.inf

    def test_queue_exhaustion(self):
        """A finite reachable set empties the queue before the cap."""
        scenario = create_scenario("enclosed_goal")
        scenario.config.depth_scale = 0.5
        out = Planner(**scenario.planner_args()).plan()

        assert not out.solution_found
        assert out.iterations < scenario.config.max_iter

    def test_planar_goal_inside_disk(self):
        """A 2-D goal strictly inside a disk obstacle is never reached."""
        scenario = create_scenario("planar")
        scenario.obstacles = CircularObstacles([([8.0, 0.0], 2.0)])
        scenario.config.max_iter = 400
        out = Planner(**scenario.planner_args()).plan()

        assert not out.solution_found
        assert out.iterations <= 400
        assert out.discarded_collisions > 0


class TestPlanarScenario:
    """Tests on the 2-D single integrator around a disk."""

    def setup_method(self):
        self.scenario = create_scenario("planar")
        self.planner = Planner(**self.scenario.planner_args())
        self.out = self.planner.plan()

    def test_path_found_around_obstacle(self):
        """The planner should route around the disk instead of through it."""
        assert self.out.solution_found
        # Straight line to the goal edge would be 7.25; the detour costs more
        assert self.out.cost > 7.25

        obstacles = self.scenario.obstacles
        for node in self.out.path[1:]:
            _, states = node.trajectory.sample(obstacles.resolution)
            assert not any(obstacles.contains(x) for x in states)

    def test_ends_in_goal(self):
        final = self.out.trajectory.final_state
        assert np.linalg.norm(final - np.array([8.0, 0.0])) < 0.75

    def test_live_nodes_bounded_by_cells(self):
        """Every created node improved a cell record when it was created."""
        # WHY: The partition is what keeps the search finite. There can
        # never be more queued nodes than improvements to cell records.
        assert self.out.nodes_created >= len(self.planner.domain_labels)
        assert self.out.discarded_dominated > 0

    def test_costs_never_decrease_along_path(self):
        costs = [n.cost for n in self.out.path]
        assert costs == sorted(costs)


class TestCarScenario:
    """Kinematic car to (10, 10) past two disks."""

    def test_reaches_goal_and_avoids_obstacles(self):
        """Final state within 0.5 of (10, 10), every sample clear of both disks."""
        # WHY: This is the reference nonholonomic query. The answer must be
        # collision free at the sampling resolution and end in the goal.
        scenario = create_scenario("car")
        out = Planner(**scenario.planner_args()).plan()

        assert out.solution_found
        final = out.trajectory.final_state
        assert math.hypot(final[0] - 10.0, final[1] - 10.0) < 0.5

        centers = [np.array([3.0, 2.0]), np.array([6.0, 8.0])]
        for node in out.path[1:]:
            _, states = node.trajectory.sample(scenario.obstacles.resolution)
            for x in states:
                for c in centers:
                    assert np.linalg.norm(x[:2] - c) > 2.0

        # Arc length can't beat the straight-line distance to the goal edge
        assert out.cost >= math.hypot(10.0, 10.0) - 0.5


class TestErrorHandling:
    """Configuration errors fail early; collaborator errors propagate."""

    def setup_method(self):
        self.scenario = create_scenario("line")

    def test_empty_input_set(self):
        self.scenario.inputs = InputSet(1)

        with pytest.raises(ConfigurationError):
            Planner(**self.scenario.planner_args())

    def test_input_dimension_mismatch(self):
        self.scenario.inputs = InputSet(2, [[1.0, 0.0]])

        with pytest.raises(ConfigurationError):
            Planner(**self.scenario.planner_args())

    def test_bad_partition_scale(self):
        self.scenario.config.partition_scale = -1.0

        with pytest.raises(ConfigurationError):
            Planner(**self.scenario.planner_args())

    def test_heuristic_failure_propagates(self):
        """Exceptions from collaborators reach the caller unchanged."""
        # WHY: Swallowing a broken heuristic would silently return a wrong
        # or missing answer.
        self.scenario.heuristic = FailingHeuristic()
        planner = Planner(**self.scenario.planner_args())

        with pytest.raises(RuntimeError, match="heuristic bug"):
            planner.plan()

    def test_negative_heuristic_rejected(self):
        self.scenario.heuristic = NegativeHeuristic()

        with pytest.raises(ConfigurationError):
            Planner(**self.scenario.planner_args()).plan()

    def test_integration_failure_discards_candidate(self):
        """A control whose integration fails is skipped, not fatal."""
        self.scenario.dynamics = UnstableReverse()
        out = Planner(**self.scenario.planner_args()).plan()

        assert out.solution_found
        assert out.cost == pytest.approx(9.0, abs=1e-6)
        assert out.discarded_integrations > 0

    def test_resolution_two_rejected(self):
        """R = 2 leaves a zero depth limit and is refused up front."""
        self.scenario.config.resolution = 2

        with pytest.raises(ConfigurationError):
            Planner(**self.scenario.planner_args())

    def test_config_revalidated_on_plan(self):
        """Edits to the config after construction are checked by plan()."""
        # WHY: plan() reads x0 and max_iter from the config on every query,
        # so a bad edit must fail the same way a bad constructor argument does.
        planner = Planner(**self.scenario.planner_args())
        self.scenario.config.max_iter = 0

        with pytest.raises(ConfigurationError):
            planner.plan()

    def test_config_edits_take_effect(self):
        planner = Planner(**self.scenario.planner_args())
        eta = planner.eta
        self.scenario.config.partition_scale = 5.0
        out = planner.plan()

        assert planner.eta == pytest.approx(2 * eta)
        assert out.cost == pytest.approx(9.0, abs=1e-6)


class TestGoalCost:
    """The reported cost is the cost of the path cut at the goal."""

    def setup_method(self):
        config = PlannerConfig(
            resolution=10, state_dim=1, control_dim=1,
            time_scale=10.0, dt_max=0.5, x0=[0.0],
        )
        self.args = dict(
            obstacles=NoObstacles(),
            goal=IntervalGoal(0.29, 0.31),
            dynamics=SingleIntegrator(),
            heuristic=ZeroHeuristic(),
            cost_function=ControlEffort(1.0),
            config=config,
            inputs=InputSet(1, [[0.25], [3.0]]),
        )

    def test_fast_expensive_input_reaches_goal_cheapest(self):
        """A costly input that enters the goal early beats a cheap slow one."""
        # WHY: u = 3 costs 10 per unit time but enters the band after 0.1,
        # for a total of 1.0. u = 0.25 costs 1.0625 for its first segment
        # alone. Ordering goal nodes by the full segment cost would return
        # the slow path at 1.275.
        out = Planner(**self.args).plan()

        assert out.solution_found
        assert out.cost == pytest.approx(1.0)
        assert out.time == pytest.approx(0.1)
        assert out.path[-1].control_index == 1
        assert 0.29 <= out.trajectory.final_state[0] <= 0.31

    def test_goal_node_holds_cut_segment(self):
        planner = Planner(**self.args)
        out = planner.plan()
        goal_node = out.path[-1]

        assert goal_node.in_goal
        assert goal_node.time == pytest.approx(out.time)
        assert goal_node.trajectory.final_time == pytest.approx(out.time)
        assert out.control_trajectory.final_time == pytest.approx(out.time)


class TestErrorBudget:
    """The configured local error budget applies to the default integrator."""

    def setup_method(self):
        self.config = PlannerConfig(
            resolution=10, state_dim=1, control_dim=1,
            time_scale=10.0, dt_max=1.0, max_iter=3, x0=[1.0],
        )
        self.args = dict(
            obstacles=NoObstacles(),
            goal=IntervalGoal(-0.01, 0.01),
            dynamics=StiffDecay(),
            heuristic=ZeroHeuristic(),
            cost_function=ElapsedTime(),
            config=self.config,
            inputs=InputSet(1, [[0.0]]),
        )

    def test_unstable_step_discarded(self):
        """A midpoint step that blows up is treated as infeasible."""
        # WHY: With dt = 1 the midpoint rule maps 1 to 1201. Accepting that
        # would plan over states the dynamics can never reach.
        planner = Planner(**self.args)
        out = planner.plan()

        assert planner.integrator.error_tolerance == self.config.error_tolerance
        assert not out.solution_found
        assert out.discarded_integrations == 1
        assert out.nodes_created == 1

    def test_disabled_budget_accepts_step(self):
        self.config.error_tolerance = None
        out = Planner(**self.args).plan()

        assert out.discarded_integrations == 0
        assert out.nodes_created > 1

    def test_small_step_within_budget(self):
        self.config.dt_max = 0.01
        self.config.max_iter = 100
        out = Planner(**self.args).plan()

        assert out.solution_found
        assert out.discarded_integrations == 0
        assert abs(out.trajectory.final_state[0]) <= 0.01
