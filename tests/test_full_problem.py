"""Tests for the patched-conic vs. full-problem comparison."""
from __future__ import annotations

import logging

import numpy as np
import pytest

from trajod.astrodynamics.bodies import setup_bodies_for_patched_conics
from trajod.astrodynamics.propagator import Propagator
from trajod.astrodynamics.two_body import propagate_kepler_state
from trajod.core.config import AccelerationConfig, FullProblemConfig
from trajod.core.constants import MU_SUN, SECONDS_PER_DAY
from trajod.core.types import LegType
from trajod.trajectory.full_problem import (
    LegFullProblemComparator, TrajectoryOrchestrator, difference_full_problem_wrt_patched_conics,
    get_patched_conic_propagation_settings
)
from trajod.trajectory.termination import (
    HybridTerminationSettings, SphereOfInfluenceTerminationSettings, TimeTerminationSettings
)
from trajod.trajectory.trajectory import Trajectory


T0 = 7516.0 * SECONDS_PER_DAY
TOF = 200.0 * SECONDS_PER_DAY


@pytest.fixture(scope="module")
def bodies():
    return setup_bodies_for_patched_conics("Sun", ["Earth", "Mars"])


@pytest.fixture(scope="module")
def inner_bodies():
    return setup_bodies_for_patched_conics("Sun", ["Earth", "Venus", "Mars"])


@pytest.fixture
def two_body_config() -> FullProblemConfig:
    return FullProblemConfig(accelerations=AccelerationConfig(central_body="Sun"))


def max_relative_position_difference(comparison) -> float:
    return max(np.linalg.norm(diff[:3]) / np.linalg.norm(comparison.full_problem[t][:3])
               for t, diff in comparison.state_differences().items())


class TestPropagator:

    def test_two_body_matches_kepler(self, bodies, two_body_config):
        state = bodies.cartesian_state("Earth", T0)
        result = Propagator(bodies, two_body_config).propagate(state, T0, T0 + 30.0 * SECONDS_PER_DAY)
        expected = propagate_kepler_state(state, 30.0 * SECONDS_PER_DAY, MU_SUN)
        np.testing.assert_allclose(result.final_state[:3], expected[:3], rtol=1e-8, atol=1e-2)
        np.testing.assert_allclose(result.final_state[3:], expected[3:], rtol=1e-8, atol=1e-8)
        assert not result.terminated_by_event

    def test_backward_propagation(self, bodies, two_body_config):
        state = bodies.cartesian_state("Earth", T0)
        result = Propagator(bodies, two_body_config).propagate_with_termination(
            state, T0, TimeTerminationSettings(T0 - 10.0 * SECONDS_PER_DAY), backward=True)
        assert result.epochs[-1] == pytest.approx(T0 - 10.0 * SECONDS_PER_DAY)
        assert np.all(np.diff(result.epochs) < 0.0)

    def test_event_propagation_caps_step_size(self, bodies, two_body_config):
        state = bodies.cartesian_state("Earth", T0)
        termination = HybridTerminationSettings([SphereOfInfluenceTerminationSettings("Mars", 5.8e5),
                                                 TimeTerminationSettings(T0 + 30.0 * SECONDS_PER_DAY)])
        result = Propagator(bodies, two_body_config).propagate_with_termination(state, T0, termination)
        assert not result.terminated_by_event
        assert np.max(np.diff(result.epochs)) <= two_body_config.integrator.event_max_step_s * (1.0 + 1e-9)

    def test_short_sphere_passage_is_detected(self, bodies, two_body_config):
        mars = bodies.cartesian_state("Mars", T0)
        towards_mars = mars[:3] / np.linalg.norm(mars[:3])
        state = np.concatenate([mars[:3] - 2e6 * towards_mars, mars[3:] + 5.0 * towards_mars])
        termination = HybridTerminationSettings([SphereOfInfluenceTerminationSettings("Mars", 1e5),
                                                 TimeTerminationSettings(T0 + 30.0 * SECONDS_PER_DAY)])
        result = Propagator(bodies, two_body_config).propagate_with_termination(state, T0, termination)
        assert result.terminated_by_event
        assert result.epochs[-1] == pytest.approx(T0 + 1.9e6 / 5.0, rel=0.05)
        mars_final = bodies.cartesian_state("Mars", result.epochs[-1])[:3]
        assert np.linalg.norm(result.final_state[:3] - mars_final) == pytest.approx(1e5, rel=1e-6)


class TestLegComparator:

    def test_lambert_leg_two_body(self, bodies, two_body_config):
        departure = bodies.cartesian_state("Earth", T0)[:3]
        arrival = bodies.cartesian_state("Mars", T0 + TOF)[:3]
        comparison = LegFullProblemComparator(bodies, two_body_config).compare_lambert_leg(
            departure, arrival, T0, TOF)
        assert comparison.epochs[0] == T0
        assert comparison.epochs[-1] == pytest.approx(T0 + TOF)
        assert max_relative_position_difference(comparison) < 1e-6
        np.testing.assert_allclose(comparison.full_problem[comparison.epochs[-1]][:3], arrival, rtol=1e-6)

    def test_kepler_leg_merges_both_halves(self, bodies, two_body_config):
        state = bodies.cartesian_state("Earth", T0)
        comparison = LegFullProblemComparator(bodies, two_body_config).compare_kepler_leg(
            state[:3], state[3:] + np.array([0.0, 2.0, 0.0]), T0, 60.0 * SECONDS_PER_DAY)
        epochs = comparison.epochs
        assert epochs == sorted(epochs)
        assert epochs[0] == pytest.approx(T0)
        assert epochs[-1] == pytest.approx(T0 + 60.0 * SECONDS_PER_DAY)
        assert T0 + 30.0 * SECONDS_PER_DAY in comparison.full_problem
        assert max_relative_position_difference(comparison) < 1e-6


class TestTrajectoryOrchestrator:

    def test_no_dsm_transfer_matches_two_body(self, bodies, two_body_config):
        orchestrator = TrajectoryOrchestrator(
            bodies, ["Earth", "Mars"], [LegType.MGA_DEPARTURE, LegType.CAPTURE], [T0, TOF],
            two_body_config)
        results = orchestrator.run()
        assert list(results) == [0]
        assert max_relative_position_difference(results[0]) < 1e-6

        differences = difference_full_problem_wrt_patched_conics(results)
        departure_diff, arrival_diff = differences[0]
        earth = bodies.cartesian_state("Earth", T0)[:3]
        mars = bodies.cartesian_state("Mars", T0 + TOF)[:3]
        assert np.linalg.norm(departure_diff[:3]) < 1e-9 * np.linalg.norm(earth)
        assert np.linalg.norm(arrival_diff[:3]) < 1e-6 * np.linalg.norm(mars)

    def test_dsm_transfer_has_two_sub_legs(self, bodies, two_body_config):
        variables = [T0, TOF, 0.4, 3.0, 0.1, 0.0]
        orchestrator = TrajectoryOrchestrator(
            bodies, ["Earth", "Mars"], [LegType.MGA_1DSM_VELOCITY_DEPARTURE, LegType.CAPTURE],
            variables, two_body_config)
        results = orchestrator.run()
        assert list(results) == [0, 1]
        coast, lambert = results[0], results[1]
        assert coast.epochs[-1] == pytest.approx(T0 + 0.4 * TOF)
        assert lambert.epochs[0] == pytest.approx(T0 + 0.4 * TOF)
        assert lambert.epochs[-1] == pytest.approx(T0 + TOF)
        for comparison in results.values():
            assert max_relative_position_difference(comparison) < 1e-6

    def test_swingby_trajectory_compares_every_leg(self, inner_bodies, two_body_config):
        variables = [T0, 150.0 * SECONDS_PER_DAY, 300.0 * SECONDS_PER_DAY]
        orchestrator = TrajectoryOrchestrator(
            inner_bodies, ["Earth", "Venus", "Mars"],
            [LegType.MGA_DEPARTURE, LegType.MGA_SWINGBY, LegType.CAPTURE], variables, two_body_config)
        results = orchestrator.run()
        assert list(results) == [0, 1]
        swingby_epoch = T0 + 150.0 * SECONDS_PER_DAY
        assert results[0].epochs[-1] == pytest.approx(swingby_epoch)
        assert results[1].epochs[0] == pytest.approx(swingby_epoch)
        assert results[1].epochs[-1] == pytest.approx(T0 + 450.0 * SECONDS_PER_DAY)
        venus = inner_bodies.cartesian_state("Venus", swingby_epoch)[:3]
        np.testing.assert_allclose(results[1].full_problem[results[1].epochs[0]][:3], venus, rtol=1e-12)
        for comparison in results.values():
            assert max_relative_position_difference(comparison) < 1e-6

    def test_position_dsm_swingby_trajectory(self, inner_bodies, two_body_config):
        variables = [T0, 150.0 * SECONDS_PER_DAY, 300.0 * SECONDS_PER_DAY, 0.4, 1.2, 1.5, 0.02]
        orchestrator = TrajectoryOrchestrator(
            inner_bodies, ["Earth", "Venus", "Mars"],
            [LegType.MGA_DEPARTURE, LegType.MGA_1DSM_POSITION_SWINGBY, LegType.CAPTURE],
            variables, two_body_config)
        results = orchestrator.run()
        assert list(results) == [0, 1, 2]
        dsm_epoch = T0 + (150.0 + 0.4 * 300.0) * SECONDS_PER_DAY
        coast, lambert = results[1], results[2]
        assert coast.epochs[0] == pytest.approx(T0 + 150.0 * SECONDS_PER_DAY)
        assert coast.epochs[-1] == pytest.approx(dsm_epoch)
        assert lambert.epochs[0] == pytest.approx(dsm_epoch)
        assert lambert.epochs[-1] == pytest.approx(T0 + 450.0 * SECONDS_PER_DAY)
        dsm_location = orchestrator.trajectory.legs[1].dsm_location
        np.testing.assert_allclose(coast.full_problem[coast.epochs[-1]][:3], dsm_location, rtol=1e-6)
        for comparison in results.values():
            assert max_relative_position_difference(comparison) < 1e-6

    def test_third_body_perturbation_separates_solutions(self):
        bodies = setup_bodies_for_patched_conics("Sun", ["Earth", "Mars", "Jupiter"])
        config = FullProblemConfig(accelerations=AccelerationConfig(central_body="Sun",
                                                                    third_bodies=["Jupiter"]))
        results = TrajectoryOrchestrator(
            bodies, ["Earth", "Mars"], [LegType.MGA_DEPARTURE, LegType.CAPTURE], [T0, TOF],
            config).run()
        assert 1e-9 < max_relative_position_difference(results[0]) < 1e-2

    def test_sphere_of_influence_termination(self, bodies):
        config = FullProblemConfig(accelerations=AccelerationConfig(central_body="Sun"),
                                   termination_sphere_of_influence=True)
        results = TrajectoryOrchestrator(
            bodies, ["Earth", "Mars"], [LegType.MGA_DEPARTURE, LegType.CAPTURE], [T0, TOF],
            config).run()
        final_epoch = results[0].epochs[-1]
        assert final_epoch < T0 + TOF
        final_position = results[0].full_problem[final_epoch][:3]
        mars = bodies.cartesian_state("Mars", final_epoch)[:3]
        assert np.linalg.norm(final_position - mars) == pytest.approx(5.8e5, rel=0.1)

    def test_sphere_of_influence_with_dsm_falls_back_to_time(self, bodies, caplog):
        config = FullProblemConfig(accelerations=AccelerationConfig(central_body="Sun"),
                                   termination_sphere_of_influence=True)
        trajectory = Trajectory(["Earth", "Mars"], [LegType.MGA_1DSM_POSITION_DEPARTURE, LegType.CAPTURE],
                                bodies, "Sun", [T0, TOF, 0.4, 1.2, 1.0, 0.0])
        with caplog.at_level(logging.WARNING, logger="trajod.trajectory.full_problem"):
            settings = get_patched_conic_propagation_settings(trajectory, config)
        assert "deep-space maneuvers" in caplog.text
        assert all(isinstance(forward, TimeTerminationSettings) for _, forward in settings.values())
        assert settings[1][1].final_time == pytest.approx(T0 + TOF)
