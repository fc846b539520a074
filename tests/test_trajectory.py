"""Tests for multi-leg trajectories and propagation termination settings."""
from __future__ import annotations

import numpy as np
import pytest

from trajod.astrodynamics.bodies import setup_bodies_for_patched_conics
from trajod.core.constants import SECONDS_PER_DAY
from trajod.core.exceptions import MissingEphemerisError, UnknownBodyError
from trajod.core.types import LegType, ParkingOrbit
from trajod.trajectory.termination import (
    HybridTerminationSettings, SphereOfInfluenceTerminationSettings, TimeTerminationSettings,
    get_single_leg_sphere_of_influence_termination_settings
)
from trajod.trajectory.trajectory import (
    Trajectory, expand_body_and_maneuver_order, number_of_free_variables
)


T0 = 7516.0 * SECONDS_PER_DAY
EVM_BODIES = ["Earth", "Venus", "Mars"]
EVM_LEGS = [LegType.MGA_DEPARTURE, LegType.MGA_SWINGBY, LegType.CAPTURE]
EVM_VARIABLES = [T0, 150.0 * SECONDS_PER_DAY, 300.0 * SECONDS_PER_DAY]


@pytest.fixture(scope="module")
def bodies():
    return setup_bodies_for_patched_conics("Sun", ["Earth", "Venus", "Mars"])


class TestManeuverOrder:

    def test_dsm_tokens_follow_their_departure_body(self):
        tokens = expand_body_and_maneuver_order(
            ["Earth", "Venus", "Venus", "Mars"],
            [LegType.MGA_1DSM_VELOCITY_DEPARTURE, LegType.MGA_SWINGBY,
             LegType.MGA_1DSM_POSITION_SWINGBY, LegType.CAPTURE])
        assert tokens == ["Earth", "DSM1", "Venus", "Venus", "DSM2", "Mars"]

    def test_no_dsm(self):
        assert expand_body_and_maneuver_order(EVM_BODIES, EVM_LEGS) == EVM_BODIES

    def test_free_variable_count(self):
        assert number_of_free_variables(EVM_LEGS) == 3
        assert number_of_free_variables(
            [LegType.MGA_1DSM_VELOCITY_DEPARTURE, LegType.MGA_1DSM_POSITION_SWINGBY, LegType.CAPTURE]) == 11


class TestTrajectoryValidation:

    def test_first_leg_must_depart(self, bodies):
        with pytest.raises(ValueError):
            Trajectory(EVM_BODIES, [LegType.MGA_SWINGBY, LegType.MGA_SWINGBY, LegType.CAPTURE],
                       bodies, "Sun", EVM_VARIABLES)

    def test_last_leg_must_capture(self, bodies):
        with pytest.raises(ValueError):
            Trajectory(EVM_BODIES, [LegType.MGA_DEPARTURE, LegType.MGA_SWINGBY, LegType.MGA_SWINGBY],
                       bodies, "Sun", EVM_VARIABLES)

    def test_middle_legs_must_be_swingbys(self, bodies):
        with pytest.raises(ValueError):
            Trajectory(EVM_BODIES, [LegType.MGA_DEPARTURE, LegType.MGA_DEPARTURE, LegType.CAPTURE],
                       bodies, "Sun", EVM_VARIABLES)

    def test_variable_count(self, bodies):
        with pytest.raises(ValueError):
            Trajectory(EVM_BODIES, EVM_LEGS, bodies, "Sun", EVM_VARIABLES + [0.5])

    def test_missing_central_body(self, bodies):
        with pytest.raises(MissingEphemerisError):
            Trajectory(EVM_BODIES, EVM_LEGS, bodies, "Jupiter", EVM_VARIABLES)

    def test_unknown_body_without_radii(self, bodies):
        with pytest.raises(UnknownBodyError):
            Trajectory(["Earth", "Moon"], [LegType.MGA_DEPARTURE, LegType.CAPTURE],
                       bodies, "Sun", [T0, 100.0 * SECONDS_PER_DAY])


class TestTrajectory:

    def test_epochs_are_cumulative(self, bodies):
        trajectory = Trajectory(EVM_BODIES, EVM_LEGS, bodies, "Sun", EVM_VARIABLES)
        np.testing.assert_allclose(trajectory.epochs,
                                   [T0, T0 + 150.0 * SECONDS_PER_DAY, T0 + 450.0 * SECONDS_PER_DAY])

    def test_maneuvers_without_dsm(self, bodies):
        trajectory = Trajectory(EVM_BODIES, EVM_LEGS, bodies, "Sun", EVM_VARIABLES,
                                capture_parking_orbit=ParkingOrbit(3800.0, 0.1))
        maneuvers = trajectory.maneuvers()
        assert [p.name for p in maneuvers.points] == EVM_BODIES
        assert maneuvers.epochs == list(trajectory.epochs)
        assert maneuvers.total_delta_v == pytest.approx(sum(maneuvers.delta_vs))
        assert maneuvers.total_delta_v == pytest.approx(trajectory.calculate_trajectory())

    def test_maneuvers_with_dsm(self, bodies):
        variables = [T0, 250.0 * SECONDS_PER_DAY, 0.3, 3.0, 0.2, 0.0]
        trajectory = Trajectory(["Earth", "Mars"],
                                [LegType.MGA_1DSM_VELOCITY_DEPARTURE, LegType.CAPTURE],
                                bodies, "Sun", variables)
        maneuvers = trajectory.maneuvers()
        assert [p.name for p in maneuvers.points] == ["Earth", "DSM1", "Mars"]
        assert maneuvers.points[1].epoch == pytest.approx(T0 + 0.3 * 250.0 * SECONDS_PER_DAY)
        assert maneuvers.points[0].delta_v == pytest.approx(3.0)
        assert maneuvers.total_delta_v == pytest.approx(sum(maneuvers.delta_vs))

    def test_swingby_uses_incoming_velocity_of_previous_leg(self, bodies):
        trajectory = Trajectory(EVM_BODIES, EVM_LEGS, bodies, "Sun", EVM_VARIABLES)
        trajectory.calculate_trajectory()
        first, second = trajectory.legs
        np.testing.assert_array_equal(second.incoming_velocity, first.calculate_leg()[0])


class TestTermination:

    def test_time_termination(self):
        termination = TimeTerminationSettings(100.0)
        assert termination.final_epoch(0.0, 1.0) == 100.0
        assert termination.events(None, "Sun") == []

    def test_hybrid_bounds_by_direction(self):
        hybrid = HybridTerminationSettings([TimeTerminationSettings(50.0), TimeTerminationSettings(80.0),
                                            SphereOfInfluenceTerminationSettings("Earth", 1e6)])
        assert hybrid.final_epoch(0.0, 1.0) == 50.0
        assert hybrid.final_epoch(100.0, -1.0) == 80.0

    def test_hybrid_without_time_bound_raises(self):
        with pytest.raises(ValueError):
            HybridTerminationSettings([SphereOfInfluenceTerminationSettings("Earth", 1e6)]).final_epoch(0.0, 1.0)

    def test_sphere_of_influence_event(self, bodies):
        (event,) = SphereOfInfluenceTerminationSettings("Earth", 1e6).events(bodies, "Sun")
        earth = bodies.cartesian_state("Earth", T0)
        assert event.terminal
        assert event(T0, earth) == pytest.approx(-1e6)
        assert event(T0, earth + np.array([2e6, 0.0, 0.0, 0.0, 0.0, 0.0])) == pytest.approx(1e6)

    def test_single_leg_settings(self, bodies):
        t_final = T0 + 200.0 * SECONDS_PER_DAY
        backward, forward = get_single_leg_sphere_of_influence_termination_settings(
            bodies, "Sun", "Earth", "Mars", T0, t_final)
        assert backward.conditions[0].body == "Earth"
        assert backward.conditions[0].radius == pytest.approx(9.25e5, rel=0.03)
        assert forward.conditions[0].body == "Mars"
        assert forward.conditions[0].radius == pytest.approx(5.8e5, rel=0.1)
        synodic_limit = forward.final_epoch(T0, 1.0) - T0
        assert synodic_limit == pytest.approx(2.0 * 780.0 * SECONDS_PER_DAY, rel=0.02)
        assert backward.final_epoch(T0, -1.0) == pytest.approx(T0 - synodic_limit)

    def test_single_leg_settings_absent_body(self, bodies):
        with pytest.raises(MissingEphemerisError):
            get_single_leg_sphere_of_influence_termination_settings(
                bodies, "Sun", "Earth", "Jupiter", T0, T0 + 200.0 * SECONDS_PER_DAY)
