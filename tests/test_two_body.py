"""Tests for two-body utilities, the Lambert targeter and gravity assists."""
from __future__ import annotations

import numpy as np
import pytest

from trajod.astrodynamics.gravity_assist import (
    gravity_assist_delta_v, powered_gravity_assist_outgoing_velocity
)
from trajod.astrodynamics.lambert import solve_lambert
from trajod.astrodynamics.two_body import (
    cartesian_to_keplerian, escape_or_capture_delta_v, keplerian_to_cartesian,
    orbital_period, propagate_kepler_state, sphere_of_influence, synodic_period
)
from trajod.core.constants import AU_KM, MU_EARTH, MU_SUN, SECONDS_PER_DAY
from trajod.core.exceptions import LegSolveDivergedError
from trajod.core.types import KeplerianElements, ParkingOrbit


class TestElementConversion:

    @pytest.mark.parametrize("elements", [
        KeplerianElements(a=7000.0, e=0.1, i=0.5, raan=1.0, aop=2.0, ta=0.3),
        KeplerianElements(a=42164.0, e=0.3, i=1.2, raan=4.0, aop=0.5, ta=3.5),
        KeplerianElements(a=-20000.0, e=1.5, i=0.2, raan=0.7, aop=1.1, ta=0.5),
    ])
    def test_round_trip(self, elements):
        state = keplerian_to_cartesian(elements, MU_EARTH)
        recovered = cartesian_to_keplerian(state, MU_EARTH)
        np.testing.assert_allclose(recovered.as_array(), elements.as_array(), rtol=1e-9, atol=1e-9)

    def test_circular_equatorial_orbit(self):
        r = 7000.0
        state = np.array([r, 0.0, 0.0, 0.0, np.sqrt(MU_EARTH / r), 0.0])
        elements = cartesian_to_keplerian(state, MU_EARTH)
        assert elements.a == pytest.approx(r)
        assert elements.e == pytest.approx(0.0, abs=1e-12)
        assert elements.raan == 0.0


class TestKeplerPropagation:

    def test_full_period_returns_initial_state(self):
        elements = KeplerianElements(a=1.2 * AU_KM, e=0.2, i=0.1, raan=0.3, aop=0.4, ta=1.0)
        state = keplerian_to_cartesian(elements, MU_SUN)
        period = orbital_period(elements.a, MU_SUN)
        np.testing.assert_allclose(propagate_kepler_state(state, period, MU_SUN), state, rtol=1e-8, atol=1e-6)

    def test_backward_then_forward(self):
        state = keplerian_to_cartesian(
            KeplerianElements(a=1.0 * AU_KM, e=0.05, i=0.0, raan=0.0, aop=0.0, ta=0.0), MU_SUN)
        dt = 40.0 * SECONDS_PER_DAY
        back = propagate_kepler_state(state, -dt, MU_SUN)
        np.testing.assert_allclose(propagate_kepler_state(back, dt, MU_SUN), state, rtol=1e-9, atol=1e-6)

    def test_hyperbolic_arc_conserves_energy(self):
        state = np.array([AU_KM, 0.0, 0.0, 0.0, 50.0, 0.0])
        later = propagate_kepler_state(state, 100.0 * SECONDS_PER_DAY, MU_SUN)

        def energy(s):
            return 0.5 * np.dot(s[3:], s[3:]) - MU_SUN / np.linalg.norm(s[:3])

        assert energy(later) == pytest.approx(energy(state), rel=1e-9)


class TestMissionGeometry:

    def test_earth_sphere_of_influence(self):
        assert sphere_of_influence(AU_KM, MU_EARTH, MU_SUN) == pytest.approx(9.25e5, rel=1e-2)

    def test_synodic_period_earth_mars(self):
        assert synodic_period(365.25, 686.98) == pytest.approx(779.9, rel=1e-3)

    def test_escape_without_parking_orbit_is_excess_speed(self):
        assert escape_or_capture_delta_v(MU_EARTH, 3.0) == 3.0

    def test_escape_from_circular_parking_orbit(self):
        r = 6678.0
        expected = np.sqrt(9.0 + 2.0 * MU_EARTH / r) - np.sqrt(MU_EARTH / r)
        assert escape_or_capture_delta_v(MU_EARTH, 3.0, ParkingOrbit(r)) == pytest.approx(expected)


class TestLambert:

    @pytest.fixture
    def geometry(self):
        r1 = np.array([AU_KM, 0.0, 0.0])
        angle = np.radians(120.0)
        r2 = 1.5 * AU_KM * np.array([np.cos(angle), np.sin(angle), 0.01])
        return r1, r2, 200.0 * SECONDS_PER_DAY

    def test_arc_reaches_target(self, geometry):
        r1, r2, tof = geometry
        v1, v2 = solve_lambert(r1, r2, tof, MU_SUN)
        arrival = propagate_kepler_state(np.concatenate([r1, v1]), tof, MU_SUN)
        np.testing.assert_allclose(arrival[:3], r2, rtol=1e-7, atol=1e-3)
        np.testing.assert_allclose(arrival[3:], v2, rtol=1e-7, atol=1e-9)

    def test_transfer_is_prograde(self, geometry):
        r1, r2, tof = geometry
        v1, _ = solve_lambert(r1, r2, tof, MU_SUN)
        assert np.cross(r1, v1)[2] > 0.0

    @pytest.mark.parametrize("tof_days", [100.0, 200.0, 300.0, 400.0])
    def test_long_way_arc_reaches_target(self, tof_days):
        angle = np.radians(240.0)
        r1 = np.array([1.5e8, 0.0, 0.0])
        r2 = 2.2e8 * np.array([np.cos(angle), np.sin(angle), 0.0])
        tof = tof_days * SECONDS_PER_DAY
        v1, v2 = solve_lambert(r1, r2, tof, MU_SUN)
        arrival = propagate_kepler_state(np.concatenate([r1, v1]), tof, MU_SUN)
        np.testing.assert_allclose(arrival[:3], r2, rtol=1e-7, atol=1e-3)
        np.testing.assert_allclose(arrival[3:], v2, rtol=1e-7, atol=1e-9)
        assert np.cross(r1, v1)[2] > 0.0

    def test_non_positive_time_of_flight_raises(self, geometry):
        r1, r2, _ = geometry
        with pytest.raises(ValueError):
            solve_lambert(r1, r2, 0.0, MU_SUN)

    def test_collinear_geometry_raises(self):
        r1 = np.array([AU_KM, 0.0, 0.0])
        with pytest.raises(LegSolveDivergedError):
            solve_lambert(r1, -1.5 * r1, 200.0 * SECONDS_PER_DAY, MU_SUN)


class TestGravityAssist:

    PLANET_VELOCITY = np.array([0.0, 29.78, 0.0])
    VELOCITY_BEFORE = np.array([2.0, 31.0, 0.5])
    R_MIN = 6578.1

    def test_unpowered_swingby_needs_no_delta_v(self):
        after = powered_gravity_assist_outgoing_velocity(
            MU_EARTH, self.PLANET_VELOCITY, self.VELOCITY_BEFORE, 0.4, 2.0 * self.R_MIN, 0.0)
        assert np.linalg.norm(after - self.PLANET_VELOCITY) == pytest.approx(
            np.linalg.norm(self.VELOCITY_BEFORE - self.PLANET_VELOCITY))
        dv = gravity_assist_delta_v(MU_EARTH, self.PLANET_VELOCITY, self.VELOCITY_BEFORE,
                                    after, self.R_MIN)
        assert dv == pytest.approx(0.0, abs=1e-8)

    def test_powered_swingby_recovers_applied_delta_v(self):
        after = powered_gravity_assist_outgoing_velocity(
            MU_EARTH, self.PLANET_VELOCITY, self.VELOCITY_BEFORE, 0.0, 2.0 * self.R_MIN, 0.3)
        dv = gravity_assist_delta_v(MU_EARTH, self.PLANET_VELOCITY, self.VELOCITY_BEFORE,
                                    after, self.R_MIN)
        assert dv == pytest.approx(0.3, rel=1e-6)

    def test_unreachable_bending_costs_rotation(self):
        v_inf_in = self.VELOCITY_BEFORE - self.PLANET_VELOCITY
        after = self.PLANET_VELOCITY - v_inf_in
        dv = gravity_assist_delta_v(MU_EARTH, self.PLANET_VELOCITY, self.VELOCITY_BEFORE,
                                    after, self.R_MIN)
        assert dv > 0.0
