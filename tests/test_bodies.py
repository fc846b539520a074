"""Tests for ephemerides and the body environment."""
from __future__ import annotations

import numpy as np
import pytest

from trajod.astrodynamics.bodies import (
    Body, SystemOfBodies, get_default_minimum_pericenter_radii, setup_bodies_for_patched_conics
)
from trajod.astrodynamics.ephemeris import (
    ConstantEphemeris, KeplerEphemeris, MeanElementsEphemeris, TabulatedEphemeris
)
from trajod.astrodynamics.two_body import orbital_period
from trajod.core.constants import AU_KM, MU_EARTH, MU_SUN, SECONDS_PER_DAY
from trajod.core.exceptions import MissingEphemerisError, UnknownBodyError
from trajod.core.types import KeplerianElements


class TestEphemerides:

    def test_constant_ephemeris_defaults_to_origin(self):
        np.testing.assert_array_equal(ConstantEphemeris().cartesian_state(1e9), np.zeros(6))

    def test_kepler_ephemeris_is_periodic(self):
        elements = KeplerianElements(a=AU_KM, e=0.0167, i=0.0, raan=0.0, aop=1.8, ta=0.0)
        ephemeris = KeplerEphemeris(elements, MU_SUN, reference_epoch=100.0)
        period = orbital_period(AU_KM, MU_SUN)
        np.testing.assert_allclose(ephemeris.cartesian_state(100.0 + period),
                                   ephemeris.cartesian_state(100.0), rtol=1e-8, atol=1e-3)

    def test_mean_elements_earth_near_one_au(self):
        state = MeanElementsEphemeris("Earth").cartesian_state(0.0)
        assert 0.98 * AU_KM < np.linalg.norm(state[:3]) < 1.02 * AU_KM
        assert np.linalg.norm(state[3:]) == pytest.approx(29.8, rel=0.03)

    def test_mean_elements_unknown_body(self):
        with pytest.raises(UnknownBodyError):
            MeanElementsEphemeris("Vulcan")

    def test_tabulated_ephemeris_interpolates_and_bounds(self):
        epochs = np.linspace(0.0, 10.0 * SECONDS_PER_DAY, 11)
        states = np.column_stack([epochs, 2.0 * epochs, np.zeros(11),
                                  np.ones(11), 2.0 * np.ones(11), np.zeros(11)])
        ephemeris = TabulatedEphemeris(epochs, states)
        t = 2.5 * SECONDS_PER_DAY
        np.testing.assert_allclose(ephemeris.cartesian_state(t), [t, 2.0 * t, 0.0, 1.0, 2.0, 0.0])
        with pytest.raises(ValueError):
            ephemeris.cartesian_state(11.0 * SECONDS_PER_DAY)


class TestSystemOfBodies:

    def test_patched_conic_setup(self):
        bodies = setup_bodies_for_patched_conics("Sun", ["Earth", "Mars", "Earth"])
        assert len(bodies) == 3
        np.testing.assert_array_equal(bodies.cartesian_state("Sun", 1e8), np.zeros(6))
        assert bodies.gravitational_parameter("Earth") == MU_EARTH

    def test_user_ephemeris_overrides_mean_elements(self):
        fixed = ConstantEphemeris(np.array([1.0, 2.0, 3.0, 0.0, 0.0, 0.0]))
        bodies = setup_bodies_for_patched_conics("Sun", ["Earth"], ephemerides={"Earth": fixed})
        np.testing.assert_array_equal(bodies.cartesian_state("Earth", 0.0)[:3], [1.0, 2.0, 3.0])

    def test_unknown_gravitational_parameter(self):
        with pytest.raises(UnknownBodyError):
            setup_bodies_for_patched_conics("Sun", ["Vulcan"])

    def test_missing_ephemeris(self):
        bodies = SystemOfBodies([Body("Asteroid", 1.0)])
        with pytest.raises(MissingEphemerisError):
            bodies.cartesian_state("Asteroid", 0.0)
        with pytest.raises(MissingEphemerisError):
            bodies.cartesian_state("Comet", 0.0)

    def test_unknown_body_lookup(self):
        with pytest.raises(UnknownBodyError):
            SystemOfBodies().get("Earth")

    def test_default_minimum_pericenter_radii(self):
        radii = get_default_minimum_pericenter_radii(["Earth", "Mars"])
        assert radii == [6578.1, 3596.2]
        with pytest.raises(UnknownBodyError):
            get_default_minimum_pericenter_radii(["Earth", "Sun"])
