"""
Ephemeris providers.

Every provider answers ``cartesian_state(t) -> (6,)`` for a time in seconds
since J2000, expressed relative to the patched-conic central body.

    - ConstantEphemeris: fixed state (central body at the origin).
    - KeplerEphemeris: two-body propagation of an osculating element set.
    - MeanElementsEphemeris: approximate planetary positions from the
      J2000 mean elements and their secular rates.
    - TabulatedEphemeris: cubic-spline interpolation of a state table.

References:
    Standish, "Keplerian Elements for Approximate Positions of the Major
    Planets", JPL Solar System Dynamics
"""

from __future__ import annotations

import numpy as np
from scipy.interpolate import CubicSpline

from ..core.constants import (
    AU_KM, DEG2RAD, MU_SUN, PLANET_MEAN_ELEMENTS, SECONDS_PER_CENTURY, TWO_PI
)
from ..core.exceptions import UnknownBodyError
from ..core.types import KeplerianElements
from .two_body import keplerian_to_cartesian, mean_to_true_anomaly, propagate_kepler_orbit


class Ephemeris:
    """Interface of all ephemeris providers."""

    def cartesian_state(self, t: float) -> np.ndarray:
        raise NotImplementedError

    def position(self, t: float) -> np.ndarray:
        return self.cartesian_state(t)[:3]


class ConstantEphemeris(Ephemeris):
    """Ephemeris returning the same state at every epoch."""

    def __init__(self, state: np.ndarray = None):
        self._state = np.zeros(6) if state is None else np.asarray(state, dtype=float).copy()

    def cartesian_state(self, t: float) -> np.ndarray:
        return self._state.copy()


class KeplerEphemeris(Ephemeris):
    """Unperturbed Kepler orbit about the central body.

    Attributes:
        elements: Osculating elements at ``reference_epoch``.
        mu: Gravitational parameter used for propagation [km^3/s^2].
        reference_epoch: Epoch of ``elements`` [s since J2000].
    """

    def __init__(self, elements: KeplerianElements, mu: float,
                 reference_epoch: float = 0.0):
        self.elements = elements
        self.mu = mu
        self.reference_epoch = reference_epoch

    def cartesian_state(self, t: float) -> np.ndarray:
        current = propagate_kepler_orbit(self.elements, t - self.reference_epoch, self.mu)
        return keplerian_to_cartesian(current, self.mu)


class MeanElementsEphemeris(Ephemeris):
    """Approximate heliocentric ecliptic planet positions.

    Elements are evaluated with their linear secular rates at the requested
    epoch. Valid roughly 1800-2050 AD.
    """

    def __init__(self, body_name: str, mu_central: float = MU_SUN):
        if body_name not in PLANET_MEAN_ELEMENTS:
            raise UnknownBodyError(
                f"No approximate mean elements available for body '{body_name}'")
        self.body_name = body_name
        self.mu_central = mu_central
        base, rates = PLANET_MEAN_ELEMENTS[body_name]
        self._base = np.array(base)
        self._rates = np.array(rates)

    def elements_at(self, t: float) -> KeplerianElements:
        a_au, e, inc, mean_long, long_peri, long_node = (
            self._base + self._rates * (t / SECONDS_PER_CENTURY))
        mean_anomaly = ((mean_long - long_peri) * DEG2RAD) % TWO_PI
        return KeplerianElements(
            a=a_au * AU_KM,
            e=e,
            i=inc * DEG2RAD,
            raan=long_node * DEG2RAD,
            aop=(long_peri - long_node) * DEG2RAD,
            ta=mean_to_true_anomaly(mean_anomaly, e),
        )

    def cartesian_state(self, t: float) -> np.ndarray:
        return keplerian_to_cartesian(self.elements_at(t), self.mu_central)


class TabulatedEphemeris(Ephemeris):
    """Cubic-spline interpolation of a tabulated state history.

    Args:
        epochs: Strictly increasing epochs [s since J2000], shape (N,).
        states: Cartesian states, shape (N, 6).
    """

    def __init__(self, epochs: np.ndarray, states: np.ndarray):
        epochs = np.asarray(epochs, dtype=float)
        states = np.asarray(states, dtype=float)
        if states.shape != (len(epochs), 6):
            raise ValueError(
                f"Tabulated ephemeris needs states of shape ({len(epochs)}, 6), "
                f"got {states.shape}")
        self._spline = CubicSpline(epochs, states, axis=0)
        self.start_epoch = float(epochs[0])
        self.end_epoch = float(epochs[-1])

    def cartesian_state(self, t: float) -> np.ndarray:
        if not self.start_epoch <= t <= self.end_epoch:
            raise ValueError(
                f"Epoch {t} outside tabulated range [{self.start_epoch}, {self.end_epoch}]")
        return self._spline(t)
