"""
Analytic two-body utilities.

Pure functions used as the analytic reference for patched-conic legs:
    - Cartesian <-> Keplerian element conversion (elliptic and hyperbolic)
    - Kepler propagation by elapsed time via the mean anomaly
    - Sphere of influence, orbital and synodic periods
    - Escape/capture ΔV from a parking orbit

References:
    Vallado, "Fundamentals of Astrodynamics and Applications", Alg. 9-10
    Curtis, "Orbital Mechanics for Engineering Students", Ch. 3-4
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.constants import TWO_PI
from ..core.types import KeplerianElements, ParkingOrbit

_SMALL = 1e-12
_KEPLER_TOL = 1e-14
_KEPLER_MAX_ITER = 100


# ===================================================================
# Element conversions
# ===================================================================

def cartesian_to_keplerian(state: np.ndarray, mu: float) -> KeplerianElements:
    """Convert a Cartesian state to classical Keplerian elements.

    Edge cases follow Vallado Alg. 9: for equatorial orbits the RAAN is set
    to zero, for circular orbits the argument of periapsis is set to zero
    and the true anomaly is measured from the node (or the x-axis).

    Args:
        state: Cartesian state [x,y,z,vx,vy,vz] [km, km/s], shape (6,).
        mu: Gravitational parameter [km^3/s^2].

    Returns:
        Keplerian elements; negative semi-major axis for hyperbolas.
    """
    r = np.asarray(state[:3], dtype=float)
    v = np.asarray(state[3:6], dtype=float)
    r_mag = np.linalg.norm(r)
    v_mag = np.linalg.norm(v)

    h = np.cross(r, v)
    h_mag = np.linalg.norm(h)
    n = np.cross(np.array([0.0, 0.0, 1.0]), h)
    n_mag = np.linalg.norm(n)

    e_vec = np.cross(v, h) / mu - r / r_mag
    e = np.linalg.norm(e_vec)

    energy = 0.5 * v_mag ** 2 - mu / r_mag
    a = -mu / (2.0 * energy)

    inc = np.arccos(np.clip(h[2] / h_mag, -1.0, 1.0))

    if n_mag > _SMALL * h_mag:
        raan = np.arctan2(n[1], n[0]) % TWO_PI
    else:
        raan = 0.0

    if e > _SMALL and n_mag > _SMALL * h_mag:
        aop = np.arccos(np.clip(np.dot(n, e_vec) / (n_mag * e), -1.0, 1.0))
        if e_vec[2] < 0.0:
            aop = TWO_PI - aop
    elif e > _SMALL:
        aop = np.arctan2(e_vec[1], e_vec[0]) % TWO_PI
        if h[2] < 0.0:
            aop = TWO_PI - aop
    else:
        aop = 0.0

    if e > _SMALL:
        ta = np.arccos(np.clip(np.dot(e_vec, r) / (e * r_mag), -1.0, 1.0))
        if np.dot(r, v) < 0.0:
            ta = TWO_PI - ta
    elif n_mag > _SMALL * h_mag:
        ta = np.arccos(np.clip(np.dot(n, r) / (n_mag * r_mag), -1.0, 1.0))
        if r[2] < 0.0:
            ta = TWO_PI - ta
    else:
        ta = np.arctan2(r[1], r[0]) % TWO_PI
        if h[2] < 0.0:
            ta = TWO_PI - ta

    return KeplerianElements(a=float(a), e=float(e), i=float(inc),
                             raan=float(raan), aop=float(aop), ta=float(ta))


def keplerian_to_cartesian(elements: KeplerianElements, mu: float) -> np.ndarray:
    """Convert Keplerian elements to a Cartesian state.

    Args:
        elements: Keplerian elements (a < 0 for hyperbolas).
        mu: Gravitational parameter [km^3/s^2].

    Returns:
        Cartesian state [km, km/s], shape (6,).
    """
    a, e, inc, raan, aop, ta = elements.as_array()
    p = a * (1.0 - e ** 2)
    r_mag = p / (1.0 + e * np.cos(ta))

    r_pf = r_mag * np.array([np.cos(ta), np.sin(ta), 0.0])
    v_pf = np.sqrt(mu / p) * np.array([-np.sin(ta), e + np.cos(ta), 0.0])

    rot = _perifocal_to_inertial(inc, raan, aop)
    return np.concatenate([rot @ r_pf, rot @ v_pf])


def _perifocal_to_inertial(inc: float, raan: float, aop: float) -> np.ndarray:
    """Rotation matrix R3(-raan) R1(-inc) R3(-aop)."""
    cO, sO = np.cos(raan), np.sin(raan)
    ci, si = np.cos(inc), np.sin(inc)
    cw, sw = np.cos(aop), np.sin(aop)
    return np.array([
        [cO * cw - sO * sw * ci, -cO * sw - sO * cw * ci, sO * si],
        [sO * cw + cO * sw * ci, -sO * sw + cO * cw * ci, -cO * si],
        [sw * si, cw * si, ci],
    ])


# ===================================================================
# Anomalies and Kepler propagation
# ===================================================================

def true_to_mean_anomaly(ta: float, e: float) -> float:
    """Mean anomaly from true anomaly (elliptic or hyperbolic)."""
    if e < 1.0:
        ecc_anomaly = 2.0 * np.arctan2(np.sqrt(1.0 - e) * np.sin(ta / 2.0),
                                       np.sqrt(1.0 + e) * np.cos(ta / 2.0))
        return ecc_anomaly - e * np.sin(ecc_anomaly)
    hyp_anomaly = 2.0 * np.arctanh(np.sqrt((e - 1.0) / (e + 1.0)) * np.tan(ta / 2.0))
    return e * np.sinh(hyp_anomaly) - hyp_anomaly


def mean_to_true_anomaly(mean_anomaly: float, e: float) -> float:
    """True anomaly from mean anomaly, Newton iteration on Kepler's equation.

    Raises:
        RuntimeError: If Kepler's equation does not converge.
    """
    if e < 1.0:
        m = np.remainder(mean_anomaly + np.pi, TWO_PI) - np.pi
        E = m if e < 0.8 else np.pi * np.sign(m)
        for _ in range(_KEPLER_MAX_ITER):
            dE = (E - e * np.sin(E) - m) / (1.0 - e * np.cos(E))
            E -= dE
            if abs(dE) < _KEPLER_TOL:
                break
        else:
            raise RuntimeError(
                f"Kepler's equation did not converge (M={mean_anomaly}, e={e})")
        return 2.0 * np.arctan2(np.sqrt(1.0 + e) * np.sin(E / 2.0),
                                np.sqrt(1.0 - e) * np.cos(E / 2.0))

    F = np.arcsinh(mean_anomaly / e)
    for _ in range(_KEPLER_MAX_ITER):
        dF = (e * np.sinh(F) - F - mean_anomaly) / (e * np.cosh(F) - 1.0)
        F -= dF
        if abs(dF) < _KEPLER_TOL * max(1.0, abs(F)):
            break
    else:
        raise RuntimeError(
            f"Hyperbolic Kepler equation did not converge (M={mean_anomaly}, e={e})")
    return 2.0 * np.arctan(np.sqrt((e + 1.0) / (e - 1.0)) * np.tanh(F / 2.0))


def propagate_kepler_orbit(elements: KeplerianElements, dt: float,
                           mu: float) -> KeplerianElements:
    """Advance Keplerian elements by an elapsed time.

    Args:
        elements: Initial elements.
        dt: Elapsed time [s], may be negative.
        mu: Gravitational parameter [km^3/s^2].

    Returns:
        Elements at the new epoch (only the true anomaly changes).
    """
    mean_motion = np.sqrt(mu / abs(elements.a) ** 3)
    m0 = true_to_mean_anomaly(elements.ta, elements.e)
    ta = mean_to_true_anomaly(m0 + mean_motion * dt, elements.e)
    if elements.e < 1.0:
        ta %= TWO_PI
    return KeplerianElements(a=elements.a, e=elements.e, i=elements.i,
                             raan=elements.raan, aop=elements.aop, ta=float(ta))


def propagate_kepler_state(state: np.ndarray, dt: float, mu: float) -> np.ndarray:
    """Propagate a Cartesian state along its osculating conic.

    Args:
        state: Initial Cartesian state, shape (6,).
        dt: Elapsed time [s], may be negative.
        mu: Gravitational parameter [km^3/s^2].

    Returns:
        Cartesian state after ``dt``, shape (6,).
    """
    elements = cartesian_to_keplerian(state, mu)
    return keplerian_to_cartesian(propagate_kepler_orbit(elements, dt, mu), mu)


# ===================================================================
# Mission geometry
# ===================================================================

def sphere_of_influence(distance: float, mu_body: float, mu_central: float) -> float:
    """Laplace sphere of influence radius r_soi = d (mu_b/mu_c)^(2/5).

    Args:
        distance: Distance between body and central body [km].
        mu_body: Gravitational parameter of the secondary [km^3/s^2].
        mu_central: Gravitational parameter of the primary [km^3/s^2].

    Returns:
        Sphere of influence radius [km].
    """
    return distance * (mu_body / mu_central) ** 0.4


def orbital_period(a: float, mu_central: float, mu_body: float = 0.0) -> float:
    """Keplerian orbital period T = 2π sqrt(a^3 / (mu_c + mu_b)) [s]."""
    return TWO_PI * np.sqrt(a ** 3 / (mu_central + mu_body))


def synodic_period(period_1: float, period_2: float) -> float:
    """Synodic period of two orbits, 1 / |1/T1 - 1/T2| [s]."""
    return 1.0 / abs(1.0 / period_1 - 1.0 / period_2)


def escape_or_capture_delta_v(mu: float, v_infinity: float,
                              parking_orbit: Optional[ParkingOrbit] = None) -> float:
    """ΔV between a parking orbit pericenter and a hyperbolic excess speed.

    Without a parking orbit the excess speed itself is returned.

    Args:
        mu: Gravitational parameter of the planet [km^3/s^2].
        v_infinity: Hyperbolic excess speed [km/s].
        parking_orbit: Parking orbit the maneuver starts or ends in.

    Returns:
        ΔV magnitude [km/s].
    """
    if parking_orbit is None:
        return float(v_infinity)
    a = parking_orbit.semi_major_axis
    e = parking_orbit.eccentricity
    r_peri = a * (1.0 - e)
    v_parking = np.sqrt(mu / a * (1.0 + e) / (1.0 - e))
    v_hyperbolic = np.sqrt(v_infinity ** 2 + 2.0 * mu / r_peri)
    return float(abs(v_hyperbolic - v_parking))
