"""
Lambert targeter (universal variable formulation).

Given two position vectors and a time of flight, find the velocities at
both ends of the connecting two-body arc. Only zero-revolution, prograde
transfers are considered, which is what patched-conic MGA legs use.

The time-of-flight equation is solved for the universal variable z with a
bracketing root finder (scipy brentq) instead of Newton iteration, so
convergence does not depend on the initial guess:

    y(z)   = r1 + r2 + A (z S(z) - 1) / sqrt(C(z))
    tof(z) = [ (y/C)^(3/2) S + A sqrt(y) ] / sqrt(mu)

tof(z) increases monotonically on the admissible interval z < 4π². The
upper end of the bracket is searched towards 4π², where long-way arcs
(transfer angle above 180 deg) only reach long times of flight close to
the limit.

References:
    Vallado, "Fundamentals of Astrodynamics and Applications", Alg. 58
    Curtis, "Orbital Mechanics for Engineering Students", Alg. 5.2
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.optimize import brentq

from ..core.constants import TWO_PI
from ..core.exceptions import LegSolveDivergedError

logger = logging.getLogger(__name__)

# tof(z) grows without bound as z approaches (2 pi)^2 from below
_Z_LIMIT = TWO_PI ** 2
_MAX_BRACKET_EXPANSIONS = 60


def stumpff_c(z: float) -> float:
    """Stumpff function C(z)."""
    if z > 1e-4:
        # half-angle form, no cancellation near z = (2 pi)^2
        return 2.0 * np.sin(0.5 * np.sqrt(z)) ** 2 / z
    if z < -1e-4:
        return (np.cosh(np.sqrt(-z)) - 1.0) / (-z)
    return 0.5 - z / 24.0 + z ** 2 / 720.0


def stumpff_s(z: float) -> float:
    """Stumpff function S(z)."""
    if z > 1e-4:
        sz = np.sqrt(z)
        return (sz - np.sin(sz)) / (z * sz)
    if z < -1e-4:
        sz = np.sqrt(-z)
        return (np.sinh(sz) - sz) / ((-z) * sz)
    return 1.0 / 6.0 - z / 120.0 + z ** 2 / 5040.0


def solve_lambert(r1: np.ndarray, r2: np.ndarray, tof: float,
                  mu: float) -> tuple[np.ndarray, np.ndarray]:
    """Solve Lambert's problem for a prograde, zero-revolution transfer.

    Args:
        r1: Departure position [km], shape (3,).
        r2: Arrival position [km], shape (3,).
        tof: Time of flight [s], must be positive.
        mu: Gravitational parameter of the central body [km^3/s^2].

    Returns:
        v1: Velocity just after departure [km/s], shape (3,).
        v2: Velocity just before arrival [km/s], shape (3,).

    Raises:
        ValueError: If the time of flight is not positive.
        LegSolveDivergedError: For a degenerate (0 or 180 deg) geometry or
            when the time-of-flight equation cannot be bracketed.
    """
    if tof <= 0.0:
        raise ValueError(f"Lambert time of flight must be positive, got {tof}")

    r1 = np.asarray(r1, dtype=float)
    r2 = np.asarray(r2, dtype=float)
    r1_mag = np.linalg.norm(r1)
    r2_mag = np.linalg.norm(r2)

    cos_dnu = np.clip(np.dot(r1, r2) / (r1_mag * r2_mag), -1.0, 1.0)
    dnu = np.arccos(cos_dnu)
    if np.cross(r1, r2)[2] < 0.0:
        dnu = TWO_PI - dnu

    sin_dnu = np.sin(dnu)
    if abs(sin_dnu) < 1e-12:
        raise LegSolveDivergedError(
            f"Lambert geometry is degenerate (transfer angle {np.degrees(dnu):.6f} deg)")
    A = sin_dnu * np.sqrt(r1_mag * r2_mag / (1.0 - cos_dnu))
    sqrt_mu = np.sqrt(mu)

    def y_of(z):
        return r1_mag + r2_mag + A * (z * stumpff_s(z) - 1.0) / np.sqrt(stumpff_c(z))

    def tof_error(z):
        y = y_of(z)
        if not y > 0.0:
            return -tof
        c = stumpff_c(z)
        return ((y / c) ** 1.5 * stumpff_s(z) + A * np.sqrt(y)) / sqrt_mu - tof

    z_low = -TWO_PI ** 2
    for _ in range(_MAX_BRACKET_EXPANSIONS):
        if tof_error(z_low) < 0.0:
            break
        z_low *= 2.0
    else:
        raise LegSolveDivergedError(
            f"Could not bracket Lambert solution from below (tof={tof:.6e} s)")

    # Long-way transfers (A < 0) need z close to the limit before the
    # arc becomes long enough
    gap = 1.0
    for _ in range(_MAX_BRACKET_EXPANSIONS):
        z_high = _Z_LIMIT - gap
        if z_high >= _Z_LIMIT:
            break
        error = tof_error(z_high)
        if np.isfinite(error) and error > 0.0:
            break
        gap *= 0.1
    else:
        z_high = _Z_LIMIT
    if z_high >= _Z_LIMIT:
        raise LegSolveDivergedError(
            f"Could not bracket Lambert solution from above (tof={tof:.6e} s, "
            f"transfer angle {np.degrees(dnu):.3f} deg)")

    try:
        z = brentq(tof_error, z_low, z_high, xtol=1e-14, maxiter=500)
    except (ValueError, RuntimeError) as exc:
        raise LegSolveDivergedError(
            f"Lambert time-of-flight equation did not converge (tof={tof:.6e} s): {exc}") from exc

    y = y_of(z)
    f = 1.0 - y / r1_mag
    g = A * np.sqrt(y / mu)
    g_dot = 1.0 - y / r2_mag

    v1 = (r2 - f * r1) / g
    v2 = (g_dot * r2 - r1) / g

    logger.debug("Lambert arc solved: tof=%.1f s, transfer angle=%.3f deg, z=%.6f",
                 tof, np.degrees(dnu), z)
    return v1, v2
