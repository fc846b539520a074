"""
Swingby (gravity-assist) models for patched-conic legs.

Two directions are supported:
    - ΔV required to turn a given incoming excess velocity into a given
      outgoing one, with the ΔV applied at pericenter (unpowered-to-powered
      swingby). The pericenter radius is solved so that the two hyperbolic
      half-bending angles add up to the required bending angle.
    - Outgoing heliocentric velocity produced by a powered swingby with a
      prescribed rotation angle, pericenter radius and pericenter ΔV.

Half-bending angle of a hyperbola with excess speed v and pericenter rp:
    δ/2 = asin(1 / e),   e = 1 + rp v² / mu

References:
    Izzo, "Advances in Global Optimisation for Space Trajectory Design"
    Vasile & De Pascale, "Preliminary Design of MGA Trajectories"
"""

from __future__ import annotations

import logging

import numpy as np

from ..core.exceptions import LegSolveDivergedError

logger = logging.getLogger(__name__)

_MAX_ITER = 200
_RADIUS_TOL = 1e-12


def _half_bending(v_inf: float, pericenter_radius: float, mu: float) -> float:
    return np.arcsin(1.0 / (1.0 + pericenter_radius * v_inf ** 2 / mu))


def _half_bending_derivative(v_inf: float, pericenter_radius: float, mu: float) -> float:
    k = v_inf ** 2 / mu
    s = 1.0 / (1.0 + pericenter_radius * k)
    return -k * s ** 2 / np.sqrt(1.0 - s ** 2)


def gravity_assist_delta_v(mu: float,
                           planet_velocity: np.ndarray,
                           velocity_before: np.ndarray,
                           velocity_after: np.ndarray,
                           minimum_pericenter_radius: float) -> float:
    """ΔV of a swingby joining two heliocentric velocities.

    The pericenter radius realising the required bending is found by Newton
    iteration starting at the minimum radius. When even the minimum radius
    cannot provide the bending, the pericenter is clamped and the missing
    bending is paid for with a velocity rotation of
    2 min(v_in, v_out) sin((δ - δ_max) / 2).

    Args:
        mu: Gravitational parameter of the swingby body [km^3/s^2].
        planet_velocity: Heliocentric planet velocity [km/s], shape (3,).
        velocity_before: Heliocentric spacecraft velocity before [km/s].
        velocity_after: Heliocentric spacecraft velocity after [km/s].
        minimum_pericenter_radius: Lowest admissible pericenter [km].

    Returns:
        ΔV magnitude [km/s].

    Raises:
        LegSolveDivergedError: If the pericenter radius iteration does not
            converge.
    """
    v_inf_in_vec = np.asarray(velocity_before) - planet_velocity
    v_inf_out_vec = np.asarray(velocity_after) - planet_velocity
    v_in = np.linalg.norm(v_inf_in_vec)
    v_out = np.linalg.norm(v_inf_out_vec)

    cos_bending = np.dot(v_inf_in_vec, v_inf_out_vec) / (v_in * v_out)
    bending = np.arccos(np.clip(cos_bending, -1.0, 1.0))

    r_min = minimum_pericenter_radius
    max_bending = _half_bending(v_in, r_min, mu) + _half_bending(v_out, r_min, mu)

    if bending >= max_bending:
        rp = r_min
        rotation_dv = 2.0 * min(v_in, v_out) * np.sin((bending - max_bending) / 2.0)
    else:
        rp = r_min
        for _ in range(_MAX_ITER):
            residual = (_half_bending(v_in, rp, mu) + _half_bending(v_out, rp, mu)
                        - bending)
            slope = (_half_bending_derivative(v_in, rp, mu)
                     + _half_bending_derivative(v_out, rp, mu))
            step = residual / slope
            rp -= step
            if abs(step) < _RADIUS_TOL * rp:
                break
        else:
            raise LegSolveDivergedError(
                f"Swingby pericenter radius did not converge "
                f"(v_inf_in={v_in:.6f} km/s, v_inf_out={v_out:.6f} km/s, "
                f"bending={np.degrees(bending):.6f} deg, last rp={rp:.3f} km)")
        rotation_dv = 0.0

    pericenter_dv = abs(np.sqrt(v_out ** 2 + 2.0 * mu / rp)
                        - np.sqrt(v_in ** 2 + 2.0 * mu / rp))
    dv = pericenter_dv + rotation_dv

    logger.debug("Swingby: v_inf_in=%.4f, v_inf_out=%.4f km/s, rp=%.1f km, dv=%.6f km/s",
                 v_in, v_out, rp, dv)
    return float(dv)


def powered_gravity_assist_outgoing_velocity(mu: float,
                                             planet_velocity: np.ndarray,
                                             velocity_before: np.ndarray,
                                             rotation_angle: float,
                                             pericenter_radius: float,
                                             delta_v: float) -> np.ndarray:
    """Heliocentric velocity after a powered swingby.

    The outgoing excess velocity is built in the frame
        e1 = v_inf_in / |v_inf_in|
        e2 = e1 x V_planet / |e1 x V_planet|
        e3 = e1 x e2
    as v_out (cos δ e1 + cos β sin δ e2 + sin β sin δ e3).

    Args:
        mu: Gravitational parameter of the swingby body [km^3/s^2].
        planet_velocity: Heliocentric planet velocity [km/s], shape (3,).
        velocity_before: Heliocentric spacecraft velocity before [km/s].
        rotation_angle: Rotation β of the swingby plane about e1 [rad].
        pericenter_radius: Swingby pericenter radius [km].
        delta_v: Tangential ΔV applied at pericenter [km/s].

    Returns:
        Heliocentric spacecraft velocity after the swingby [km/s], shape (3,).
    """
    planet_velocity = np.asarray(planet_velocity, dtype=float)
    v_inf_in_vec = np.asarray(velocity_before, dtype=float) - planet_velocity
    v_in = np.linalg.norm(v_inf_in_vec)

    v_peri_out = np.sqrt(v_in ** 2 + 2.0 * mu / pericenter_radius) + delta_v
    v_out = np.sqrt(v_peri_out ** 2 - 2.0 * mu / pericenter_radius)

    bending = (_half_bending(v_in, pericenter_radius, mu)
               + _half_bending(v_out, pericenter_radius, mu))

    e1 = v_inf_in_vec / v_in
    e2 = np.cross(e1, planet_velocity)
    e2 /= np.linalg.norm(e2)
    e3 = np.cross(e1, e2)

    v_inf_out_vec = v_out * (np.cos(bending) * e1
                             + np.cos(rotation_angle) * np.sin(bending) * e2
                             + np.sin(rotation_angle) * np.sin(bending) * e3)
    return planet_velocity + v_inf_out_vec
