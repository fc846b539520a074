"""
Third-body point-mass gravitational perturbations.

Direct term (attraction of the spacecraft by the body):
    a_direct = mu_body * (r_body - r_sc) / |r_body - r_sc|^3

Indirect term (attraction of the central body by the same body). It is
subtracted when the integration frame is centred on a central body that is
itself free to move; with the central body on a fixed ephemeris it is left
out:
    a_indirect = mu_body * r_body / |r_body|^3

Reference: Montenbruck & Gill, "Satellite Orbits", Eq. 3.37
"""

from __future__ import annotations

import numpy as np


def third_body_acceleration(r_sc: np.ndarray, r_body: np.ndarray,
                            mu_body: float,
                            include_indirect: bool = False) -> np.ndarray:
    """Point-mass third-body gravitational perturbation acceleration.

    Args:
        r_sc: Spacecraft position relative to the central body [km], shape (3,).
        r_body: Perturbing body position relative to the central body [km].
        mu_body: Perturbing body gravitational parameter [km^3/s^2].
        include_indirect: Subtract the acceleration of the central body.

    Returns:
        Perturbation acceleration [km/s^2], shape (3,).
    """
    d = r_body - r_sc
    a = mu_body * d / np.linalg.norm(d) ** 3
    if include_indirect:
        a -= mu_body * r_body / np.linalg.norm(r_body) ** 3
    return a
