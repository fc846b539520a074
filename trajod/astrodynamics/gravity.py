"""
Point-mass gravitational acceleration of the central body.

All accelerations are computed in the inertial frame centred on the
patched-conic central body.
"""

from __future__ import annotations

import numpy as np


def two_body(r: np.ndarray, mu: float) -> np.ndarray:
    """Central body point-mass gravitational acceleration.

    Args:
        r: Position relative to the central body [km], shape (3,).
        mu: Gravitational parameter [km^3/s^2].

    Returns:
        Acceleration vector [km/s^2], shape (3,).
    """
    r_mag = np.linalg.norm(r)
    return -mu * r / r_mag ** 3
