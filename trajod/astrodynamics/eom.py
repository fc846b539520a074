"""
Equations of motion assembler.

Constructs the translational state derivative for numerical integration:
    y = [x, y, z, vx, vy, vz]   relative to the central body

Accelerations are summed from the point-mass central body and every
perturbing body enabled in the acceleration configuration.
"""

from __future__ import annotations

import numpy as np

from ..core.config import AccelerationConfig
from .bodies import SystemOfBodies
from .gravity import two_body
from .thirdbody import third_body_acceleration


def eom_translational(t: float, y: np.ndarray,
                      bodies: SystemOfBodies,
                      accelerations: AccelerationConfig) -> np.ndarray:
    """Translational equations of motion.

    Args:
        t: Epoch [s since J2000].
        y: State relative to the central body, shape (6,).
            y[0:3] = position [km]
            y[3:6] = velocity [km/s]
        bodies: Environment providing gravitational parameters and
            ephemerides of the central and perturbing bodies.
        accelerations: Central body and perturbing bodies to include.

    Returns:
        dy_dt: Time derivative of the state, shape (6,).
    """
    r = y[0:3]
    v = y[3:6]

    central = bodies.get(accelerations.central_body)
    a_total = two_body(r, central.gravitational_parameter)

    if accelerations.third_bodies:
        r_central = central.cartesian_state(t)[:3]
        for name in accelerations.third_bodies:
            body = bodies.get(name)
            r_body = body.cartesian_state(t)[:3] - r_central
            a_total = a_total + third_body_acceleration(
                r, r_body, body.gravitational_parameter,
                include_indirect=accelerations.include_indirect_term)

    dy_dt = np.empty(6)
    dy_dt[0:3] = v
    dy_dt[3:6] = a_total
    return dy_dt
