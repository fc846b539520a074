"""
Full-problem propagation configuration.

Central configuration objects with toggleable perturbing bodies and
integrator settings.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass
class AccelerationConfig:
    """Accelerations acting on the propagated spacecraft.

    The central body is always a point mass. Each entry of ``third_bodies``
    adds a point-mass perturbation whose position is read from the body's
    ephemeris.

    Attributes:
        central_body: Name of the body at the origin of propagation.
        third_bodies: Names of perturbing point-mass bodies.
        include_indirect_term: Subtract the acceleration the perturbing
            bodies exert on the central body. Leave off when the central
            body sits on a fixed ephemeris.
    """
    central_body: str = "Sun"
    third_bodies: list[str] = field(default_factory=list)
    include_indirect_term: bool = False

    def describe(self) -> str:
        """Human-readable description of active accelerations."""
        models = [f"{self.central_body} point mass"]
        for name in self.third_bodies:
            models.append(f"{name} third body")
        if self.third_bodies and self.include_indirect_term:
            models.append("indirect terms")
        return " + ".join(models)


@dataclass
class IntegratorConfig:
    """Numerical integrator configuration.

    Uses scipy's DOP853 (8th-order Dormand-Prince) by default.
    Tight tolerances keep the full problem comparable to the analytic arcs.
    """
    method: str = "DOP853"
    rtol: float = 1e-12
    atol: float = 1e-9
    max_step_s: float = np.inf              # Maximum step size [seconds]
    first_step_s: Optional[float] = None    # Initial step size [seconds]
    event_max_step_s: float = 21600.0       # Maximum step size with terminal events [seconds]


@dataclass
class FullProblemConfig:
    """Top-level patched-conic vs. full-problem comparison configuration.

    Attributes:
        accelerations: Accelerations used in the numerical propagation.
        integrator: Integrator settings shared by all legs.
        termination_sphere_of_influence: Stop propagations at sphere of
            influence crossings instead of at the leg boundary epochs.
        body_to_propagate: Name given to the propagated spacecraft.
    """
    accelerations: AccelerationConfig = field(default_factory=AccelerationConfig)
    integrator: IntegratorConfig = field(default_factory=IntegratorConfig)
    termination_sphere_of_influence: bool = False
    body_to_propagate: str = "Spacecraft"
