"""
Termination conditions of full-problem leg propagations.

A termination setting tells the propagator two things: the final epoch
that bounds the integration span (``final_epoch``) and the terminal event
functions handed to solve_ivp (``events``). Time conditions only bound the
span; sphere of influence conditions only add events; hybrid conditions
stop at whichever of their members is met first.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..astrodynamics.bodies import SystemOfBodies
from ..astrodynamics.two_body import (
    cartesian_to_keplerian, orbital_period, sphere_of_influence, synodic_period
)

logger = logging.getLogger(__name__)


class TerminationSettings:
    """Base class of propagation termination conditions."""

    def final_epoch(self, t_start: float, direction: float) -> Optional[float]:
        """Epoch bounding the integration span, or None if unbounded."""
        return None

    def events(self, bodies: SystemOfBodies, central_body: str) -> list:
        """Terminal event functions ``f(t, y)`` for solve_ivp."""
        return []


class TimeTerminationSettings(TerminationSettings):
    """Stop at a fixed epoch.

    Attributes:
        final_time: Termination epoch [s since J2000].
    """

    def __init__(self, final_time: float):
        self.final_time = float(final_time)

    def final_epoch(self, t_start: float, direction: float) -> float:
        return self.final_time

    def __repr__(self):
        return f"TimeTerminationSettings({self.final_time:.1f})"


class SphereOfInfluenceTerminationSettings(TerminationSettings):
    """Stop when the spacecraft crosses a sphere around a body.

    Attributes:
        body: Name of the body.
        radius: Sphere radius [km].
    """

    def __init__(self, body: str, radius: float):
        self.body = body
        self.radius = float(radius)

    def events(self, bodies: SystemOfBodies, central_body: str) -> list:
        body = bodies.get(self.body)
        central = bodies.get(central_body)
        radius = self.radius

        def sphere_crossing(t, y):
            r_body = body.cartesian_state(t)[:3] - central.cartesian_state(t)[:3]
            return np.linalg.norm(y[:3] - r_body) - radius

        sphere_crossing.terminal = True
        sphere_crossing.direction = 0
        return [sphere_crossing]

    def __repr__(self):
        return f"SphereOfInfluenceTerminationSettings({self.body!r}, {self.radius:.1f})"


class HybridTerminationSettings(TerminationSettings):
    """Stop at the first of several conditions.

    At least one member must bound time, so that the integration span is
    finite.
    """

    def __init__(self, conditions: Sequence[TerminationSettings]):
        self.conditions = list(conditions)

    def final_epoch(self, t_start: float, direction: float) -> float:
        """Earliest bound forward, latest bound backward.

        Raises:
            ValueError: If no member bounds time.
        """
        bounds = [epoch for epoch in (c.final_epoch(t_start, direction) for c in self.conditions)
                  if epoch is not None]
        if not bounds:
            raise ValueError("Hybrid termination requires at least one time-bounding condition")
        return min(bounds) if direction > 0 else max(bounds)

    def events(self, bodies: SystemOfBodies, central_body: str) -> list:
        return [event for c in self.conditions for event in c.events(bodies, central_body)]

    def __repr__(self):
        return f"HybridTerminationSettings({self.conditions!r})"


def get_single_leg_sphere_of_influence_termination_settings(
        bodies: SystemOfBodies,
        central_body: str,
        departure_body: str,
        arrival_body: str,
        initial_time: float,
        final_time: float
) -> tuple[HybridTerminationSettings, HybridTerminationSettings]:
    """Backward and forward terminations of a leg at the bodies' spheres of influence.

    The backward propagation stops on leaving the departure body's sphere
    of influence, the forward one on entering the arrival body's. Each is
    also bounded by two synodic periods of the body pair, measured from the
    leg's initial epoch.

    Args:
        bodies: Body environment.
        central_body: Name of the central body.
        departure_body: Name of the departure body.
        arrival_body: Name of the arrival body.
        initial_time: Leg departure epoch [s since J2000].
        final_time: Leg arrival epoch [s since J2000].

    Returns:
        (backward termination, forward termination).

    Raises:
        MissingEphemerisError: If the central, departure or arrival body is
            not in ``bodies`` or has no ephemeris.
    """
    # States first: an absent body is a missing ephemeris
    r_central_initial = bodies.cartesian_state(central_body, initial_time)
    r_central_final = bodies.cartesian_state(central_body, final_time)
    departure_state = bodies.cartesian_state(departure_body, initial_time) - r_central_initial
    arrival_state = bodies.cartesian_state(arrival_body, final_time) - r_central_final

    mu_central = bodies.gravitational_parameter(central_body)
    mu_departure = bodies.gravitational_parameter(departure_body)
    mu_arrival = bodies.gravitational_parameter(arrival_body)
    departure_soi = sphere_of_influence(np.linalg.norm(departure_state[:3]), mu_departure, mu_central)
    arrival_soi = sphere_of_influence(np.linalg.norm(arrival_state[:3]), mu_arrival, mu_central)

    arrival_state_initial = bodies.cartesian_state(arrival_body, initial_time) - r_central_initial
    departure_period = orbital_period(cartesian_to_keplerian(departure_state, mu_central).a,
                                      mu_central, mu_departure)
    arrival_period = orbital_period(cartesian_to_keplerian(arrival_state_initial, mu_central).a,
                                    mu_central, mu_arrival)
    time_limit = 2.0 * synodic_period(departure_period, arrival_period)

    logger.debug("SOI termination %s -> %s: radii %.0f / %.0f km, time limit %.1f d",
                 departure_body, arrival_body, departure_soi, arrival_soi, time_limit / 86400.0)

    backward = HybridTerminationSettings([
        SphereOfInfluenceTerminationSettings(departure_body, departure_soi),
        TimeTerminationSettings(initial_time - time_limit),
    ])
    forward = HybridTerminationSettings([
        SphereOfInfluenceTerminationSettings(arrival_body, arrival_soi),
        TimeTerminationSettings(initial_time + time_limit),
    ])
    return backward, forward
