"""
Celestial bodies and the body environment used by patched-conic legs.

The environment is read-only from the point of view of the trajectory
code: bodies expose a gravitational parameter and an optional ephemeris.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ..core.constants import DEFAULT_MINIMUM_PERICENTER_RADII, GRAVITATIONAL_PARAMETERS
from ..core.exceptions import MissingEphemerisError, UnknownBodyError
from .ephemeris import ConstantEphemeris, Ephemeris, MeanElementsEphemeris

logger = logging.getLogger(__name__)


@dataclass
class Body:
    """A point-mass body.

    Attributes:
        name: Body name.
        gravitational_parameter: mu [km^3/s^2].
        ephemeris: State provider relative to the central body, or None.
    """
    name: str
    gravitational_parameter: float
    ephemeris: Optional[Ephemeris] = None

    def cartesian_state(self, t: float) -> np.ndarray:
        """State of the body at ``t``.

        Raises:
            MissingEphemerisError: If the body has no ephemeris.
        """
        if self.ephemeris is None:
            raise MissingEphemerisError(f"Ephemeris not defined for body '{self.name}'")
        return self.ephemeris.cartesian_state(t)


class SystemOfBodies:
    """Named collection of bodies."""

    def __init__(self, bodies: Iterable[Body] = ()):
        self._bodies: dict[str, Body] = {}
        for body in bodies:
            self.add(body)

    def add(self, body: Body):
        self._bodies[body.name] = body

    def __contains__(self, name: str) -> bool:
        return name in self._bodies

    def __iter__(self):
        return iter(self._bodies.values())

    def __len__(self) -> int:
        return len(self._bodies)

    def get(self, name: str) -> Body:
        try:
            return self._bodies[name]
        except KeyError:
            raise UnknownBodyError(
                f"Body '{name}' not found in system of bodies "
                f"(known: {', '.join(self._bodies) or 'none'})") from None

    def gravitational_parameter(self, name: str) -> float:
        return self.get(name).gravitational_parameter

    def cartesian_state(self, name: str, t: float) -> np.ndarray:
        """State of a named body; missing bodies count as missing ephemerides.

        Raises:
            MissingEphemerisError: If the body is absent or has no ephemeris.
        """
        if name not in self._bodies:
            raise MissingEphemerisError(
                f"Ephemeris not defined for body '{name}': body not in system")
        return self._bodies[name].cartesian_state(t)


def setup_bodies_for_patched_conics(central_body: str,
                                    body_names: Iterable[str],
                                    ephemerides: Optional[dict[str, Ephemeris]] = None,
                                    gravitational_parameters: Optional[dict[str, float]] = None
                                    ) -> SystemOfBodies:
    """Create the environment for a patched-conic trajectory.

    The central body is placed on a constant ephemeris at the origin. Other
    bodies use the supplied ephemerides, falling back to the approximate
    J2000 mean-element ephemerides.

    Args:
        central_body: Name of the central body.
        body_names: Names of transfer bodies.
        ephemerides: Optional user-defined ephemeris per body.
        gravitational_parameters: Optional mu per body, overriding defaults.

    Returns:
        The system of bodies.

    Raises:
        UnknownBodyError: If no gravitational parameter is known for a body.
    """
    ephemerides = ephemerides or {}
    mus = dict(GRAVITATIONAL_PARAMETERS)
    mus.update(gravitational_parameters or {})

    def _mu(name):
        if name not in mus:
            raise UnknownBodyError(f"No gravitational parameter known for body '{name}'")
        return mus[name]

    system = SystemOfBodies()
    system.add(Body(central_body, _mu(central_body), ConstantEphemeris()))
    for name in body_names:
        if name == central_body or name in system:
            continue
        ephemeris = ephemerides.get(name)
        if ephemeris is None:
            ephemeris = MeanElementsEphemeris(name, _mu(central_body))
        system.add(Body(name, _mu(name), ephemeris))

    logger.debug("Patched-conic environment: central body %s, %d bodies",
                 central_body, len(system))
    return system


def get_default_minimum_pericenter_radii(body_names: Iterable[str]) -> list[float]:
    """Default minimum swingby pericenter radius per body [km].

    Raises:
        UnknownBodyError: For a body without a default radius.
    """
    radii = []
    for name in body_names:
        if name not in DEFAULT_MINIMUM_PERICENTER_RADII:
            raise UnknownBodyError(
                f"Body '{name}' not recognised for default minimum pericenter radius")
        radii.append(DEFAULT_MINIMUM_PERICENTER_RADII[name])
    return radii
