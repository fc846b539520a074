"""
Multi-leg patched-conic trajectory.

A trajectory visits ``body_order`` in sequence. ``leg_types`` holds one
entry per body: the leg leaving that body, and CAPTURE for the final one.
The free-variable vector is laid out as

    [t0, tof_1, ..., tof_{N-1}, dsm_1 (4 values), dsm_2 (4 values), ...]

with one 4-tuple per DSM leg, in leg order.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..astrodynamics.bodies import SystemOfBodies, get_default_minimum_pericenter_radii
from ..astrodynamics.two_body import escape_or_capture_delta_v
from ..core.exceptions import MissingEphemerisError
from ..core.types import LegType, ManeuverPoint, ParkingOrbit, TrajectoryManeuvers
from .legs import TransferLeg

logger = logging.getLogger(__name__)


def expand_body_and_maneuver_order(body_order: Sequence[str],
                                   leg_types: Sequence[LegType]) -> list[str]:
    """Body names with a ``DSM<k>`` token after every body that leaves on a DSM leg.

    E.g. Earth (velocity DSM departure), Venus (swingby), Mars (capture)
    expands to ``["Earth", "DSM1", "Venus", "Mars"]``.
    """
    tokens = []
    dsm_count = 1
    for body, leg_type in zip(body_order, leg_types):
        tokens.append(body)
        if leg_type.has_dsm:
            tokens.append(f"DSM{dsm_count}")
            dsm_count += 1
    return tokens


def number_of_free_variables(leg_types: Sequence[LegType]) -> int:
    """Length of the free-variable vector for a leg sequence."""
    return len(leg_types) + 4 * sum(1 for leg_type in leg_types if leg_type.has_dsm)


class Trajectory:
    """Patched-conic trajectory through a sequence of bodies.

    Attributes:
        body_order: Names of the visited bodies.
        leg_types: Leg variant leaving each body; last entry CAPTURE.
        epochs: Epoch at each body [s since J2000].
        legs: Transfer legs, available after ``calculate_trajectory``.
    """

    def __init__(self,
                 body_order: Sequence[str],
                 leg_types: Sequence[LegType],
                 bodies: SystemOfBodies,
                 central_body: str,
                 variables: Sequence[float],
                 minimum_pericenter_radii: Optional[Sequence[float]] = None,
                 departure_parking_orbit: Optional[ParkingOrbit] = None,
                 capture_parking_orbit: Optional[ParkingOrbit] = None):
        """Validate the leg sequence and unpack the free variables.

        Args:
            body_order: Names of the visited bodies, at least two.
            leg_types: One leg type per body.
            bodies: Body environment with ephemerides.
            central_body: Name of the central body.
            variables: Free-variable vector.
            minimum_pericenter_radii: Lowest swingby pericenter per body
                [km]. Defaults to the tabulated radii.
            departure_parking_orbit: Parking orbit at the first body.
            capture_parking_orbit: Parking orbit at the final body.

        Raises:
            ValueError: If leg types or variables do not fit the body order.
            MissingEphemerisError: If the central body is not in ``bodies``.
            UnknownBodyError: If default radii are needed for an unknown body.
        """
        self.body_order = list(body_order)
        self.leg_types = list(leg_types)
        n_bodies = len(self.body_order)

        if n_bodies < 2:
            raise ValueError(f"A trajectory needs at least two bodies, got {n_bodies}")
        if len(self.leg_types) != n_bodies:
            raise ValueError(f"{len(self.leg_types)} leg types for {n_bodies} bodies")
        if not self.leg_types[0].is_departure:
            raise ValueError(f"First leg must be a departure leg, got {self.leg_types[0].name}")
        for leg_type in self.leg_types[1:-1]:
            if not leg_type.is_swingby:
                raise ValueError(f"Intermediate legs must be swingby legs, got {leg_type.name}")
        if self.leg_types[-1] != LegType.CAPTURE:
            raise ValueError(f"Last leg type must be CAPTURE, got {self.leg_types[-1].name}")

        expected = number_of_free_variables(self.leg_types)
        if len(variables) != expected:
            raise ValueError(
                f"Expected {expected} free variables for {n_bodies} bodies and "
                f"{sum(lt.has_dsm for lt in self.leg_types)} DSM legs, got {len(variables)}")

        if central_body not in bodies:
            raise MissingEphemerisError(f"Central body '{central_body}' not in system of bodies")

        self.bodies = bodies
        self.central_body = central_body
        self.variables = np.asarray(variables, dtype=float)
        self.departure_parking_orbit = departure_parking_orbit
        self.capture_parking_orbit = capture_parking_orbit

        if minimum_pericenter_radii is None:
            minimum_pericenter_radii = get_default_minimum_pericenter_radii(self.body_order)
        self.minimum_pericenter_radii = list(minimum_pericenter_radii)

        self.epochs = self.variables[0] + np.concatenate([[0.0], np.cumsum(self.variables[1:n_bodies])])
        self._dsm_variables = {}
        offset = n_bodies
        for i, leg_type in enumerate(self.leg_types):
            if leg_type.has_dsm:
                self._dsm_variables[i] = tuple(self.variables[offset:offset + 4])
                offset += 4

        self.legs: list[TransferLeg] = []
        self._total_delta_v: Optional[float] = None
        self._capture_delta_v = 0.0

    @property
    def number_of_legs(self) -> int:
        return len(self.body_order) - 1

    def times_of_flight(self) -> np.ndarray:
        return np.diff(self.epochs)

    def dsm_variables(self, leg_index: int) -> tuple:
        """DSM 4-tuple of a leg, empty for legs without DSM."""
        return self._dsm_variables.get(leg_index, ())

    def build_leg(self, leg_index: int, incoming_velocity: Optional[np.ndarray] = None) -> TransferLeg:
        """Transfer leg from body ``leg_index`` to the next one (not yet calculated)."""
        departure_body = self.body_order[leg_index]
        arrival_body = self.body_order[leg_index + 1]
        departure_state = self.bodies.cartesian_state(departure_body, self.epochs[leg_index])
        arrival_state = self.bodies.cartesian_state(arrival_body, self.epochs[leg_index + 1])
        leg_type = self.leg_types[leg_index]

        return TransferLeg(
            leg_type,
            departure_state[:3],
            arrival_state[:3],
            self.epochs[leg_index + 1] - self.epochs[leg_index],
            departure_state[3:],
            self.bodies.gravitational_parameter(self.central_body),
            self.bodies.gravitational_parameter(departure_body),
            parking_orbit=self.departure_parking_orbit if leg_type.is_departure else None,
            incoming_velocity=incoming_velocity,
            minimum_pericenter_radius=self.minimum_pericenter_radii[leg_index],
            dsm_variables=self.dsm_variables(leg_index),
        )

    def calculate_trajectory(self) -> float:
        """Solve every leg in sequence and add the capture ΔV.

        Returns:
            Total ΔV [km/s].
        """
        self.legs = []
        total = 0.0
        incoming_velocity = None
        for i in range(self.number_of_legs):
            leg = self.build_leg(i, incoming_velocity)
            incoming_velocity, leg_delta_v = leg.calculate_leg()
            self.legs.append(leg)
            total += leg_delta_v

        final_body = self.body_order[-1]
        final_velocity = self.bodies.cartesian_state(final_body, self.epochs[-1])[3:]
        self._capture_delta_v = escape_or_capture_delta_v(
            self.bodies.gravitational_parameter(final_body),
            np.linalg.norm(incoming_velocity - final_velocity),
            self.capture_parking_orbit)
        total += self._capture_delta_v

        self._total_delta_v = float(total)
        logger.info("Trajectory %s: total dv = %.4f km/s",
                    "-".join(self.body_order), self._total_delta_v)
        return self._total_delta_v

    def maneuvers(self) -> TrajectoryManeuvers:
        """Maneuver nodes in chronological order, calculating first if needed."""
        if self._total_delta_v is None:
            self.calculate_trajectory()

        points = []
        dsm_count = 1
        for i, leg in enumerate(self.legs):
            position = self.bodies.cartesian_state(self.body_order[i], self.epochs[i])[:3]
            points.append(ManeuverPoint(self.body_order[i], position, float(self.epochs[i]),
                                        leg.departure_delta_v))
            if leg.leg_type.has_dsm:
                points.append(ManeuverPoint(f"DSM{dsm_count}", leg.dsm_location,
                                            float(self.epochs[i] + leg.dsm_time_of_flight),
                                            leg.dsm_delta_v))
                dsm_count += 1

        final_position = self.bodies.cartesian_state(self.body_order[-1], self.epochs[-1])[:3]
        points.append(ManeuverPoint(self.body_order[-1], final_position, float(self.epochs[-1]),
                                    self._capture_delta_v))
        return TrajectoryManeuvers(points=points, total_delta_v=self._total_delta_v)
