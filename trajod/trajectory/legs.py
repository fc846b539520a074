"""
Patched-conic transfer legs.

One TransferLeg class covers the six leg variants, selected by its
LegType tag:

    MGA_DEPARTURE / MGA_SWINGBY
        Lambert arc between the two bodies.
    MGA_1DSM_VELOCITY_DEPARTURE / MGA_1DSM_VELOCITY_SWINGBY
        Departure velocity given explicitly, Kepler coast to the DSM,
        Lambert arc from the DSM to the arrival body.
    MGA_1DSM_POSITION_DEPARTURE / MGA_1DSM_POSITION_SWINGBY
        DSM location given explicitly, Lambert arcs departure -> DSM and
        DSM -> arrival.

The DSM free variables (a 4-tuple) are, per variant:
    velocity departure: (eta, v_inf, in-plane angle, out-of-plane angle)
    velocity swingby:   (eta, rotation angle, pericenter radius, swingby dv)
    position variants:  (eta, dimensionless radius, in-plane angle,
                         out-of-plane angle)
with eta the fraction of the time of flight spent before the DSM.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..astrodynamics.gravity_assist import (
    gravity_assist_delta_v, powered_gravity_assist_outgoing_velocity
)
from ..astrodynamics.lambert import solve_lambert
from ..astrodynamics.two_body import escape_or_capture_delta_v, propagate_kepler_state
from ..core.exceptions import SequencingError
from ..core.types import LegType, ParkingOrbit

logger = logging.getLogger(__name__)


def _departure_frame(reference: np.ndarray, position: np.ndarray,
                     planet_velocity: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Right-handed unit vectors: u1 along ``reference``, u3 along r x V."""
    u1 = reference / np.linalg.norm(reference)
    u3 = np.cross(position, planet_velocity)
    u3 /= np.linalg.norm(u3)
    u2 = np.cross(u3, u1)
    return u1, u2, u3


def _direction(u1, u2, u3, in_plane_angle, out_of_plane_angle):
    return (np.cos(in_plane_angle) * np.cos(out_of_plane_angle) * u1
            + np.sin(in_plane_angle) * np.cos(out_of_plane_angle) * u2
            + np.sin(out_of_plane_angle) * u3)


class TransferLeg:
    """One interplanetary leg of a patched-conic trajectory.

    Call ``calculate_leg`` first; ``return_departure_variables`` and the
    DSM accessors are only valid afterwards.

    Args:
        leg_type: Variant of the leg. CAPTURE is not a leg.
        departure_position: Departure body position [km], shape (3,).
        arrival_position: Arrival body position [km], shape (3,).
        time_of_flight: Leg duration [s].
        departure_body_velocity: Departure body velocity [km/s], shape (3,).
        central_body_gravitational_parameter: mu of the central body.
        departure_body_gravitational_parameter: mu of the departure body.
        parking_orbit: Departure parking orbit, departure variants only.
        incoming_velocity: Heliocentric velocity before arrival of the
            preceding leg, required by swingby variants.
        minimum_pericenter_radius: Lowest swingby pericenter [km], required
            by MGA_SWINGBY and MGA_1DSM_POSITION_SWINGBY.
        dsm_variables: DSM 4-tuple, required by DSM variants.

    Raises:
        ValueError: If an input required by the variant is missing.
    """

    def __init__(self,
                 leg_type: LegType,
                 departure_position: np.ndarray,
                 arrival_position: np.ndarray,
                 time_of_flight: float,
                 departure_body_velocity: np.ndarray,
                 central_body_gravitational_parameter: float,
                 departure_body_gravitational_parameter: float,
                 parking_orbit: Optional[ParkingOrbit] = None,
                 incoming_velocity: Optional[np.ndarray] = None,
                 minimum_pericenter_radius: Optional[float] = None,
                 dsm_variables: Sequence[float] = ()):
        if leg_type == LegType.CAPTURE:
            raise ValueError("CAPTURE marks the final body and cannot be evaluated as a transfer leg")
        if leg_type.is_swingby and incoming_velocity is None:
            raise ValueError(f"{leg_type.name} leg requires the incoming velocity of the preceding leg")
        if (leg_type in (LegType.MGA_SWINGBY, LegType.MGA_1DSM_POSITION_SWINGBY)
                and minimum_pericenter_radius is None):
            raise ValueError(f"{leg_type.name} leg requires a minimum pericenter radius")
        if leg_type.has_dsm and len(dsm_variables) != 4:
            raise ValueError(f"{leg_type.name} leg requires 4 DSM variables, got {len(dsm_variables)}")

        self.leg_type = leg_type
        self.departure_position = np.asarray(departure_position, dtype=float)
        self.arrival_position = np.asarray(arrival_position, dtype=float)
        self.time_of_flight = float(time_of_flight)
        self.departure_body_velocity = np.asarray(departure_body_velocity, dtype=float)
        self.mu_central = central_body_gravitational_parameter
        self.mu_departure = departure_body_gravitational_parameter
        self.parking_orbit = parking_orbit
        self.incoming_velocity = None if incoming_velocity is None else np.asarray(incoming_velocity, dtype=float)
        self.minimum_pericenter_radius = minimum_pericenter_radius
        self.dsm_variables = tuple(float(x) for x in dsm_variables)

        self._calculated = False
        self._velocity_after_departure = None
        self._velocity_before_arrival = None
        self._departure_delta_v = 0.0
        self._dsm_delta_v = 0.0
        self._dsm_location = None
        self._dsm_time_of_flight = None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def calculate_leg(self) -> tuple[np.ndarray, float]:
        """Solve the leg.

        Returns:
            (velocity before arrival [km/s], leg ΔV [km/s]).

        Raises:
            LegSolveDivergedError: If a Lambert or swingby solve fails.
        """
        if self.leg_type in (LegType.MGA_DEPARTURE, LegType.MGA_SWINGBY):
            self._solve_lambert_leg()
        elif self.leg_type.is_velocity_dsm:
            self._solve_velocity_dsm_leg()
        else:
            self._solve_position_dsm_leg()

        self._calculated = True
        delta_v = self._departure_delta_v + self._dsm_delta_v
        logger.debug("%s leg: tof=%.1f d, departure dv=%.6f km/s, dsm dv=%.6f km/s",
                     self.leg_type.name, self.time_of_flight / 86400.0,
                     self._departure_delta_v, self._dsm_delta_v)
        return self._velocity_before_arrival.copy(), delta_v

    def return_departure_variables(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(departure body position, departure body velocity, velocity after departure).

        Raises:
            SequencingError: If the leg has not been calculated.
        """
        self._require_calculated("departure variables")
        return (self.departure_position.copy(), self.departure_body_velocity.copy(),
                self._velocity_after_departure.copy())

    @property
    def departure_delta_v(self) -> float:
        """ΔV at the departure body: escape, or swingby [km/s]."""
        self._require_calculated("departure delta-v")
        return self._departure_delta_v

    @property
    def dsm_delta_v(self) -> float:
        self._require_calculated("DSM delta-v")
        return self._dsm_delta_v

    @property
    def dsm_location(self) -> Optional[np.ndarray]:
        """DSM position [km], None for legs without DSM."""
        self._require_calculated("DSM location")
        return None if self._dsm_location is None else self._dsm_location.copy()

    @property
    def dsm_time_of_flight(self) -> Optional[float]:
        """Time from departure to the DSM [s], None for legs without DSM."""
        self._require_calculated("DSM time of flight")
        return self._dsm_time_of_flight

    def _require_calculated(self, what):
        if not self._calculated:
            raise SequencingError(
                f"Cannot return {what} of {self.leg_type.name} leg before calculate_leg()")

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def _departure_or_swingby_delta_v(self, velocity_after_departure):
        if self.leg_type.is_departure:
            v_inf = np.linalg.norm(velocity_after_departure - self.departure_body_velocity)
            return escape_or_capture_delta_v(self.mu_departure, v_inf, self.parking_orbit)
        return gravity_assist_delta_v(self.mu_departure, self.departure_body_velocity,
                                      self.incoming_velocity, velocity_after_departure,
                                      self.minimum_pericenter_radius)

    def _solve_lambert_leg(self):
        v1, v2 = solve_lambert(self.departure_position, self.arrival_position,
                               self.time_of_flight, self.mu_central)
        self._velocity_after_departure = v1
        self._velocity_before_arrival = v2
        self._departure_delta_v = self._departure_or_swingby_delta_v(v1)

    def _solve_velocity_dsm_leg(self):
        eta = self.dsm_variables[0]
        if self.leg_type.is_departure:
            _, v_inf, in_plane, out_of_plane = self.dsm_variables
            u1, u2, u3 = _departure_frame(self.departure_body_velocity, self.departure_position,
                                          self.departure_body_velocity)
            velocity_after_departure = (self.departure_body_velocity
                                        + v_inf * _direction(u1, u2, u3, in_plane, out_of_plane))
            self._departure_delta_v = escape_or_capture_delta_v(self.mu_departure, v_inf,
                                                                self.parking_orbit)
        else:
            _, rotation_angle, pericenter_radius, swingby_delta_v = self.dsm_variables
            velocity_after_departure = powered_gravity_assist_outgoing_velocity(
                self.mu_departure, self.departure_body_velocity, self.incoming_velocity,
                rotation_angle, pericenter_radius, swingby_delta_v)
            self._departure_delta_v = swingby_delta_v

        self._dsm_time_of_flight = eta * self.time_of_flight
        dsm_state = propagate_kepler_state(
            np.concatenate([self.departure_position, velocity_after_departure]),
            self._dsm_time_of_flight, self.mu_central)
        self._dsm_location = dsm_state[:3]

        v_dsm_out, v_before_arrival = solve_lambert(
            self._dsm_location, self.arrival_position,
            (1.0 - eta) * self.time_of_flight, self.mu_central)
        self._dsm_delta_v = float(np.linalg.norm(v_dsm_out - dsm_state[3:]))
        self._velocity_after_departure = velocity_after_departure
        self._velocity_before_arrival = v_before_arrival

    def _solve_position_dsm_leg(self):
        eta, radius, in_plane, out_of_plane = self.dsm_variables
        u1, u2, u3 = _departure_frame(self.departure_position, self.departure_position,
                                      self.departure_body_velocity)
        self._dsm_location = (radius * np.linalg.norm(self.departure_position)
                              * _direction(u1, u2, u3, in_plane, out_of_plane))
        self._dsm_time_of_flight = eta * self.time_of_flight

        velocity_after_departure, v_dsm_in = solve_lambert(
            self.departure_position, self._dsm_location, self._dsm_time_of_flight, self.mu_central)
        v_dsm_out, v_before_arrival = solve_lambert(
            self._dsm_location, self.arrival_position,
            (1.0 - eta) * self.time_of_flight, self.mu_central)

        self._dsm_delta_v = float(np.linalg.norm(v_dsm_out - v_dsm_in))
        self._departure_delta_v = self._departure_or_swingby_delta_v(velocity_after_departure)
        self._velocity_after_departure = velocity_after_departure
        self._velocity_before_arrival = v_before_arrival
