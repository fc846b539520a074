"""
Patched-conic vs. full-problem comparison.

Every (sub-)leg of a patched-conic trajectory is re-propagated
numerically under the configured accelerations and compared, epoch by
epoch, with its analytic Keplerian counterpart:

    Lambert sub-legs    forward from the departure point with the Lambert
                        departure velocity
    Kepler sub-legs     from the sub-leg midpoint, backward to its start
                        and forward to its end

The sampled epochs are the integrator's own steps.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..astrodynamics.bodies import SystemOfBodies
from ..astrodynamics.lambert import solve_lambert
from ..astrodynamics.propagator import Propagator
from ..astrodynamics.two_body import propagate_kepler_state
from ..core.config import FullProblemConfig
from ..core.types import LegComparison, LegType, ParkingOrbit
from .termination import (
    TerminationSettings, TimeTerminationSettings,
    get_single_leg_sphere_of_influence_termination_settings
)
from .trajectory import Trajectory

logger = logging.getLogger(__name__)


# =============================================================================
# Single-leg comparison
# =============================================================================

class LegFullProblemComparator:
    """Propagates single legs numerically and pairs them with Kepler arcs.

    Attributes:
        bodies: Body environment.
        config: Full-problem configuration.
        propagator: Numerical propagator built from both.
    """

    def __init__(self, bodies: SystemOfBodies, config: FullProblemConfig):
        self.bodies = bodies
        self.config = config
        self.propagator = Propagator(bodies, config)
        self._mu_central = bodies.gravitational_parameter(config.accelerations.central_body)

    def _analytic_states(self, reference_state, reference_time, epochs):
        return {t: propagate_kepler_state(reference_state, t - reference_time, self._mu_central)
                for t in epochs}

    def compare_lambert_leg(self,
                            departure_position: np.ndarray,
                            arrival_position: np.ndarray,
                            initial_time: float,
                            time_of_flight: float,
                            termination: Optional[TerminationSettings] = None
                            ) -> LegComparison:
        """Compare a Lambert arc with its numerical propagation.

        Args:
            departure_position: Departure position [km], shape (3,).
            arrival_position: Arrival position [km], shape (3,).
            initial_time: Departure epoch [s since J2000].
            time_of_flight: Leg duration [s].
            termination: Forward termination. Defaults to the arrival epoch.

        Returns:
            Analytic and numerical states at the integrator epochs.
        """
        v_departure, _ = solve_lambert(departure_position, arrival_position,
                                       time_of_flight, self._mu_central)
        initial_state = np.concatenate([np.asarray(departure_position, dtype=float), v_departure])
        if termination is None:
            termination = TimeTerminationSettings(initial_time + time_of_flight)

        result = self.propagator.propagate_with_termination(initial_state, initial_time, termination)
        full_problem = result.state_history()
        analytic = self._analytic_states(initial_state, initial_time, full_problem)
        return LegComparison(analytic=analytic, full_problem=full_problem)

    def compare_kepler_leg(self,
                           departure_position: np.ndarray,
                           velocity_after_departure: np.ndarray,
                           initial_time: float,
                           time_of_flight: float,
                           terminations: Optional[Sequence[TerminationSettings]] = None
                           ) -> LegComparison:
        """Compare a Kepler coast with its numerical propagation.

        Integration starts at the coast midpoint and runs backward and
        forward; the two halves are merged in time order.

        Args:
            departure_position: Departure position [km], shape (3,).
            velocity_after_departure: Departure velocity [km/s], shape (3,).
            initial_time: Departure epoch [s since J2000].
            time_of_flight: Coast duration [s].
            terminations: (backward, forward) terminations. Default to the
                coast start and end epochs.

        Returns:
            Analytic and numerical states at the integrator epochs.
        """
        departure_state = np.concatenate([np.asarray(departure_position, dtype=float),
                                          np.asarray(velocity_after_departure, dtype=float)])
        midpoint_time = initial_time + time_of_flight / 2.0
        midpoint_state = propagate_kepler_state(departure_state, time_of_flight / 2.0, self._mu_central)
        if terminations is None:
            terminations = (TimeTerminationSettings(initial_time),
                            TimeTerminationSettings(initial_time + time_of_flight))
        backward_termination, forward_termination = terminations

        backward = self.propagator.propagate_with_termination(
            midpoint_state, midpoint_time, backward_termination, backward=True)
        forward = self.propagator.propagate_with_termination(
            midpoint_state, midpoint_time, forward_termination)

        merged = backward.state_history()
        merged.update(forward.state_history())
        full_problem = {t: merged[t] for t in sorted(merged)}
        analytic = self._analytic_states(midpoint_state, midpoint_time, full_problem)
        return LegComparison(analytic=analytic, full_problem=full_problem)


# =============================================================================
# Termination settings per sub-leg
# =============================================================================

def get_patched_conic_propagation_settings(trajectory: Trajectory,
                                           config: FullProblemConfig
                                           ) -> dict[int, tuple[TerminationSettings, TerminationSettings]]:
    """(backward, forward) terminations of every sub-leg of a trajectory.

    Sub-legs are numbered in chronological order; a DSM leg contributes two.
    By default each sub-leg is bounded by its node epochs. Sphere of
    influence termination applies only to trajectories without DSMs; with
    DSMs it is ignored and a warning is logged.
    """
    node_epochs = trajectory.maneuvers().epochs
    has_dsm = any(leg_type.has_dsm for leg_type in trajectory.leg_types)

    if config.termination_sphere_of_influence and not has_dsm:
        return {
            i: get_single_leg_sphere_of_influence_termination_settings(
                trajectory.bodies, trajectory.central_body,
                trajectory.body_order[i], trajectory.body_order[i + 1],
                trajectory.epochs[i], trajectory.epochs[i + 1])
            for i in range(trajectory.number_of_legs)
        }

    if config.termination_sphere_of_influence:
        logger.warning("Sphere of influence termination is not supported for trajectories "
                       "with deep-space maneuvers; terminating on time instead")

    return {i: (TimeTerminationSettings(start), TimeTerminationSettings(end))
            for i, (start, end) in enumerate(zip(node_epochs[:-1], node_epochs[1:]))}


# =============================================================================
# Trajectory comparison
# =============================================================================

class TrajectoryOrchestrator:
    """Runs the full-problem comparison over every leg of a trajectory.

    Args:
        bodies: Body environment with ephemerides.
        body_order: Names of the visited bodies.
        leg_types: Leg variant leaving each body; last entry CAPTURE.
        variables: Trajectory free-variable vector.
        config: Full-problem configuration. Its central body is the
            trajectory's central body.
        minimum_pericenter_radii: Lowest swingby pericenter per body [km].
        departure_parking_orbit: Parking orbit at the first body.
        capture_parking_orbit: Parking orbit at the final body.
    """

    def __init__(self,
                 bodies: SystemOfBodies,
                 body_order: Sequence[str],
                 leg_types: Sequence[LegType],
                 variables: Sequence[float],
                 config: FullProblemConfig,
                 minimum_pericenter_radii: Optional[Sequence[float]] = None,
                 departure_parking_orbit: Optional[ParkingOrbit] = None,
                 capture_parking_orbit: Optional[ParkingOrbit] = None):
        self.config = config
        self.trajectory = Trajectory(body_order, leg_types, bodies,
                                     config.accelerations.central_body, variables,
                                     minimum_pericenter_radii=minimum_pericenter_radii,
                                     departure_parking_orbit=departure_parking_orbit,
                                     capture_parking_orbit=capture_parking_orbit)
        self.comparator = LegFullProblemComparator(bodies, config)

    def run(self) -> dict[int, LegComparison]:
        """Compare every sub-leg.

        Returns:
            ``{sub-leg number: comparison}`` in chronological order.
        """
        trajectory = self.trajectory
        trajectory.calculate_trajectory()
        terminations = get_patched_conic_propagation_settings(trajectory, self.config)

        logger.info("Comparing %s (%s) against the full problem: %s",
                    "-".join(trajectory.body_order), self.config.body_to_propagate,
                    self.config.accelerations.describe())

        results: dict[int, LegComparison] = {}
        counter = 0
        for i in range(trajectory.number_of_legs):
            leg = trajectory.legs[i]
            departure_position, _, velocity_after_departure = leg.return_departure_variables()
            initial_time = float(trajectory.epochs[i])
            time_of_flight = float(trajectory.epochs[i + 1] - trajectory.epochs[i])

            if not leg.leg_type.has_dsm:
                results[counter] = self.comparator.compare_lambert_leg(
                    departure_position, leg.arrival_position, initial_time, time_of_flight,
                    terminations[counter][1])
                counter += 1
                continue

            dsm_time_of_flight = leg.dsm_time_of_flight
            results[counter] = self.comparator.compare_kepler_leg(
                departure_position, velocity_after_departure, initial_time, dsm_time_of_flight,
                terminations[counter])
            counter += 1
            results[counter] = self.comparator.compare_lambert_leg(
                leg.dsm_location, leg.arrival_position, initial_time + dsm_time_of_flight,
                time_of_flight - dsm_time_of_flight, terminations[counter][1])
            counter += 1

        for key, comparison in results.items():
            _, arrival = comparison.boundary_differences()
            logger.debug("Sub-leg %d: %d epochs, arrival position difference %.3f km",
                         key, len(comparison.epochs), np.linalg.norm(arrival[:3]))
        return results


def difference_full_problem_wrt_patched_conics(results: dict[int, LegComparison]
                                               ) -> dict[int, tuple[np.ndarray, np.ndarray]]:
    """Departure and arrival state differences (analytic minus full) per sub-leg."""
    return {key: comparison.boundary_differences() for key, comparison in results.items()}
