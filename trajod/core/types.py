"""
Foundational data types for trajectory design and comparison.

Convention:
    - Distances: km
    - Time: seconds since J2000
    - Velocity: km/s
    - Angles: radians
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass, field
from enum import Enum, auto


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class LegType(Enum):
    """Interplanetary transfer leg variants."""
    MGA_DEPARTURE = auto()
    MGA_SWINGBY = auto()
    MGA_1DSM_VELOCITY_DEPARTURE = auto()
    MGA_1DSM_VELOCITY_SWINGBY = auto()
    MGA_1DSM_POSITION_DEPARTURE = auto()
    MGA_1DSM_POSITION_SWINGBY = auto()
    CAPTURE = auto()

    @property
    def has_dsm(self) -> bool:
        return self.is_velocity_dsm or self.is_position_dsm

    @property
    def is_departure(self) -> bool:
        return self in (LegType.MGA_DEPARTURE,
                        LegType.MGA_1DSM_VELOCITY_DEPARTURE,
                        LegType.MGA_1DSM_POSITION_DEPARTURE)

    @property
    def is_swingby(self) -> bool:
        return self in (LegType.MGA_SWINGBY,
                        LegType.MGA_1DSM_VELOCITY_SWINGBY,
                        LegType.MGA_1DSM_POSITION_SWINGBY)

    @property
    def is_velocity_dsm(self) -> bool:
        return self in (LegType.MGA_1DSM_VELOCITY_DEPARTURE,
                        LegType.MGA_1DSM_VELOCITY_SWINGBY)

    @property
    def is_position_dsm(self) -> bool:
        return self in (LegType.MGA_1DSM_POSITION_DEPARTURE,
                        LegType.MGA_1DSM_POSITION_SWINGBY)


# ---------------------------------------------------------------------------
# Orbital Elements
# ---------------------------------------------------------------------------

@dataclass
class KeplerianElements:
    """Classical Keplerian orbital elements.

    Hyperbolic orbits carry a negative semi-major axis.

    Attributes:
        a: Semi-major axis [km].
        e: Eccentricity.
        i: Inclination [rad].
        raan: Right ascension of ascending node [rad].
        aop: Argument of periapsis [rad].
        ta: True anomaly [rad].
    """
    a: float
    e: float
    i: float
    raan: float
    aop: float
    ta: float

    def as_array(self) -> np.ndarray:
        return np.array([self.a, self.e, self.i, self.raan, self.aop, self.ta])

    @classmethod
    def from_array(cls, elements: np.ndarray) -> KeplerianElements:
        return cls(*(float(x) for x in elements[:6]))


@dataclass
class ParkingOrbit:
    """Parking orbit at departure or capture.

    Attributes:
        semi_major_axis: Semi-major axis [km].
        eccentricity: Eccentricity, 0 <= e < 1.
    """
    semi_major_axis: float
    eccentricity: float = 0.0


# ---------------------------------------------------------------------------
# Trajectory Results
# ---------------------------------------------------------------------------

@dataclass
class ManeuverPoint:
    """A node of a patched-conic trajectory.

    Attributes:
        name: Body name, or ``DSM<k>`` for a deep-space maneuver.
        position: Heliocentric position [km], shape (3,).
        epoch: Maneuver epoch [s since J2000].
        delta_v: Impulsive ΔV magnitude at this node [km/s].
    """
    name: str
    position: np.ndarray        # (3,) km
    epoch: float
    delta_v: float


@dataclass
class PropagationResult:
    """Output of a numerical propagation.

    Attributes:
        epochs: Integrator output epochs [s since J2000], shape (N,),
            ordered in the direction of integration.
        states: State vectors [x,y,z,vx,vy,vz] over time, shape (N, 6).
        terminated_by_event: Whether a terminal event stopped integration.
    """
    epochs: np.ndarray              # (N,)
    states: np.ndarray              # (N, 6)
    terminated_by_event: bool = False

    @property
    def positions(self) -> np.ndarray:
        """Position history, shape (N, 3)."""
        return self.states[:, :3]

    @property
    def velocities(self) -> np.ndarray:
        """Velocity history, shape (N, 3)."""
        return self.states[:, 3:6]

    @property
    def final_state(self) -> np.ndarray:
        return self.states[-1].copy()

    def state_history(self) -> dict[float, np.ndarray]:
        """Time-ordered ``{epoch: state}`` map."""
        order = np.argsort(self.epochs, kind="stable")
        return {float(self.epochs[k]): self.states[k].copy() for k in order}


@dataclass
class LegComparison:
    """Analytic vs. numerically propagated states along one (sub-)leg.

    Both maps share the same, time-ordered key set: the epochs chosen by
    the numerical integrator.

    Attributes:
        analytic: Patched-conic/Keplerian states ``{epoch: state}``.
        full_problem: Numerically integrated states ``{epoch: state}``.
    """
    analytic: dict[float, np.ndarray] = field(default_factory=dict)
    full_problem: dict[float, np.ndarray] = field(default_factory=dict)

    @property
    def epochs(self) -> list[float]:
        return list(self.full_problem.keys())

    def state_differences(self) -> dict[float, np.ndarray]:
        """Analytic minus full-problem state at every sampled epoch."""
        return {t: self.analytic[t] - self.full_problem[t]
                for t in self.full_problem}

    def boundary_differences(self) -> tuple[np.ndarray, np.ndarray]:
        """(departure, arrival) state differences, analytic minus full."""
        first = next(iter(self.full_problem))
        last = next(reversed(self.full_problem))
        return (self.analytic[first] - self.full_problem[first],
                self.analytic[last] - self.full_problem[last])


@dataclass
class TrajectoryManeuvers:
    """All maneuver nodes of an evaluated trajectory.

    Attributes:
        points: Maneuver nodes in chronological order.
        total_delta_v: Sum of node ΔVs [km/s].
    """
    points: list[ManeuverPoint]
    total_delta_v: float

    @property
    def positions(self) -> list[np.ndarray]:
        return [p.position for p in self.points]

    @property
    def epochs(self) -> list[float]:
        return [p.epoch for p in self.points]

    @property
    def delta_vs(self) -> list[float]:
        return [p.delta_v for p in self.points]
