"""
Numerical full-problem propagator.

Wraps scipy.integrate.solve_ivp (DOP853) with:
    - Forward or backward integration (signed time span)
    - Terminal event detection (sphere of influence crossings)
    - Output at the integrator's own steps
    - A capped step size while terminal events are active, so that short
      sphere of influence passages are not stepped over
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np
from scipy.integrate import solve_ivp

from ..core.config import FullProblemConfig
from ..core.types import PropagationResult
from .bodies import SystemOfBodies
from .eom import eom_translational

logger = logging.getLogger(__name__)


class Propagator:
    """Numerical propagator of a spacecraft about the central body.

    Attributes:
        bodies: Read-only body environment.
        config: Accelerations and integrator settings.
    """

    def __init__(self, bodies: SystemOfBodies, config: FullProblemConfig):
        """Initialize the propagator.

        Args:
            bodies: Environment providing the central and perturbing bodies.
            config: Full-problem configuration.
        """
        self.bodies = bodies
        self.config = config

    def propagate(self,
                  initial_state: np.ndarray,
                  t_start: float,
                  t_end: float,
                  events: Optional[list[Callable]] = None
                  ) -> PropagationResult:
        """Propagate a state from ``t_start`` to ``t_end``.

        ``t_end < t_start`` integrates backward in time.

        Args:
            initial_state: Cartesian state at ``t_start``, shape (6,).
            t_start: Initial epoch [s since J2000].
            t_end: Final epoch [s since J2000].
            events: Optional event functions for solve_ivp. While events
                are given the step size is limited to
                ``integrator.event_max_step_s``.

        Returns:
            PropagationResult with epochs in the direction of integration.
        """
        result = self._integrate(np.asarray(initial_state, dtype=float),
                                 t_start, t_end, events)

        logger.debug("Propagated %s from t=%.1f to t=%.1f s in %d output steps%s",
                     "backward" if t_end < t_start else "forward",
                     t_start, result.t[-1], len(result.t),
                     " (terminal event)" if result.status == 1 else "")

        return PropagationResult(
            epochs=np.array(result.t),
            states=np.array(result.y.T),
            terminated_by_event=result.status == 1,
        )

    def propagate_with_termination(self,
                                   initial_state: np.ndarray,
                                   t_start: float,
                                   termination,
                                   backward: bool = False
                                   ) -> PropagationResult:
        """Propagate until a termination condition is met.

        Args:
            initial_state: Cartesian state at ``t_start``, shape (6,).
            t_start: Initial epoch [s since J2000].
            termination: Termination settings providing ``final_epoch`` and
                ``events``.
            backward: Integrate backward in time.

        Returns:
            PropagationResult with epochs in the direction of integration.
        """
        direction = -1.0 if backward else 1.0
        t_end = termination.final_epoch(t_start, direction)
        events = termination.events(self.bodies, self.config.accelerations.central_body)
        return self.propagate(initial_state, t_start, t_end, events=events or None)

    def _integrate(self, y0, t_start, t_end, events=None):
        """Core integration call wrapping scipy.integrate.solve_ivp.

        Returns:
            scipy OdeResult.
        """
        cfg = self.config

        def rhs(t, y):
            return eom_translational(t, y, self.bodies, cfg.accelerations)

        max_step = cfg.integrator.max_step_s
        if events:
            max_step = min(max_step, cfg.integrator.event_max_step_s)

        options = {}
        if cfg.integrator.first_step_s is not None:
            options["first_step"] = cfg.integrator.first_step_s

        result = solve_ivp(
            rhs,
            t_span=(t_start, t_end),
            y0=y0,
            method=cfg.integrator.method,
            rtol=cfg.integrator.rtol,
            atol=cfg.integrator.atol,
            max_step=max_step,
            events=events,
            **options
        )

        if not result.success:
            raise RuntimeError(
                f"Integration failed: {result.message} "
                f"(t_start={t_start:.1f}, t_end={t_end:.1f})"
            )

        return result
