"""
Trajectory and Orbit Determination Infrastructure
==================================================
Observation bookkeeping for orbit determination and patched-conic
interplanetary trajectory design checked against full-problem
propagation.

Architecture:
    - Single-link observation sets with time sorting and weights
    - Indexed observation collections with flat buffers and slice tables
    - Residuals, arc splitting and residual-based outlier filtering
    - Processed ODF tracking data and station frequency interpolators
    - Lambert, gravity assist and Kepler two-body building blocks
    - Multi-leg MGA / MGA-1DSM patched-conic trajectories
    - Numerical re-propagation of every leg with time or sphere of
      influence termination, compared against the analytic arcs
"""

__version__ = "0.1.0"
