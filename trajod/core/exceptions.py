"""
Error taxonomy.

Every error is unrecoverable at the point of detection and propagates to
the caller. Each class also derives from the builtin it specialises so
callers may catch either.
"""


class TrajodError(Exception):
    """Base class for all trajod errors."""


# ---------------------------------------------------------------------------
# Observation data
# ---------------------------------------------------------------------------

class InconsistentSizeError(TrajodError, ValueError):
    """Observation, time or per-sample vectors disagree in length."""


class IncompatibleDependentVariableCalculatorError(TrajodError, ValueError):
    """Dependent-variable calculator built for another type or link ends."""


class WeightSizeMismatchError(TrajodError, ValueError):
    """Weight vector length differs from the observation scalar size."""


class UnknownObservableError(TrajodError, KeyError):
    """Observable type not present in a collection."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class UnknownLinkEndsError(TrajodError, KeyError):
    """Link ends not present for an observable type in a collection."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class StructuralMismatchError(TrajodError, ValueError):
    """Paired observation sets differ in type, link ends or sample count."""


class TimeMismatchError(TrajodError, ValueError):
    """Paired observation sets have non-identical sample times."""


class SizeMismatchError(TrajodError, ValueError):
    """Residual vector or removal plan does not fit the collection."""


class EmptyCollectionError(TrajodError, ValueError):
    """Operation undefined on a collection without observations."""


# ---------------------------------------------------------------------------
# Trajectory design
# ---------------------------------------------------------------------------

class MissingEphemerisError(TrajodError, LookupError):
    """Body required by a leg computation has no ephemeris."""


class UnknownBodyError(TrajodError, KeyError):
    """Body name not recognised by a lookup table."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class SequencingError(TrajodError, RuntimeError):
    """Operation called out of its required order."""


class LegSolveDivergedError(TrajodError, RuntimeError):
    """Nonlinear leg solve did not converge."""


# ---------------------------------------------------------------------------
# Tracking data
# ---------------------------------------------------------------------------

class FrequencyRampLookupError(TrajodError, LookupError):
    """Look-up time outside the frequency ramp table."""
