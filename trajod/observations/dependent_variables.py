"""
Observation dependent variables.

A calculator owns the layout of the dependent-variable vector stored with
each observation of one observable type and link-ends pair: every
requested variable occupies a contiguous (start, size) slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .observables import LinkEnds, ObservableType


@dataclass(frozen=True)
class DependentVariableSettings:
    """A dependent variable saved with every observation.

    Attributes:
        name: Identifier, e.g. ``"elevation_angle"``.
        size: Number of scalar entries.
    """
    name: str
    size: int = 1


class ObservationDependentVariableCalculator:
    """Layout of the dependent variables of one type and link-ends pair.

    Args:
        observable_type: Observable the variables belong to.
        link_ends: Link ends the variables belong to.
        settings: Variables in storage order.
    """

    def __init__(self, observable_type: ObservableType, link_ends: LinkEnds,
                 settings: Sequence[DependentVariableSettings] = ()):
        self.observable_type = observable_type
        self.link_ends = link_ends
        self.settings = list(settings)
        self._indices = {}
        start = 0
        for entry in self.settings:
            self._indices[entry] = (start, entry.size)
            start += entry.size
        self.total_size = start

    def indices(self, settings: DependentVariableSettings) -> tuple[int, int]:
        """(start, size) of a variable, (0, 0) if it is not computed."""
        return self._indices.get(settings, (0, 0))
