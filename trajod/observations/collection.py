"""
Observation collection.

Aggregates single-link observation sets, grouped by observable type and
link ends, into one flat buffer of scalar observations with parallel
times, weights and link-end identifiers. The buffers and index tables are
computed once at construction; every structural change (filtering,
residuals, arc splitting) builds a new collection.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, Union

import numpy as np

from ..core.exceptions import (
    EmptyCollectionError, UnknownLinkEndsError, UnknownObservableError,
    WeightSizeMismatchError
)
from .indexing import ObservationIndex, build_observation_index
from .observables import LinkEnds, ObservableType
from .single_set import SingleLinkObservationSet

logger = logging.getLogger(__name__)


def sort_observation_sets(
        observation_sets: Sequence[SingleLinkObservationSet]
) -> dict[ObservableType, dict[LinkEnds, list[SingleLinkObservationSet]]]:
    """Group sets by observable type and link ends, first occurrence first."""
    sorted_sets: dict = {}
    for observation_set in observation_sets:
        per_link_ends = sorted_sets.setdefault(observation_set.observable_type, {})
        per_link_ends.setdefault(observation_set.link_ends, []).append(observation_set)
    return sorted_sets


class ObservationCollection:
    """Indexed, query-able collection of observation sets.

    Args:
        observation_sets: Either a nested mapping
            ``{observable type: {link ends: [sets]}}`` whose insertion order
            fixes the traversal order, or a flat sequence of sets, grouped
            by (type, link ends) in order of first occurrence.

    Raises:
        StructuralMismatchError: If a set is stored under a key that does
            not match its own type or link ends.
    """

    def __init__(self, observation_sets: Union[Mapping, Sequence[SingleLinkObservationSet]]):
        if isinstance(observation_sets, Mapping):
            self._sorted_sets = {
                observable_type: {link_ends: list(sets) for link_ends, sets in per_link_ends.items()}
                for observable_type, per_link_ends in observation_sets.items()
            }
        else:
            self._sorted_sets = sort_observation_sets(observation_sets)

        self._index: ObservationIndex = build_observation_index(self._sorted_sets)
        self._weights: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def sorted_observation_sets(self) -> dict[ObservableType, dict[LinkEnds, list[SingleLinkObservationSet]]]:
        """Nested mapping type -> link ends -> sets (a shallow copy)."""
        return {observable_type: {link_ends: list(sets) for link_ends, sets in per_link_ends.items()}
                for observable_type, per_link_ends in self._sorted_sets.items()}

    @property
    def observable_types(self) -> list[ObservableType]:
        return list(self._sorted_sets)

    @property
    def index(self) -> ObservationIndex:
        return self._index

    def all_observation_sets(self) -> list[SingleLinkObservationSet]:
        """Every set in traversal order."""
        return [observation_set
                for per_link_ends in self._sorted_sets.values()
                for sets in per_link_ends.values()
                for observation_set in sets]

    # ------------------------------------------------------------------
    # Flat buffers
    # ------------------------------------------------------------------

    @property
    def total_observable_size(self) -> int:
        return self._index.total_observable_size

    @property
    def total_number_of_observables(self) -> int:
        return self._index.total_number_of_observables

    @property
    def concatenated_observations(self) -> np.ndarray:
        return self._index.observations.copy()

    @property
    def concatenated_times(self) -> np.ndarray:
        return self._index.times.copy()

    @property
    def concatenated_link_end_ids(self) -> np.ndarray:
        return self._index.link_end_id_per_component.copy()

    @property
    def concatenated_link_ends(self) -> list[LinkEnds]:
        return list(self._index.link_ends_per_component)

    @property
    def concatenated_weights(self) -> np.ndarray:
        """Per-scalar weights, computed on first access and cached.

        Sets without weights contribute ones.

        Raises:
            WeightSizeMismatchError: If a set's weights do not fill its slice.
        """
        if self._weights is None:
            weights = np.ones(self.total_observable_size)
            for observation_set, (start, size) in zip(self.all_observation_sets(),
                                                      self._index.flat_set_indices):
                set_weights = observation_set.weights_vector
                if set_weights.size == 0:
                    continue
                if set_weights.size != size:
                    raise WeightSizeMismatchError(
                        f"{observation_set.observable_type.name} [{observation_set.link_ends}]: "
                        f"weight vector of size {set_weights.size}, slice of size {size}")
                weights[start:start + size] = set_weights
            self._weights = weights
        return self._weights.copy()

    # ------------------------------------------------------------------
    # Index tables
    # ------------------------------------------------------------------

    @property
    def observation_set_start_and_size(self) -> dict:
        """type -> link ends -> [(start, size)] per set."""
        return self._index.set_indices

    @property
    def concatenated_observation_set_start_and_size(self) -> list[tuple[int, int]]:
        return list(self._index.flat_set_indices)

    @property
    def observation_type_start_and_size(self) -> dict:
        return self._index.observable_type_indices

    @property
    def observation_set_start_and_size_per_link_end_id(self) -> dict:
        """type -> link-end id -> [(start, size)]."""
        return self._index.link_end_id_indices

    @property
    def link_end_ids(self) -> dict[LinkEnds, int]:
        return dict(self._index.link_end_ids)

    @property
    def inverse_link_end_ids(self) -> dict[int, LinkEnds]:
        return dict(self._index.inverse_link_end_ids)

    def link_ends_per_observable_type(self) -> dict[ObservableType, list[LinkEnds]]:
        return {observable_type: list(per_link_ends)
                for observable_type, per_link_ends in self._sorted_sets.items()}

    def link_definitions_per_observable(self) -> dict[ObservableType, list[LinkEnds]]:
        return {observable_type: list(definitions)
                for observable_type, definitions in self._index.link_definitions.items()}

    def sorted_observation_sets_by_link_end_id(self) -> dict[ObservableType, dict[int, list[SingleLinkObservationSet]]]:
        """type -> link-end id -> sets."""
        return {observable_type: {self._index.link_end_ids[link_ends]: list(sets)
                                  for link_ends, sets in per_link_ends.items()}
                for observable_type, per_link_ends in self._sorted_sets.items()}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def time_bounds(self) -> tuple[float, float]:
        """(earliest, latest) observation time.

        Raises:
            EmptyCollectionError: If the collection holds no observations.
        """
        if self._index.times.size == 0:
            raise EmptyCollectionError("Cannot compute time bounds of an empty observation collection")
        return float(np.min(self._index.times)), float(np.max(self._index.times))

    def single_link_and_type_observation_sets(self, observable_type: ObservableType,
                                              link_ends: LinkEnds) -> list[SingleLinkObservationSet]:
        self._check_present(observable_type, link_ends)
        return list(self._sorted_sets[observable_type][link_ends])

    def single_link_observations(self, observable_type: ObservableType,
                                 link_ends: LinkEnds) -> np.ndarray:
        """Scalar observations of all sets of one (type, link ends) pair."""
        start, size = self._link_ends_span(observable_type, link_ends)
        return self._index.observations[start:start + size].copy()

    def single_link_times(self, observable_type: ObservableType,
                          link_ends: LinkEnds) -> np.ndarray:
        """Times (per scalar component) of one (type, link ends) pair."""
        start, size = self._link_ends_span(observable_type, link_ends)
        return self._index.times[start:start + size].copy()

    def single_link_observations_and_times(self, observable_type: ObservableType,
                                           link_ends: LinkEnds) -> tuple[np.ndarray, np.ndarray]:
        return (self.single_link_observations(observable_type, link_ends),
                self.single_link_times(observable_type, link_ends))

    def _link_ends_span(self, observable_type, link_ends):
        self._check_present(observable_type, link_ends)
        per_set = self._index.set_indices[observable_type][link_ends]
        if not per_set:
            return self._index.link_ends_indices[observable_type][link_ends]
        first_start = per_set[0][0]
        last_start, last_size = per_set[-1]
        return first_start, last_start + last_size - first_start

    def _check_present(self, observable_type, link_ends):
        if observable_type not in self._sorted_sets:
            raise UnknownObservableError(
                f"Observable type {observable_type.name} not found in observation collection")
        if link_ends not in self._sorted_sets[observable_type]:
            raise UnknownLinkEndsError(
                f"Link ends [{link_ends}] not found for observable type "
                f"{observable_type.name} in observation collection")

    def __repr__(self):
        return (f"ObservationCollection({len(self._index.flat_set_indices)} sets, "
                f"{self.total_number_of_observables} observations)")
