"""
Indexing pass over sorted observation sets.

Builds, in one deterministic pass over a nested mapping
``{observable type: {link ends: [sets]}}``, the flat concatenated buffers
and every (start, size) table used to slice them. Traversal order is
observable-type insertion order, then link-ends insertion order, then set
order. All offsets count scalar components, not samples.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

import numpy as np

from ..core.exceptions import StructuralMismatchError
from .observables import LinkEnds, ObservableType
from .single_set import SingleLinkObservationSet

logger = logging.getLogger(__name__)

SortedObservationSets = Mapping[ObservableType, Mapping[LinkEnds, Sequence[SingleLinkObservationSet]]]


@dataclass
class ObservationIndex:
    """Flat buffers and index tables of an observation collection.

    Attributes:
        total_observable_size: Number of scalar components.
        total_number_of_observables: Number of samples.
        set_indices: type -> link ends -> [(start, size)] per set.
        flat_set_indices: (start, size) of every set in traversal order.
        link_ends_indices: type -> link ends -> (start, size) spanning all
            sets of that pair.
        observable_type_indices: type -> (start, size).
        link_end_ids: link ends -> dense id, first-encountered order.
        inverse_link_end_ids: dense id -> link ends.
        link_end_id_indices: type -> link-end id -> [(start, size)].
        link_definitions: type -> link ends present, in insertion order.
        observations: Concatenated scalar observations.
        times: Time of each scalar component.
        link_end_id_per_component: Link-end id of each scalar component.
        link_ends_per_component: Link ends of each scalar component.
    """
    total_observable_size: int = 0
    total_number_of_observables: int = 0
    set_indices: dict = field(default_factory=dict)
    flat_set_indices: list = field(default_factory=list)
    link_ends_indices: dict = field(default_factory=dict)
    observable_type_indices: dict = field(default_factory=dict)
    link_end_ids: dict = field(default_factory=dict)
    inverse_link_end_ids: dict = field(default_factory=dict)
    link_end_id_indices: dict = field(default_factory=dict)
    link_definitions: dict = field(default_factory=dict)
    observations: np.ndarray = field(default_factory=lambda: np.zeros(0))
    times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    link_end_id_per_component: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    link_ends_per_component: list = field(default_factory=list)


def build_observation_index(sorted_sets: SortedObservationSets) -> ObservationIndex:
    """Compute the flat buffers and index tables of a nested set mapping.

    Args:
        sorted_sets: type -> link ends -> ordered list of sets.

    Returns:
        ObservationIndex. For consecutive entries of ``flat_set_indices``,
        ``start[k + 1] == start[k] + size[k]``, and the sizes sum to
        ``total_observable_size``.

    Raises:
        StructuralMismatchError: If a set's type or link ends differ from
            the key it is stored under.
    """
    index = ObservationIndex()
    observation_chunks = []
    time_chunks = []
    id_chunks = []
    start = 0

    for observable_type, per_link_ends in sorted_sets.items():
        type_start = start
        index.set_indices[observable_type] = {}
        index.link_ends_indices[observable_type] = {}
        index.link_end_id_indices[observable_type] = {}
        index.link_definitions[observable_type] = []

        for link_ends, observation_sets in per_link_ends.items():
            if link_ends not in index.link_end_ids:
                new_id = len(index.link_end_ids)
                index.link_end_ids[link_ends] = new_id
                index.inverse_link_end_ids[new_id] = link_ends
            link_end_id = index.link_end_ids[link_ends]
            index.link_definitions[observable_type].append(link_ends)

            link_ends_start = start
            per_set = []
            for observation_set in observation_sets:
                if observation_set.observable_type != observable_type:
                    raise StructuralMismatchError(
                        f"Set of type {observation_set.observable_type.name} stored "
                        f"under observable type {observable_type.name}")
                if observation_set.link_ends != link_ends:
                    raise StructuralMismatchError(
                        f"Set with link ends [{observation_set.link_ends}] stored "
                        f"under link ends [{link_ends}] for {observable_type.name}")

                size = observation_set.total_observable_size
                per_set.append((start, size))
                index.flat_set_indices.append((start, size))
                index.total_number_of_observables += observation_set.number_of_observables

                observation_chunks.append(observation_set.observations_vector())
                time_chunks.append(np.repeat(np.asarray(observation_set.observation_times, dtype=float),
                                             observation_set.single_observable_size))
                id_chunks.append(np.full(size, link_end_id, dtype=int))
                index.link_ends_per_component.extend([link_ends] * size)
                start += size

            index.set_indices[observable_type][link_ends] = per_set
            index.link_ends_indices[observable_type][link_ends] = (link_ends_start, start - link_ends_start)
            index.link_end_id_indices[observable_type].setdefault(link_end_id, []).extend(per_set)

        index.observable_type_indices[observable_type] = (type_start, start - type_start)

    index.total_observable_size = start
    if observation_chunks:
        index.observations = np.concatenate(observation_chunks)
        index.times = np.concatenate(time_chunks)
        index.link_end_id_per_component = np.concatenate(id_chunks)

    logger.debug("Indexed %d observation sets: %d samples, %d scalar components, %d link ends",
                 len(index.flat_set_indices), index.total_number_of_observables,
                 index.total_observable_size, len(index.link_end_ids))
    return index
