"""
Processing of observation sets and collections.

Residuals, arc splitting, outlier filtering and dependent-variable
queries. Every function returns new sets or collections; inputs are never
modified.

Removal plans have the form ``{observable type: {link ends: [indices of
set 0, indices of set 1, ...]}}``, with zero-based sample indices.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping, Optional, Sequence, Union

import numpy as np

from ..core.exceptions import SizeMismatchError, StructuralMismatchError, TimeMismatchError
from .ancillary import ObservationAncillarySettings
from .collection import ObservationCollection
from .dependent_variables import DependentVariableSettings
from .observables import LinkEnds, LinkEndType, ObservableType
from .single_set import SingleLinkObservationSet

logger = logging.getLogger(__name__)

RemovalPlan = Mapping[ObservableType, Mapping[LinkEnds, Sequence[Sequence[int]]]]


# =============================================================================
# Residuals
# =============================================================================

def create_residual_observation_set(observed: SingleLinkObservationSet,
                                    computed: SingleLinkObservationSet) -> SingleLinkObservationSet:
    """Observed minus computed, sample by sample.

    The residual set keeps the observed set's times, reference link end,
    ancillary settings and weights. Dependent variables are not carried.

    Raises:
        StructuralMismatchError: If observable type, reference link end,
            link ends or sample count differ.
        TimeMismatchError: If any pair of sample times is not identical.
    """
    if observed.observable_type != computed.observable_type:
        raise StructuralMismatchError(
            f"Cannot compute residuals, observable types differ: "
            f"{observed.observable_type.name}, {computed.observable_type.name}")
    if observed.reference_link_end != computed.reference_link_end:
        raise StructuralMismatchError(
            f"Cannot compute residuals of {observed.observable_type.name}, reference link ends differ: "
            f"{observed.reference_link_end.name}, {computed.reference_link_end.name}")
    if observed.link_ends != computed.link_ends:
        raise StructuralMismatchError(
            f"Cannot compute residuals of {observed.observable_type.name}, link ends differ: "
            f"[{observed.link_ends}], [{computed.link_ends}]")
    if observed.number_of_observables != computed.number_of_observables:
        raise StructuralMismatchError(
            f"Cannot compute residuals of {observed.observable_type.name} [{observed.link_ends}], "
            f"number of observations differ: {observed.number_of_observables}, "
            f"{computed.number_of_observables}")

    observed_times = observed.observation_times
    computed_times = computed.observation_times
    residuals = []
    for i, (observed_time, computed_time) in enumerate(zip(observed_times, computed_times)):
        if observed_time != computed_time:
            raise TimeMismatchError(
                f"Cannot compute residuals of {observed.observable_type.name} [{observed.link_ends}], "
                f"observation time of index {i} differs: {observed_time!r}, {computed_time!r}")
        residuals.append(observed.observation(i) - computed.observation(i))

    residual_set = SingleLinkObservationSet(
        observed.observable_type, observed.link_ends, residuals, observed_times,
        observed.reference_link_end, ancillary_settings=observed.ancillary_settings)
    weights = observed.weights_vector
    if weights.size:
        residual_set.set_weights_vector(weights)
    return residual_set


def create_residual_collection(observed: ObservationCollection,
                               computed: ObservationCollection) -> ObservationCollection:
    """Residual collection of two structurally identical collections.

    Raises:
        StructuralMismatchError: If the collections differ in observable
            types, link ends or number of sets, or any paired sets differ.
        TimeMismatchError: If paired sample times are not identical.
    """
    computed_sets = computed.sorted_observation_sets
    residual_sets: dict = {}
    for observable_type, per_link_ends in observed.sorted_observation_sets.items():
        if observable_type not in computed_sets:
            raise StructuralMismatchError(
                f"Cannot compute residuals, computed data has no {observable_type.name} observations")
        residual_sets[observable_type] = {}
        for link_ends, observed_list in per_link_ends.items():
            computed_list = computed_sets[observable_type].get(link_ends)
            if computed_list is None or len(computed_list) != len(observed_list):
                raise StructuralMismatchError(
                    f"Cannot compute residuals of {observable_type.name} [{link_ends}], "
                    f"{len(observed_list)} observed sets but "
                    f"{0 if computed_list is None else len(computed_list)} computed sets")
            residual_sets[observable_type][link_ends] = [
                create_residual_observation_set(observed_set, computed_set)
                for observed_set, computed_set in zip(observed_list, computed_list)
            ]
    return ObservationCollection(residual_sets)


# =============================================================================
# Arc splitting
# =============================================================================

def split_single_observation_set_into_arcs(observation_set: SingleLinkObservationSet,
                                           arc_split_interval: float,
                                           minimum_number_of_observations: int
                                           ) -> Iterator[SingleLinkObservationSet]:
    """Yield the contiguous arcs of a time-ordered set.

    A new arc starts wherever two consecutive samples are more than
    ``arc_split_interval`` apart. Arcs with ``minimum_number_of_observations``
    samples or fewer are dropped.

    Args:
        observation_set: Set to split.
        arc_split_interval: Largest gap within one arc [s].
        minimum_number_of_observations: Arcs must hold strictly more samples.

    Yields:
        New sets keeping type, link ends, reference link end, calculator and
        ancillary settings of the original.
    """
    times = observation_set.observation_times
    boundaries = [0]
    for i in range(1, len(times)):
        if times[i] - times[i - 1] > arc_split_interval:
            boundaries.append(i)
    boundaries.append(len(times))

    for arc_start, arc_end in zip(boundaries[:-1], boundaries[1:]):
        if arc_end - arc_start > minimum_number_of_observations:
            yield observation_set.select_samples(range(arc_start, arc_end))


def split_observation_sets_into_arcs(collection: ObservationCollection,
                                     arc_split_interval: float,
                                     minimum_number_of_observations: int) -> ObservationCollection:
    """New collection with every set split into arcs."""
    split_sets: dict = {}
    for observable_type, per_link_ends in collection.sorted_observation_sets.items():
        split_sets[observable_type] = {}
        for link_ends, observation_sets in per_link_ends.items():
            arcs = []
            for observation_set in observation_sets:
                arcs.extend(split_single_observation_set_into_arcs(
                    observation_set, arc_split_interval, minimum_number_of_observations))
            split_sets[observable_type][link_ends] = arcs
            logger.debug("Split %d %s sets [%s] into %d arcs", len(observation_sets),
                         observable_type.name, link_ends, len(arcs))
    return ObservationCollection(split_sets)


# =============================================================================
# Filtering
# =============================================================================

def get_observation_collection_entries_to_filter(collection: ObservationCollection,
                                                 residuals: np.ndarray,
                                                 residual_cutoffs: Mapping[ObservableType, float]) -> dict:
    """Removal plan of samples with any residual component beyond a cutoff.

    Args:
        collection: Collection the residuals belong to.
        residuals: Residual per scalar component, in collection order.
        residual_cutoffs: Largest allowed absolute residual per observable
            type. Types without a cutoff are not filtered.

    Returns:
        Removal plan ``{type: {link ends: [[indices], ...]}}``.

    Raises:
        SizeMismatchError: If ``residuals`` does not match the collection.
    """
    residuals = np.asarray(residuals, dtype=float).ravel()
    if residuals.size != collection.total_observable_size:
        raise SizeMismatchError(
            f"Residual vector of size {residuals.size} does not match observation "
            f"collection of size {collection.total_observable_size}")

    plan: dict = {}
    start_and_size = collection.observation_set_start_and_size
    for observable_type, per_link_ends in collection.sorted_observation_sets.items():
        if observable_type not in residual_cutoffs:
            continue
        cutoff = residual_cutoffs[observable_type]
        plan[observable_type] = {}
        for link_ends, observation_sets in per_link_ends.items():
            per_set = []
            for i, observation_set in enumerate(observation_sets):
                start, size = start_and_size[observable_type][link_ends][i]
                if size != observation_set.total_observable_size:
                    raise SizeMismatchError(
                        f"Residual slice of size {size} does not match {observable_type.name} "
                        f"[{link_ends}] set {i} of size {observation_set.total_observable_size}")
                set_residuals = residuals[start:start + size].reshape(
                    observation_set.number_of_observables, observable_type.size)
                outliers = np.any(np.abs(set_residuals) > cutoff, axis=1)
                per_set.append([int(j) for j in np.flatnonzero(outliers)])
            plan[observable_type][link_ends] = per_set
    return plan


def filter_data(collection: ObservationCollection, plan: RemovalPlan) -> ObservationCollection:
    """Apply a removal plan; sets absent from the plan are kept as they are.

    Raises:
        SizeMismatchError: If the plan names an observable type or link ends
            not in the collection, or lists a different number of sets.
    """
    filtered = collection.sorted_observation_sets
    removed = 0
    for observable_type, per_link_ends in plan.items():
        if observable_type not in filtered:
            raise SizeMismatchError(
                f"Cannot filter {observable_type.name} observations, not present in collection")
        for link_ends, per_set in per_link_ends.items():
            if link_ends not in filtered[observable_type]:
                raise SizeMismatchError(
                    f"Cannot filter {observable_type.name} observations with link ends "
                    f"[{link_ends}], not present in collection")
            observation_sets = filtered[observable_type][link_ends]
            if len(per_set) != len(observation_sets):
                raise SizeMismatchError(
                    f"Cannot filter {observable_type.name} [{link_ends}]: "
                    f"{len(per_set)} index lists for {len(observation_sets)} observation sets")
            filtered[observable_type][link_ends] = [
                observation_set.create_filtered_observation_set(indices) if len(indices) else observation_set
                for observation_set, indices in zip(observation_sets, per_set)
            ]
            removed += sum(len(set(indices)) for indices in per_set)
    logger.debug("Filtered %d observations", removed)
    return ObservationCollection(filtered)


def filter_observed_and_computed_data(observed: ObservationCollection,
                                      computed: ObservationCollection,
                                      residual_cutoffs: Mapping[ObservableType, float]
                                      ) -> tuple[ObservationCollection, ObservationCollection]:
    """Filter observed and computed data with one shared removal plan.

    Returns:
        (filtered observed, filtered computed), still index-aligned.
    """
    if observed.total_observable_size != computed.total_observable_size:
        raise SizeMismatchError(
            f"Observed data of size {observed.total_observable_size} and computed data "
            f"of size {computed.total_observable_size} cannot be differenced")
    residuals = observed.concatenated_observations - computed.concatenated_observations
    plan = get_observation_collection_entries_to_filter(observed, residuals, residual_cutoffs)
    return filter_data(observed, plan), filter_data(computed, plan)


def filter_residual_outliers(observed: ObservationCollection,
                             residuals: ObservationCollection,
                             residual_cutoffs: Mapping[ObservableType, float]) -> ObservationCollection:
    """Filter observed data using a residual collection of the same structure."""
    if observed.total_observable_size != residuals.total_observable_size:
        raise SizeMismatchError(
            f"Observed data of size {observed.total_observable_size} and residuals "
            f"of size {residuals.total_observable_size} differ")
    plan = get_observation_collection_entries_to_filter(
        observed, residuals.concatenated_observations, residual_cutoffs)
    return filter_data(observed, plan)


# =============================================================================
# Dependent variables
# =============================================================================

def get_observation_list_with_dependent_variables(
        observations: Union[ObservationCollection, Sequence[SingleLinkObservationSet]],
        dependent_variable: DependentVariableSettings,
        observable_type: Optional[ObservableType] = None,
        link_ends: Optional[LinkEnds] = None) -> list[SingleLinkObservationSet]:
    """Sets whose dependent-variable calculator computes ``dependent_variable``.

    Args:
        observations: Collection, or a plain list of sets.
        dependent_variable: Variable to look for.
        observable_type: Restrict a collection to one type.
        link_ends: Restrict a collection to one link-ends tuple.
    """
    if isinstance(observations, ObservationCollection):
        candidates = []
        for current_type, per_link_ends in observations.sorted_observation_sets.items():
            if observable_type is not None and current_type != observable_type:
                continue
            for current_link_ends, observation_sets in per_link_ends.items():
                if link_ends is not None and current_link_ends != link_ends:
                    continue
                candidates.extend(observation_sets)
    else:
        candidates = list(observations)

    return [observation_set for observation_set in candidates
            if observation_set.dependent_variable_calculator is not None
            and observation_set.dependent_variable_calculator.indices(dependent_variable)[1] != 0]


def get_dependent_variable_result_per_observation_set(
        collection: ObservationCollection,
        dependent_variable: DependentVariableSettings,
        observable_type: Optional[ObservableType] = None,
        link_ends: Optional[LinkEnds] = None) -> list[dict[float, np.ndarray]]:
    """``{time: value}`` of one dependent variable, one map per set."""
    results = []
    for observation_set in get_observation_list_with_dependent_variables(
            collection, dependent_variable, observable_type, link_ends):
        start, size = observation_set.dependent_variable_calculator.indices(dependent_variable)
        results.append({t: values[start:start + size]
                        for t, values in observation_set.dependent_variable_history().items()})
    return results


def get_dependent_variable_result_list(
        collection: ObservationCollection,
        dependent_variable: DependentVariableSettings,
        observable_type: Optional[ObservableType] = None,
        link_ends: Optional[LinkEnds] = None) -> dict[float, np.ndarray]:
    """Time-sorted ``{time: value}`` of one dependent variable over all sets."""
    merged = {}
    for history in get_dependent_variable_result_per_observation_set(
            collection, dependent_variable, observable_type, link_ends):
        merged.update(history)
    return dict(sorted(merged.items()))


# =============================================================================
# Manual creation
# =============================================================================

def create_manual_observation_collection(
        observable_type: Union[ObservableType, Sequence[SingleLinkObservationSet]],
        link_ends: Optional[LinkEnds] = None,
        observations: Optional[Sequence[np.ndarray]] = None,
        observation_times: Optional[Sequence[float]] = None,
        reference_link_end: Optional[LinkEndType] = None,
        ancillary_settings: Optional[ObservationAncillarySettings] = None) -> ObservationCollection:
    """Collection from one series of observations, or from a list of sets.

    Either pass a list of sets as the only argument, or pass observable
    type, link ends, observations, times and reference link end to build a
    collection holding a single set.
    """
    if not isinstance(observable_type, ObservableType):
        return ObservationCollection(list(observable_type))

    if link_ends is None or observations is None or observation_times is None or reference_link_end is None:
        raise TypeError("link_ends, observations, observation_times and reference_link_end are required "
                        "when creating a collection from a single series of observations")
    observation_set = SingleLinkObservationSet(
        observable_type, link_ends, observations, observation_times, reference_link_end,
        ancillary_settings=ancillary_settings)
    return ObservationCollection({observable_type: {link_ends: [observation_set]}})
