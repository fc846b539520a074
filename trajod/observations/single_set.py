"""
Single-link observation sets.

A SingleLinkObservationSet holds one time-ordered series of observations
of one observable type over one link-ends tuple, with optional per-sample
dependent variables, a dependent-variable calculator and ancillary
settings. Sets are data holders: filtering and slicing return new sets.

Out-of-order input is re-sorted by time with a stable sort, so each
observation keeps its own time and dependent-variable entry.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..core.exceptions import (
    IncompatibleDependentVariableCalculatorError, InconsistentSizeError,
    SequencingError, WeightSizeMismatchError
)
from .ancillary import ObservationAncillarySettings
from .dependent_variables import ObservationDependentVariableCalculator
from .observables import LinkEnds, LinkEndType, ObservableType

logger = logging.getLogger(__name__)


def _time_order(times: Sequence[float]) -> Optional[list[int]]:
    """Stable permutation sorting ``times``, None when already sorted."""
    if all(times[i - 1] <= times[i] for i in range(1, len(times))):
        return None
    return sorted(range(len(times)), key=lambda i: times[i])


class SingleLinkObservationSet:
    """Observations of one observable type over one link-ends tuple.

    Args:
        observable_type: Observable measured by every sample.
        link_ends: Participants of the link.
        observations: One vector per sample, each of ``observable_type.size``.
        observation_times: Epoch per sample [s].
        reference_link_end: Link end whose clock tags the samples.
        dependent_variables: Optional vector per sample.
        dependent_variable_calculator: Optional layout of the dependent
            variables; must belong to the same type and link ends.
        ancillary_settings: Optional settings shared by all samples.

    Raises:
        IncompatibleDependentVariableCalculatorError: If the calculator was
            built for another observable type or link ends.
        InconsistentSizeError: If observation, time and dependent-variable
            counts disagree or observation vectors differ in size.
    """

    def __init__(self,
                 observable_type: ObservableType,
                 link_ends: LinkEnds,
                 observations: Sequence[np.ndarray],
                 observation_times: Sequence[float],
                 reference_link_end: LinkEndType,
                 dependent_variables: Optional[Sequence[np.ndarray]] = None,
                 dependent_variable_calculator: Optional[ObservationDependentVariableCalculator] = None,
                 ancillary_settings: Optional[ObservationAncillarySettings] = None):
        if dependent_variable_calculator is not None:
            if dependent_variable_calculator.observable_type != observable_type:
                raise IncompatibleDependentVariableCalculatorError(
                    f"Dependent variable calculator has observable type "
                    f"{dependent_variable_calculator.observable_type.name}, "
                    f"observation set has {observable_type.name}")
            if dependent_variable_calculator.link_ends != link_ends:
                raise IncompatibleDependentVariableCalculatorError(
                    f"Dependent variable calculator has link ends "
                    f"[{dependent_variable_calculator.link_ends}], "
                    f"observation set has [{link_ends}]")

        observations = [np.atleast_1d(np.asarray(obs, dtype=float)).copy()
                        for obs in observations]
        times = [float(t) for t in observation_times]
        dependent = [np.atleast_1d(np.asarray(dv, dtype=float)).copy()
                     for dv in (dependent_variables if dependent_variables is not None else [])]

        if len(observations) != len(times):
            raise InconsistentSizeError(
                f"{observable_type.name} [{link_ends}]: {len(observations)} observations "
                f"but {len(times)} observation times")
        for i in range(1, len(observations)):
            if observations[i].shape != observations[i - 1].shape:
                raise InconsistentSizeError(
                    f"{observable_type.name} [{link_ends}]: observation {i} has size "
                    f"{observations[i].size}, observation {i - 1} has size "
                    f"{observations[i - 1].size}")
        if observations and observations[0].size != observable_type.size:
            raise InconsistentSizeError(
                f"{observable_type.name} [{link_ends}]: observations have size "
                f"{observations[0].size}, observable size is {observable_type.size}")
        if dependent and len(dependent) != len(times):
            raise InconsistentSizeError(
                f"{observable_type.name} [{link_ends}]: {len(dependent)} dependent "
                f"variable vectors for {len(times)} observations")

        order = _time_order(times)
        if order is not None:
            observations = [observations[i] for i in order]
            times = [times[i] for i in order]
            if dependent:
                dependent = [dependent[i] for i in order]
            logger.debug("Re-sorted %d %s observations by time", len(times), observable_type.name)

        self._observable_type = observable_type
        self._link_ends = link_ends
        self._observations = observations
        self._times = times
        self._reference_link_end = reference_link_end
        self._dependent_variables = dependent
        self._dependent_variable_calculator = dependent_variable_calculator
        self._ancillary_settings = ancillary_settings
        self._weights = np.zeros(0)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def observable_type(self) -> ObservableType:
        return self._observable_type

    @property
    def link_ends(self) -> LinkEnds:
        return self._link_ends

    @property
    def reference_link_end(self) -> LinkEndType:
        return self._reference_link_end

    @property
    def dependent_variable_calculator(self) -> Optional[ObservationDependentVariableCalculator]:
        return self._dependent_variable_calculator

    @property
    def ancillary_settings(self) -> Optional[ObservationAncillarySettings]:
        return self._ancillary_settings

    @property
    def number_of_observables(self) -> int:
        """Number of samples (not scalar components)."""
        return len(self._times)

    @property
    def single_observable_size(self) -> int:
        return self._observable_type.size

    @property
    def total_observable_size(self) -> int:
        """Number of scalar components over all samples."""
        return self.number_of_observables * self.single_observable_size

    @property
    def observations(self) -> list[np.ndarray]:
        return [obs.copy() for obs in self._observations]

    @property
    def observation_times(self) -> list[float]:
        return list(self._times)

    @property
    def dependent_variables(self) -> list[np.ndarray]:
        return [dv.copy() for dv in self._dependent_variables]

    def observation(self, index: int) -> np.ndarray:
        if not 0 <= index < self.number_of_observables:
            raise IndexError(
                f"Observation index {index} out of bounds for set of "
                f"{self.number_of_observables} observations")
        return self._observations[index].copy()

    def observations_vector(self) -> np.ndarray:
        """All observations concatenated into one flat vector."""
        if not self._observations:
            return np.zeros(0)
        return np.concatenate(self._observations)

    def observation_time_pairs(self) -> list[tuple[float, np.ndarray]]:
        """Time-ordered ``(time, observation)`` pairs, duplicates kept."""
        return [(t, obs.copy()) for t, obs in zip(self._times, self._observations)]

    def observations_history(self) -> dict[float, np.ndarray]:
        """Time-ordered ``{time: observation}`` map; later samples win on equal times."""
        return {t: obs.copy() for t, obs in zip(self._times, self._observations)}

    def dependent_variable_history(self) -> dict[float, np.ndarray]:
        """Time-ordered ``{time: dependent variables}`` map."""
        return {t: dv.copy() for t, dv in zip(self._times, self._dependent_variables)}

    def processed_observables_vector(self) -> np.ndarray:
        """Observables as used by estimation; identity for generic sets."""
        return self.observations_vector()

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    @property
    def weights_vector(self) -> np.ndarray:
        """Per-scalar weights, empty until set."""
        return self._weights.copy()

    def set_weights_vector(self, weights: Sequence[float]):
        """Set per-scalar weights, once per set.

        Collections cache the concatenated weights of their sets, so a set's
        weights cannot be replaced after they were first set.

        Raises:
            SequencingError: If the weights were already set.
            WeightSizeMismatchError: If the length is not
                number_of_observables x observable size.
        """
        if self._weights.size:
            raise SequencingError(
                f"{self._observable_type.name} [{self._link_ends}]: weights already set")
        weights = np.asarray(weights, dtype=float).ravel()
        if weights.size != self.total_observable_size:
            raise WeightSizeMismatchError(
                f"{self._observable_type.name} [{self._link_ends}]: weight vector of "
                f"size {weights.size}, expected {self.total_observable_size} "
                f"({self.number_of_observables} observations x {self.single_observable_size})")
        self._weights = weights.copy()

    # ------------------------------------------------------------------
    # Derived sets
    # ------------------------------------------------------------------

    def create_filtered_observation_set(self, indices: Sequence[int]) -> SingleLinkObservationSet:
        """New set without the samples at the given zero-based indices.

        Duplicate indices are removed once. Retained samples keep their
        order, dependent variables and weights.

        Raises:
            IndexError: If an index is out of range.
        """
        n = self.number_of_observables
        to_remove = set()
        for index in indices:
            if not 0 <= index < n:
                raise IndexError(
                    f"Cannot filter observation {index} from {self._observable_type.name} "
                    f"[{self._link_ends}] set of {n} observations")
            to_remove.add(int(index))
        keep = [i for i in range(n) if i not in to_remove]
        return self.select_samples(keep)

    def select_samples(self, keep: Sequence[int]) -> SingleLinkObservationSet:
        """New set holding only the samples at ``keep`` (ascending)."""
        subset = self._new_like(
            keep,
            [self._observations[i] for i in keep],
            [self._times[i] for i in keep],
            [self._dependent_variables[i] for i in keep] if self._dependent_variables else None,
        )
        if self._weights.size:
            per_sample = self._weights.reshape(self.number_of_observables, -1)
            subset._weights = per_sample[list(keep)].ravel()
        return subset

    def _new_like(self, keep, observations, times, dependent_variables) -> SingleLinkObservationSet:
        return SingleLinkObservationSet(
            self._observable_type, self._link_ends, observations, times,
            self._reference_link_end, dependent_variables,
            self._dependent_variable_calculator, self._ancillary_settings)

    def __repr__(self):
        return (f"{type(self).__name__}({self._observable_type.name}, [{self._link_ends}], "
                f"{self.number_of_observables} observations)")


class DopplerObservationSet(SingleLinkObservationSet):
    """Doppler observation set with per-sample radiometric metadata.

    Args:
        receiver_ramping_flags: Whether the receiver ramps, per sample.
        reference_frequencies: Reference frequency per sample [Hz].
        count_intervals: Doppler count interval per sample [s].
        transmitter_delays: Transmitter uplink delay per sample [s].
        receiver_delays: Receiver downlink delay per sample [s].

    All other arguments as for SingleLinkObservationSet.

    Raises:
        InconsistentSizeError: If a per-sample list does not have one entry
            per observation.
    """

    def __init__(self,
                 observable_type: ObservableType,
                 link_ends: LinkEnds,
                 observations: Sequence[np.ndarray],
                 observation_times: Sequence[float],
                 reference_link_end: LinkEndType,
                 receiver_ramping_flags: Sequence[bool],
                 reference_frequencies: Sequence[float],
                 count_intervals: Sequence[float],
                 transmitter_delays: Sequence[float],
                 receiver_delays: Sequence[float],
                 dependent_variables: Optional[Sequence[np.ndarray]] = None,
                 dependent_variable_calculator: Optional[ObservationDependentVariableCalculator] = None,
                 ancillary_settings: Optional[ObservationAncillarySettings] = None):
        per_sample = {
            "receiver_ramping_flags": [bool(x) for x in receiver_ramping_flags],
            "reference_frequencies": [float(x) for x in reference_frequencies],
            "count_intervals": [float(x) for x in count_intervals],
            "transmitter_delays": [float(x) for x in transmitter_delays],
            "receiver_delays": [float(x) for x in receiver_delays],
        }
        for name, values in per_sample.items():
            if len(values) != len(observation_times):
                raise InconsistentSizeError(
                    f"{observable_type.name} [{link_ends}]: {len(values)} {name} "
                    f"for {len(observation_times)} observations")

        order = _time_order([float(t) for t in observation_times])
        if order is not None:
            per_sample = {name: [values[i] for i in order] for name, values in per_sample.items()}

        super().__init__(observable_type, link_ends, observations, observation_times,
                         reference_link_end, dependent_variables,
                         dependent_variable_calculator, ancillary_settings)
        self._per_sample = per_sample

    @property
    def receiver_ramping_flags(self) -> list[bool]:
        return list(self._per_sample["receiver_ramping_flags"])

    @property
    def reference_frequencies(self) -> list[float]:
        return list(self._per_sample["reference_frequencies"])

    @property
    def count_intervals(self) -> list[float]:
        return list(self._per_sample["count_intervals"])

    @property
    def transmitter_delays(self) -> list[float]:
        return list(self._per_sample["transmitter_delays"])

    @property
    def receiver_delays(self) -> list[float]:
        return list(self._per_sample["receiver_delays"])

    def processed_observables_vector(self) -> np.ndarray:
        raise NotImplementedError(
            "Processed observables of Doppler observation sets are not implemented")

    def _new_like(self, keep, observations, times, dependent_variables) -> DopplerObservationSet:
        selected = {name: [values[i] for i in keep] for name, values in self._per_sample.items()}
        return DopplerObservationSet(
            self.observable_type, self.link_ends, observations, times,
            self.reference_link_end, dependent_variables=dependent_variables,
            dependent_variable_calculator=self.dependent_variable_calculator,
            ancillary_settings=self.ancillary_settings, **selected)
