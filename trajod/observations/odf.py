"""
Processed ODF tracking data.

Containers for already-parsed Orbit Data File blocks of one observable
type and link, station frequency interpolators built from ramp tables,
and grouping of samples into sets that share ancillary settings.

Times are taken as given (UTC seconds since J2000); time-scale
conversion of the raw tags is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from scipy.integrate import trapezoid

from ..core.exceptions import FrequencyRampLookupError, InconsistentSizeError
from .ancillary import ObservationAncillarySettings
from .observables import ObservableType

logger = logging.getLogger(__name__)


# =============================================================================
# Processed data blocks
# =============================================================================

@dataclass
class ProcessedOdfSingleLinkData:
    """Samples of one observable type between one pair of stations.

    Attributes:
        observable_type: Observable of every sample.
        transmitting_station: Uplink station name.
        receiving_station: Downlink station name.
        observation_times: Sample times [s].
        observable_values: Raw observable per sample.
        receiver_downlink_delays: Downlink delay per sample [s].
        downlink_band_ids: ODF downlink band id per sample.
        uplink_band_ids: ODF uplink band id per sample.
        reference_band_ids: ODF reference band id per sample.
        origin_files: File each sample was read from.
    """
    observable_type: ObservableType
    transmitting_station: str = ""
    receiving_station: str = ""
    observation_times: list = field(default_factory=list)
    observable_values: list = field(default_factory=list)
    receiver_downlink_delays: list = field(default_factory=list)
    downlink_band_ids: list = field(default_factory=list)
    uplink_band_ids: list = field(default_factory=list)
    reference_band_ids: list = field(default_factory=list)
    origin_files: list = field(default_factory=list)

    @property
    def number_of_observations(self) -> int:
        return len(self.observation_times)

    def unprocessed_observables_vector(self) -> list[np.ndarray]:
        return [np.atleast_1d(np.asarray(value, dtype=float)) for value in self.observable_values]

    def unprocessed_observables(self) -> dict[float, np.ndarray]:
        return dict(zip(self.observation_times, self.unprocessed_observables_vector()))

    def processed_observables_vector(self) -> list[np.ndarray]:
        return self.unprocessed_observables_vector()

    def processed_observables(self) -> dict[float, np.ndarray]:
        return dict(zip(self.observation_times, self.processed_observables_vector()))


@dataclass
class ProcessedOdfDopplerData(ProcessedOdfSingleLinkData):
    """Doppler samples with per-sample radiometric metadata.

    Attributes:
        receiver_channels: Receiver channel per sample.
        reference_frequencies: Reference frequency per sample [Hz].
        count_intervals: Doppler count interval per sample [s].
        transmitter_uplink_delays: Uplink delay per sample [s].
        receiver_ramping_flags: Whether the receiver ramps, per sample.
    """
    receiver_channels: list = field(default_factory=list)
    reference_frequencies: list = field(default_factory=list)
    count_intervals: list = field(default_factory=list)
    transmitter_uplink_delays: list = field(default_factory=list)
    receiver_ramping_flags: list = field(default_factory=list)

    def processed_observables_vector(self) -> list[np.ndarray]:
        raise NotImplementedError("Processed range-rate observables from ODF Doppler data are not implemented")

    def receiver_ramping_flag_history(self) -> dict[float, bool]:
        return dict(zip(self.observation_times, self.receiver_ramping_flags))

    def reference_frequency_history(self) -> dict[float, float]:
        return dict(zip(self.observation_times, self.reference_frequencies))

    def count_interval_history(self) -> dict[float, float]:
        return dict(zip(self.observation_times, self.count_intervals))


# =============================================================================
# Station frequency interpolators
# =============================================================================

class StationFrequencyInterpolator:
    """Transmitted frequency of a ground station as a function of time."""

    def current_frequency(self, lookup_time: float) -> float:
        raise NotImplementedError

    def frequency_integral(self, start_time: float, end_time: float) -> float:
        raise NotImplementedError

    def averaged_frequency_integral(self, start_time: float, end_time: float) -> float:
        return self.frequency_integral(start_time, end_time) / (end_time - start_time)


class ConstantFrequencyInterpolator(StationFrequencyInterpolator):

    def __init__(self, frequency: float):
        self.frequency = frequency

    def current_frequency(self, lookup_time: float) -> float:
        return self.frequency

    def frequency_integral(self, start_time: float, end_time: float) -> float:
        return self.frequency * (end_time - start_time)


class PiecewiseLinearFrequencyInterpolator(StationFrequencyInterpolator):
    """Frequency from a ramp table; each ramp is linear in time.

    Args:
        start_times: Ramp start times, ascending [s].
        end_times: Ramp end times [s].
        ramp_rates: Frequency rate per ramp [Hz/s].
        start_frequencies: Frequency at each ramp start [Hz].

    Raises:
        InconsistentSizeError: If the table columns differ in length.
    """

    def __init__(self, start_times: Sequence[float], end_times: Sequence[float],
                 ramp_rates: Sequence[float], start_frequencies: Sequence[float]):
        sizes = {len(start_times), len(end_times), len(ramp_rates), len(start_frequencies)}
        if len(sizes) != 1:
            raise InconsistentSizeError(
                f"Ramp table columns differ in length: {len(start_times)} start times, "
                f"{len(end_times)} end times, {len(ramp_rates)} rates, "
                f"{len(start_frequencies)} start frequencies")
        self.start_times = np.asarray(start_times, dtype=float)
        self.end_times = np.asarray(end_times, dtype=float)
        self.ramp_rates = np.asarray(ramp_rates, dtype=float)
        self.start_frequencies = np.asarray(start_frequencies, dtype=float)

    def current_frequency(self, lookup_time: float) -> float:
        """Frequency at ``lookup_time``.

        Raises:
            FrequencyRampLookupError: If the time is not covered by a ramp.
        """
        i = max(int(np.searchsorted(self.start_times, lookup_time, side="right")) - 1, 0)
        if self.start_times.size == 0 or not self.start_times[i] <= lookup_time <= self.end_times[i]:
            raise FrequencyRampLookupError(
                f"Look-up time {lookup_time} is outside the ramp table interval "
                f"({self.start_times[0] if self.start_times.size else float('nan')} to "
                f"{self.end_times[-1] if self.end_times.size else float('nan')})")
        return float(self.start_frequencies[i] + self.ramp_rates[i] * (lookup_time - self.start_times[i]))

    def frequency_integral(self, start_time: float, end_time: float) -> float:
        """Trapezoidal integral of the frequency over ``[start_time, end_time]``."""
        times = [start_time]
        frequencies = [self.current_frequency(start_time)]
        for ramp_start, ramp_frequency in zip(self.start_times[1:], self.start_frequencies[1:]):
            if ramp_start >= end_time:
                break
            if ramp_start > start_time:
                times.append(ramp_start)
                frequencies.append(ramp_frequency)
        times.append(end_time)
        frequencies.append(self.current_frequency(end_time))
        return float(trapezoid(frequencies, times))


def merge_ramp_interpolators(interpolators: Sequence[PiecewiseLinearFrequencyInterpolator]
                             ) -> PiecewiseLinearFrequencyInterpolator:
    """One ramp table from several, sorted by start time."""
    start_times = np.concatenate([interp.start_times for interp in interpolators])
    order = np.argsort(start_times, kind="stable")
    return PiecewiseLinearFrequencyInterpolator(
        start_times[order],
        np.concatenate([interp.end_times for interp in interpolators])[order],
        np.concatenate([interp.ramp_rates for interp in interpolators])[order],
        np.concatenate([interp.start_frequencies for interp in interpolators])[order],
    )


class PiecewiseConstantFrequencyInterpolator(StationFrequencyInterpolator):
    """Frequency constant over equal-length intervals centred on reference times.

    Args:
        frequencies: Frequency per interval [Hz].
        reference_times: Centre time per interval, ascending [s].
        time_interval_size: Length of every interval [s].
    """

    def __init__(self, frequencies: Sequence[float], reference_times: Sequence[float],
                 time_interval_size: float):
        if len(frequencies) != len(reference_times):
            raise InconsistentSizeError(
                f"{len(frequencies)} frequencies for {len(reference_times)} reference times")
        self.frequencies = np.asarray(frequencies, dtype=float)
        self.reference_times = np.asarray(reference_times, dtype=float)
        self.time_interval_size = time_interval_size

    def current_frequency(self, lookup_time: float) -> float:
        """Frequency of the nearest reference time; ties go to the earlier one."""
        lower = max(int(np.searchsorted(self.reference_times, lookup_time, side="right")) - 1, 0)
        upper = lower + 1
        if (upper == self.reference_times.size
                or lookup_time - self.reference_times[lower] <= self.reference_times[upper] - lookup_time):
            return float(self.frequencies[lower])
        return float(self.frequencies[upper])

    def frequency_integral(self, start_time: float, end_time: float) -> float:
        raise NotImplementedError("Integral of a piecewise constant frequency is not implemented")

    def averaged_frequency_integral(self, start_time: float, end_time: float) -> float:
        """Frequency of the interval ``[start_time, end_time]``.

        Raises:
            ValueError: If the span is not one of the constant intervals.
        """
        reference_time = start_time + (end_time - start_time) / 2.0
        half_interval = self.time_interval_size / 2.0
        if ((reference_time - start_time) / half_interval - 1.0 > 1e-12
                or (end_time - reference_time) / half_interval - 1.0 > 1e-12):
            raise ValueError(
                f"Interval [{start_time}, {end_time}] does not coincide with a piecewise "
                f"constant interval of size {self.time_interval_size}")
        return self.current_frequency(reference_time)


# =============================================================================
# Ancillary settings
# =============================================================================

def create_odf_ancillary_settings(data: ProcessedOdfSingleLinkData, index: int) -> ObservationAncillarySettings:
    """Ancillary settings of sample ``index`` of a Doppler block.

    N-way differenced range gets three retransmission delays (uplink, zero,
    downlink); every other observable gets two.

    Raises:
        IndexError: If ``index`` is beyond the block.
        TypeError: If the block is not Doppler data.
    """
    if index >= data.number_of_observations:
        raise IndexError(
            f"ODF data index {index} is beyond the {data.number_of_observations} samples of the block")
    if not isinstance(data, ProcessedOdfDopplerData):
        raise TypeError(f"Cannot create ancillary settings for ODF data of type {type(data).__name__}")

    if data.observable_type == ObservableType.N_WAY_DIFFERENCED_RANGE:
        delays = (data.transmitter_uplink_delays[index], 0.0, data.receiver_downlink_delays[index])
    else:
        delays = (data.transmitter_uplink_delays[index], data.receiver_downlink_delays[index])

    return ObservationAncillarySettings(
        integration_time=data.count_intervals[index],
        reference_frequency=data.reference_frequencies[index],
        retransmission_delays=tuple(float(d) for d in delays),
    )


def separate_single_link_odf_data(data: ProcessedOdfSingleLinkData
                                  ) -> tuple[list[list[float]], list[list[np.ndarray]],
                                             list[ObservationAncillarySettings]]:
    """Group the samples of one block by equal ancillary settings.

    Groups appear in order of first occurrence; samples keep their order
    within a group. Observables are the raw block values.

    Returns:
        (times per group, observables per group, settings per group).
    """
    times: list[list[float]] = []
    observables: list[list[np.ndarray]] = []
    settings: list[ObservationAncillarySettings] = []
    group_of = {}

    values = data.unprocessed_observables_vector()
    for i in range(data.number_of_observations):
        current = create_odf_ancillary_settings(data, i)
        if current not in group_of:
            group_of[current] = len(settings)
            settings.append(current)
            times.append([])
            observables.append([])
        group = group_of[current]
        times[group].append(float(data.observation_times[i]))
        observables[group].append(values[i])

    logger.debug("Separated %d %s samples (%s -> %s) into %d ancillary groups",
                 data.number_of_observations, data.observable_type.name,
                 data.transmitting_station, data.receiving_station, len(settings))
    return times, observables, settings
