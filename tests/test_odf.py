"""Tests for processed ODF data and station frequency interpolators."""
from __future__ import annotations

import numpy as np
import pytest

from trajod.core.exceptions import FrequencyRampLookupError, InconsistentSizeError
from trajod.observations.ancillary import ObservationAncillarySettings
from trajod.observations.observables import ObservableType
from trajod.observations.odf import (
    ConstantFrequencyInterpolator, PiecewiseConstantFrequencyInterpolator,
    PiecewiseLinearFrequencyInterpolator, ProcessedOdfDopplerData, ProcessedOdfSingleLinkData,
    create_odf_ancillary_settings, merge_ramp_interpolators, separate_single_link_odf_data
)


@pytest.fixture
def doppler_data() -> ProcessedOdfDopplerData:
    return ProcessedOdfDopplerData(
        observable_type=ObservableType.TWO_WAY_DOPPLER,
        transmitting_station="DSS-14",
        receiving_station="DSS-14",
        observation_times=[0.0, 60.0, 120.0, 180.0],
        observable_values=[1.0, 2.0, 3.0, 4.0],
        receiver_downlink_delays=[1e-6, 1e-6, 1e-6, 1e-6],
        receiver_channels=[1, 1, 1, 1],
        reference_frequencies=[7.1e9, 7.1e9, 7.2e9, 7.1e9],
        count_intervals=[60.0, 60.0, 60.0, 60.0],
        transmitter_uplink_delays=[2e-6, 2e-6, 2e-6, 2e-6],
        receiver_ramping_flags=[False, False, False, False],
    )


class TestProcessedData:

    def test_generic_block(self):
        data = ProcessedOdfSingleLinkData(ObservableType.N_WAY_RANGE,
                                          observation_times=[0.0, 1.0], observable_values=[5.0, 6.0])
        assert data.number_of_observations == 2
        np.testing.assert_array_equal(np.concatenate(data.processed_observables_vector()), [5.0, 6.0])
        assert list(data.unprocessed_observables()) == [0.0, 1.0]

    def test_doppler_processed_values_not_implemented(self, doppler_data):
        with pytest.raises(NotImplementedError):
            doppler_data.processed_observables_vector()

    def test_doppler_histories(self, doppler_data):
        assert doppler_data.reference_frequency_history()[120.0] == 7.2e9
        assert doppler_data.count_interval_history()[0.0] == 60.0
        assert doppler_data.receiver_ramping_flag_history()[60.0] is False


class TestAncillarySettings:

    def test_two_delays_for_doppler(self, doppler_data):
        settings = create_odf_ancillary_settings(doppler_data, 0)
        assert settings.integration_time == 60.0
        assert settings.reference_frequency == 7.1e9
        assert settings.retransmission_delays == (2e-6, 1e-6)

    def test_three_delays_for_differenced_range(self, doppler_data):
        doppler_data.observable_type = ObservableType.N_WAY_DIFFERENCED_RANGE
        settings = create_odf_ancillary_settings(doppler_data, 1)
        assert settings.retransmission_delays == (2e-6, 0.0, 1e-6)

    def test_index_beyond_block_raises(self, doppler_data):
        with pytest.raises(IndexError):
            create_odf_ancillary_settings(doppler_data, 4)

    def test_non_doppler_block_raises(self):
        data = ProcessedOdfSingleLinkData(ObservableType.N_WAY_RANGE,
                                          observation_times=[0.0], observable_values=[1.0])
        with pytest.raises(TypeError):
            create_odf_ancillary_settings(data, 0)

    def test_separation_groups_by_first_occurrence(self, doppler_data):
        times, observables, settings = separate_single_link_odf_data(doppler_data)
        assert len(settings) == 2
        assert times == [[0.0, 60.0, 180.0], [120.0]]
        np.testing.assert_array_equal(np.concatenate(observables[0]), [1.0, 2.0, 4.0])
        assert settings[1] == ObservationAncillarySettings(
            integration_time=60.0, reference_frequency=7.2e9, retransmission_delays=(2e-6, 1e-6))


class TestFrequencyInterpolators:

    @pytest.fixture
    def ramps(self) -> PiecewiseLinearFrequencyInterpolator:
        return PiecewiseLinearFrequencyInterpolator(
            start_times=[0.0, 100.0], end_times=[100.0, 200.0],
            ramp_rates=[1.0, -2.0], start_frequencies=[1000.0, 1100.0])

    def test_constant(self):
        interpolator = ConstantFrequencyInterpolator(8.4e9)
        assert interpolator.current_frequency(123.0) == 8.4e9
        assert interpolator.averaged_frequency_integral(0.0, 10.0) == pytest.approx(8.4e9)

    def test_linear_ramp_lookup(self, ramps):
        assert ramps.current_frequency(50.0) == pytest.approx(1050.0)
        assert ramps.current_frequency(150.0) == pytest.approx(1000.0)

    def test_lookup_outside_table_raises(self, ramps):
        with pytest.raises(FrequencyRampLookupError):
            ramps.current_frequency(250.0)
        with pytest.raises(FrequencyRampLookupError):
            ramps.current_frequency(-1.0)

    def test_integral_across_ramps(self, ramps):
        # 0-100: mean 1050; 100-150: mean 1050
        assert ramps.frequency_integral(0.0, 150.0) == pytest.approx(1050.0 * 150.0)

    def test_mismatched_table_raises(self):
        with pytest.raises(InconsistentSizeError):
            PiecewiseLinearFrequencyInterpolator([0.0], [1.0, 2.0], [0.0], [1.0])

    def test_merge_sorts_ramps(self):
        late = PiecewiseLinearFrequencyInterpolator([100.0], [200.0], [0.0], [2.0])
        early = PiecewiseLinearFrequencyInterpolator([0.0], [100.0], [0.0], [1.0])
        merged = merge_ramp_interpolators([late, early])
        np.testing.assert_array_equal(merged.start_times, [0.0, 100.0])
        assert merged.current_frequency(150.0) == 2.0

    def test_piecewise_constant(self):
        interpolator = PiecewiseConstantFrequencyInterpolator([1.0, 2.0, 3.0], [0.0, 10.0, 20.0], 10.0)
        assert interpolator.current_frequency(4.0) == 1.0
        assert interpolator.current_frequency(5.0) == 1.0
        assert interpolator.current_frequency(6.0) == 2.0
        assert interpolator.current_frequency(30.0) == 3.0
        assert interpolator.averaged_frequency_integral(5.0, 15.0) == 2.0
        with pytest.raises(ValueError):
            interpolator.averaged_frequency_integral(5.0, 25.0)
        with pytest.raises(NotImplementedError):
            interpolator.frequency_integral(5.0, 15.0)
