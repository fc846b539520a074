"""
Ancillary settings attached to an observation set.

Settings are value objects: two sets of settings with the same contents
compare and hash equal, which is what grouping of raw tracking samples by
settings relies on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class FrequencyBand(Enum):
    """Radio frequency band of a tracking link."""
    S_BAND = auto()
    X_BAND = auto()
    KA_BAND = auto()
    KU_BAND = auto()


@dataclass(frozen=True)
class ObservationAncillarySettings:
    """Per-set settings needed to simulate or process an observable.

    Attributes:
        integration_time: Doppler count interval [s].
        frequency_bands: Uplink/downlink band per link leg.
        reference_frequency: Reference frequency [Hz].
        retransmission_delays: Delay per link-end retransmission [s].
    """
    integration_time: Optional[float] = None
    frequency_bands: tuple[FrequencyBand, ...] = ()
    reference_frequency: Optional[float] = None
    retransmission_delays: tuple[float, ...] = ()
