"""
Observable types and link-end definitions.

A link-ends object names the participants of one tracking observation
(transmitter, receiver, reflectors, ...) and is used as a dictionary key
throughout the observation collection, so it is immutable and hashable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Mapping, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ObservableType(Enum):
    """Physical quantity measured by an observation."""
    ONE_WAY_RANGE = auto()
    N_WAY_RANGE = auto()
    N_WAY_DIFFERENCED_RANGE = auto()
    ONE_WAY_DOPPLER = auto()
    TWO_WAY_DOPPLER = auto()
    ONE_WAY_AVERAGED_DOPPLER = auto()
    N_WAY_AVERAGED_DOPPLER = auto()
    ANGULAR_POSITION = auto()
    RELATIVE_ANGULAR_POSITION = auto()
    POSITION_OBSERVABLE = auto()
    VELOCITY_OBSERVABLE = auto()
    EULER_ANGLE_313_OBSERVABLE = auto()

    @property
    def size(self) -> int:
        """Number of scalar components of one observation."""
        return _OBSERVABLE_SIZES.get(self, 1)


_OBSERVABLE_SIZES = {
    ObservableType.ANGULAR_POSITION: 2,
    ObservableType.RELATIVE_ANGULAR_POSITION: 2,
    ObservableType.POSITION_OBSERVABLE: 3,
    ObservableType.VELOCITY_OBSERVABLE: 3,
    ObservableType.EULER_ANGLE_313_OBSERVABLE: 3,
}


class LinkEndType(Enum):
    """Role of a participant in a link."""
    TRANSMITTER = auto()
    REFLECTOR1 = auto()
    REFLECTOR2 = auto()
    REFLECTOR3 = auto()
    REFLECTOR4 = auto()
    RECEIVER = auto()
    OBSERVED_BODY = auto()
    OBSERVER = auto()


# ---------------------------------------------------------------------------
# Link ends
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class LinkEndId:
    """A body, optionally with a reference point (station) on it.

    Attributes:
        body: Body name.
        station: Reference point name, empty for the body centre.
    """
    body: str
    station: str = ""

    def __str__(self):
        return f"{self.body}/{self.station}" if self.station else self.body


LinkEndLike = Union[LinkEndId, str, tuple]


def _as_link_end_id(value: LinkEndLike) -> LinkEndId:
    if isinstance(value, LinkEndId):
        return value
    if isinstance(value, str):
        return LinkEndId(value)
    return LinkEndId(*value)


class LinkEnds:
    """Immutable, hashable mapping of link-end role to participant.

    Roles are kept in the declaration order of ``LinkEndType`` so that two
    link-ends objects built from the same participants compare and hash
    equal regardless of construction order.

    Args:
        ends: Mapping role -> participant (``LinkEndId``, body name, or
            ``(body, station)`` tuple).
    """

    __slots__ = ("_items", "_hash")

    def __init__(self, ends: Mapping[LinkEndType, LinkEndLike]):
        order = list(LinkEndType)
        items = sorted(((role, _as_link_end_id(end)) for role, end in ends.items()),
                       key=lambda item: order.index(item[0]))
        self._items = tuple(items)
        self._hash = hash(self._items)

    @classmethod
    def one_way(cls, transmitter: LinkEndLike, receiver: LinkEndLike) -> LinkEnds:
        return cls({LinkEndType.TRANSMITTER: transmitter, LinkEndType.RECEIVER: receiver})

    @classmethod
    def two_way(cls, transmitter: LinkEndLike, reflector: LinkEndLike,
                receiver: LinkEndLike) -> LinkEnds:
        return cls({LinkEndType.TRANSMITTER: transmitter,
                    LinkEndType.REFLECTOR1: reflector,
                    LinkEndType.RECEIVER: receiver})

    def __getitem__(self, role: LinkEndType) -> LinkEndId:
        for item_role, end in self._items:
            if item_role == role:
                return end
        raise KeyError(role)

    def __contains__(self, role: object) -> bool:
        return any(item_role == role for item_role, _ in self._items)

    def __iter__(self) -> Iterator[LinkEndType]:
        return (role for role, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> tuple[tuple[LinkEndType, LinkEndId], ...]:
        return self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinkEnds):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return self._hash

    def __str__(self):
        return ", ".join(f"{role.name.lower()}: {end}" for role, end in self._items)

    def __repr__(self):
        return f"LinkEnds({self})"
