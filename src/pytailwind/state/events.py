"""Normalized door observations.

Both ingestion paths (poll, push) convert their payloads into
:class:`DoorObservation`. Only :mod:`pytailwind.state.tracker` is allowed
to merge them.
"""

from __future__ import annotations

import enum
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ObservationSource(StrEnum):
    POLL = "poll"
    PUSH = "push"


class DoorState(enum.IntEnum):
    """Tri-state closed flag.

    ``UNKNOWN`` holds only until the first observation; the tracker never
    returns to it.
    """

    UNKNOWN = -1
    OPEN = 0
    CLOSED = 1

    @classmethod
    def _missing_(cls, value: object) -> DoorState:
        return cls.UNKNOWN

    @classmethod
    def from_closed(cls, closed: bool) -> DoorState:
        return cls.CLOSED if closed else cls.OPEN

    @property
    def is_closed(self) -> bool | None:
        if self is DoorState.UNKNOWN:
            return None
        return self is DoorState.CLOSED


class DoorTrigger(StrEnum):
    """Named triggers reported to the host's event surface."""

    OPENED = "door_opened"
    CLOSED = "door_closed"
    LOCKED = "door_locked"
    REBOOTED = "controller_rebooted"


class DoorObservation(BaseModel):
    """Immutable snapshot of one door from a single poll or push."""

    model_config = ConfigDict(frozen=True)

    index: int
    closed: DoorState
    locked: bool = False
    disabled: bool = False
