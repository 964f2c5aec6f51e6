"""Edge-triggered door state tracking.

This module intentionally contains *no* payload parsing; callers hand it
:class:`~pytailwind.state.events.DoorObservation` instances that already
belong to the tracked door.
"""

from __future__ import annotations

import logging

from pytailwind.state.events import DoorObservation, DoorState, DoorTrigger, ObservationSource

_logger = logging.getLogger(__name__)


class DoorStateTracker:
    """Holds ``last_known`` for one door and decides when an edge fires.

    The same instance is shared by the poll and push paths, so whichever
    channel reports a transition first establishes the new baseline and the
    other channel's identical report is a no-op.
    """

    def __init__(self, door_index: int) -> None:
        self._door_index = door_index
        self._last_known = DoorState.UNKNOWN

    @property
    def door_index(self) -> int:
        return self._door_index

    @property
    def last_known(self) -> DoorState:
        return self._last_known

    def apply(self, observation: DoorObservation, source: ObservationSource) -> DoorTrigger | None:
        """Merge *observation* and return the edge trigger to fire, if any.

        The first observation only establishes the baseline.
        """
        if observation.closed is DoorState.UNKNOWN:
            return None

        previous = self._last_known
        if previous is DoorState.UNKNOWN:
            self._last_known = observation.closed
            _logger.debug("Door %d baseline %s via %s", self._door_index, observation.closed.name, source)
            return None
        if observation.closed is previous:
            return None

        self._last_known = observation.closed
        _logger.debug(
            "Door %d %s -> %s via %s",
            self._door_index,
            previous.name,
            observation.closed.name,
            source,
        )
        return DoorTrigger.CLOSED if observation.closed is DoorState.CLOSED else DoorTrigger.OPENED
