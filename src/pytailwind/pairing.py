"""Enumerate the doors of a controller for pairing."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from pytailwind._constants import (
    RESULT_OK,
    STORE_CONTROLLER_HOST,
    STORE_DISCOVERY_ID,
    STORE_DOOR_INDEX,
    STORE_LOCAL_KEY,
)
from pytailwind.client import TailwindClient
from pytailwind.exceptions import TailwindConnectivityError, TailwindError, TailwindPairingError
from pytailwind.models.status import ControllerStatus

_logger = logging.getLogger(__name__)


class PairedDoor(BaseModel):
    """A door entity the host can create."""

    model_config = ConfigDict(frozen=True)

    name: str
    id: str
    host: str
    local_key: str
    door_index: int
    discovery_id: str | None = None

    def store_values(self) -> dict[str, Any]:
        """Initial store values for the created entity."""
        return {
            STORE_CONTROLLER_HOST: self.host,
            STORE_LOCAL_KEY: self.local_key,
            STORE_DOOR_INDEX: self.door_index,
            STORE_DISCOVERY_ID: self.discovery_id,
        }


async def list_doors(
    client: TailwindClient,
    host: str,
    *,
    discovery_id: str | None = None,
) -> list[PairedDoor]:
    """Authenticate against *host* and return every enabled door."""
    try:
        status: ControllerStatus = await client.get_status(host)
    except TailwindError as exc:
        _logger.error("Pairing status read from %s failed: %s", host, exc)
        raise TailwindConnectivityError(
            "Could not connect. Check IP address and Local Control Key.",
            host=host,
        ) from exc

    if status.result != RESULT_OK:
        raise TailwindPairingError("Controller returned an error. Check your Local Control Key.")

    dev_id = status.dev_id or host
    doors: list[PairedDoor] = []
    for number in range(1, (status.door_num or 0) + 1):
        door = status.door(number - 1)
        if door is None or door.is_disabled:
            continue
        doors.append(
            PairedDoor(
                name=f"Garage Door {number}",
                id=f"{dev_id}_door{number}",
                host=host,
                local_key=client.local_key,
                door_index=door.index,
                discovery_id=discovery_id,
            )
        )

    if not doors:
        raise TailwindPairingError("No enabled doors found on this controller.")
    _logger.debug("Pairing found %d door(s) on %s", len(doors), host)
    return doors
