"""Controller status, command result and push notification models."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from pytailwind._constants import RESULT_OK
from pytailwind.models._base import TailwindBaseModel
from pytailwind.state.events import DoorObservation, DoorState


_DOOR_KEY_RE = re.compile(r"door(\d+)")


def _door_key(index: int) -> str:
    return f"door{index + 1}"


class NotifyEvent(StrEnum):
    """Event type carried by a push ``notify`` descriptor."""

    UNKNOWN = "unknown"
    OPEN = "open"
    CLOSE = "close"
    LOCK = "lock"
    ENABLE = "enable"
    DISABLE = "disable"
    REBOOT = "reboot"

    @classmethod
    def _missing_(cls, value: object) -> NotifyEvent:
        return cls.UNKNOWN


class CommandResult(TailwindBaseModel):
    """Acknowledgement for ``set`` commands."""

    result: str = ""
    info: str | None = None

    @property
    def ok(self) -> bool:
        return self.result == RESULT_OK


class DoorStatus(TailwindBaseModel):
    """One entry of the per-door status map."""

    index: int
    status: str = ""
    """``"open"`` or ``"close"``."""
    lockup: int = 0
    disabled: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status == "close"

    @property
    def is_locked(self) -> bool:
        return bool(self.lockup)

    @property
    def is_disabled(self) -> bool:
        return bool(self.disabled)

    def to_observation(self) -> DoorObservation:
        return DoorObservation(
            index=self.index,
            closed=DoorState.from_closed(self.is_closed),
            locked=self.is_locked,
            disabled=self.is_disabled,
        )


class ControllerStatus(CommandResult):
    """Response to the ``dev_st`` status read."""

    product: str | None = None
    dev_id: str | None = None
    proto_ver: str | None = None
    door_num: int | None = None
    fw_ver: str | None = None
    led_brightness: int | None = None
    router_rssi: int | None = None
    server_monitor: bool | None = None
    data: dict[str, DoorStatus] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _normalize_doors(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        doors: dict[str, Any] = {}
        for key, entry in value.items():
            if not isinstance(entry, dict):
                continue
            match = _DOOR_KEY_RE.fullmatch(str(key))
            if match and "index" not in entry:
                entry = {**entry, "index": int(match.group(1)) - 1}
            doors[key] = entry
        return doors

    def door(self, index: int) -> DoorStatus | None:
        """Status entry for the 0-based door *index*, if reported."""
        return self.data.get(_door_key(index))


class NotifyDescriptor(TailwindBaseModel):
    door_idx: int | None = None
    event: NotifyEvent = NotifyEvent.UNKNOWN

    @field_validator("event", mode="before")
    @classmethod
    def _coerce_event(cls, value: Any) -> NotifyEvent:
        return NotifyEvent(str(value).lower())


class NotificationPayload(ControllerStatus):
    """Body the controller POSTs to the registered callback URL."""

    notify: NotifyDescriptor | None = None
