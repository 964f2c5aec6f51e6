"""Wire-level command envelope sent to ``POST http://{host}/json``."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from pytailwind._constants import (
    CMD_DEVICE_STATUS,
    CMD_DOOR_OPERATION,
    CMD_NOTIFY_URL,
    PRODUCT,
    PROTOCOL_VERSION,
)

DoorCommand = Literal["open", "close"]


class CommandData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["get", "set"]
    name: str
    value: dict[str, Any] | None = None


class Command(BaseModel):
    """A versioned command envelope.

    ``version`` is pinned to ``"0.1"``; ``product`` is only present on
    mutating (``set``) commands.
    """

    model_config = ConfigDict(frozen=True)

    version: Literal["0.1"] = PROTOCOL_VERSION
    product: Literal["iQ3"] | None = None
    data: CommandData

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with absent optional fields omitted."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def status(cls) -> Command:
        return cls(data=CommandData(type="get", name=CMD_DEVICE_STATUS))

    @classmethod
    def door_operation(cls, door_index: int, cmd: DoorCommand) -> Command:
        return cls._set(CMD_DOOR_OPERATION, {"door_idx": door_index, "cmd": cmd})

    @classmethod
    def register_callback(cls, url: str) -> Command:
        return cls._set(CMD_NOTIFY_URL, {"enable": 1, "proto": "http", "url": url})

    @classmethod
    def unregister_callback(cls) -> Command:
        return cls._set(CMD_NOTIFY_URL, {"enable": 0})

    @classmethod
    def _set(cls, name: str, value: dict[str, Any]) -> Command:
        return cls(product=PRODUCT, data=CommandData(type="set", name=name, value=value))
