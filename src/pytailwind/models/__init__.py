"""Data models for Tailwind controller payloads."""

from pytailwind.models._base import TailwindBaseModel
from pytailwind.models.command import Command, CommandData, DoorCommand
from pytailwind.models.identity import ControllerIdentity
from pytailwind.models.status import (
    CommandResult,
    ControllerStatus,
    DoorStatus,
    NotificationPayload,
    NotifyDescriptor,
    NotifyEvent,
)

__all__ = [
    "Command",
    "CommandData",
    "CommandResult",
    "ControllerIdentity",
    "ControllerStatus",
    "DoorCommand",
    "DoorStatus",
    "NotificationPayload",
    "NotifyDescriptor",
    "NotifyEvent",
    "TailwindBaseModel",
]
