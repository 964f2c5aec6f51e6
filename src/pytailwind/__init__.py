"""pytailwind - Async Python client for Tailwind garage door controllers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytailwind")
except PackageNotFoundError:
    __version__ = "0+local"
from pytailwind.client import TailwindClient
from pytailwind.config import TailwindConfig
from pytailwind.discovery import ControllerInfo, DiscoveryResult, controllers_from_results, matches, normalize_hostname
from pytailwind.exceptions import (
    TailwindApiError,
    TailwindConfigError,
    TailwindConnectivityError,
    TailwindError,
    TailwindPairingError,
    TailwindPayloadError,
    TailwindUninitializedError,
    TailwindValidationError,
)
from pytailwind.models import (
    Command,
    CommandResult,
    ControllerIdentity,
    ControllerStatus,
    DoorStatus,
    NotificationPayload,
    NotifyEvent,
)
from pytailwind.notifications import NotificationLogEntry, NotificationRouter, Subscription, receive_notification
from pytailwind.pairing import PairedDoor, list_doors
from pytailwind.reconciler import DoorEntity, DoorReconciler
from pytailwind.settings import SettingsValidator
from pytailwind.state.events import DoorObservation, DoorState, DoorTrigger, ObservationSource
from pytailwind.state.store import IdentityStore, MemoryIdentityStore

__all__ = [
    "__version__",
    "Command",
    "CommandResult",
    "ControllerIdentity",
    "ControllerInfo",
    "ControllerStatus",
    "DiscoveryResult",
    "DoorEntity",
    "DoorObservation",
    "DoorReconciler",
    "DoorState",
    "DoorStatus",
    "DoorTrigger",
    "IdentityStore",
    "MemoryIdentityStore",
    "NotificationLogEntry",
    "NotificationPayload",
    "NotificationRouter",
    "NotifyEvent",
    "ObservationSource",
    "PairedDoor",
    "SettingsValidator",
    "Subscription",
    "TailwindApiError",
    "TailwindClient",
    "TailwindConfig",
    "TailwindConfigError",
    "TailwindConnectivityError",
    "TailwindError",
    "TailwindPairingError",
    "TailwindPayloadError",
    "TailwindUninitializedError",
    "TailwindValidationError",
    "controllers_from_results",
    "list_doors",
    "matches",
    "normalize_hostname",
    "receive_notification",
]
