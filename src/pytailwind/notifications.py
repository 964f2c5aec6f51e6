"""Broadcast channel for inbound push notifications.

The ingress hands every parsed push body to :func:`receive_notification`,
which records it and fans it out to all subscribed reconcilers. Routing is
a broadcast: each subscriber filters by its own bound host.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pytailwind.exceptions import TailwindPayloadError
from pytailwind.models.status import NotificationPayload

_logger = logging.getLogger(__name__)

NotificationHandler = Callable[[NotificationPayload, str | None], None]


@dataclass(frozen=True, slots=True)
class Subscription:
    """Token returned by :meth:`NotificationRouter.subscribe`."""

    id: int


@dataclass(frozen=True, slots=True)
class NotificationLogEntry:
    payload: NotificationPayload
    source_host: str | None
    timestamp: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload.raw,
            "source_host": self.source_host,
            "timestamp": self.timestamp.isoformat(),
        }


class NotificationRouter:
    """Process-wide publish/subscribe registry for push payloads.

    ``subscribe``/``unsubscribe`` may be called from several reconcilers;
    the registry is guarded by a lock and ``publish`` iterates a snapshot so
    handlers can unsubscribe while being called.
    """

    def __init__(self, *, log_size: int = 10) -> None:
        self._handlers: dict[int, NotificationHandler] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._log: deque[NotificationLogEntry] = deque(maxlen=log_size)

    def subscribe(self, handler: NotificationHandler) -> Subscription:
        with self._lock:
            subscription = Subscription(next(self._ids))
            self._handlers[subscription.id] = handler
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._handlers.pop(subscription.id, None)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def publish(self, payload: NotificationPayload, source_host: str | None = None) -> None:
        """Record *payload* and deliver it to every subscriber.

        A failing handler is logged and does not prevent delivery to the
        others.
        """
        self._log.append(NotificationLogEntry(payload, source_host, datetime.now(UTC)))
        with self._lock:
            handlers = list(self._handlers.values())
        for handler in handlers:
            try:
                handler(payload, source_host)
            except Exception:
                _logger.warning("Notification handler failed", exc_info=True)

    def get_notification_log(self) -> list[NotificationLogEntry]:
        """The most recent payloads, oldest first."""
        return list(self._log)


def receive_notification(
    router: NotificationRouter,
    body: Mapping[str, Any] | None,
    source_host: str | None = None,
) -> NotificationPayload:
    """Validate a raw push body and publish it.

    Raises :class:`TailwindPayloadError` when the body is missing or carries
    no ``result`` field.
    """
    if not isinstance(body, Mapping) or not body.get("result"):
        raise TailwindPayloadError("Invalid notification payload")
    try:
        payload = NotificationPayload.model_validate(dict(body))
    except ValidationError as exc:
        raise TailwindPayloadError("Invalid notification payload") from exc

    _logger.info(
        "Received notification from %s: %s",
        source_host or "<untagged>",
        payload.notify.model_dump(exclude={"raw"}) if payload.notify else None,
    )
    router.publish(payload, source_host or None)
    return payload
