"""Per-door state reconciliation over polling and push notifications.

One :class:`DoorReconciler` exists per paired door. It polls the controller
on a timer, listens to the :class:`~pytailwind.notifications.NotificationRouter`
and merges both streams through a single
:class:`~pytailwind.state.tracker.DoorStateTracker`, so a transition is
reported exactly once whichever channel sees it first.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Protocol
from urllib.parse import urlencode

from pytailwind._constants import STORE_CONTROLLER_HOST, STORE_DOOR_INDEX
from pytailwind._transport import Transport
from pytailwind.client import TailwindClient
from pytailwind.config import TailwindConfig
from pytailwind.exceptions import TailwindError, TailwindUninitializedError
from pytailwind.models.identity import ControllerIdentity
from pytailwind.models.status import CommandResult, DoorStatus, NotificationPayload, NotifyEvent
from pytailwind.notifications import NotificationRouter, Subscription
from pytailwind.state.events import DoorState, DoorTrigger, ObservationSource
from pytailwind.state.store import IdentityStore
from pytailwind.state.tracker import DoorStateTracker

_logger = logging.getLogger(__name__)


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


class DoorEntity(Protocol):
    """Capability and trigger surface the host exposes for one door."""

    async def set_closed(self, closed: bool) -> None: ...

    async def set_available(self) -> None: ...

    async def set_unavailable(self, reason: str) -> None: ...

    async def fire_trigger(self, trigger: DoorTrigger) -> None: ...


def build_callback_url(base_url: str, path: str, host: str) -> str:
    """Callback URL registered with the controller.

    The controller host is embedded as the ``host`` query parameter so the
    ingress can tell which controller a push came from.
    """
    return f"{base_url.rstrip('/')}{path}?{urlencode({'host': host})}"


class DoorReconciler:
    """Authoritative, debounced view of one door.

    Usage::

        reconciler = DoorReconciler(entity, router, transport=transport, config=config)
        await reconciler.start(identity, door_index=0)
        ...
        reconciler.stop()
    """

    def __init__(
        self,
        entity: DoorEntity,
        router: NotificationRouter,
        *,
        transport: Transport,
        config: TailwindConfig | None = None,
        store: IdentityStore | None = None,
    ) -> None:
        self._entity = entity
        self._router = router
        self._transport = transport
        self._config = config or TailwindConfig()
        self._store = store
        self._loop: asyncio.AbstractEventLoop | None = None
        self._identity: ControllerIdentity | None = None
        self._client: TailwindClient | None = None
        self._tracker: DoorStateTracker | None = None
        self._poll_handle: asyncio.TimerHandle | None = None
        self._subscription: Subscription | None = None
        self._generation = 0
        self._stopped = False
        self._background: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def identity(self) -> ControllerIdentity | None:
        return self._identity

    @property
    def client(self) -> TailwindClient | None:
        return self._client

    @property
    def store(self) -> IdentityStore | None:
        return self._store

    @property
    def door_index(self) -> int | None:
        return self._tracker.door_index if self._tracker is not None else None

    @property
    def last_known(self) -> DoorState:
        return self._tracker.last_known if self._tracker is not None else DoorState.UNKNOWN

    @property
    def is_open(self) -> bool:
        """Whether the door is known to be open."""
        return self.last_known is DoorState.OPEN

    @property
    def is_running(self) -> bool:
        return self._tracker is not None and not self._stopped

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def make_client(self, local_key: str) -> TailwindClient:
        return TailwindClient(local_key, config=self._config, transport=self._transport)

    async def start(self, identity: ControllerIdentity, door_index: int) -> None:
        """Bind *identity*, poll once, then keep polling and listening for pushes."""
        if self._tracker is not None:
            raise TailwindError("Reconciler already started")
        self._loop = asyncio.get_running_loop()
        self._identity = identity
        self._tracker = DoorStateTracker(door_index)
        self._client = self.make_client(identity.local_key)
        self._subscription = self._router.subscribe(self.handle_notification)
        _logger.debug("Tracking door %d on %s", door_index, identity.host)
        await self._poll(self._generation)

    async def start_from_store(self) -> None:
        """Start from the committed store values, migrating legacy host keys."""
        if self._store is None:
            raise TailwindUninitializedError("No identity store configured")
        values = self._store.snapshot()
        identity = ControllerIdentity.from_store(values)
        if not values.get(STORE_CONTROLLER_HOST) and identity.host:
            _logger.info("Migrating stored controller host %s", identity.host)
            await self._store.set_value(STORE_CONTROLLER_HOST, identity.host)
        await self.start(identity, int(values.get(STORE_DOOR_INDEX) or 0))

    def stop(self) -> None:
        """Cancel polling and unsubscribe; no state changes after this returns."""
        self._stopped = True
        self._generation += 1
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None
        if self._subscription is not None:
            self._router.unsubscribe(self._subscription)
            self._subscription = None
        self._client = None
        _logger.debug("Stopped tracking door %s", self.door_index)

    def rebind(self, identity: ControllerIdentity, client: TailwindClient) -> None:
        """Replace identity and live client after a verified settings change."""
        if self._stopped:
            raise TailwindError("Reconciler is stopped")
        self._identity = identity
        self._client = client

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def issue_command(self, close_requested: bool) -> CommandResult:
        """Send ``close`` when *close_requested* is true, else ``open``."""
        client = self._client
        identity = self._identity
        if client is None or identity is None or self._tracker is None:
            raise TailwindUninitializedError("Client not initialized")
        cmd = "close" if close_requested else "open"
        return await client.control_door(identity.host, self._tracker.door_index, cmd)

    async def open(self) -> CommandResult:
        return await self.issue_command(False)

    async def close(self) -> CommandResult:
        return await self.issue_command(True)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return not self._stopped and generation == self._generation

    def _schedule_poll(self, generation: int) -> None:
        if not self._is_current(generation) or self._loop is None:
            return
        if self._poll_handle is not None:
            self._poll_handle.cancel()
        self._poll_handle = self._loop.call_later(self._config.poll_interval, self._on_poll_timer, generation)

    def _on_poll_timer(self, generation: int) -> None:
        self._poll_handle = None
        if not self._is_current(generation):
            return
        assert self._loop is not None  # noqa: S101
        self._track(self._loop.create_task(self._poll(generation)))

    async def _poll(self, generation: int) -> None:
        client = self._client
        identity = self._identity
        tracker = self._tracker
        if client is None or identity is None or tracker is None:
            return
        try:
            status = await client.get_status(identity.host)
            if not self._is_current(generation):
                _logger.debug("Discarding poll result for %s after teardown", identity.host)
                return
            door = status.door(tracker.door_index)
            if door is not None:
                trigger = self._observe(door, ObservationSource.POLL)
                await self._entity.set_closed(door.is_closed)
                if not self._is_current(generation):
                    return
                if trigger is not None:
                    self._fire(trigger)
            await self._entity.set_available()
            if not self._is_current(generation):
                return
            self._spawn(self._register_callback(client, identity.host), "Failed to re-register notifications")
        except Exception:
            if not self._is_current(generation):
                return
            _logger.warning("Failed to poll controller %s", identity.host, exc_info=True)
            try:
                await self._entity.set_unavailable(self._config.unavailable_reason)
            except Exception:
                _logger.debug("set_unavailable failed", exc_info=True)
        finally:
            self._schedule_poll(generation)

    # ------------------------------------------------------------------
    # Push notifications
    # ------------------------------------------------------------------

    def handle_notification(self, payload: NotificationPayload, source_host: str | None = None) -> None:
        """Merge a pushed payload; untagged payloads are accepted.

        Safe to call from any thread: off-loop calls are handed to the
        reconciler's loop.
        """
        loop = self._loop
        if self._stopped or loop is None:
            return
        if not _on_loop(loop):
            loop.call_soon_threadsafe(self._merge_notification, payload, source_host)
            return
        self._merge_notification(payload, source_host)

    def _merge_notification(self, payload: NotificationPayload, source_host: str | None) -> None:
        identity = self._identity
        tracker = self._tracker
        if self._stopped or identity is None or tracker is None:
            return
        if source_host and source_host != identity.host:
            _logger.debug("Ignoring notification from %s (bound to %s)", source_host, identity.host)
            return

        door = payload.door(tracker.door_index)
        if door is not None:
            trigger = self._observe(door, ObservationSource.PUSH)
            self._spawn(self._report_door(door.is_closed, trigger), "Failed to update door state")

        notify = payload.notify
        if notify is None:
            return
        if notify.event is NotifyEvent.LOCK and notify.door_idx == tracker.door_index:
            self._fire(DoorTrigger.LOCKED)
        if notify.event is NotifyEvent.REBOOT:
            self._fire(DoorTrigger.REBOOTED)
            self.schedule_registration("Failed to re-register notifications after reboot")

    # ------------------------------------------------------------------
    # Reconciliation and side effects
    # ------------------------------------------------------------------

    def _observe(self, door: DoorStatus, source: ObservationSource) -> DoorTrigger | None:
        assert self._tracker is not None  # noqa: S101
        return self._tracker.apply(door.to_observation(), source)

    async def _report_door(self, closed: bool, trigger: DoorTrigger | None) -> None:
        """Write the capability value, then fire the edge trigger."""
        try:
            await self._entity.set_closed(closed)
        finally:
            if trigger is not None and not self._stopped:
                self._fire(trigger)

    def _fire(self, trigger: DoorTrigger) -> None:
        self._spawn(self._entity.fire_trigger(trigger), f"Failed to fire {trigger}")

    def schedule_registration(self, failure_message: str = "Failed to register notifications") -> None:
        """Fire-and-forget callback registration against the current identity."""
        client = self._client
        identity = self._identity
        if client is None or identity is None:
            return
        self._spawn(self._register_callback(client, identity.host), failure_message)

    async def _register_callback(self, client: TailwindClient, host: str) -> None:
        base_url = self._config.callback_base_url
        if not base_url:
            _logger.debug("No callback base URL configured; skipping registration for %s", host)
            return
        url = build_callback_url(base_url, self._config.callback_path, host)
        await client.register_callback(host, url)
        _logger.info("Registered notify_url %s with %s", url, host)

    def _spawn(self, coro: Coroutine[Any, Any, Any], failure_message: str) -> None:
        async def _guarded() -> None:
            try:
                await coro
            except Exception:
                _logger.warning(failure_message, exc_info=True)

        loop = self._loop or asyncio.get_running_loop()
        self._track(loop.create_task(_guarded()))

    def _track(self, task: asyncio.Future[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _drain_background(self) -> None:
        """Wait for spawned work, including work spawned while waiting."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
